"""Configuration loading from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .utils import env_flag, parse_float_env, parse_int_env, resolve_path


@dataclass(frozen=True)
class PlayerConfig:
    log_level: str
    file_log_level: str
    log_dir: str
    log_file: str
    progress_interval_seconds: float = 1.0
    default_volume: float = 1.0
    skip_step_seconds: float = 5.0
    parse_timeout_ms: int = 5000
    vlc_args: tuple[str, ...] = ()
    state_path: str = ".audio_player_state.json"
    resume_enabled: bool = True


def load_config() -> PlayerConfig:
    base_dir = str(Path(__file__).resolve().parents[1])
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    file_log_level = os.getenv("FILE_LOG_LEVEL", "DEBUG").strip().upper() or "DEBUG"
    log_dir = resolve_path(os.getenv("LOG_DIR", "logs"), base_dir)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(
        log_dir, f"player_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.log"
    )
    progress_interval_seconds = parse_float_env(
        "PROGRESS_INTERVAL_SECONDS", 1.0, min_value=0.05, max_value=60.0
    )
    default_volume = parse_float_env("DEFAULT_VOLUME", 1.0, min_value=0.0, max_value=1.0)
    skip_step_seconds = parse_float_env(
        "SKIP_STEP_SECONDS", 5.0, min_value=0.1, max_value=600.0
    )
    parse_timeout_ms = parse_int_env(
        "MEDIA_PARSE_TIMEOUT_MS", 5000, min_value=100, max_value=60000
    )
    vlc_args = tuple(os.getenv("VLC_ARGS", "").split())
    state_path = resolve_path(
        os.getenv("PLAYER_STATE_PATH", ".audio_player_state.json").strip()
        or ".audio_player_state.json",
        base_dir,
    )
    resume_enabled = env_flag("PLAYER_RESUME", "1")
    return PlayerConfig(
        log_level=log_level,
        file_log_level=file_log_level,
        log_dir=log_dir,
        log_file=log_file,
        progress_interval_seconds=progress_interval_seconds,
        default_volume=default_volume,
        skip_step_seconds=skip_step_seconds,
        parse_timeout_ms=parse_timeout_ms,
        vlc_args=vlc_args,
        state_path=state_path,
        resume_enabled=resume_enabled,
    )
