"""Command-line entrypoint that plays one audio source through libVLC."""

from __future__ import annotations

import argparse
import os
import threading
from pathlib import Path
from typing import Mapping, Sequence

from audio_player.application.player import AudioPlayer
from audio_player.config import PlayerConfig, load_config
from audio_player.domain.playback import PlaybackState
from audio_player.integrations.vlc_engine import VlcAudioEngine, VlcAudioSession, is_remote_source
from audio_player.logging_config import setup_logging
from audio_player.storage.player_state import (
    coerce_bool,
    coerce_float,
    load_player_state,
    save_player_state,
)


def format_timestamp(seconds: float) -> str:
    total = int(max(0.0, float(seconds)))
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class ConsoleObserver:
    """Logs player events and signals when playback is over."""

    def __init__(self, logger) -> None:
        self.logger = logger
        self.done = threading.Event()

    def on_metadata_updated(self, player, metadata: Mapping[str, str]) -> None:
        summary = ", ".join(f"{key}={value}" for key, value in sorted(metadata.items()))
        self.logger.info("Metadata: %s", summary)

    def on_progress(self, player, current_position: float, remaining: float) -> None:
        self.logger.info(
            "%s / -%s", format_timestamp(current_position), format_timestamp(remaining)
        )

    def on_finished(self, player) -> None:
        self.logger.info("Playback finished: %s", player.source)
        self.done.set()

    def on_load_failed(self, player, error) -> None:
        self.logger.error("%s", error)
        self.done.set()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play an audio file or stream.")
    parser.add_argument("source", help="Audio file path or stream URL.")
    parser.add_argument("--volume", type=float, default=None, help="Output volume 0..1.")
    parser.add_argument("--start", type=float, default=None, help="Start offset in seconds.")
    parser.add_argument("--mute", action="store_true", help="Start muted.")
    parser.add_argument(
        "--no-resume",
        action="store_true",
        help="Ignore the position saved by a previous run.",
    )
    return parser


def build_player(config: PlayerConfig, logger) -> AudioPlayer:
    session = VlcAudioSession(args=config.vlc_args)
    engine = VlcAudioEngine(session, parse_timeout_ms=config.parse_timeout_ms, logger=logger)
    return AudioPlayer(
        engine,
        session,
        progress_interval=config.progress_interval_seconds,
        volume=config.default_volume,
        skip_step_seconds=config.skip_step_seconds,
        logger=logger,
    )


def normalize_source(source: str) -> str:
    return source if is_remote_source(source) else os.path.abspath(source)


def _restore_settings(player: AudioPlayer, saved: Mapping, args: argparse.Namespace) -> None:
    if args.volume is not None:
        player.volume = args.volume
    elif "volume" in saved:
        player.volume = coerce_float(saved.get("volume"), default=1.0, min_value=0.0, max_value=1.0)
    if args.mute:
        player.is_muted = True
    else:
        player.is_muted = coerce_bool(saved.get("muted"), default=False)


def _start_position(saved: Mapping, source: str, args: argparse.Namespace) -> float:
    if args.start is not None:
        return max(0.0, float(args.start))
    if args.no_resume or saved.get("source") != source:
        return 0.0
    return coerce_float(saved.get("position_seconds"), default=0.0, min_value=0.0)


def run(
    argv: Sequence[str] | None = None,
    *,
    config: PlayerConfig | None = None,
    player: AudioPlayer | None = None,
    wait_timeout: float | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    config = config or load_config()
    logger = setup_logging(config)
    owns_player = player is None
    player = player or build_player(config, logger)
    try:
        return _play(player, args, config, logger, wait_timeout)
    finally:
        if owns_player:
            player.session.release()


def _play(
    player: AudioPlayer,
    args: argparse.Namespace,
    config: PlayerConfig,
    logger,
    wait_timeout: float | None,
) -> int:
    observer = ConsoleObserver(logger)
    player.observer = observer
    state_path = Path(config.state_path)
    saved = load_player_state(state_path, logger) if config.resume_enabled else {}
    source = normalize_source(args.source)

    _restore_settings(player, saved, args)
    if not player.load_track(source):
        player.close()
        return 1

    start = _start_position(saved, source, args)
    duration = player.total_duration() or 0.0
    if start > 0 and (duration <= 0 or start < duration):
        logger.info("Starting at %s", format_timestamp(start))
        player.seek(start)
    player.play()
    try:
        observer.done.wait(wait_timeout)
    except KeyboardInterrupt:
        logger.info("Interrupted; pausing playback")
        player.pause()
    finally:
        snapshot = player.snapshot()
        if player.state is PlaybackState.FINISHED:
            snapshot["position_seconds"] = 0.0
        save_player_state(state_path, snapshot, logger)
        player.close()
    return 0


def launch() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    launch()
