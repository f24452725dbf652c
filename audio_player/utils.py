"""Small helpers for environment-driven configuration."""
from __future__ import annotations

import os
from typing import Callable, Optional, TypeVar

_Number = TypeVar("_Number", int, float)

TRUE_VALUES = ("1", "true", "yes", "on")


def resolve_path(value: str, base_dir: str) -> str:
    """Join value onto base_dir unless it is already absolute."""
    return value if os.path.isabs(value) else os.path.join(base_dir, value)


def _bounded_env(
    name: str,
    default: _Number,
    cast: Callable[[str], _Number],
    min_value: Optional[_Number],
    max_value: Optional[_Number],
) -> _Number:
    raw = os.getenv(name)
    try:
        value = cast(raw) if raw is not None and raw.strip() else default
    except ValueError:
        value = default
    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value
    return value


def parse_int_env(
    name: str,
    default: int,
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    return _bounded_env(name, default, int, min_value, max_value)


def parse_float_env(
    name: str,
    default: float,
    *,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> float:
    return float(_bounded_env(name, default, float, min_value, max_value))


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in TRUE_VALUES
