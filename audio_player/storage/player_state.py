"""JSON persistence for the resumable player snapshot."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ..utils import TRUE_VALUES

_PLAYER_SECTION = "player"
_FALSE_VALUES = ("0", "false", "no", "off")


def coerce_float(
    value: Any,
    *,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    if isinstance(value, bool):
        parsed = float(default)
    else:
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            parsed = float(default)
    if parsed != parsed:  # NaN
        parsed = float(default)
    if min_value is not None:
        parsed = max(float(min_value), parsed)
    if max_value is not None:
        parsed = min(float(max_value), parsed)
    return parsed


def coerce_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
    return bool(default)


def _read_payload(path: Path) -> dict[str, Any]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return payload if isinstance(payload, dict) else {}


def load_player_state(path: Path, logger) -> dict[str, Any]:
    """Return the stored player section, or ``{}`` when missing or unreadable."""
    path = Path(path)
    if not path.is_file():
        return {}
    try:
        payload = _read_payload(path)
    except Exception:
        logger.exception("Failed to read player state")
        return {}
    section = payload.get(_PLAYER_SECTION)
    return dict(section) if isinstance(section, dict) else {}


def save_player_state(path: Path, snapshot: Mapping[str, Any], logger) -> bool:
    """Write ``snapshot`` into the player section, keeping other sections."""
    path = Path(path)
    try:
        document: dict[str, Any] = {}
        if path.is_file():
            try:
                document = _read_payload(path)
            except Exception:
                logger.exception("Failed to read player state")
        path.parent.mkdir(parents=True, exist_ok=True)
        document[_PLAYER_SECTION] = dict(snapshot)
        path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
    except Exception:
        logger.exception("Failed to save player state")
        return False
    return True
