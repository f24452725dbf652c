"""Native audio engine integrations."""

from .vlc_engine import (
    COMMON_META_KEYS,
    VlcAudioEngine,
    VlcAudioHandle,
    VlcAudioSession,
    is_remote_source,
)

__all__ = [
    "COMMON_META_KEYS",
    "VlcAudioEngine",
    "VlcAudioHandle",
    "VlcAudioSession",
    "is_remote_source",
]
