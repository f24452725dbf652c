"""Domain types for playback state and load failures."""

from .playback import (
    AudioPlayerError,
    AudioSessionError,
    EngineError,
    LoadError,
    PlaybackState,
)

__all__ = [
    "AudioPlayerError",
    "AudioSessionError",
    "EngineError",
    "LoadError",
    "PlaybackState",
]
