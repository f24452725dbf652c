"""Playback states and the error taxonomy shared by player and engines."""

from __future__ import annotations

import os
from enum import Enum
from typing import Union

Source = Union[str, "os.PathLike[str]"]


class PlaybackState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    FINISHED = "finished"


class AudioPlayerError(Exception):
    """Base class for audio player failures."""


class EngineError(AudioPlayerError):
    """The audio engine could not open or decode a source."""


class AudioSessionError(AudioPlayerError):
    """The shared audio output session could not be configured."""


class LoadError(AudioPlayerError):
    """A load request had no effect.

    Carries the source that was requested and the diagnostic message of the
    underlying engine or session failure (also available as ``__cause__``).
    """

    def __init__(self, source: Source, message: str) -> None:
        self.source = os.fspath(source) if isinstance(source, os.PathLike) else str(source)
        self.message = str(message)
        super().__init__(f"Failed to load {self.source}: {self.message}")
