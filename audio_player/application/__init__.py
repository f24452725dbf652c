"""Application layer: the player facade, its ports and progress timer."""

from .player import PLAYBACK_CATEGORY, AudioPlayer
from .ports import AudioEngine, AudioSession, NativeAudioHandle, PlayerObserver
from .progress import RepeatingTimer

__all__ = [
    "PLAYBACK_CATEGORY",
    "AudioEngine",
    "AudioPlayer",
    "AudioSession",
    "NativeAudioHandle",
    "PlayerObserver",
    "RepeatingTimer",
]
