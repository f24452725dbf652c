"""Application-level ports for the native audio engine and player observers."""

from __future__ import annotations

from typing import Callable, Mapping, Optional, Protocol

from ..domain.playback import Source


class NativeAudioHandle(Protocol):
    """One loaded, playable track owned by the engine.

    Positions and durations are seconds; ``volume`` is in ``[0, 1]``.
    ``on_finished`` is invoked by the engine with ``True`` when playback
    reached the end and ``False`` when it stopped abnormally.
    """

    on_finished: Optional[Callable[[bool], None]]
    position: float
    volume: float

    @property
    def duration(self) -> float: ...

    @property
    def is_playing(self) -> bool: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def prepare_to_play(self) -> bool: ...

    def release(self) -> None: ...


class AudioEngine(Protocol):
    """Factory for native handles plus metadata extraction."""

    def create_handle(self, source: Source) -> NativeAudioHandle: ...

    def read_common_metadata(self, source: Source) -> dict[str, str]: ...


class AudioSession(Protocol):
    """Process-wide audio output session."""

    def set_category(self, category: str) -> None: ...

    def set_active(self, active: bool) -> None: ...

    def release(self) -> None: ...


class PlayerObserver(Protocol):
    """Receives player events. ``on_load_failed`` is optional."""

    def on_finished(self, player) -> None: ...

    def on_progress(self, player, current_position: float, remaining: float) -> None: ...

    def on_metadata_updated(self, player, metadata: Mapping[str, str]) -> None: ...
