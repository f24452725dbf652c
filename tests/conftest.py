"""Shared fakes: an in-memory audio engine, manually fired timers and a logger.

Timers never run on their own; tests advance virtual time by moving the fake
handle position and calling ``fire()`` on the current timer.
"""

from __future__ import annotations

import pytest

from audio_player.application.player import AudioPlayer
from audio_player.domain.playback import AudioSessionError, EngineError


class FakeHandle:
    def __init__(self, source, duration: float = 10.0) -> None:
        self.source = source
        self._duration = float(duration)
        self.position = 0.0
        self.volume = 1.0
        self.is_playing = False
        self.on_finished = None
        self.calls: list[str] = []
        self.prepared = False
        self.released = False
        self.play_error: Exception | None = None

    @property
    def duration(self) -> float:
        return self._duration

    def play(self) -> None:
        self.calls.append("play")
        if self.play_error is not None:
            raise self.play_error
        self.is_playing = True

    def pause(self) -> None:
        self.calls.append("pause")
        self.is_playing = False

    def stop(self) -> None:
        self.calls.append("stop")
        self.is_playing = False

    def prepare_to_play(self) -> bool:
        self.prepared = True
        return True

    def release(self) -> None:
        self.released = True


class FakeEngine:
    def __init__(self) -> None:
        self.durations: dict[str, float] = {}
        self.metadata: dict[str, dict[str, str]] = {}
        self.broken: set[str] = set()
        self.broken_metadata: set[str] = set()
        self.handles: list[FakeHandle] = []

    def create_handle(self, source):
        if str(source) in self.broken:
            raise EngineError(f"Unsupported or unreadable media: {source}")
        handle = FakeHandle(source, self.durations.get(str(source), 10.0))
        self.handles.append(handle)
        return handle

    def read_common_metadata(self, source):
        if str(source) in self.broken_metadata:
            raise EngineError("metadata unavailable")
        return dict(self.metadata.get(str(source), {}))


class FakeSession:
    def __init__(self) -> None:
        self.category = None
        self.active = False
        self.activations = 0
        self.fail_activation = False
        self.released = False

    def set_category(self, category: str) -> None:
        self.category = category

    def set_active(self, active: bool) -> None:
        if self.fail_activation:
            raise AudioSessionError("output device busy")
        self.activations += 1
        self.active = bool(active)

    def release(self) -> None:
        self.released = True
        self.active = False


class ManualTimer:
    def __init__(self, interval, callback) -> None:
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled:
            self.callback()


class TimerFactory:
    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def __call__(self, interval, callback) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def current(self) -> ManualTimer:
        return self.timers[-1]

    @property
    def active(self) -> list[ManualTimer]:
        return [timer for timer in self.timers if timer.started and not timer.cancelled]


class RecordingObserver:
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def on_finished(self, player) -> None:
        self.events.append(("finished",))

    def on_progress(self, player, current_position, remaining) -> None:
        self.events.append(("progress", current_position, remaining))

    def on_metadata_updated(self, player, metadata) -> None:
        self.events.append(("metadata", dict(metadata)))

    def on_load_failed(self, player, error) -> None:
        self.events.append(("load_failed", error))

    def of_kind(self, kind: str) -> list[tuple]:
        return [event for event in self.events if event[0] == kind]


class RecordingLogger:
    def __init__(self) -> None:
        self.infos = []
        self.debugs = []
        self.warnings = []
        self.exceptions = []

    def info(self, message, *args, **_kwargs):
        self.infos.append(message % args if args else message)

    def debug(self, message, *args, **_kwargs):
        self.debugs.append(message % args if args else message)

    def warning(self, message, *args, **_kwargs):
        self.warnings.append(message % args if args else message)

    def error(self, message, *args, **_kwargs):
        self.exceptions.append(message % args if args else message)

    def exception(self, message, *args, **_kwargs):
        self.exceptions.append(message % args if args else message)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def timers() -> TimerFactory:
    return TimerFactory()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def player(engine, session, timers, observer, recording_logger) -> AudioPlayer:
    audio_player = AudioPlayer(
        engine,
        session,
        progress_interval=1.0,
        skip_step_seconds=5.0,
        timer_factory=timers,
        logger=recording_logger,
    )
    audio_player.observer = observer
    return audio_player
