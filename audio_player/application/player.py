"""Player facade over a native audio engine.

``AudioPlayer`` owns at most one native handle at a time and exposes the
transport controls (play, pause, replay, stop, seek, skip), a recurring
progress notifier and observer callbacks. Every transport call, position
read and progress tick runs under one re-entrant lock; observer callbacks are
delivered after the lock is released so observers may call back into the
player.
"""

from __future__ import annotations

import functools
import logging
import os
import threading
import weakref
from typing import Any, Callable, Mapping, Optional

from ..domain.playback import LoadError, PlaybackState, Source
from .ports import AudioEngine, AudioSession, NativeAudioHandle
from .progress import RepeatingTimer

PLAYBACK_CATEGORY = "playback"


def _clamp_volume(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _source_label(source: Source) -> str:
    return os.fspath(source) if isinstance(source, os.PathLike) else str(source)


class AudioPlayer:
    """Thin state-tracking facade for one track at a time."""

    def __init__(
        self,
        engine: AudioEngine,
        session: AudioSession,
        *,
        progress_interval: float = 1.0,
        volume: float = 1.0,
        skip_step_seconds: float = 5.0,
        timer_factory: Optional[Callable[[float, Callable[[], None]], Any]] = None,
        logger=None,
    ) -> None:
        self.engine = engine
        self.session = session
        self.progress_interval = float(progress_interval)
        self.skip_step_seconds = float(skip_step_seconds)
        self.logger = logger or logging.getLogger(__name__)
        self._timer_factory = timer_factory or self._default_timer
        self._lock = threading.RLock()
        self._track: NativeAudioHandle | None = None
        self._source: str | None = None
        self._state = PlaybackState.EMPTY
        self._volume = _clamp_volume(volume)
        self._muted = False
        self._progress_job: Any = None
        self._progress_generation = 0
        self._observer_ref: weakref.ReferenceType | None = None
        self.was_paused = False
        self.last_load_error: LoadError | None = None

    def _default_timer(self, interval: float, callback: Callable[[], None]) -> RepeatingTimer:
        return RepeatingTimer(interval, callback, logger=self.logger)

    # Observer

    @property
    def observer(self):
        if self._observer_ref is None:
            return None
        return self._observer_ref()

    @observer.setter
    def observer(self, observer) -> None:
        self._observer_ref = weakref.ref(observer) if observer is not None else None

    def _notify(self, event: str, *args) -> None:
        observer = self.observer
        if observer is None:
            return
        callback = getattr(observer, event, None)
        if callback is None:
            return
        try:
            callback(self, *args)
        except Exception:
            self.logger.exception("Observer callback %s failed", event)

    # State

    @property
    def is_loaded(self) -> bool:
        return self._track is not None

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._track is not None and bool(self._track.is_playing)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def progress_active(self) -> bool:
        return self._progress_job is not None

    @property
    def volume(self) -> float:
        with self._lock:
            return self._volume if self._track is not None else 0.0

    @volume.setter
    def volume(self, value: float) -> None:
        with self._lock:
            self._volume = _clamp_volume(value)
            if self._track is not None and not self._muted:
                self._track.volume = self._volume

    @property
    def is_muted(self) -> bool:
        return self._muted

    @is_muted.setter
    def is_muted(self, muted: bool) -> None:
        with self._lock:
            self._muted = bool(muted)
            if self._track is not None:
                self._track.volume = self._effective_volume()

    def _effective_volume(self) -> float:
        return 0.0 if self._muted else self._volume

    # Loading

    def load_track(self, source: Source) -> bool:
        """Load ``source`` and make it the current track.

        Returns ``False`` when the engine or the audio session fails; the
        failure is logged, kept on ``last_load_error`` and sent to the
        observer's optional ``on_load_failed``. A failed load never touches
        the previously loaded track.
        """
        label = _source_label(source)
        handle: NativeAudioHandle | None = None
        try:
            handle = self.engine.create_handle(source)
            handle.volume = self._effective_volume()
            if not handle.prepare_to_play():
                self.logger.debug("Engine could not preroll %s", label)
            self.session.set_category(PLAYBACK_CATEGORY)
            self.session.set_active(True)
        except Exception as exc:
            if handle is not None:
                self._dispose(handle)
            error = LoadError(label, str(exc) or exc.__class__.__name__)
            error.__cause__ = exc
            self.last_load_error = error
            self.logger.exception("Error loading audio: %s", label)
            self._notify("on_load_failed", error)
            return False

        with self._lock:
            previous = self._track
            self._cancel_progress_locked()
            handle.on_finished = functools.partial(self._on_engine_finished, handle)
            self._track = handle
            self._source = label
            self._state = PlaybackState.LOADED
            self.was_paused = False
            self.last_load_error = None
        if previous is not None:
            self._dispose(previous)
        self.logger.info("Loaded %s", label)

        metadata = self._read_metadata(source)
        if metadata:
            self._notify("on_metadata_updated", metadata)
        return True

    def _read_metadata(self, source: Source) -> dict[str, str]:
        try:
            raw: Mapping[str, Any] = self.engine.read_common_metadata(source) or {}
        except Exception:
            self.logger.warning("Failed to read metadata for %s", _source_label(source), exc_info=True)
            return {}
        return {str(key): str(value) for key, value in raw.items() if key and value}

    def _dispose(self, handle: NativeAudioHandle) -> None:
        handle.on_finished = None
        try:
            handle.stop()
            handle.release()
        except Exception:
            self.logger.exception("Failed to release audio handle")

    def close(self) -> None:
        """Stop progress reporting and release the loaded track."""
        with self._lock:
            self._cancel_progress_locked()
            track = self._track
            self._track = None
            self._source = None
            self._state = PlaybackState.EMPTY
        if track is not None:
            self._dispose(track)

    # Transport

    def play(self) -> None:
        with self._lock:
            track = self._track
            if track is None:
                return
            if not self._start_track_locked(track):
                return
            self._state = PlaybackState.PLAYING
            self._start_progress_locked()

    def _start_track_locked(self, track: NativeAudioHandle) -> bool:
        try:
            track.play()
        except Exception:
            self.logger.exception("Failed to start playback of %s", self._source)
            return False
        return True

    def pause(self) -> None:
        with self._lock:
            track = self._track
            if track is None:
                return
            if track.is_playing:
                track.pause()
                self.was_paused = True
                self._state = PlaybackState.PAUSED
            else:
                self.was_paused = False
            self._cancel_progress_locked()

    def replay(self) -> None:
        with self._lock:
            track = self._track
            if track is None:
                return
            track.stop()
            track.position = 0.0
            if not self._start_track_locked(track):
                self._state = PlaybackState.STOPPED
                self._cancel_progress_locked()
                return
            self._state = PlaybackState.PLAYING
            self._start_progress_locked()

    def stop(self) -> None:
        with self._lock:
            track = self._track
            if track is None:
                return
            track.stop()
            self._state = PlaybackState.STOPPED
            self._cancel_progress_locked()

    def seek(self, position: float) -> None:
        with self._lock:
            track = self._track
            if track is None:
                return
            self._move_locked(track, float(position))

    def skip_backward(self, delta: float | None = None) -> None:
        step = self.skip_step_seconds if delta is None else float(delta)
        with self._lock:
            track = self._track
            if track is None:
                return
            self._move_locked(track, max(track.position - step, 0.0))

    def skip_forward(self, delta: float | None = None) -> None:
        step = self.skip_step_seconds if delta is None else float(delta)
        with self._lock:
            track = self._track
            if track is None:
                return
            target = track.position + step
            duration = float(track.duration)
            if duration > 0:
                target = min(target, duration)
            self._move_locked(track, target)

    def _move_locked(self, track: NativeAudioHandle, position: float) -> None:
        track.position = position
        if track.is_playing:
            # Restart so the next tick reports the new position right away.
            self._start_progress_locked()

    def current_position(self) -> float | None:
        with self._lock:
            if self._track is None:
                return None
            return float(self._track.position)

    def total_duration(self) -> float | None:
        with self._lock:
            if self._track is None:
                return None
            return float(self._track.duration)

    def snapshot(self) -> dict[str, Any]:
        """Resumable player settings, as stored by ``save_player_state``."""
        with self._lock:
            position = float(self._track.position) if self._track is not None else 0.0
            return {
                "source": self._source,
                "position_seconds": position,
                "volume": self._volume,
                "muted": self._muted,
            }

    # Progress

    def _start_progress_locked(self) -> None:
        self._cancel_progress_locked()
        self._progress_generation += 1
        job = self._timer_factory(
            self.progress_interval,
            functools.partial(self._on_progress_tick, self._progress_generation),
        )
        self._progress_job = job
        job.start()

    def _cancel_progress_locked(self) -> None:
        job = self._progress_job
        self._progress_job = None
        if job is not None:
            job.cancel()

    def _on_progress_tick(self, generation: int) -> None:
        with self._lock:
            track = self._track
            if track is None or self._progress_job is None:
                return
            if generation != self._progress_generation:
                return
            position = float(track.position)
            duration = float(track.duration)
            # Unknown duration (live streams): only the engine can finish.
            if duration <= 0:
                remaining = 0.0
                finished = False
            else:
                remaining = duration - position
                finished = remaining <= 0
            if finished:
                self._cancel_progress_locked()
                self._state = PlaybackState.FINISHED
        if finished:
            self._notify("on_finished")
        else:
            self._notify("on_progress", position, remaining)

    def _on_engine_finished(self, handle: NativeAudioHandle, success: bool) -> None:
        with self._lock:
            if handle is not self._track:
                return
            source = self._source
            self._cancel_progress_locked()
            self._state = PlaybackState.FINISHED if success else PlaybackState.STOPPED
        if success:
            self._notify("on_finished")
        else:
            self.logger.warning("Playback of %s ended abnormally", source)
