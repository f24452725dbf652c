"""libVLC-backed audio engine, native handle and output session."""

from __future__ import annotations

import logging
import os
import re
import sys
import threading
import time
from typing import Callable, Iterable, Optional

from ..domain.playback import AudioSessionError, EngineError, Source

try:
    import vlc as _vlc
except Exception:  # pragma: no cover - dependency optional at import time
    _vlc = None

_MRL_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_PARSE_POLL_SECONDS = 0.02

COMMON_META_KEYS = (
    ("title", "Title"),
    ("artist", "Artist"),
    ("album", "Album"),
    ("albumArtist", "AlbumArtist"),
    ("genre", "Genre"),
    ("creationDate", "Date"),
    ("description", "Description"),
    ("copyrights", "Copyright"),
    ("publisher", "Publisher"),
    ("language", "Language"),
    ("trackNumber", "TrackNumber"),
    ("artwork", "ArtworkURL"),
)


def is_remote_source(source: Source) -> bool:
    return bool(_MRL_RE.match(os.fspath(source)))


class VlcAudioSession:
    """Shared libVLC instance acting as the process audio output session."""

    CATEGORIES = ("playback",)

    _shared: Optional["VlcAudioSession"] = None
    _shared_lock = threading.Lock()

    def __init__(
        self,
        *,
        vlc_module=None,
        args: Iterable[str] = (),
        platform_name: str | None = None,
    ) -> None:
        self.vlc = vlc_module if vlc_module is not None else _vlc
        platform_value = platform_name if platform_name is not None else sys.platform
        base_args = ["--no-xlib"] if str(platform_value).startswith("linux") else []
        self.args = base_args + ["--no-video"] + [str(arg) for arg in args]
        self.category: str | None = None
        self.active = False
        self._instance = None
        self._lock = threading.Lock()

    @classmethod
    def shared(cls, **kwargs) -> "VlcAudioSession":
        """Return the process-wide session, creating it on first use."""
        with cls._shared_lock:
            if cls._shared is None:
                cls._shared = cls(**kwargs)
            return cls._shared

    @property
    def instance(self):
        with self._lock:
            if self._instance is None:
                if self.vlc is None:
                    raise AudioSessionError("python-vlc is not available")
                instance = self.vlc.Instance(self.args)
                if instance is None:
                    raise AudioSessionError("libVLC could not be initialised")
                self._instance = instance
            return self._instance

    def set_category(self, category: str) -> None:
        if category not in self.CATEGORIES:
            raise AudioSessionError(f"Unsupported audio session category: {category}")
        self.category = category

    def set_active(self, active: bool) -> None:
        if active:
            if self.category is None:
                raise AudioSessionError("Audio session category must be set before activation")
            _ = self.instance
        self.active = bool(active)

    def release(self) -> None:
        with self._lock:
            instance = self._instance
            self._instance = None
            self.active = False
        if instance is not None:
            try:
                instance.release()
            except Exception:
                pass


class VlcAudioHandle:
    """One libVLC media player bound to one parsed media.

    libVLC ignores seeks while the player is stopped, so such seeks are kept
    pending and applied once the player reports ``Playing``. libVLC events are
    re-dispatched on a daemon thread because libVLC must not be called from
    inside its own event callbacks.
    """

    def __init__(self, player, media, *, vlc_module, duration_ms: int = 0, logger=None) -> None:
        self._vlc = vlc_module
        self.player = player
        self.media = media
        self.logger = logger or logging.getLogger(__name__)
        self.on_finished: Optional[Callable[[bool], None]] = None
        self._duration_ms = max(0, int(duration_ms))
        self._volume = 1.0
        self._pending_ms: int | None = None
        self._lock = threading.Lock()
        events = player.event_manager()
        events.event_attach(vlc_module.EventType.MediaPlayerEndReached, self._on_end_reached)
        events.event_attach(vlc_module.EventType.MediaPlayerEncounteredError, self._on_error)
        events.event_attach(vlc_module.EventType.MediaPlayerPlaying, self._on_playing)
        self._events = events

    @property
    def duration(self) -> float:
        length = int(self.player.get_length() or 0)
        if length <= 0:
            length = self._duration_ms
        return float(length) / 1000.0

    @property
    def is_playing(self) -> bool:
        state = self.player.get_state()
        return state in (self._vlc.State.Opening, self._vlc.State.Buffering, self._vlc.State.Playing)

    @property
    def position(self) -> float:
        with self._lock:
            if self._pending_ms is not None:
                return float(self._pending_ms) / 1000.0
        if self.player.get_state() == self._vlc.State.Ended:
            return self.duration
        return float(max(0, int(self.player.get_time() or 0))) / 1000.0

    @position.setter
    def position(self, seconds: float) -> None:
        target_ms = max(0, int(round(float(seconds) * 1000.0)))
        state = self.player.get_state()
        with self._lock:
            if state in (self._vlc.State.Playing, self._vlc.State.Paused):
                self.player.set_time(target_ms)
                self._pending_ms = None
            else:
                self._pending_ms = target_ms

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = max(0.0, min(1.0, float(value)))
        self._apply_volume()

    def _apply_volume(self) -> None:
        # Returns -1 until an audio output exists; re-applied on Playing.
        self.player.audio_set_volume(int(round(self._volume * 100.0)))

    def play(self) -> None:
        rc = int(self.player.play())
        if rc == -1:
            raise EngineError("VLC failed to start playback.")
        self._apply_volume()

    def pause(self) -> None:
        self.player.set_pause(1)

    def stop(self) -> None:
        self.player.stop()

    def prepare_to_play(self) -> bool:
        if self.player.get_media() is None:
            self.player.set_media(self.media)
        self._apply_volume()
        return self._duration_ms > 0

    def release(self) -> None:
        self.on_finished = None
        for event_type in (
            self._vlc.EventType.MediaPlayerEndReached,
            self._vlc.EventType.MediaPlayerEncounteredError,
            self._vlc.EventType.MediaPlayerPlaying,
        ):
            try:
                self._events.event_detach(event_type)
            except Exception:
                pass
        try:
            self.player.stop()
        except Exception:
            pass
        if self.media is not None:
            try:
                self.media.release()
            except Exception:
                pass
            self.media = None
        try:
            self.player.release()
        except Exception:
            pass

    def _dispatch(self, target: Callable[..., None], *args) -> None:
        def runner() -> None:
            try:
                target(*args)
            except Exception:
                self.logger.exception("VLC event handler failed")

        threading.Thread(target=runner, name="vlc-event", daemon=True).start()

    def _on_end_reached(self, _event) -> None:
        self._dispatch(self._emit_finished, True)

    def _on_error(self, _event) -> None:
        self._dispatch(self._emit_finished, False)

    def _on_playing(self, _event) -> None:
        self._dispatch(self._apply_pending)

    def _emit_finished(self, success: bool) -> None:
        callback = self.on_finished
        if callback is not None:
            callback(success)

    def _apply_pending(self) -> None:
        with self._lock:
            target_ms = self._pending_ms
            self._pending_ms = None
            if target_ms is not None:
                self.player.set_time(target_ms)
        self._apply_volume()


class VlcAudioEngine:
    """Creates ``VlcAudioHandle`` objects and reads common metadata."""

    def __init__(
        self,
        session: VlcAudioSession | None = None,
        *,
        parse_timeout_ms: int = 5000,
        vlc_module=None,
        logger=None,
    ) -> None:
        self.session = session or VlcAudioSession.shared(vlc_module=vlc_module)
        self.parse_timeout_ms = max(1, int(parse_timeout_ms))
        self.logger = logger or logging.getLogger(__name__)

    @property
    def vlc(self):
        return self.session.vlc

    def _open_media(self, source: Source):
        instance = self.session.instance
        location = os.fspath(source)
        if is_remote_source(location):
            media = instance.media_new(location)
        else:
            if not os.path.isfile(location):
                raise FileNotFoundError(location)
            media = instance.media_new_path(os.path.abspath(location))
        if media is None:
            raise EngineError(f"VLC could not open {location}")
        return media

    def _parse(self, media, source: Source) -> int:
        remote = is_remote_source(source)
        statuses = self.vlc.MediaParsedStatus
        flags = self.vlc.MediaParseFlag.network if remote else self.vlc.MediaParseFlag.local
        if int(media.parse_with_options(flags, self.parse_timeout_ms)) == -1:
            raise EngineError(f"VLC refused to parse {os.fspath(source)}")
        terminal = (statuses.done, statuses.failed, statuses.timeout, statuses.skipped)
        deadline = time.monotonic() + self.parse_timeout_ms / 1000.0 + 0.5
        status = media.get_parsed_status()
        while status not in terminal and time.monotonic() < deadline:
            time.sleep(_PARSE_POLL_SECONDS)
            status = media.get_parsed_status()
        accepted = (statuses.done, statuses.skipped) if remote else (statuses.done,)
        if status not in accepted:
            raise EngineError(f"Unsupported or unreadable media: {os.fspath(source)}")
        duration_ms = int(media.get_duration() or 0)
        if not remote and duration_ms <= 0:
            raise EngineError(f"No playable audio in {os.fspath(source)}")
        return max(0, duration_ms)

    def create_handle(self, source: Source) -> VlcAudioHandle:
        media = self._open_media(source)
        try:
            duration_ms = self._parse(media, source)
            player = self.session.instance.media_player_new()
            if player is None:
                raise EngineError("VLC could not create a media player")
            player.set_media(media)
        except Exception:
            media.release()
            raise
        self.logger.debug("Opened %s (%d ms)", os.fspath(source), duration_ms)
        return VlcAudioHandle(
            player,
            media,
            vlc_module=self.vlc,
            duration_ms=duration_ms,
            logger=self.logger,
        )

    def read_common_metadata(self, source: Source) -> dict[str, str]:
        media = self._open_media(source)
        try:
            self._parse(media, source)
            metadata: dict[str, str] = {}
            for key, meta_name in COMMON_META_KEYS:
                meta = getattr(self.vlc.Meta, meta_name, None)
                if meta is None:
                    continue
                value = media.get_meta(meta)
                if value:
                    metadata[key] = str(value)
            return metadata
        finally:
            media.release()
