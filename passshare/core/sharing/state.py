"""
Session state owned by a single controller.

All mutation goes through the methods below and happens on the event
loop thread, so no locking is needed.
"""
import asyncio
from enum import Enum
from typing import Callable, Dict, List, Optional

from .models import SharedFile


class SessionPhase(Enum):
    """Client view of the session lifecycle."""
    NO_SESSION = 'no_session'
    CREATING = 'creating'
    JOINING = 'joining'
    IN_SESSION = 'in_session'


ProgressListener = Callable[[str, Optional[int]], None]


class TransferTracker:
    """
    Maps in-flight transfers to a percentage.

    Entries are created when a transfer starts, updated on every progress
    callback and removed after a short linger once the transfer ends.
    """

    def __init__(self, on_change: Optional[ProgressListener] = None):
        """
        Args:
            on_change: Called with (key, percent) on update and (key, None) on removal
        """
        self._progress: Dict[str, int] = {}
        self._removals: Dict[str, asyncio.TimerHandle] = {}
        self._on_change = on_change

    def __contains__(self, key: str) -> bool:
        return key in self._progress

    def __len__(self) -> int:
        return len(self._progress)

    def get(self, key: str) -> Optional[int]:
        return self._progress.get(key)

    def snapshot(self) -> Dict[str, int]:
        """Copy of the current progress map."""
        return dict(self._progress)

    def start(self, key: str) -> None:
        self._cancel_removal(key)
        self.update(key, 0)

    def update(self, key: str, percent: int) -> None:
        percent = max(0, min(100, int(percent)))
        if self._progress.get(key) == percent:
            return
        self._progress[key] = percent
        if self._on_change:
            self._on_change(key, percent)

    def remove(self, key: str) -> None:
        self._removals.pop(key, None)
        if self._progress.pop(key, None) is not None and self._on_change:
            self._on_change(key, None)

    def finish(self, key: str, linger: float) -> None:
        """Remove the entry after ``linger`` seconds (immediately if not positive)."""
        self._cancel_removal(key)
        if linger <= 0:
            self.remove(key)
            return
        loop = asyncio.get_running_loop()
        self._removals[key] = loop.call_later(linger, self.remove, key)

    def clear(self) -> None:
        """Drop every entry and cancel pending removals."""
        for handle in self._removals.values():
            handle.cancel()
        self._removals.clear()
        self._progress.clear()

    def _cancel_removal(self, key: str) -> None:
        handle = self._removals.pop(key, None)
        if handle is not None:
            handle.cancel()


class SessionState:
    """
    Explicit state of the sharing screen.

    A client is in session exactly when it holds a non-empty passkey.
    """

    def __init__(self, on_progress: Optional[Callable[[str, str, Optional[int]], None]] = None):
        self.phase = SessionPhase.NO_SESSION
        self.passkey = ''
        self.files: List[SharedFile] = []
        self.upload_in_progress = False

        def relay(direction: str) -> Optional[ProgressListener]:
            if on_progress is None:
                return None
            return lambda key, percent: on_progress(direction, key, percent)

        self.uploads = TransferTracker(relay('upload'))
        self.downloads = TransferTracker(relay('download'))

    @property
    def in_session(self) -> bool:
        return bool(self.passkey) and self.phase is SessionPhase.IN_SESSION

    def enter(self, passkey: str) -> None:
        """Adopt a passkey; files of a previous session are dropped. The phase is left to the owner."""
        if passkey != self.passkey:
            self.files = []
        self.passkey = passkey

    def replace_files(self, files: List[SharedFile]) -> bool:
        """
        Store a fetched file list.

        Returns:
            False (and keeps the current list object) if the content is unchanged
        """
        if files == self.files:
            return False
        self.files = files
        return True

    def reset(self) -> None:
        """Return to NoSession, dropping files and all progress tracking."""
        self.phase = SessionPhase.NO_SESSION
        self.passkey = ''
        self.files = []
        self.uploads.clear()
        self.downloads.clear()
