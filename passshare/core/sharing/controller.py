"""
Sharing session controller.

Owns the state of one file-sharing screen: the active passkey, the cached
file list, the transfer progress maps and the background poller. Every
remote call follows the same shape: try it, and on failure surface a
single message through a ``notice`` event and fall back to the previous
stable state. Nothing is retried.

Events emitted:
    notice   (Notice)                      user-facing success/error message
    files    (List[SharedFile])            file list changed
    progress (direction, key, percent)     percent is None once removed
    phase    (SessionPhase)                lifecycle transition
"""
from pathlib import Path
from typing import Callable, List, Optional

from ..api.async_client import AsyncAPIClient
from ..api.config import ShareConfig
from ..api.errors import extract_error_message
from ..api.events import EventEmitter
from ..download import DownloadCoordinator, ShareHandler, LoggingShareHandler
from ..exceptions import PassShareException
from ..logging import get_logger
from ..store import UserStore, StoredUser
from ..upload import UploadCoordinator, LocalFile
from ..utils import upload_percent, download_percent, temp_transfer_id
from .models import Notice, SharedFile, parse_file_list
from .passkey import generate_passkey, normalize_passkey
from .poller import FileListPoller
from .state import SessionPhase, SessionState

logger = get_logger('passshare.sharing')

CREATE_PATH = '/api/sessions/create'
JOIN_PATH = '/api/sessions/join'
FILES_PATH = '/api/sessions/files/{passkey}'


class ShareSession:
    """
    Client side of a passkey file-sharing session.

    Example:
        >>> async with ShareSession(client, store) as session:
        ...     session.on('notice', print)
        ...     passkey = await session.create_session()
        ...     await session.upload_file(LocalFile('report.pdf'))
    """

    def __init__(
        self,
        api_client: AsyncAPIClient,
        store: UserStore,
        config: Optional[ShareConfig] = None,
        share_handler: Optional[ShareHandler] = None,
        passkey_factory: Callable[[], str] = generate_passkey
    ):
        """
        Args:
            api_client: PassShare API client
            store: Local store holding the logged-in user
            config: Polling, progress and size settings
            share_handler: Receives every completed download
            passkey_factory: Source of new passkeys
        """
        self._api = api_client
        self._store = store
        self._config = config or ShareConfig()
        self._share_handler = share_handler or LoggingShareHandler()
        self._passkey_factory = passkey_factory
        self._events = EventEmitter('passshare.sharing.events')
        self._state = SessionState(on_progress=self._on_progress)
        self._poller = FileListPoller(self._poll, self._config.poll_interval)
        self._uploader = UploadCoordinator(
            api_client,
            max_size=self._config.max_upload_size,
            chunk_size=self._config.chunk_size
        )
        self._downloader = DownloadCoordinator(api_client, chunk_size=self._config.chunk_size)

    # Events

    def on(self, event: str, callback: Callable) -> 'ShareSession':
        """Register an event handler."""
        self._events.on(event, callback)
        return self

    def off(self, event: str, callback: Optional[Callable] = None) -> 'ShareSession':
        """Remove an event handler."""
        self._events.off(event, callback)
        return self

    def _notify(self, kind: str, title: str, message: str = '') -> Notice:
        notice = Notice(kind=kind, title=title, message=message)
        if notice.is_error:
            logger.warning(str(notice))
        else:
            logger.info(str(notice))
        self._events.emit('notice', notice)
        return notice

    def _fail(self, title: str, error: BaseException) -> Notice:
        return self._notify(Notice.ERROR, title, extract_error_message(error))

    def _on_progress(self, direction: str, key: str, percent: Optional[int]) -> None:
        self._events.emit('progress', direction, key, percent)

    def _set_phase(self, phase: SessionPhase) -> None:
        if self._state.phase is not phase:
            self._state.phase = phase
            self._events.emit('phase', phase)

    # State

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def passkey(self) -> str:
        return self._state.passkey

    @property
    def in_session(self) -> bool:
        return self._state.in_session

    @property
    def files(self) -> List[SharedFile]:
        return self._state.files

    @property
    def upload_progress(self) -> dict:
        return self._state.uploads.snapshot()

    @property
    def download_progress(self) -> dict:
        return self._state.downloads.snapshot()

    @property
    def polling(self) -> bool:
        return self._poller.running

    def current_user(self) -> Optional[StoredUser]:
        return self._store.load_user()

    # Lifecycle

    async def __aenter__(self) -> 'ShareSession':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Leave the session and release the HTTP client."""
        await self.leave_session()
        await self._api.close()

    async def _enter(self, passkey: str) -> None:
        self._state.enter(passkey)
        self._set_phase(SessionPhase.IN_SESSION)
        self._poller.start()
        await self.refresh_files()

    async def create_session(self) -> Optional[str]:
        """
        Generate a passkey and open a session under it.

        Returns:
            The passkey, or None if the session could not be created
        """
        user = self.current_user()
        if user is None or not user.username:
            self._notify(Notice.ERROR, 'Please log in to create a session')
            return None

        previous = self._state.phase
        if not self._state.in_session:
            self._set_phase(SessionPhase.CREATING)

        passkey = self._passkey_factory()
        try:
            await self._api.post_json(CREATE_PATH, {'passkey': passkey, 'username': user.username})
        except PassShareException as e:
            self._set_phase(previous)
            self._fail('Failed to create session', e)
            return None

        await self._poller.stop()
        self._notify(Notice.SUCCESS, 'Session created', f"Session created with passkey: {passkey}")
        await self._enter(passkey)
        return passkey

    async def join_session(self, passkey: str) -> bool:
        """
        Join an existing session.

        On failure any session already held stays as it was.

        Returns:
            True if the session was joined
        """
        user = self.current_user()
        if user is None or not user.username:
            self._notify(Notice.ERROR, 'Please log in to join a session')
            return False

        passkey = normalize_passkey(passkey)
        if not passkey:
            self._notify(Notice.ERROR, 'Please enter a passkey')
            return False

        previous = self._state.phase
        if not self._state.in_session:
            self._set_phase(SessionPhase.JOINING)

        try:
            await self._api.post_json(JOIN_PATH, {'passkey': passkey, 'username': user.username})
        except PassShareException as e:
            self._set_phase(previous)
            self._fail('Failed to join session', e)
            return False

        await self._poller.stop()
        self._notify(Notice.SUCCESS, 'Joined session!', passkey)
        await self._enter(passkey)
        return True

    async def leave_session(self) -> None:
        """Forget the session locally; the server is not told."""
        await self._poller.stop()
        was_in_session = bool(self._state.passkey)
        self._state.reset()
        if was_in_session:
            logger.info("Left session")
            self._events.emit('files', self._state.files)
            self._events.emit('phase', SessionPhase.NO_SESSION)

    # File list

    async def refresh_files(self, silent: bool = False) -> bool:
        """
        Fetch the file list of the active session.

        Args:
            silent: Do not surface failures (background polling)

        Returns:
            True if the visible file list changed
        """
        passkey = self._state.passkey
        if not passkey:
            return False

        try:
            payload = await self._api.get_json(FILES_PATH.format(passkey=passkey))
            files = parse_file_list(payload)
        except (PassShareException, ValueError, TypeError, KeyError) as e:
            if silent:
                logger.debug(f"Silent refresh failed: {e!r}")
            else:
                self._fail('Failed to fetch files', e)
            return False

        if self._state.passkey != passkey:
            logger.debug(f"Discarding file list of stale session {passkey}")
            return False

        if not self._state.replace_files(files):
            return False
        logger.debug(f"File list updated: {len(files)} file(s)")
        self._events.emit('files', self._state.files)
        return True

    async def _poll(self) -> None:
        await self.refresh_files(silent=True)

    async def on_focus(self) -> None:
        """The hosting screen regained focus: refresh once, silently."""
        if self._state.in_session:
            await self.refresh_files(silent=True)

    # Transfers

    async def upload_file(self, local_file: LocalFile) -> bool:
        """
        Upload a local file into the active session.

        Returns:
            True if the server accepted the file
        """
        user = self.current_user()
        if user is None or not user.id:
            self._notify(Notice.ERROR, 'Please log in to upload files')
            return False
        if not self._state.in_session:
            self._notify(Notice.ERROR, 'Join or create a session first')
            return False
        if self._state.upload_in_progress:
            self._notify(Notice.ERROR, 'An upload is already in progress')
            return False

        self._state.upload_in_progress = True
        passkey = self._state.passkey
        temp_id: Optional[str] = None
        try:
            try:
                size = await self._uploader.prepare(local_file)
            except PassShareException as e:
                self._fail('Failed to upload file', e)
                return False

            temp_id = temp_transfer_id()
            tracker = self._state.uploads
            tracker.start(temp_id)

            def on_progress(progress) -> None:
                if self._state.passkey == passkey:
                    tracker.update(temp_id, upload_percent(progress.loaded_bytes, progress.total_bytes))

            try:
                await self._uploader.upload(local_file, passkey, user.id, on_progress, size=size)
            except (PassShareException, OSError) as e:
                self._fail('Failed to upload file', e)
                return False

            self._notify(Notice.SUCCESS, 'File uploaded successfully', local_file.name)
            if self._state.passkey == passkey:
                tracker.update(temp_id, 100)
                await self.refresh_files(silent=True)
            return True
        finally:
            self._state.upload_in_progress = False
            if temp_id is not None:
                self._state.uploads.finish(temp_id, self._config.progress_linger)

    async def download_file(
        self,
        file_id: str,
        file_name: str,
        dest_dir: Optional[Path] = None
    ) -> Optional[Path]:
        """
        Download a shared file and hand it to the share handler.

        Returns:
            Local path, or None if the download failed
        """
        tracker = self._state.downloads
        tracker.start(file_id)
        passkey = self._state.passkey

        def on_progress(written: int, expected: int) -> None:
            if self._state.passkey == passkey:
                tracker.update(file_id, download_percent(written, expected))

        target_dir = Path(dest_dir) if dest_dir else self._config.resolve_download_dir()
        try:
            path = await self._downloader.download(file_id, file_name, target_dir, on_progress)
            await self._share_handler.share(path)
        except (PassShareException, OSError) as e:
            self._fail('Failed to download file', e)
            return None
        finally:
            tracker.finish(file_id, self._config.progress_linger)

        self._notify(Notice.SUCCESS, f"Downloaded {path.name}", str(path))
        return path
