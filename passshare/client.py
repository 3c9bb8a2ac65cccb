"""
PassShareClient - High-level async client for passkey file sharing.

Example:
    >>> async with PassShareClient("passshare") as client:
    ...     await client.login("alice", "secret1")
    ...     passkey = await client.create_session()
    ...     await client.upload("report.pdf")
"""
from pathlib import Path
from typing import Callable, List, Optional, Union

from .core.api import (
    AsyncAPIClient,
    AsyncAuthService,
    APIConfig,
    ShareConfig,
)
from .core.download import ShareHandler
from .core.logging import get_logger
from .core.sharing import ShareSession, SharedFile, SessionPhase
from .core.store import (
    KeyValueStorage,
    MemoryStorage,
    SQLiteStorage,
    StoredUser,
    RememberedCredentials,
    UserStore,
)
from .core.upload import LocalFile

logger = get_logger('passshare.client')


class PassShareClient:
    """
    High-level async client.

    Wires the API client, the local store, authentication and the sharing
    session together.

    1. Persistent mode:
        >>> client = PassShareClient("passshare")   # passshare.db in the cwd

    2. In-memory mode (tests, one-off scripts):
        >>> client = PassShareClient()

    With custom configuration:
        >>> config = APIConfig(base_url="https://share.example.com")
        >>> client = PassShareClient("passshare", config=config)
    """

    def __init__(
        self,
        store: Optional[Union[str, Path, KeyValueStorage]] = None,
        *,
        config: Optional[APIConfig] = None,
        share_config: Optional[ShareConfig] = None,
        base_path: Optional[Path] = None,
        share_handler: Optional[ShareHandler] = None
    ):
        """
        Initialize the client.

        Args:
            store: Store name/path (SQLite file) or a storage object;
                None keeps everything in memory
            config: API configuration (defaults to PASSSHARE_API_URL)
            share_config: Polling, progress and size settings
            base_path: Base directory for the store file
            share_handler: Receives every completed download
        """
        self._config = config or APIConfig.from_env()
        self._share_config = share_config or ShareConfig()

        if store is None:
            storage: KeyValueStorage = MemoryStorage()
        elif isinstance(store, (str, Path)):
            storage = SQLiteStorage(store, base_path=base_path)
        else:
            storage = store
        self._store = UserStore(storage)

        self._api = AsyncAPIClient(self._config)
        self._auth = AsyncAuthService(self._api, self._store)
        self._session = ShareSession(
            self._api,
            self._store,
            config=self._share_config,
            share_handler=share_handler
        )

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def store(self) -> UserStore:
        return self._store

    @property
    def auth(self) -> AsyncAuthService:
        return self._auth

    @property
    def session(self) -> ShareSession:
        return self._session

    async def __aenter__(self) -> 'PassShareClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Leave any session, close the HTTP client and the store."""
        await self._session.close()
        self._store.close()

    def on(self, event: str, callback: Callable) -> 'PassShareClient':
        """Register a session event handler (notice, files, progress, phase)."""
        self._session.on(event, callback)
        return self

    # Account

    @property
    def user(self) -> Optional[StoredUser]:
        return self._store.load_user()

    def is_logged_in(self) -> bool:
        return self.user is not None

    def remembered_credentials(self) -> Optional[RememberedCredentials]:
        return self._store.load_credentials()

    async def login(self, identifier: str, password: str, remember: bool = False) -> StoredUser:
        return await self._auth.login(identifier, password, remember=remember)

    async def register(self, username: str, email: str, password: str) -> None:
        await self._auth.register(username, email, password)

    async def logout(self, forget: bool = False) -> None:
        """Leave any session and clear the stored user."""
        await self._session.leave_session()
        self._auth.logout(forget=forget)

    # Sharing

    @property
    def passkey(self) -> str:
        return self._session.passkey

    @property
    def phase(self) -> SessionPhase:
        return self._session.phase

    @property
    def files(self) -> List[SharedFile]:
        return self._session.files

    async def create_session(self) -> Optional[str]:
        return await self._session.create_session()

    async def join_session(self, passkey: str) -> bool:
        return await self._session.join_session(passkey)

    async def leave_session(self) -> None:
        await self._session.leave_session()

    async def refresh(self) -> List[SharedFile]:
        """Fetch the file list now and return it."""
        await self._session.refresh_files()
        return self._session.files

    async def upload(
        self,
        path: Union[str, Path, LocalFile],
        mime_type: Optional[str] = None,
        name: Optional[str] = None
    ) -> bool:
        local_file = path if isinstance(path, LocalFile) else LocalFile(path, mime_type=mime_type, name=name)
        return await self._session.upload_file(local_file)

    async def download(
        self,
        file: Union[str, SharedFile],
        dest_dir: Optional[Union[str, Path]] = None,
        file_name: Optional[str] = None
    ) -> Optional[Path]:
        """
        Download by SharedFile or by id.

        A bare id is looked up in the current file list for its display
        name; ``file_name`` overrides it.
        """
        if isinstance(file, SharedFile):
            file_id, display_name = file.id, file.file_name
        else:
            file_id = file
            match = next((f for f in self._session.files if f.id == file_id), None)
            display_name = match.file_name if match else file_id
        return await self._session.download_file(
            file_id,
            file_name or display_name,
            Path(dest_dir) if dest_dir else None
        )
