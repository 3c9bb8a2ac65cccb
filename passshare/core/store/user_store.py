"""
Typed access to the locally persisted user state.

Keys match the ones the mobile client writes: ``hasOnboarded``, ``user``
and ``rememberedCredentials``.
"""
import json
from typing import Optional

from .models import StoredUser, RememberedCredentials
from .protocols import KeyValueStorage
from .memory_store import MemoryStorage
from ..logging import get_logger

logger = get_logger('passshare.store')

ONBOARDED_KEY = 'hasOnboarded'
USER_KEY = 'user'
CREDENTIALS_KEY = 'rememberedCredentials'


class UserStore:
    """
    Reads and writes the local identity through a ``KeyValueStorage``.
    
    Corrupt entries are treated as absent and removed, so a damaged store
    never prevents startup.
    """
    
    def __init__(self, storage: Optional[KeyValueStorage] = None):
        self._storage = storage or MemoryStorage()
    
    @property
    def storage(self) -> KeyValueStorage:
        return self._storage
    
    def load_user(self) -> Optional[StoredUser]:
        raw = self._storage.get_item(USER_KEY)
        if not raw:
            return None
        try:
            user = StoredUser.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable stored user: {e}")
            self._storage.remove_item(USER_KEY)
            return None
        return user if user.is_valid() else None
    
    def save_user(self, user: StoredUser) -> None:
        self._storage.set_item(USER_KEY, user.to_json())
    
    def clear_user(self) -> None:
        self._storage.remove_item(USER_KEY)
    
    def load_credentials(self) -> Optional[RememberedCredentials]:
        raw = self._storage.get_item(CREDENTIALS_KEY)
        if not raw:
            return None
        try:
            return RememberedCredentials.from_json(raw)
        except (ValueError, AttributeError) as e:
            logger.warning(f"Discarding unreadable remembered credentials: {e}")
            self._storage.remove_item(CREDENTIALS_KEY)
            return None
    
    def save_credentials(self, credentials: RememberedCredentials) -> None:
        self._storage.set_item(CREDENTIALS_KEY, credentials.to_json())
    
    def clear_credentials(self) -> None:
        self._storage.remove_item(CREDENTIALS_KEY)
    
    @property
    def has_onboarded(self) -> bool:
        return self._storage.get_item(ONBOARDED_KEY) == 'true'
    
    def mark_onboarded(self) -> None:
        self._storage.set_item(ONBOARDED_KEY, json.dumps(True))
    
    def close(self) -> None:
        self._storage.close()
