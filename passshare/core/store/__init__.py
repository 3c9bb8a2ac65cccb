"""
Local store module.

Persists the authenticated identity, remembered credentials and the
onboarding flag in device-local key-value storage.
"""
from .protocols import KeyValueStorage
from .models import StoredUser, RememberedCredentials
from .sqlite_store import SQLiteStorage
from .memory_store import MemoryStorage
from .user_store import UserStore

__all__ = [
    'KeyValueStorage',
    'StoredUser',
    'RememberedCredentials',
    'SQLiteStorage',
    'MemoryStorage',
    'UserStore',
]
