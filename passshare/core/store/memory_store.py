"""
In-memory key-value storage implementation.

Provides non-persistent storage for testing and temporary use.
"""
from typing import Dict, Optional

from .protocols import KeyValueStorage


class MemoryStorage(KeyValueStorage):
    """
    In-memory key-value storage.
    
    Data is lost when the object is destroyed.
    
    Example:
        >>> storage = MemoryStorage()
        >>> storage.set_item('hasOnboarded', 'true')
        >>> storage.get_item('hasOnboarded')
        'true'
    """
    
    def __init__(self):
        self._data: Dict[str, str] = {}
    
    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)
    
    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value
    
    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)
    
    def clear(self) -> None:
        self._data.clear()
    
    def close(self) -> None:
        """Close storage (no-op for memory storage)."""
        pass
    
    def __enter__(self) -> 'MemoryStorage':
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
