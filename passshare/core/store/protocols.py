"""
Store protocols.

Defines the interface of the device-local key-value storage.
"""
from typing import Protocol, Optional, runtime_checkable


@runtime_checkable
class KeyValueStorage(Protocol):
    """
    Protocol for persistent string key-value storage.
    
    Implementations can use SQLite, memory, or any other backend.
    """
    
    def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.
        
        Returns:
            Stored string, or None if the key is absent
        """
        ...
    
    def set_item(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one."""
        ...
    
    def remove_item(self, key: str) -> None:
        """Delete a key (no error if absent)."""
        ...
    
    def clear(self) -> None:
        """Delete every key."""
        ...
    
    def close(self) -> None:
        """Close storage connection and release resources."""
        ...
