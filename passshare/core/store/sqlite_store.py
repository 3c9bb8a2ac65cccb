"""
SQLite key-value storage implementation.

Provides persistent storage of the local user identity and preferences in
a single SQLite database file.
"""
import sqlite3
import threading
from pathlib import Path
from datetime import datetime
from typing import Optional, Union
from contextlib import contextmanager

from .protocols import KeyValueStorage


class SQLiteStorage(KeyValueStorage):
    """
    SQLite-based key-value storage.
    
    Thread-safe implementation sharing one connection.
    
    Example:
        >>> storage = SQLiteStorage("passshare")
        >>> # Creates passshare.db file
        >>> 
        >>> storage.set_item('hasOnboarded', 'true')
    """
    
    EXTENSION = '.db'
    SCHEMA_VERSION = 1
    
    def __init__(
        self,
        name: Union[str, Path],
        base_path: Optional[Path] = None
    ):
        """
        Initialize SQLite storage.
        
        Args:
            name: Database name (without extension) or full path
            base_path: Optional base directory for the database file
        """
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None
        
        if isinstance(name, Path) or name.endswith(self.EXTENSION):
            self._path = Path(name)
        elif base_path:
            self._path = Path(base_path) / f"{name}{self.EXTENSION}"
        else:
            self._path = Path(f"{name}{self.EXTENSION}")
        
        self._path.parent.mkdir(parents=True, exist_ok=True)
        
        self._init_db()
    
    @property
    def path(self) -> Path:
        """Get database file path."""
        return self._path
    
    @contextmanager
    def _get_connection(self):
        """Get thread-safe database connection."""
        with self._lock:
            if self._conn is None:
                self._conn = sqlite3.connect(
                    str(self._path),
                    check_same_thread=False
                )
                self._conn.row_factory = sqlite3.Row
            yield self._conn
    
    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS version (
                    version INTEGER PRIMARY KEY
                )
            ''')
            
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')
            
            cursor.execute('SELECT version FROM version LIMIT 1')
            if cursor.fetchone() is None:
                cursor.execute(
                    'INSERT INTO version (version) VALUES (?)',
                    (self.SCHEMA_VERSION,)
                )
            
            conn.commit()
    
    def get_item(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT value FROM kv WHERE key = ?', (key,))
            row = cursor.fetchone()
            return None if row is None else row['value']
    
    def set_item(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT OR REPLACE INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
            ''', (key, value, datetime.now().isoformat()))
            conn.commit()
    
    def remove_item(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute('DELETE FROM kv WHERE key = ?', (key,))
            conn.commit()
    
    def clear(self) -> None:
        with self._get_connection() as conn:
            conn.execute('DELETE FROM kv')
            conn.commit()
    
    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
    
    def delete_file(self) -> None:
        """Delete the database file completely."""
        self.close()
        if self._path.exists():
            self._path.unlink()
    
    def __enter__(self) -> 'SQLiteStorage':
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
