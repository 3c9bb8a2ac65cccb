"""
Passkey file-sharing session.

Client view of a server-side session: passkey generation, create/join/leave,
polling file list synchronization and transfer progress tracking.
"""
from .passkey import generate_passkey, normalize_passkey, PASSKEY_ALPHABET, PASSKEY_LENGTH
from .models import SharedFile, Notice, parse_file_list
from .state import SessionPhase, SessionState, TransferTracker
from .poller import FileListPoller
from .controller import ShareSession

__all__ = [
    'ShareSession',
    'SessionPhase',
    'SessionState',
    'TransferTracker',
    'FileListPoller',
    'SharedFile',
    'Notice',
    'parse_file_list',
    'generate_passkey',
    'normalize_passkey',
    'PASSKEY_ALPHABET',
    'PASSKEY_LENGTH',
]
