"""Passkey generation."""
import random
import string
from typing import Optional

PASSKEY_ALPHABET = string.ascii_uppercase + string.digits
PASSKEY_LENGTH = 8


def generate_passkey(length: int = PASSKEY_LENGTH, rng: Optional[random.Random] = None) -> str:
    """
    Generate a human-relayable session passkey.
    
    Characters are drawn uniformly, with replacement, from ``A-Z0-9``.
    Uniqueness is left to the server.
    
    Args:
        length: Number of characters
        rng: Optional random source (for reproducible tests)
        
    Returns:
        Passkey string
    """
    source = rng or random
    return ''.join(source.choice(PASSKEY_ALPHABET) for _ in range(length))


def normalize_passkey(passkey: str) -> str:
    """Strip surrounding whitespace from a user-typed passkey."""
    return (passkey or '').strip()
