"""Remote API errors and human-readable message extraction."""
from typing import Any, Optional

from ...exceptions import PassShareException


NETWORK_ERROR_MESSAGE = 'Network error. Please check your connection and try again.'
GENERIC_ERROR_MESSAGE = 'Something went wrong. Please try again.'


class APIError(PassShareException):
    """
    Exception raised when the server rejects a request.
    
    Attributes:
        status: HTTP status code
        body: Parsed JSON body, raw text body, or None when empty
    """
    
    def __init__(self, status: int, body: Any = None, url: Optional[str] = None):
        self.status = status
        self.body = body
        self.url = url
        super().__init__(
            _message_from_body(body) or f"HTTP {status}",
            error_code=status
        )


class NetworkError(PassShareException):
    """Exception raised when the server could not be reached."""
    
    def __init__(self, message: str = NETWORK_ERROR_MESSAGE, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


def _message_from_body(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        message = body.get('message')
        if isinstance(message, str) and message.strip():
            return message
        return None
    if isinstance(body, str) and body.strip():
        return body
    return None


def extract_error_message(error: BaseException, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """
    Reduce any failure to a single message for display.
    
    Priority:
        1. ``message`` field of a structured server error body
        2. raw string server error body
        3. generic network message for transport failures
        4. the message of a local exception (validation, filesystem)
        5. ``fallback``
    
    Args:
        error: Exception raised by a remote call or local check
        fallback: Message used when nothing better is available
        
    Returns:
        Message string, never empty
    """
    if isinstance(error, APIError):
        return _message_from_body(error.body) or fallback
    if isinstance(error, NetworkError):
        return error.message or NETWORK_ERROR_MESSAGE
    if isinstance(error, PassShareException):
        return error.message or fallback
    return str(error) or fallback
