"""
Async authentication service.

Handles login and registration against the user endpoints and keeps the
authenticated identity in the local store.
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional

from .async_client import AsyncAPIClient
from .errors import APIError
from ..exceptions import AuthError, ValidationError
from ..logging import get_logger
from ..store import UserStore, StoredUser, RememberedCredentials

logger = get_logger('passshare.auth')

LOGIN_PATH = '/api/users/login'
REGISTER_PATH = '/api/users/add'

MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3
EMAIL_PATTERN = re.compile(r'\S+@\S+\.\S+')


@dataclass
class RegistrationData:
    """Registration form contents."""
    username: str
    email: str
    password: str
    
    def to_dict(self) -> Dict[str, str]:
        return {
            'username': self.username,
            'email': self.email,
            'password': self.password,
        }


def validate_login(identifier: str, password: str) -> None:
    """
    Raises:
        ValidationError: With a per-field mapping of problems
    """
    errors: Dict[str, str] = {}
    if not identifier:
        errors['email'] = 'Username or email required'
    if not password:
        errors['password'] = 'Password required'
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors['password'] = f'Password must be at least {MIN_PASSWORD_LENGTH} characters'
    if errors:
        raise ValidationError.from_errors(errors)


def validate_registration(data: RegistrationData) -> None:
    """
    Raises:
        ValidationError: With a per-field mapping of problems
    """
    errors: Dict[str, str] = {}
    
    if not data.username:
        errors['username'] = 'Username is required'
    elif len(data.username) < MIN_USERNAME_LENGTH:
        errors['username'] = f'Username must be at least {MIN_USERNAME_LENGTH} characters'
    
    if not data.email:
        errors['email'] = 'Email is required'
    elif not EMAIL_PATTERN.search(data.email):
        errors['email'] = 'Invalid email format'
    
    if not data.password:
        errors['password'] = 'Password is required'
    elif len(data.password) < MIN_PASSWORD_LENGTH:
        errors['password'] = f'Password must be at least {MIN_PASSWORD_LENGTH} characters'
    
    if errors:
        raise ValidationError.from_errors(errors)


def build_login_payload(identifier: str, password: str) -> Dict[str, Optional[str]]:
    """An identifier containing '@' is sent as email, anything else as username."""
    is_email = '@' in identifier
    return {
        'username': None if is_email else identifier,
        'email': identifier if is_email else None,
        'password': password,
    }


def map_registration_conflict(error: APIError) -> Optional[ValidationError]:
    """
    Turn a 409 on registration into a field-specific error.
    
    The server says which field clashed only in its message text, so the
    mapping is a substring match.
    """
    if error.status != 409:
        return None
    message = error.message or ''
    if 'Username' in message:
        return ValidationError.from_errors({'username': 'Username is already taken'})
    if 'Email' in message:
        return ValidationError.from_errors({'email': 'Email is already taken'})
    return None


class AsyncAuthService:
    """
    Asynchronous authentication service.
    
    Example:
        >>> auth = AsyncAuthService(client, store)
        >>> user = await auth.login('alice', 'secret1', remember=True)
    """
    
    def __init__(self, client: AsyncAPIClient, store: UserStore):
        """
        Initialize auth service.
        
        Args:
            client: Async API client
            store: Local store receiving the authenticated user
        """
        self._client = client
        self._store = store
    
    def current_user(self) -> Optional[StoredUser]:
        return self._store.load_user()
    
    def remembered_credentials(self) -> Optional[RememberedCredentials]:
        return self._store.load_credentials()
    
    async def login(self, identifier: str, password: str, remember: bool = False) -> StoredUser:
        """
        Log in with a username or an email address.
        
        Args:
            identifier: Username or email
            password: Password
            remember: Keep the credentials for the next start
            
        Returns:
            The stored user
            
        Raises:
            ValidationError: If the input is rejected locally
            AuthError: If the server answer lacks an id or username
            APIError: If the server rejects the login
            NetworkError: If the server cannot be reached
        """
        identifier = (identifier or '').strip()
        validate_login(identifier, password)
        
        response = await self._client.post_json(
            LOGIN_PATH,
            build_login_payload(identifier, password),
            timeout=self._client.config.auth_timeout
        )
        
        if not isinstance(response, dict) or not response.get('id') or not response.get('username'):
            raise AuthError('Invalid user data')
        
        user = StoredUser.from_dict(response)
        self._store.save_user(user)
        if remember:
            self._store.save_credentials(RememberedCredentials(email=identifier, password=password))
        else:
            self._store.clear_credentials()
        
        logger.info(f"Logged in as {user.username}")
        return user
    
    async def register(self, username: str, email: str, password: str) -> None:
        """
        Create an account. The user still has to log in afterwards.
        
        Raises:
            ValidationError: If the input is rejected locally, or the
                username/email is already taken
            APIError: If the server rejects the registration
            NetworkError: If the server cannot be reached
        """
        data = RegistrationData(
            username=(username or '').strip(),
            email=(email or '').strip(),
            password=password or ''
        )
        validate_registration(data)
        
        try:
            await self._client.post_json(
                REGISTER_PATH,
                data.to_dict(),
                timeout=self._client.config.auth_timeout
            )
        except APIError as e:
            conflict = map_registration_conflict(e)
            if conflict is not None:
                raise conflict from e
            raise
        
        logger.info(f"Registered {data.username}")
    
    def logout(self, forget: bool = False) -> None:
        """Clear the stored user; ``forget`` also drops remembered credentials."""
        self._store.clear_user()
        if forget:
            self._store.clear_credentials()
        logger.info("Logged out")
