"""
Locally persisted data models.

Contains data classes stored in the device-local key-value store.
"""
from dataclasses import dataclass
from typing import Any, Dict
import json


@dataclass
class StoredUser:
    """
    Previously authenticated identity.
    
    Attributes:
        id: Opaque user id assigned by the server
        username: Display name, also used as session member name
        is_admin: Admin flag as reported at login
    """
    id: str
    username: str
    is_admin: bool = False
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase form used by the server."""
        return {
            'id': self.id,
            'username': self.username,
            'isAdmin': self.is_admin,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredUser':
        """
        Create from dictionary.
        
        Accepts both the server's ``isAdmin`` and ``is_admin`` spellings.
        Numeric ids are kept as strings.
        """
        return cls(
            id=str(data['id']),
            username=str(data['username']),
            is_admin=bool(data.get('isAdmin', data.get('is_admin', False))),
        )
    
    def to_json(self) -> str:
        return json.dumps(self.to_dict())
    
    @classmethod
    def from_json(cls, json_str: str) -> 'StoredUser':
        return cls.from_dict(json.loads(json_str))
    
    def is_valid(self) -> bool:
        """True if both the id and the username are present."""
        return bool(self.id and self.username)


@dataclass
class RememberedCredentials:
    """Credentials kept when "stay signed in" is enabled."""
    email: str
    password: str
    
    def to_dict(self) -> Dict[str, str]:
        return {'email': self.email, 'password': self.password}
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RememberedCredentials':
        return cls(
            email=data.get('email') or '',
            password=data.get('password') or '',
        )
    
    def to_json(self) -> str:
        return json.dumps(self.to_dict())
    
    @classmethod
    def from_json(cls, json_str: str) -> 'RememberedCredentials':
        return cls.from_dict(json.loads(json_str))
