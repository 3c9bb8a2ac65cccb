"""
API configuration module.

Provides configuration for the PassShare API client and the sharing
screen behaviour (polling, progress display, upload limits).
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any
import os
import ssl


DEFAULT_BASE_URL = 'http://localhost:5000'
BASE_URL_ENV = 'PASSSHARE_API_URL'


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None

        if self.username and self.password:
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url


@dataclass
class SSLConfig:
    """SSL/TLS configuration."""
    verify: bool = True
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    ``total`` is unset by default so large transfers are bounded by
    ``sock_read`` only.
    """
    total: Optional[float] = None
    connect: float = 10.0
    sock_read: float = 60.0

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read
        )


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Centralizes all configuration options for the PassShare API client.
    """
    base_url: str = DEFAULT_BASE_URL

    user_agent: str = 'passshare/1.0.0'

    # Download endpoint; the server answers with the file or with {"url": ...}
    download_path: str = '/api/sessions/download/{file_id}'
    follow_download_url: bool = True

    # Login and registration requests
    auth_timeout: float = 10.0

    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)

    log_level: int = 20  # logging.INFO

    limit_per_host: int = 10

    def __post_init__(self):
        self.base_url = self.base_url.rstrip('/')

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_env(cls, **kwargs) -> 'APIConfig':
        """Create configuration with the base URL taken from PASSSHARE_API_URL."""
        base_url = os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
        return cls(base_url=base_url, **kwargs)

    def url(self, path: str) -> str:
        """Join an API path onto the base URL."""
        if path.startswith(('http://', 'https://')):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def download_url(self, file_id: str) -> str:
        """URL of the download endpoint for a file."""
        return self.url(self.download_path.format(file_id=file_id))

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }


@dataclass
class ShareConfig:
    """
    Behaviour of the file sharing session.

    Attributes:
        poll_interval: Seconds between background file list refreshes
        progress_linger: Seconds a finished transfer stays in the progress map
        max_upload_size: Largest accepted upload in bytes
        chunk_size: Read/write block size for transfers
        download_dir: Where downloads are written (defaults to the cwd)
    """
    poll_interval: float = 3.0
    progress_linger: float = 0.8
    max_upload_size: int = 10 * 1024 * 1024
    chunk_size: int = 64 * 1024
    download_dir: Optional[Path] = None

    def resolve_download_dir(self) -> Path:
        return Path(self.download_dir) if self.download_dir else Path.cwd()
