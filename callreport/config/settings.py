import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    # Zoom Server-to-Server OAuth app
    zoom_account_id: Optional[str] = None
    zoom_client_id: Optional[str] = None
    zoom_client_secret: Optional[str] = None
    zoom_oauth_url: str = 'https://zoom.us/oauth'
    zoom_api_url: str = 'https://api.zoom.us/v2'

    # HTTP
    request_timeout: int = 30
    max_retries: int = 3

    # Processing
    call_history_page_size: int = 300
    call_path_max_workers: int = 4

    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> 'Settings':
        """Build settings from the environment, loading .env first."""
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        return cls(
            zoom_account_id=environ.get('ZOOM_ACCOUNT_ID'),
            zoom_client_id=environ.get('ZOOM_CLIENT_ID'),
            zoom_client_secret=environ.get('ZOOM_CLIENT_SECRET'),
            zoom_oauth_url=environ.get('ZOOM_OAUTH_URL', 'https://zoom.us/oauth'),
            zoom_api_url=environ.get('ZOOM_API_URL', 'https://api.zoom.us/v2'),
            request_timeout=int(environ.get('REQUEST_TIMEOUT', '30')),
            max_retries=int(environ.get('MAX_RETRIES', '3')),
            call_history_page_size=int(environ.get('CALL_HISTORY_PAGE_SIZE', '300')),
            call_path_max_workers=int(environ.get('CALL_PATH_MAX_WORKERS', '4')),
            log_level=environ.get('LOG_LEVEL', 'INFO').upper(),
        )

    def missing_credentials(self) -> List[str]:
        required = {
            'ZOOM_ACCOUNT_ID': self.zoom_account_id,
            'ZOOM_CLIENT_ID': self.zoom_client_id,
            'ZOOM_CLIENT_SECRET': self.zoom_client_secret,
        }
        return [name for name, value in required.items() if not value]
