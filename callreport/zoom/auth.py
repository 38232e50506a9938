"""
Zoom Server-to-Server OAuth Module
Implements the account_credentials grant for the Zoom API
"""

import time
import logging
from threading import Lock
from typing import Optional, Dict, Any, Iterable, List

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import (
    AuthenticationError,
    ScopeError,
)

logger = logging.getLogger(__name__)


class ZoomAuth:
    """
    Server-to-Server OAuth for the Zoom API

    Documentation: https://developers.zoom.us/docs/internal-apps/s2s-oauth/
    """

    OAUTH_URL = "https://zoom.us/oauth"
    TOKEN_ENDPOINT = "/token"

    # Refresh token 5 minutes before expiry
    TOKEN_EXPIRY_BUFFER = 300

    # Any one of these is enough to list the account's call history
    CALL_LOG_SCOPES = (
        'phone:read:admin',
        'phone_call_log:read:admin',
        'phone:read:list_call_logs:admin',
    )

    def __init__(
        self,
        account_id: str,
        client_id: str,
        client_secret: str,
        oauth_url: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3
    ):
        """
        Initialize Zoom authentication

        Args:
            account_id: Zoom account ID of the Server-to-Server app
            client_id: Client ID for the app
            client_secret: Client secret for the app
            oauth_url: OAuth base URL
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
        """
        if not (account_id and client_id and client_secret):
            raise ValueError("account_id, client_id and client_secret are required")

        self.account_id = account_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.oauth_url = (oauth_url or self.OAUTH_URL).rstrip('/')
        self.timeout = timeout

        # Token storage
        self.access_token = None
        self.scope = ''
        self.token_expires_at = 0
        self.token_lock = Lock()  # Shared by concurrent call path lookups

        self.session = self._create_session(max_retries)

        logger.info(f"ZoomAuth initialized for account {account_id}")

    def _create_session(self, max_retries: int) -> requests.Session:
        """
        Create a requests session with retry logic

        Args:
            max_retries: Maximum number of retry attempts

        Returns:
            Configured requests Session
        """
        session = requests.Session()

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"]
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def get_access_token(self) -> str:
        """
        Get valid access token, requesting a new one if necessary

        Returns:
            Valid access token

        Raises:
            AuthenticationError: If authentication fails
        """
        with self.token_lock:
            if not self._is_token_valid():
                self._request_token()
            return self.access_token

    def _request_token(self):
        """
        Exchange the client credentials for an account access token

        Raises:
            AuthenticationError: If the token request fails
        """
        url = f"{self.oauth_url}{self.TOKEN_ENDPOINT}"

        params = {
            "grant_type": "account_credentials",
            "account_id": self.account_id
        }

        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json"
        }

        try:
            logger.info("Requesting access token")

            response = self.session.post(
                url,
                params=params,
                headers=headers,
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Network error during token request: {e}")
            raise AuthenticationError(f"Network error during authentication: {e}") from e

        if response.status_code != 200:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            error_message = error_data.get('reason') or error_data.get('error', 'token request failed')

            logger.error(f"Token request failed: {error_message}")

            raise AuthenticationError(
                f"Unable to get access token: {error_message}",
                status_code=response.status_code,
                response_data=error_data
            )

        self._store_token(response.json())
        logger.info("Successfully obtained access token")

    def _store_token(self, token_data: Dict[str, Any]):
        """
        Store token from API response

        Args:
            token_data: Token response from API
        """
        self.access_token = token_data.get('access_token')
        self.scope = token_data.get('scope', '') or ''

        expires_in = token_data.get('expires_in', 3600)
        self.token_expires_at = time.time() + expires_in - self.TOKEN_EXPIRY_BUFFER

        logger.debug(f"Token stored. Access token expires in {expires_in} seconds")

    def _is_token_valid(self) -> bool:
        return (
            self.access_token is not None and
            time.time() < self.token_expires_at
        )

    def invalidate(self):
        """Drop the cached token so the next call requests a fresh one"""
        with self.token_lock:
            self.access_token = None
            self.token_expires_at = 0

    @property
    def scopes(self) -> List[str]:
        return self.scope.split()

    def has_any_scope(self, required: Iterable[str]) -> bool:
        granted = set(self.scopes)
        return any(scope in granted for scope in required)

    def verify_scopes(self, required: Optional[Iterable[str]] = None):
        """
        Check that the token carries at least one of the required scopes

        Args:
            required: Acceptable scopes (default: call log read scopes)

        Raises:
            ScopeError: If none of the scopes was granted
        """
        required = tuple(required or self.CALL_LOG_SCOPES)
        self.get_access_token()

        if not self.has_any_scope(required):
            logger.error(f"Scope not found. Granted: {self.scope or 'none'}")
            raise ScopeError(
                f"Scope not found, expected one of: {', '.join(required)}. Check app configuration."
            )

        logger.info("Scopes verified")

    def get_auth_headers(self) -> Dict[str, str]:
        """
        Get authorization headers for API requests

        Returns:
            Dictionary with Authorization header
        """
        token = self.get_access_token()
        return {
            "Authorization": f"Bearer {token}"
        }

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
