"""
Zoom Phone API Client
Fetches the account call history and per-call call paths
"""

import time
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any, Union

import requests
from requests.adapters import HTTPAdapter
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from .auth import ZoomAuth
from .rate_limiter import RateLimiter
from .exceptions import (
    ZoomAPIError,
    RateLimitError,
    CallLogNotFoundError,
    TokenExpiredError
)

logger = logging.getLogger(__name__)

DateLike = Union[datetime, str]


def format_zoom_datetime(value: DateLike) -> str:
    """
    Format a datetime the way the call history endpoint expects it

    Zoom accepts ``yyyy-MM-dd'T'HH:mm:ss'Z'``; strings are passed through.
    """
    if isinstance(value, str):
        return value
    return value.strftime('%Y-%m-%dT%H:%M:%SZ')


class ZoomPhoneClient:
    """
    Client for the Zoom Phone call history API
    """

    API_URL = "https://api.zoom.us/v2"

    ENDPOINTS = {
        'call_history': '/phone/call_history',
        'call_path': '/phone/call_history/{callLogId}',
    }

    MAX_PAGE_SIZE = 300

    # Safety check to prevent infinite pagination loops
    MAX_PAGES = 1000

    def __init__(
        self,
        auth: ZoomAuth,
        api_url: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        page_size: int = MAX_PAGE_SIZE
    ):
        """
        Initialize Zoom Phone API client

        Args:
            auth: Configured ZoomAuth instance
            api_url: API base URL
            timeout: Request timeout in seconds
            max_retries: Maximum number of connection retries
            page_size: Call history page size (max 300)
        """
        self.auth = auth
        self.api_url = (api_url or self.API_URL).rstrip('/')
        self.timeout = timeout
        self.page_size = min(page_size, self.MAX_PAGE_SIZE)
        self.rate_limiter = RateLimiter()

        self.session = requests.Session()
        adapter = HTTPAdapter(max_retries=max_retries)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.info("ZoomPhoneClient initialized")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        retry=retry_if_exception_type((
            requests.ConnectionError,
            requests.Timeout,
            TokenExpiredError,
            RateLimitError
        )),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        """
        Make HTTP request to the Zoom API with retry logic

        Args:
            method: HTTP method
            endpoint: API endpoint
            params: Query parameters

        Returns:
            Response object

        Raises:
            ZoomAPIError: On API errors
            RateLimitError: On rate limit exceeded
        """
        reset_wait = self.rate_limiter.check_rate_limit_reset(endpoint)
        if reset_wait:
            time.sleep(reset_wait)

        self.rate_limiter.wait_if_needed(endpoint)

        url = f"{self.api_url}{endpoint}"

        headers = self.auth.get_auth_headers()
        headers['Content-Type'] = 'application/json'

        logger.debug(f"{method} {url}")

        response = self.session.request(
            method=method,
            url=url,
            headers=headers,
            params=params,
            timeout=self.timeout
        )

        if response.status_code == 429:
            retry_after = self.rate_limiter.handle_rate_limit_response(
                endpoint,
                response.status_code,
                response.headers
            )

            raise RateLimitError(
                "Rate limit exceeded",
                retry_after=retry_after,
                status_code=429,
                response_data={'headers': dict(response.headers)}
            )

        if response.status_code == 401:
            logger.warning("Token expired, requesting a new one")
            self.auth.invalidate()
            raise TokenExpiredError(
                "Access token expired",
                status_code=401
            )

        if response.status_code == 404:
            raise CallLogNotFoundError(
                f"Resource not found: {endpoint}",
                status_code=404
            )

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}

            raise ZoomAPIError(
                f"API error: {response.status_code} {error_data.get('message', '')}".rstrip(),
                status_code=response.status_code,
                response_data=error_data
            )

        return response

    def get_call_history(
        self,
        date_from: DateLike,
        date_to: DateLike,
        next_page_token: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Get one page of the account call history

        Args:
            date_from: Start of the range
            date_to: End of the range
            next_page_token: Token returned by the previous page

        Returns:
            Call history page with ``call_logs`` and ``next_page_token``
        """
        params = {
            'page_size': self.page_size,
            'from': format_zoom_datetime(date_from),
            'to': format_zoom_datetime(date_to),
        }

        if next_page_token:
            params['next_page_token'] = next_page_token

        response = self._make_request('GET', self.ENDPOINTS['call_history'], params=params)
        return response.json()

    def get_all_call_history(
        self,
        date_from: DateLike,
        date_to: DateLike
    ) -> List[Dict[str, Any]]:
        """
        Get the whole call history for a range, following pagination

        Args:
            date_from: Start of the range
            date_to: End of the range

        Returns:
            All call log records of the range, in API order
        """
        call_logs = []
        next_page_token = None
        page = 0

        while True:
            page += 1
            logger.info(f"Fetching call history page {page}")

            data = self.get_call_history(date_from, date_to, next_page_token=next_page_token)
            call_logs.extend(data.get('call_logs') or [])

            next_page_token = data.get('next_page_token')
            if not next_page_token:
                break

            if page >= self.MAX_PAGES:
                logger.warning("Reached maximum page limit")
                break

        logger.info(f"Fetched {len(call_logs)} call logs in {page} page(s)")
        return call_logs

    def get_call_path(self, call_log_id: str) -> Dict[str, Any]:
        """
        Get the call path of one call log

        Args:
            call_log_id: Call log ID

        Returns:
            Call log detail with its ``call_path`` hops
        """
        endpoint = self.ENDPOINTS['call_path'].format(callLogId=call_log_id)
        response = self._make_request('GET', endpoint)
        return response.json()

    def get_statistics(self) -> Dict[str, Any]:
        """Request counts per rate limit group over the current window"""
        return {
            'rate_limiter': self.rate_limiter.get_statistics(),
        }

    def close(self):
        """
        Close client and clean up resources
        """
        self.auth.close()
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
