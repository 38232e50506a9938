"""
Rate limiting handler for Zoom API
Keeps requests per endpoint under Zoom's per-second limits
"""

import time
import logging
from typing import Dict, Optional, Any
from threading import Lock
from collections import deque
from email.utils import parsedate_to_datetime
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Rate limiter for Zoom API requests

    Zoom Rate Limits (Pro accounts, per second):
    - Heavy: 10 requests/sec
    - Medium: 20 requests/sec
    - Light: 30 requests/sec
    """

    # Rate limit groups (requests per window)
    RATE_LIMITS = {
        'heavy': 10,
        'medium': 20,
        'light': 30,
        'default': 10  # Conservative default
    }

    WINDOW_SECONDS = 1.0

    # Penalty (seconds) used when a 429 carries no Retry-After header
    PENALTY_INTERVAL = 1.0

    # Endpoint to rate limit group mapping, checked in order
    ENDPOINT_GROUPS = (
        ('/phone/call_history/', 'medium'),
        ('/phone/call_history', 'heavy'),
        ('/users', 'medium'),
    )

    def __init__(self, default_group: str = 'default'):
        """
        Initialize rate limiter

        Args:
            default_group: Default rate limit group for unmapped endpoints
        """
        self.default_group = default_group
        self.request_history = {}  # Track request times per group
        self.locks = {}  # Locks per group
        self.rate_limit_resets = {}  # Track rate limit reset times
        self.global_lock = Lock()

        logger.info(f"RateLimiter initialized with default group: {default_group}")

    def _get_endpoint_group(self, endpoint: str) -> str:
        """
        Determine rate limit group for an endpoint

        Args:
            endpoint: API endpoint

        Returns:
            Rate limit group name
        """
        for pattern, group in self.ENDPOINT_GROUPS:
            if pattern in endpoint:
                return group

        return self.default_group

    def _get_or_create_lock(self, group: str) -> Lock:
        with self.global_lock:
            if group not in self.locks:
                self.locks[group] = Lock()
            return self.locks[group]

    def wait_if_needed(self, endpoint: str) -> float:
        """
        Wait if rate limit would be exceeded

        Call detail endpoints share one window per group, since Zoom
        counts them together regardless of the call log id in the path.

        Args:
            endpoint: API endpoint

        Returns:
            Time waited in seconds
        """
        group = self._get_endpoint_group(endpoint)
        limit = self.RATE_LIMITS.get(group, self.RATE_LIMITS['default'])

        lock = self._get_or_create_lock(group)

        with lock:
            current_time = time.monotonic()

            if group not in self.request_history:
                self.request_history[group] = deque()

            history = self.request_history[group]
            cutoff_time = current_time - self.WINDOW_SECONDS

            while history and history[0] < cutoff_time:
                history.popleft()

            wait_time = 0.0

            if len(history) >= limit:
                oldest_request = history[0]
                wait_time = max(0.0, self.WINDOW_SECONDS - (current_time - oldest_request) + 0.01)

                if wait_time > 0:
                    logger.debug(f"Rate limit for {endpoint} ({group}): waiting {wait_time:.2f} seconds")
                    time.sleep(wait_time)
                    current_time = time.monotonic()

            history.append(current_time)

            return wait_time

    def handle_rate_limit_response(
        self,
        endpoint: str,
        status_code: int,
        headers: Dict[str, str]
    ) -> Optional[float]:
        """
        Handle rate limit response from API

        Args:
            endpoint: API endpoint
            status_code: HTTP status code
            headers: Response headers

        Returns:
            Retry after time in seconds if rate limited, None otherwise
        """
        if status_code != 429:
            return None

        group = self._get_endpoint_group(endpoint)
        retry_after = headers.get('Retry-After', headers.get('retry-after'))

        if retry_after:
            try:
                retry_seconds = float(retry_after)
            except ValueError:
                try:
                    retry_date = parsedate_to_datetime(retry_after)
                    retry_seconds = (retry_date - datetime.now(timezone.utc)).total_seconds()
                except (TypeError, ValueError):
                    retry_seconds = self.PENALTY_INTERVAL
        else:
            retry_seconds = self.PENALTY_INTERVAL

        retry_seconds = max(retry_seconds, 0.0)
        logger.warning(
            f"Rate limit hit for {endpoint} "
            f"({headers.get('X-RateLimit-Type', group)}). Retry after {retry_seconds} seconds"
        )

        with self._get_or_create_lock(group):
            self.rate_limit_resets[group] = time.monotonic() + retry_seconds

        return retry_seconds

    def check_rate_limit_reset(self, endpoint: str) -> Optional[float]:
        """
        Check if endpoint is in rate limit reset period

        Args:
            endpoint: API endpoint

        Returns:
            Remaining wait time if in reset period, None otherwise
        """
        group = self._get_endpoint_group(endpoint)

        with self._get_or_create_lock(group):
            if group in self.rate_limit_resets:
                reset_time = self.rate_limit_resets[group]
                current_time = time.monotonic()

                if current_time < reset_time:
                    wait_time = reset_time - current_time
                    logger.info(f"Endpoint {endpoint} in rate limit reset period. Wait {wait_time:.2f} seconds")
                    return wait_time

                del self.rate_limit_resets[group]

        return None

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get rate limiting statistics

        Returns:
            Dictionary with statistics per rate limit group
        """
        stats = {}
        cutoff_time = time.monotonic() - self.WINDOW_SECONDS

        for group, history in self.request_history.items():
            active_requests = [req for req in list(history) if req >= cutoff_time]
            limit = self.RATE_LIMITS.get(group, self.RATE_LIMITS['default'])

            stats[group] = {
                'limit': limit,
                'requests_last_window': len(active_requests),
                'utilization': len(active_requests) / limit * 100 if limit > 0 else 0,
                'in_reset': group in self.rate_limit_resets
            }

        return stats
