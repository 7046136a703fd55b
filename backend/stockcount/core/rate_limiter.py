"""
Sliding-window throttle for the credential endpoints (login, register).

In-memory, per process. Behind several workers each worker keeps its own
window, so the effective limit is multiplied by the worker count.
"""
import logging
import time
from collections import defaultdict
from typing import Dict, List, Tuple

from fastapi import Request

from stockcount.core.config import settings
from stockcount.core.exceptions import ApiError

logger = logging.getLogger(__name__)


class RateLimiter:
    """In-memory rate limiter with sliding window."""

    def __init__(self, requests: int = 10, window: int = 60):
        """
        Args:
            requests: Maximum requests allowed in window
            window: Time window in seconds
        """
        self.requests = requests
        self.window = window
        self.clients: Dict[str, List[float]] = defaultdict(list)
        self.last_cleanup = time.time()

    def is_allowed(self, client_id: str) -> Tuple[bool, int]:
        """
        Record a hit for client_id.

        Returns:
            (allowed, remaining)
        """
        now = time.time()

        if now - self.last_cleanup > 300:
            self._cleanup(now)
            self.last_cleanup = now

        cutoff = now - self.window
        timestamps = [ts for ts in self.clients[client_id] if ts > cutoff]
        self.clients[client_id] = timestamps

        if len(timestamps) >= self.requests:
            return False, 0
        timestamps.append(now)
        return True, self.requests - len(timestamps)

    def reset(self):
        self.clients.clear()

    def _cleanup(self, now: float):
        cutoff = now - self.window
        for client_id in list(self.clients.keys()):
            timestamps = [ts for ts in self.clients[client_id] if ts > cutoff]
            if timestamps:
                self.clients[client_id] = timestamps
            else:
                del self.clients[client_id]

        logger.info(f"Login throttle cleanup: {len(self.clients)} active clients")


login_limiter = RateLimiter(
    requests=settings.LOGIN_RATE_LIMIT_REQUESTS,
    window=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
)


def throttle_credentials(request: Request) -> None:
    """FastAPI dependency: reject with 429 once a client IP exceeds the window."""
    client_ip = request.client.host if request.client else "unknown"
    client_id = f"{request.url.path}:{client_ip}"

    allowed, _ = login_limiter.is_allowed(client_id)
    if not allowed:
        logger.warning(f"Credential throttle exceeded for {client_id}")
        raise ApiError.too_many_requests(login_limiter.window)
