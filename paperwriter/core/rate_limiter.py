"""Simple in-memory rate limiter for the polish endpoint."""

import time
from typing import Any, Callable, Dict, Tuple

from paperwriter.core.config import get_settings
from paperwriter.core.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Fixed-window rate limiter.

    Each key gets ``max_requests`` within a window that starts at its first
    request. Once the window has passed, the next request opens a fresh one.
    Uses in-memory storage, so limits are per process.
    """

    def __init__(
        self,
        max_requests: int = 20,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests allowed per window
            window_seconds: Window length in seconds
            clock: Time source, injectable for tests
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock

        # Storage: key -> (count, reset_time)
        self._windows: Dict[str, Tuple[int, float]] = {}

    def check_limit(self, key: str) -> bool:
        """
        Record a request and check it against the limit.

        Args:
            key: Rate limit key (client IP)

        Returns:
            True if allowed, False if rate limited
        """
        now = self._clock()
        window = self._windows.get(key)

        if window is None or now > window[1]:
            self._windows[key] = (1, now + self.window_seconds)
            return True

        count, reset_time = window
        if count >= self.max_requests:
            logger.warning(
                f"Rate limit exceeded for key: {key}, "
                f"requests: {count}/{self.max_requests}, "
                f"resets in: {reset_time - now:.1f}s"
            )
            return False

        self._windows[key] = (count + 1, reset_time)
        return True

    def get_stats(self, key: str) -> Dict[str, Any]:
        """
        Get rate limit stats for a key.

        Args:
            key: Rate limit key

        Returns:
            Dictionary with stats
        """
        count, reset_time = self._windows.get(key, (0, 0.0))
        if reset_time and self._clock() > reset_time:
            count = 0

        return {
            "requests_in_window": count,
            "requests_remaining": max(self.max_requests - count, 0),
            "max_requests": self.max_requests,
            "window_seconds": self.window_seconds,
        }

    def reset(self, key: str | None = None) -> None:
        """
        Reset rate limit for one key, or for every key.

        Args:
            key: Rate limit key; None clears all windows
        """
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)

        logger.info(f"Rate limit reset for key: {key or '*'}")


def _build_polish_rate_limiter() -> RateLimiter:
    settings = get_settings()
    return RateLimiter(
        max_requests=settings.POLISH_RATE_LIMIT,
        window_seconds=settings.POLISH_RATE_WINDOW_SECONDS,
    )


# Global rate limiter instance
polish_rate_limiter = _build_polish_rate_limiter()


def get_polish_rate_limiter() -> RateLimiter:
    """FastAPI dependency returning the shared polish limiter."""
    return polish_rate_limiter


def client_key(headers: Any) -> str:
    """Rate limit key for a request: the edge-reported client IP."""
    return headers.get("cf-connecting-ip") or "unknown"
