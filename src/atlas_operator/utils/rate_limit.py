"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))
_ATLAS_RATE_LIMIT_PER_SECOND = float(os.getenv("ATLAS_RATE_LIMIT_PER_SECOND", "5.0"))


class _Throttle:
    """Spaces calls at least 1/rate seconds apart across worker threads."""

    def __init__(self, rate_per_second: float):
        self.min_interval = 1.0 / rate_per_second
        self._last_call_time = 0.0
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            time_since_last_call = time.monotonic() - self._last_call_time
            if time_since_last_call < self.min_interval:
                time.sleep(self.min_interval - time_since_last_call)
            self._last_call_time = time.monotonic()


_k8s_throttle = _Throttle(_K8S_RATE_LIMIT_PER_SECOND)
_atlas_throttle = _Throttle(_ATLAS_RATE_LIMIT_PER_SECOND)


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _k8s_throttle.wait()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def rate_limit_atlas(func: _F) -> _F:
    """Decorator to rate limit Atlas Admin API calls."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _atlas_throttle.wait()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def is_rate_limit_error(e: Exception) -> bool:
    """Whether a Kubernetes API exception is a rate limit response."""
    if not isinstance(e, ApiException):
        return False
    return e.status == 429 or (e.status == 503 and "rate limit" in str(e).lower())


def handle_rate_limit_error(e: Exception, attempt: int, max_retries: int = 3) -> bool:
    """Back off after a rate limit error.

    Args:
        e: Exception raised by the API call
        attempt: Zero-based number of retries already made
        max_retries: Maximum number of retries

    Returns:
        True if the caller should retry, False otherwise
    """
    if not is_rate_limit_error(e) or attempt >= max_retries:
        return False

    metrics.rate_limit_hits_total.labels(api_type="k8s").inc()
    # Exponential backoff: 1s, 2s, 4s
    time.sleep(2 ** attempt)
    return True
