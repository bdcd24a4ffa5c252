"""
Bounded retry for fallible calls.

:class:`RetryPolicy` wraps any callable and re-invokes it when it raises one
of the configured exception types.  The wait between attempts is
``delay * backoff ** (attempt - 1)``, so the default ``backoff=1.0`` gives a
fixed delay.  No wait happens after the final attempt.

Usage example::

    policy = RetryPolicy(max_attempts=3, delay=2.0, retry_on=(ImageUploadError,))
    image_id = policy.call(images.upload_from_url, url, {"alt": title})
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type

from .errors import RetryError


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    delay: float = 2.0
    backoff: float = 1.0
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    on_retry: Optional[Callable[[int, BaseException, float], None]] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must not be negative")

    def wait_for(self, attempt: int) -> float:
        """Seconds to wait after the failed ``attempt`` (1-based)."""
        return self.delay * (self.backoff ** (attempt - 1))

    def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Execute ``fn(*args, **kwargs)``, retrying on ``retry_on`` errors.

        :return: Whatever ``fn`` returns on its first successful attempt.
        :raises RetryError: if every attempt failed.  The last exception is
            kept in ``last_error`` and chained as ``__cause__``.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return fn(*args, **kwargs)
            except self.retry_on as e:
                if attempt >= self.max_attempts:
                    raise RetryError(attempt, e) from e
                wait = self.wait_for(attempt)
                if self.on_retry is not None:
                    self.on_retry(attempt, e, wait)
                self.sleep(wait)
