"""Fixed-window request limiting keyed by client identity and bucket.

State lives in a single process. Deployments running several instances need
a shared store implementing ``RateLimitStore``; the algorithm stays the same.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Mapping, Optional, Protocol

from fastapi import Depends, Request, Response

from .errors import RateLimitError
from .models import RateLimitRecord

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "default"
SWEEP_INTERVAL_SECONDS = 5 * 60


@dataclass(frozen=True)
class RateLimitOptions:
    max: int
    window: int
    identifier: Optional[str] = None


RATE_LIMITS: Mapping[str, RateLimitOptions] = {
    "STRICT": RateLimitOptions(max=5, window=60),
    "STANDARD": RateLimitOptions(max=100, window=60),
    "LENIENT": RateLimitOptions(max=200, window=60),
    "PAYMENT": RateLimitOptions(max=10, window=60),
    "AUTH": RateLimitOptions(max=5, window=60),
}


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: int
    retry_after: Optional[int] = None

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }
        if not self.success:
            headers["Retry-After"] = str(self.retry_after or 60)
        return headers


class RateLimitStore(Protocol):
    @property
    def lock(self) -> threading.Lock: ...

    def get(self, key: str) -> Optional[RateLimitRecord]: ...

    def set(self, key: str, record: RateLimitRecord) -> None: ...

    def delete(self, key: str) -> None: ...

    def items(self) -> list[tuple[str, RateLimitRecord]]: ...


class InMemoryRateLimitStore:
    """Counter records for one process, guarded by a single lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, RateLimitRecord] = {}

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def get(self, key: str) -> Optional[RateLimitRecord]:
        return self._records.get(key)

    def set(self, key: str, record: RateLimitRecord) -> None:
        self._records[key] = record

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def items(self) -> list[tuple[str, RateLimitRecord]]:
        return list(self._records.items())

    def __len__(self) -> int:
        return len(self._records)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        self._store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock

    @property
    def store(self) -> RateLimitStore:
        return self._store

    def check(self, identifier: str, options: RateLimitOptions, now: Optional[int] = None) -> RateLimitResult:
        now = self._clock() if now is None else now
        key = f"{identifier}:{options.identifier or DEFAULT_BUCKET}"

        with self._store.lock:
            record = self._store.get(key)
            if record is None or now >= record.reset_time:
                record = RateLimitRecord(count=1, reset_time=now + options.window * 1000)
                self._store.set(key, record)
                return RateLimitResult(
                    success=True,
                    limit=options.max,
                    remaining=options.max - 1,
                    reset=record.reset_time,
                )

            record.increment()
            count = record.count
            reset_time = record.reset_time

        if count > options.max:
            return RateLimitResult(
                success=False,
                limit=options.max,
                remaining=0,
                reset=reset_time,
                retry_after=math.ceil((reset_time - now) / 1000),
            )
        return RateLimitResult(
            success=True,
            limit=options.max,
            remaining=options.max - count,
            reset=reset_time,
        )

    def sweep(self, now: Optional[int] = None) -> int:
        now = self._clock() if now is None else now
        with self._store.lock:
            expired = [key for key, record in self._store.items() if record.reset_time <= now]
            for key in expired:
                self._store.delete(key)
        if expired:
            logger.debug("Swept expired rate limit records", extra={"removed": len(expired)})
        return len(expired)


class RateLimitSweeper:
    """Background thread that periodically drops expired counters."""

    def __init__(self, limiter: RateLimiter, interval: float = SWEEP_INTERVAL_SECONDS) -> None:
        self._limiter = limiter
        self._interval = interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name="rate-limit-sweeper", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout=self._interval)
            self._thread = None

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self._limiter.sweep()


default_limiter = RateLimiter()


def rate_limit(identifier: str, options: RateLimitOptions) -> RateLimitResult:
    return default_limiter.check(identifier, options)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return "unknown"


def get_rate_limiter() -> RateLimiter:
    return default_limiter


class RateLimited:
    """Dependency guarding a route with one of the ``RATE_LIMITS`` presets."""

    def __init__(self, preset: str, bucket: Optional[str] = None) -> None:
        # presets never share a counter, each is its own bucket unless one is named
        self.options = replace(RATE_LIMITS[preset], identifier=bucket or preset.lower())

    def __call__(
        self,
        request: Request,
        response: Response,
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> RateLimitResult:
        client_ip = get_client_ip(request)
        result = limiter.check(client_ip, self.options)
        if not result.success:
            logger.warning(
                "Rate limit exceeded",
                extra={"client_ip": client_ip, "bucket": self.options.identifier},
            )
            raise RateLimitError(headers=result.headers())
        # error responses built outside this dependency pick the headers up from here
        request.state.rate_limit = result
        response.headers.update(result.headers())
        return result
