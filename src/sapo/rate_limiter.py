import asyncio
import logging
import math
import threading
import time
from collections.abc import Mapping
from typing import Union

from .state import RateLimitState
from .types import DEFAULT_BUCKET_CAPACITY, DEFAULT_LEAK_RATE, RateLimits

CALL_LIMIT_HEADER = "x-sapo-api-call-limit"
# Longest pause a single 429 may impose
MAX_RETRY_AFTER = 60.0

# ---------- Common helpers ----------


def _header(headers: Union[Mapping, None], name: str) -> Union[str, None]:
    if not headers:
        return None
    for k, v in headers.items():
        if k.lower() == name:
            return v
    return None


def _parse_retry_after(headers: Union[Mapping, None], now: float) -> float:
    ra = _header(headers, "retry-after")
    if ra is None:
        return 0.0
    try:
        delay = float(ra)
    except ValueError:
        # Try HTTP-date per RFC7231
        import email.utils as eut  # noqa: PLC0415

        try:
            ts = eut.parsedate_to_datetime(ra)
        except (TypeError, ValueError):
            return 1.0
        # Round up to the next whole second to avoid truncation
        # making short delays appear too short
        delay = float(math.ceil(ts.timestamp() - now))
    # "inf" and "nan" parse as floats but carry no usable hint
    if not math.isfinite(delay):
        return 0.0
    return min(max(0.0, delay), MAX_RETRY_AFTER)


def _parse_call_limit(headers: Union[Mapping, None]) -> Union[tuple[int, int], None]:
    """Parse 'X-Sapo-Api-Call-Limit: 12/40' into (12, 40)."""
    raw = _header(headers, CALL_LIMIT_HEADER)
    if not raw or "/" not in raw:
        return None
    used, _, limit = raw.partition("/")
    try:
        used_i, limit_i = int(used.strip()), int(limit.strip())
    except ValueError:
        return None
    if limit_i <= 0:
        return None
    return used_i, limit_i


# ---------- Base limiter (shared logic; synchronization handled by subclasses) ----------


class _BucketLimiter:
    def __init__(
        self,
        capacity: int = DEFAULT_BUCKET_CAPACITY,
        leak_rate: float = DEFAULT_LEAK_RATE,
    ):
        """Initialize a _BucketLimiter.

        Args:
            capacity (int): bucket size; the remote quota once a response reports it
            leak_rate (float): calls drained from the bucket per second

        Raises:
            ValueError: if capacity or leak_rate is not positive
        """
        if capacity <= 0 or leak_rate <= 0:
            raise ValueError("capacity and leak_rate must be positive")
        self._state = RateLimitState(capacity=capacity, leak_rate=leak_rate)
        self._state.last_updated = self._now()
        self._logger = logging.getLogger("sapo")
        # Throttle sleep logs
        self._sleep_notice = 0.0

    def _now(self) -> float:
        return time.monotonic()

    def _try_admit(self) -> Union[float, None]:
        """Reserve a call if one is available; else return the earliest wake time."""
        now = self._now()
        st = self._state
        st.drain(now)
        wake = st.next_available_at(now)
        if wake <= now:
            st.pending += 1
            return None
        return wake

    def _log_sleep(self, delay: float) -> None:
        # Caller holds the lock
        now = self._now()
        if self._sleep_notice <= now:
            self._logger.info(f"rate limit reached; sleeping ~{delay:.2f}s")
            self._sleep_notice = now + 5.0

    def _settle(self, headers: Union[Mapping, None]) -> None:
        now = self._now()
        st = self._state
        st.pending = max(0, st.pending - 1)
        st.drain(now)
        mirrored = _parse_call_limit(headers)
        if mirrored is not None:
            st.used, st.capacity = float(mirrored[0]), mirrored[1]
        else:
            st.used = min(float(st.capacity), st.used + 1.0)

    def _release(self) -> None:
        self._state.pending = max(0, self._state.pending - 1)

    def _penalize(self, headers: Union[Mapping, None]) -> float:
        now = self._now()
        retry_after = _parse_retry_after(headers, time.time())
        if retry_after <= 0:
            # No hint from the server: wait for one call to drain
            retry_after = 1.0 / self._state.leak_rate
        self._state.cooldown_until = max(self._state.cooldown_until, now + retry_after)
        # A 429 means the server bucket is full whatever we remembered
        self._state.drain(now)
        self._state.used = float(self._state.capacity)
        return retry_after

    def _snapshot(self) -> RateLimits:
        now = self._now()
        st = self._state
        st.drain(now)
        used = math.ceil(st.used) + st.pending
        return RateLimits(
            limit=st.capacity,
            used=used,
            remaining=max(0, st.capacity - used),
            retry_after=max(0.0, st.next_available_at(now) - now),
        )


# ---------- Sync limiter (requests) ----------


class RateLimiter(_BucketLimiter):
    def __init__(
        self,
        capacity: int = DEFAULT_BUCKET_CAPACITY,
        leak_rate: float = DEFAULT_LEAK_RATE,
    ):
        super().__init__(capacity, leak_rate)
        self._lock = threading.Lock()

    def _sleep(self, delay: float) -> None:
        time.sleep(delay)

    def check_rate_limit(self) -> None:
        """Block until the remembered bucket has room, then reserve one call."""
        while True:
            with self._lock:
                wake = self._try_admit()
                if wake is None:
                    return
                delay = max(0.01, wake - self._now())
                self._log_sleep(delay)
            self._sleep(delay)

    def consume_token(self, headers: Union[Mapping, None] = None) -> None:
        """Settle a reserved call once its response arrived; mirror the server's count."""
        with self._lock:
            self._settle(headers)

    def release_token(self) -> None:
        """Give back a reservation for a request that never got a response."""
        with self._lock:
            self._release()

    def penalize(self, headers: Union[Mapping, None] = None) -> float:
        """Honor a 429: block admissions for Retry-After seconds. Returns the delay."""
        with self._lock:
            return self._penalize(headers)

    def get_rate_limits(self) -> RateLimits:
        with self._lock:
            return self._snapshot()


# ---------- Async limiter (httpx) ----------


class AsyncRateLimiter(_BucketLimiter):
    def __init__(
        self,
        capacity: int = DEFAULT_BUCKET_CAPACITY,
        leak_rate: float = DEFAULT_LEAK_RATE,
    ):
        super().__init__(capacity, leak_rate)
        self._lock = asyncio.Lock()

    async def _sleep(self, delay: float) -> None:
        await asyncio.sleep(delay)

    async def check_rate_limit(self) -> None:
        """Suspend until the remembered bucket has room, then reserve one call."""
        while True:
            async with self._lock:
                wake = self._try_admit()
                if wake is None:
                    return
                delay = max(0.01, wake - self._now())
                self._log_sleep(delay)
            await self._sleep(delay)

    # Settling never awaits, so it cannot interleave with an admission on the loop.
    def consume_token(self, headers: Union[Mapping, None] = None) -> None:
        self._settle(headers)

    def release_token(self) -> None:
        self._release()

    def penalize(self, headers: Union[Mapping, None] = None) -> float:
        return self._penalize(headers)

    def get_rate_limits(self) -> RateLimits:
        return self._snapshot()
