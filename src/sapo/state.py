from dataclasses import dataclass

from .types import DEFAULT_BUCKET_CAPACITY, DEFAULT_LEAK_RATE


@dataclass
class RateLimitState:
    capacity: int = DEFAULT_BUCKET_CAPACITY
    leak_rate: float = DEFAULT_LEAK_RATE  # calls drained per second
    used: float = 0.0  # calls the server (or we) counted, as of last_updated
    pending: int = 0  # admitted, response not seen yet
    last_updated: float = 0.0
    cooldown_until: float = 0.0

    def drain(self, now: float) -> None:
        if now > self.last_updated:
            self.used = max(0.0, self.used - (now - self.last_updated) * self.leak_rate)
        self.last_updated = now

    def available(self) -> float:
        return self.capacity - self.used - self.pending

    def next_available_at(self, now: float) -> float:
        missing = 1.0 - self.available()
        w = now + missing / self.leak_rate if missing > 0 else now
        return max(now, self.cooldown_until, w)
