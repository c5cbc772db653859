"""Capped exponential backoff for reconnecting sources."""

from __future__ import annotations


class Backoff:
    """Delay that doubles per failure up to a ceiling and resets on success.

    >>> b = Backoff(base=1.0, ceiling=4.0)
    >>> [b.next_delay() for _ in range(4)]
    [1.0, 2.0, 4.0, 4.0]
    """

    def __init__(self, base: float = 1.0, ceiling: float = 60.0, factor: float = 2.0) -> None:
        if base <= 0 or ceiling < base or factor < 1:
            raise ValueError("backoff requires 0 < base <= ceiling and factor >= 1")
        self.base = base
        self.ceiling = ceiling
        self.factor = factor
        self.current = base

    def next_delay(self) -> float:
        """Return the delay to wait now and grow the next one."""
        delay = self.current
        self.current = min(self.current * self.factor, self.ceiling)
        return delay

    def reset(self) -> None:
        self.current = self.base
