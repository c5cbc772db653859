"""Bounded recency sets used for per-source deduplication."""

from __future__ import annotations

from collections.abc import Callable, Iterable


class SeenSet:
    """Insertion-ordered set of dedup keys with a soft cap.

    Keys are added as items are emitted; trim() runs once per poll, so the set
    never exceeds ``cap`` plus one poll's worth of insertions. Overflow trims to
    half capacity, discarding the oldest insertions.
    """

    def __init__(self, cap: int) -> None:
        if cap < 2:
            raise ValueError("cap must be at least 2")
        self.cap = cap
        self._keys: dict[str, None] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def add(self, key: str) -> None:
        self._keys.setdefault(key, None)

    def update(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.add(key)

    def trim(self) -> int:
        """Drop the oldest keys down to cap // 2 if over cap. Returns number dropped."""
        if len(self._keys) <= self.cap:
            return 0
        keep = self.cap // 2
        dropped = len(self._keys) - keep
        self._keys = dict.fromkeys(list(self._keys)[-keep:])
        return dropped


class TtlSeenSet(SeenSet):
    """Seen-set whose keys also expire after ``ttl`` seconds.

    Used for cooldown-style sources (an IP may be reported again after an
    hour, a BGP prefix after 30 seconds). ``clock`` is the scheduler's clock.
    """

    def __init__(self, cap: int, ttl: float, clock: Callable[[], float]) -> None:
        super().__init__(cap)
        self.ttl = ttl
        self._clock = clock
        self._stamps: dict[str, float] = {}

    def __contains__(self, key: object) -> bool:
        stamp = self._stamps.get(key)  # type: ignore[arg-type]
        return stamp is not None and self._clock() - stamp < self.ttl

    def __len__(self) -> int:
        return len(self._stamps)

    def add(self, key: str) -> None:
        # Re-adding refreshes the stamp and moves the key to the newest end
        self._stamps.pop(key, None)
        self._stamps[key] = self._clock()

    def trim(self) -> int:
        if len(self._stamps) <= self.cap:
            return 0
        before = len(self._stamps)
        cutoff = self._clock() - self.ttl
        self._stamps = {k: t for k, t in self._stamps.items() if t >= cutoff}
        if len(self._stamps) > self.cap:
            keep = self.cap // 2
            self._stamps = dict(list(self._stamps.items())[-keep:])
        return before - len(self._stamps)
