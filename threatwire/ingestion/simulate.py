"""Helpers for synthetic event generation.

All randomness flows through a caller-supplied ``random.Random`` so that a
fixed SIMULATION_SEED reproduces the same synthetic stream.
"""

from __future__ import annotations

import random
import string
from datetime import UTC, datetime, timedelta


def make_rng(seed: int | None, source: str) -> random.Random:
    """Per-source generator: independent streams that are stable for a given seed."""
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{source}")


def random_ip(rng: random.Random) -> str:
    return ".".join(str(rng.randrange(256)) for _ in range(4))


def random_hex(rng: random.Random, length: int) -> str:
    return "".join(rng.choice("0123456789abcdef") for _ in range(length))


def random_domain(rng: random.Random) -> str:
    name = "".join(rng.choice(string.ascii_lowercase) for _ in range(8))
    return f"{name}.{rng.choice(['com', 'net', 'xyz', 'top'])}"


def iso_ago(rng: random.Random, max_days: float) -> str:
    """ISO timestamp a random amount of time (up to max_days) in the past."""
    moment = datetime.now(UTC) - timedelta(days=rng.random() * max_days)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def date_ago(rng: random.Random, max_days: int) -> str:
    """YYYY-MM-DD a random whole number of days (< max_days) in the past."""
    return (datetime.now(UTC) - timedelta(days=rng.randrange(max_days))).date().isoformat()


def sim_id(prefix: str, rng: random.Random) -> str:
    return f"{prefix}-sim-{random_hex(rng, 12)}"
