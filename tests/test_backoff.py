"""Tests for reconnect backoff."""

import pytest

from threatwire.ingestion.backoff import Backoff


def test_doubles_up_to_ceiling() -> None:
    backoff = Backoff(base=1.0, ceiling=60.0)
    delays = [backoff.next_delay() for _ in range(8)]
    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 32.0, 60.0, 60.0]


def test_reset_returns_to_base() -> None:
    backoff = Backoff(base=1.0, ceiling=60.0)
    for _ in range(5):
        backoff.next_delay()
    backoff.reset()
    assert backoff.next_delay() == 1.0


@pytest.mark.parametrize(
    "kwargs",
    [{"base": 0}, {"base": 5, "ceiling": 1}, {"factor": 0.5}],
)
def test_invalid_parameters_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        Backoff(**kwargs)
