"""Adapter failure taxonomy.

None of these are fatal. Each maps to one recovery path in the adapters:

- TransportError: fetch/connect failed or upstream returned a non-success
  status. The adapter emits a small synthetic batch instead.
- ParseError: a record (or a whole payload) could not be decoded. Bad records
  are skipped; an undecodable payload counts as a failed poll.
- RateLimited: upstream asked us to slow down. The cycle is skipped with no
  synthetic fallback.
- ConnectionLost: a streaming relay dropped. The adapter reconnects with
  capped exponential backoff.
"""

from __future__ import annotations


class SourceError(Exception):
    """Base class for recoverable upstream failures."""

    kind = "error"


class TransportError(SourceError):
    kind = "transport"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(SourceError):
    kind = "parse"


class RateLimited(SourceError):
    kind = "rate_limited"


class ConnectionLost(SourceError):
    kind = "connection_lost"
