"""Ingestion adapter framework for threat-intelligence sources."""

from threatwire.ingestion.base import (
    AdapterContext,
    EventSink,
    PollingAdapter,
    SourceAdapter,
    StreamingAdapter,
)
from threatwire.ingestion.catalog import SourceSpec, get_source_specs

__all__ = [
    "AdapterContext",
    "EventSink",
    "PollingAdapter",
    "SourceAdapter",
    "SourceSpec",
    "StreamingAdapter",
    "get_source_specs",
]
