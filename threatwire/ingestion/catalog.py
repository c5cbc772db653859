"""Source catalog loader.

Provides the per-source tunables (cadence, caps, pacing) and the
human-readable category descriptions sent in the welcome frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from threatwire.schemas.events import EventCategory

_CATALOG_PATH = Path(__file__).parent / "sources.yaml"


@dataclass(frozen=True)
class SourceSpec:
    """Tunables for one source, as declared in sources.yaml."""

    name: str
    category: EventCategory
    description: str
    cadence: float
    max_new: int
    seen_cap: int
    simulate_cadence: float | None = None
    seen_ttl: float | None = None
    pacing_ms: int | None = None
    severity_ordered: bool = False
    prime_emit: int | None = None
    requires_api_key: bool = False

    @property
    def paced(self) -> bool:
        return self.pacing_ms is not None

    @property
    def effective_simulate_cadence(self) -> float:
        return self.simulate_cadence or self.cadence


@lru_cache(maxsize=1)
def load_source_catalog() -> dict[str, Any]:
    """Load and return the validated source catalog YAML content.

    Raises:
        FileNotFoundError: If sources.yaml is missing.
        SourceCatalogValidationError: If the catalog is structurally invalid.
    """
    from threatwire.ingestion.catalog_validator import validate_source_catalog

    try:
        with _CATALOG_PATH.open() as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Source catalog YAML is malformed: {exc}") from exc
    validate_source_catalog(data)
    return data


@lru_cache(maxsize=1)
def get_source_specs() -> tuple[SourceSpec, ...]:
    """Return every SourceSpec in startup order (cached after first call)."""
    specs = []
    for entry in load_source_catalog()["sources"]:
        specs.append(
            SourceSpec(
                name=entry["name"],
                category=EventCategory(entry["category"]),
                description=entry["description"].strip(),
                cadence=float(entry["cadence"]),
                max_new=int(entry["max_new"]),
                seen_cap=int(entry["seen_cap"]),
                simulate_cadence=_opt_float(entry.get("simulate_cadence")),
                seen_ttl=_opt_float(entry.get("seen_ttl")),
                pacing_ms=_opt_int(entry.get("pacing_ms")),
                severity_ordered=bool(entry.get("severity_ordered", False)),
                prime_emit=_opt_int(entry.get("prime_emit")),
                requires_api_key=bool(entry.get("requires_api_key", False)),
            )
        )
    return tuple(specs)


def get_source_spec(name: str) -> SourceSpec:
    """Return the spec for one source.

    Raises:
        KeyError: If no source of that name is declared.
    """
    for spec in get_source_specs():
        if spec.name == name:
            return spec
    raise KeyError(name)


def get_category_descriptions() -> dict[str, str]:
    """Return {category tag: description} for the welcome frame."""
    return {spec.category.value: spec.description for spec in get_source_specs()}


def _opt_float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _opt_int(value: Any) -> int | None:
    return int(value) if value is not None else None
