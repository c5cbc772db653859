"""Source catalog schema validation.

Validates that sources.yaml has the required structure:
- sources: non-empty list of mappings with unique names
- every event category is covered exactly once
- numeric tunables are positive
"""

from __future__ import annotations

from typing import Any

from threatwire.schemas.events import EventCategory

_REQUIRED_POSITIVE = ("cadence", "max_new", "seen_cap")
_OPTIONAL_POSITIVE = ("simulate_cadence", "seen_ttl", "pacing_ms", "prime_emit")


class SourceCatalogValidationError(ValueError):
    """Raised when the source catalog is structurally invalid.

    Subclasses ValueError so startup can catch it alongside FileNotFoundError.
    """


def validate_source_catalog(catalog: dict[str, Any]) -> None:
    """Validate source catalog structure.

    Args:
        catalog: Loaded sources.yaml content.

    Raises:
        SourceCatalogValidationError: When structure or coverage checks fail.
    """
    if not isinstance(catalog, dict):
        raise SourceCatalogValidationError("source catalog must be a dict")

    sources = catalog.get("sources")
    if not isinstance(sources, list) or not sources:
        raise SourceCatalogValidationError("source catalog must have a non-empty 'sources' list")

    names: set[str] = set()
    categories: set[str] = set()
    for entry in sources:
        if not isinstance(entry, dict):
            raise SourceCatalogValidationError(f"source entries must be mappings, got {entry!r}")

        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise SourceCatalogValidationError(f"source entry has no name: {entry!r}")
        if name in names:
            raise SourceCatalogValidationError(f"duplicate source name: '{name}'")
        names.add(name)

        category = entry.get("category")
        try:
            EventCategory(category)
        except ValueError:
            raise SourceCatalogValidationError(
                f"source '{name}' has unknown category {category!r}"
            ) from None
        if category in categories:
            raise SourceCatalogValidationError(f"category '{category}' is served by two sources")
        categories.add(category)

        if not isinstance(entry.get("description"), str) or not entry["description"].strip():
            raise SourceCatalogValidationError(f"source '{name}' needs a description")

        for key in _REQUIRED_POSITIVE:
            value = entry.get(key)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                raise SourceCatalogValidationError(
                    f"source '{name}' field '{key}' must be a positive number, got {value!r}"
                )
        for key in _OPTIONAL_POSITIVE:
            value = entry.get(key)
            if value is None:
                continue
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                raise SourceCatalogValidationError(
                    f"source '{name}' field '{key}' must be a positive number, got {value!r}"
                )
        if entry.get("severity_ordered") and entry.get("pacing_ms") is None:
            raise SourceCatalogValidationError(
                f"source '{name}' is severity_ordered but has no pacing queue"
            )

    missing = {c.value for c in EventCategory} - categories
    if missing:
        raise SourceCatalogValidationError(
            f"source catalog does not cover categories: {sorted(missing)}"
        )
