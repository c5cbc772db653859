"""Have I Been Pwned breach-notification adapter.

The public breach list is a full catalogue, not a delta, so the first
snapshot only seeds the dedup set and shows the five most recently added
breaches. Later polls emit genuinely new breaches, newest first.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from bs4 import BeautifulSoup

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.errors import ParseError
from threatwire.ingestion.simulate import date_ago, sim_id
from threatwire.schemas.events import HIBPBreach, utc_now_iso

HIBP_BREACHES_URL = "https://haveibeenpwned.com/api/v3/breaches"

DESCRIPTION_LIMIT = 200

_WHITESPACE_RE = re.compile(r"\s+")

_SIM_BREACHES = [
    "MegaCorp Systems", "DataVault Pro", "CloudSync Services",
    "NetSecure Inc", "CryptoExchange", "SocialHub Platform",
    "HealthData Solutions", "FinanceTracker", "GameWorld Online",
]
_SIM_DATA_CLASSES = [
    "Email addresses", "Passwords", "Usernames", "IP addresses",
    "Phone numbers", "Physical addresses", "Credit cards",
    "Social security numbers", "Dates of birth",
]


def strip_html(html: str) -> str:
    """Visible text of an HTML breach description, entities decoded, truncated."""
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(separator=" ", strip=True)
    return _WHITESPACE_RE.sub(" ", text).strip()[:DESCRIPTION_LIMIT]


class HIBPAdapter(PollingAdapter):
    name = "hibp"

    async def fetch(self) -> Any:
        return await self.fetch_json(HIBP_BREACHES_URL)

    def records(self, body: Any) -> Iterable[dict]:
        if not isinstance(body, list):
            raise ParseError("HIBP breach list is not a list")
        # ISO dates sort lexically
        try:
            return sorted(body, key=lambda b: str(b.get("AddedDate") or ""), reverse=True)
        except AttributeError as exc:
            raise ParseError(f"HIBP breach list holds non-objects: {exc}") from exc

    def to_payload(self, raw: dict) -> HIBPBreach:
        name = raw["Name"]
        return HIBPBreach(
            id=f"hibp-{name}",
            timestamp=utc_now_iso(),
            name=name,
            title=raw.get("Title") or name,
            domain=raw.get("Domain") or "unknown",
            breach_date=raw.get("BreachDate") or "",
            added_date=raw.get("AddedDate") or "",
            pwn_count=int(raw.get("PwnCount") or 0),
            description=strip_html(raw.get("Description") or ""),
            data_classes=list(raw.get("DataClasses") or []),
            is_verified=bool(raw.get("IsVerified")),
            is_sensitive=bool(raw.get("IsSensitive")),
        )

    def dedup_key(self, payload: HIBPBreach) -> str:
        return payload.name

    def synthesize(self) -> list[HIBPBreach]:
        rng = self.rng
        title = rng.choice(_SIM_BREACHES)
        compact = title.replace(" ", "")
        return [
            HIBPBreach(
                id=sim_id("hibp", rng),
                timestamp=utc_now_iso(),
                name=compact,
                title=title,
                domain=f"{compact.lower()}.com",
                breach_date=date_ago(rng, 365),
                added_date=utc_now_iso()[:10],
                pwn_count=rng.randrange(10_000, 10_010_000),
                description=f"Data breach exposed user information from {title}",
                data_classes=rng.sample(_SIM_DATA_CLASSES, rng.randint(2, 5)),
                is_verified=rng.random() > 0.3,
                is_sensitive=rng.random() > 0.7,
            )
        ]
