"""Ransomware leak-site victim adapter (ransomware.live).

Victim announcements posted by ransomware operators. Dedup key is the
(group, victim) pair, since the same victim name can appear under two gangs.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.errors import ParseError
from threatwire.ingestion.simulate import iso_ago, sim_id
from threatwire.schemas.events import RansomwareVictim, utc_now_iso

RANSOMWATCH_URL = "https://api.ransomware.live/recentvictims"

RANSOM_GROUPS = [
    "LockBit", "BlackCat/ALPHV", "Cl0p", "Royal", "Play",
    "BianLian", "Medusa", "Akira", "NoEscape", "Rhysida",
    "8Base", "Hunters", "Cactus", "BlackBasta", "Trigona",
]

SECTORS = [
    "Healthcare", "Finance", "Education", "Manufacturing",
    "Legal", "Technology", "Government", "Retail", "Energy",
    "Construction", "Transportation", "Hospitality",
]

COUNTRIES = [
    "US", "UK", "DE", "FR", "CA", "AU", "IT", "ES", "NL", "BR",
    "JP", "IN", "MX", "BE", "CH", "AT", "SE", "PL", "CZ", "PT",
]

_SECTOR_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Healthcare", ("hospital", "health", "medical")),
    ("Finance", ("bank", "financ", "credit")),
    ("Education", ("school", "university", "college")),
    ("Legal", ("law", "legal", "attorney")),
    ("Technology", ("tech", "software", "cyber")),
    ("Government", ("city", "county", "gov")),
]

_TLD_COUNTRIES: list[tuple[tuple[str, ...], str]] = [
    ((".com", ".us"), "US"),
    ((".uk",), "UK"),
    ((".de",), "DE"),
    ((".fr",), "FR"),
]


class RansomWatchAdapter(PollingAdapter):
    name = "ransomware"

    async def fetch(self) -> Any:
        return await self.fetch_json(RANSOMWATCH_URL)

    def records(self, body: Any) -> Iterable[dict]:
        if not isinstance(body, list):
            raise ParseError("ransomware.live payload is not a list")
        return body

    def to_payload(self, entry: dict) -> RansomwareVictim:
        group = entry.get("group_name") or "Unknown"
        victim = entry.get("post_title") or "Undisclosed"
        now = utc_now_iso()
        return RansomwareVictim(
            id=f"ransom-{group}-{victim}"[:128],
            timestamp=now,
            group=group,
            victim=victim,
            website=entry.get("website") or "",
            discovered=entry.get("discovered") or now,
            published=entry.get("published") or now,
            country=self.extract_country(entry),
            sector=self.guess_sector(victim),
        )

    def dedup_key(self, payload: RansomwareVictim) -> str:
        return f"{payload.group}-{payload.victim}"

    def extract_country(self, entry: dict) -> str:
        if entry.get("country"):
            return entry["country"]
        domain = entry.get("website") or entry.get("post_title") or ""
        for suffixes, country in _TLD_COUNTRIES:
            if domain.endswith(suffixes):
                return country
        return self.rng.choice(COUNTRIES)

    def guess_sector(self, name: str) -> str:
        lower = name.lower()
        for sector, needles in _SECTOR_KEYWORDS:
            if any(n in lower for n in needles):
                return sector
        return self.rng.choice(SECTORS)

    def synthesize(self) -> list[RansomwareVictim]:
        rng = self.rng
        batch = []
        for _ in range(rng.randint(1, 2)):
            batch.append(
                RansomwareVictim(
                    id=sim_id("ransom", rng),
                    timestamp=utc_now_iso(),
                    group=rng.choice(RANSOM_GROUPS),
                    victim=self._victim_name(),
                    website="",
                    discovered=utc_now_iso(),
                    published=iso_ago(rng, 1),
                    country=rng.choice(COUNTRIES),
                    sector=rng.choice(SECTORS),
                )
            )
        return batch

    def _victim_name(self) -> str:
        rng = self.rng
        prefix = rng.choice(["Global", "American", "National", "United", "Pacific", "Atlantic", "Western", "Eastern", "Metro"])
        sector = rng.choice(["Health", "Tech", "Financial", "Legal", "Manufacturing", "Energy", "Construction"])
        kind = rng.choice(["Industries", "Systems", "Services", "Solutions", "Group", "Corp", "Holdings", "Partners"])
        return f"{prefix} {sector} {kind}"
