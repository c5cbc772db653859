"""GreyNoise scanner-noise adapter.

Emits aggregate scanner statistics: the background static of machines
probing the internet. Requires GREYNOISE_API_KEY; without it the source runs
in simulate-mode every 30 seconds. Stats are a snapshot, so there is no dedup.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.errors import ParseError
from threatwire.schemas.events import GreyNoiseStats

GREYNOISE_STATS_URL = "https://api.greynoise.io/v3/community/stats"

_SIM_PORTS = [22, 23, 80, 443, 3389, 8080]
_SIM_TAGS = ["SSH Scanner", "Web Crawler", "Telnet Scanner", "RDP Scanner"]


class GreyNoiseAdapter(PollingAdapter):
    name = "greynoise"

    async def fetch(self) -> Any:
        return await self.fetch_json(
            GREYNOISE_STATS_URL,
            headers={"key": self.api_key or "", "Accept": "application/json"},
        )

    def records(self, body: Any) -> Iterable[dict]:
        if not isinstance(body, dict):
            raise ParseError("GreyNoise stats payload is not an object")
        yield body.get("stats") or {}

    def to_payload(self, stats: dict) -> GreyNoiseStats:
        return GreyNoiseStats(
            scanner_count=stats.get("total_ips") or 100,
            scanner_types=stats.get("classifications") or ["unknown"],
            top_ports=[p["port"] for p in stats.get("top_ports") or []] or [22, 80, 443],
            top_tags=[t["tag"] for t in stats.get("top_tags") or []] or ["Scanner"],
        )

    def synthesize(self) -> list[GreyNoiseStats]:
        rng = self.rng
        return [
            GreyNoiseStats(
                scanner_count=50 + rng.randrange(100),
                scanner_types=["benign", "malicious"] if rng.random() > 0.3 else ["benign"],
                top_ports=_SIM_PORTS[: 3 + rng.randrange(3)],
                top_tags=_SIM_TAGS[: 2 + rng.randrange(2)],
            )
        ]
