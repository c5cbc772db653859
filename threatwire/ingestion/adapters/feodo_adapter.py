"""Feodo Tracker (abuse.ch) botnet C2 adapter.

Tracks command & control servers for Emotet, Dridex, TrickBot, QakBot and
friends from the recommended IP blocklist JSON. Dedup key is the C2 IP.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.errors import ParseError
from threatwire.ingestion.simulate import iso_ago, random_ip, sim_id
from threatwire.schemas.events import FeodoC2, utc_now_iso

FEODO_BLOCKLIST_URL = "https://feodotracker.abuse.ch/downloads/ipblocklist_recommended.json"

_SIM_MALWARE = ["Emotet", "Dridex", "TrickBot", "QakBot", "BazarLoader", "IcedID", "Bumblebee"]
_SIM_COUNTRIES = ["RU", "UA", "MD", "KZ", "BY", "NL", "DE", "US", "RO", "BG"]


class FeodoAdapter(PollingAdapter):
    name = "feodo"

    async def fetch(self) -> Any:
        return await self.fetch_json(FEODO_BLOCKLIST_URL)

    def records(self, body: Any) -> Iterable[dict]:
        if not isinstance(body, list):
            raise ParseError("Feodo payload is not a list")
        return body

    def to_payload(self, entry: dict) -> FeodoC2 | None:
        ip = entry.get("ip_address") or entry.get("ip")
        if not ip:
            return None
        now = utc_now_iso()
        return FeodoC2(
            id=f"feodo-{ip}",
            timestamp=now,
            ip=ip,
            port=int(entry.get("port") or 443),
            malware=entry.get("malware") or "unknown",
            status="online" if entry.get("status") == "online" else "offline",
            country=entry.get("country") or "??",
            as_name=str(entry.get("as_name") or entry.get("asn") or "Unknown AS"),
            first_seen=entry.get("first_seen") or now,
            last_online=entry.get("last_online") or now,
        )

    def dedup_key(self, payload: FeodoC2) -> str:
        return payload.ip

    def synthesize(self) -> list[FeodoC2]:
        rng = self.rng
        return [
            FeodoC2(
                id=sim_id("feodo", rng),
                timestamp=utc_now_iso(),
                ip=random_ip(rng),
                port=rng.choice([443, 447, 449, 8080, 8443]),
                malware=rng.choice(_SIM_MALWARE),
                status="online" if rng.random() > 0.3 else "offline",
                country=rng.choice(_SIM_COUNTRIES),
                as_name="Bulletproof Hosting LLC",
                first_seen=iso_ago(rng, 30),
                last_online=utc_now_iso(),
            )
            for _ in range(rng.randint(1, 3))
        ]
