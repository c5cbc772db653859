"""DShield (SANS ISC) honeypot attack adapter.

Top attacking sources reported by honeypots worldwide. No auth.
Dedup key is the attacking IP.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.errors import ParseError
from threatwire.ingestion.simulate import random_ip, sim_id
from threatwire.schemas.events import DShieldAttack, utc_now_iso

DSHIELD_ATTACKS_URL = "https://isc.sans.edu/api/sources/attacks/100?json"

PORT_ATTACKS: dict[int, str] = {
    22: "ssh_bruteforce",
    23: "telnet_scan",
    80: "web_exploit",
    443: "https_probe",
    445: "smb_attack",
    3389: "rdp_bruteforce",
    1433: "mssql_attack",
    3306: "mysql_attack",
    5900: "vnc_scan",
    8080: "proxy_scan",
}

_SIM_COUNTRIES = ["CN", "RU", "US", "BR", "IN", "KR", "NL", "DE", "VN", "TW"]


def classify_attack(port: int) -> str:
    return PORT_ATTACKS.get(port, "port_scan")


class DShieldAdapter(PollingAdapter):
    name = "dshield"

    async def fetch(self) -> Any:
        return await self.fetch_json(DSHIELD_ATTACKS_URL)

    def records(self, body: Any) -> Iterable[dict]:
        if not isinstance(body, list):
            raise ParseError("DShield payload is not a list")
        return body

    def to_payload(self, entry: dict) -> DShieldAttack | None:
        ip = entry.get("ip") or entry.get("source")
        if not ip:
            return None
        port = int(entry.get("targetport") or entry.get("port") or 22)
        return DShieldAttack(
            id=f"dshield-{ip}",
            timestamp=utc_now_iso(),
            source_ip=ip,
            target_port=port,
            protocol=entry.get("protocol") or "TCP",
            attack_type=classify_attack(port),
            country=entry.get("ascountry") or entry.get("country") or "??",
            reports=int(entry.get("count") or entry.get("reports") or 1),
        )

    def dedup_key(self, payload: DShieldAttack) -> str:
        return payload.source_ip

    def synthesize(self) -> list[DShieldAttack]:
        rng = self.rng
        batch = []
        for _ in range(rng.randint(3, 7)):
            port = rng.choice(list(PORT_ATTACKS))
            batch.append(
                DShieldAttack(
                    id=sim_id("dshield", rng),
                    timestamp=utc_now_iso(),
                    source_ip=random_ip(rng),
                    target_port=port,
                    protocol="TCP",
                    attack_type=classify_attack(port),
                    country=rng.choice(_SIM_COUNTRIES),
                    reports=rng.randint(1, 50),
                )
            )
        return batch
