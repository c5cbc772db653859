"""Tor exit node adapter.

The bulk exit list only carries addresses; the relay descriptors shown on
the map (nickname, flags, exit policy) are generated. The list is shuffled
each poll so successive polls surface different relays.
"""

from __future__ import annotations

from collections.abc import Iterable

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.simulate import iso_ago, random_hex, random_ip
from threatwire.schemas.events import TorExitNode, utc_now_iso

TOR_EXIT_LIST_URL = "https://check.torproject.org/torbulkexitlist"

_NICK_PREFIXES = ["Shadow", "Dark", "Ghost", "Phantom", "Silent", "Hidden", "Void", "Black", "Stealth", "Anon"]
_NICK_SUFFIXES = ["Relay", "Node", "Exit", "Gate", "Bridge", "Tunnel", "Path", "Route", "Link", "Proxy"]
_NICK_NUMBERS = ["", "1", "2", "42", "666", "1337", "9000"]

_BASE_FLAGS = ["Exit", "Running", "Valid"]
_OPTIONAL_FLAGS = ["Fast", "Guard", "HSDir", "Stable", "V2Dir"]

EXIT_POLICIES = [
    "accept *:80, accept *:443, reject *:*",
    "accept *:*",
    "accept *:80, accept *:443, accept *:22, reject *:*",
    "accept *:80-443, reject *:*",
]

# Skewed toward privacy-friendly jurisdictions
_COUNTRIES = ["DE", "NL", "CH", "SE", "FR", "US", "CA", "RO", "LU", "IS", "NO", "FI", "AT", "CZ"]


class TorAdapter(PollingAdapter):
    name = "tor"

    async def fetch(self) -> str:
        return await self.fetch_text(TOR_EXIT_LIST_URL)

    def records(self, body: str) -> Iterable[str]:
        ips = [
            line.strip()
            for line in body.splitlines()
            if line.strip() and not line.startswith("#")
        ]
        self.rng.shuffle(ips)
        return ips

    def to_payload(self, ip: str) -> TorExitNode:
        return self._node(f"tor-{ip.replace('.', '-')}", ip)

    def dedup_key(self, payload: TorExitNode) -> str:
        return payload.ip

    def synthesize(self) -> list[TorExitNode]:
        batch = []
        for _ in range(self.rng.randint(3, 7)):
            ip = random_ip(self.rng)
            batch.append(self._node(f"tor-sim-{random_hex(self.rng, 8)}", ip))
        return batch

    def _node(self, node_id: str, ip: str) -> TorExitNode:
        rng = self.rng
        return TorExitNode(
            id=node_id,
            timestamp=utc_now_iso(),
            ip=ip,
            nickname=rng.choice(_NICK_PREFIXES) + rng.choice(_NICK_SUFFIXES) + rng.choice(_NICK_NUMBERS),
            fingerprint=random_hex(rng, 40).upper(),
            bandwidth=rng.randrange(100_000_000),
            country=rng.choice(_COUNTRIES),
            flags=_BASE_FLAGS + [f for f in _OPTIONAL_FLAGS if rng.random() > 0.5],
            first_seen=iso_ago(rng, 365),
            last_seen=utc_now_iso(),
            exit_policy=rng.choice(EXIT_POLICIES),
        )
