"""Blocklist.de intrusion-report adapter.

IPs reported by fail2ban-style sensors for SSH brute force, mail spam, web
attacks and login brute force. One of four feeds is fetched per poll in
rotation, so the full set refreshes every four cadences. An IP may be
reported again once its one-hour cooldown expires.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.simulate import random_ip, sim_id
from threatwire.schemas.events import AttackReport, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttackFeed:
    url: str
    attack_type: str


ATTACK_FEEDS: tuple[AttackFeed, ...] = (
    AttackFeed("https://lists.blocklist.de/lists/ssh.txt", "ssh_bruteforce"),
    AttackFeed("https://lists.blocklist.de/lists/mail.txt", "mail_spam"),
    AttackFeed("https://lists.blocklist.de/lists/apache.txt", "web_attack"),
    AttackFeed("https://lists.blocklist.de/lists/bruteforcelogin.txt", "bruteforce_login"),
)

SAMPLE_SIZE = 20

_REGIONS: list[tuple[range, tuple[str, ...]]] = [
    (range(1, 127), ("US", "CA", "MX")),
    (range(128, 192), ("DE", "FR", "GB", "NL", "RU")),
    (range(192, 224), ("CN", "JP", "KR", "IN", "AU")),
]


def is_valid_ipv4(value: str) -> bool:
    parts = value.split(".")
    if len(parts) != 4:
        return False
    return all(p.isdigit() and 0 <= int(p) <= 255 for p in parts)


class BlocklistDeAdapter(PollingAdapter):
    name = "bruteforce"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._feed_index = 0
        self._current = ATTACK_FEEDS[0]

    def next_feed(self) -> AttackFeed:
        feed = ATTACK_FEEDS[self._feed_index]
        self._feed_index = (self._feed_index + 1) % len(ATTACK_FEEDS)
        return feed

    async def fetch(self) -> str:
        self._current = self.next_feed()
        logger.debug("[%s] Fetching %s feed", self.source_name, self._current.attack_type)
        return await self.fetch_text(self._current.url)

    def records(self, body: str) -> Iterable[str]:
        ips = [line.strip() for line in body.strip().splitlines() if is_valid_ipv4(line.strip())]
        self.rng.shuffle(ips)
        return ips[:SAMPLE_SIZE]

    def to_payload(self, ip: str) -> AttackReport:
        return AttackReport(
            id=f"bl-{self._current.attack_type}-{ip}",
            timestamp=utc_now_iso(),
            ip=ip,
            attack_type=self._current.attack_type,
            country=self.guess_country(ip),
        )

    def dedup_key(self, payload: AttackReport) -> str:
        return payload.ip

    def guess_country(self, ip: str) -> str | None:
        """Rough region from the first octet; for map placement only."""
        first = int(ip.split(".", 1)[0])
        for octets, countries in _REGIONS:
            if first in octets:
                return self.rng.choice(countries)
        return None

    def synthesize(self) -> list[AttackReport]:
        rng = self.rng
        batch = []
        for _ in range(rng.randint(2, 5)):
            ip = random_ip(rng)
            batch.append(
                AttackReport(
                    id=sim_id("bl", rng),
                    timestamp=utc_now_iso(),
                    ip=ip,
                    attack_type=rng.choice(ATTACK_FEEDS).attack_type,
                    report_count=rng.randint(1, 200),
                    country=self.guess_country(ip),
                )
            )
        return batch
