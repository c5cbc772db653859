"""URLhaus (abuse.ch) malware URL adapter.

Polls the public plain-text feed of currently online malware distribution
URLs. No auth. Dedup key is the URL itself.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterable
from urllib.parse import urlparse

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.simulate import random_domain, random_hex
from threatwire.schemas.events import URLhausEntry, utc_now_iso

logger = logging.getLogger(__name__)

URLHAUS_FEED = "https://urlhaus.abuse.ch/downloads/text_online/"

_THREAT_PATTERNS: list[tuple[str, tuple[str, ...]]] = [
    ("emotet", ("emotet", ".dll")),
    ("qakbot", ("qakbot", "qbot")),
    ("icedid", ("icedid",)),
    ("cobaltstrike", ("cobalt",)),
    ("malware_download", (".exe",)),
    ("script_dropper", (".js", ".vbs")),
    ("phishing", ("phish", "login", "verify")),
    ("archive_payload", (".zip", ".rar")),
]

_SIM_PATHS = ["/bins/mozi.m", "/x86_64", "/invoice.exe", "/update.dll", "/doc.zip", "/loader.js"]


def guess_threat_type(url: str) -> str:
    """Guess a threat label from URL patterns; defaults to malware_download."""
    lower = url.lower()
    for threat, needles in _THREAT_PATTERNS:
        if any(n in lower for n in needles):
            return threat
    return "malware_download"


def _host_of(url: str) -> str:
    host = urlparse(url).hostname
    if host:
        return host
    parts = url.split("/")
    return parts[2] if len(parts) > 2 else url


def _entry_id(url: str) -> str:
    return base64.b64encode(url.encode()).decode()[:16]


class URLhausAdapter(PollingAdapter):
    name = "urlhaus"

    async def fetch(self) -> str:
        return await self.fetch_text(URLHAUS_FEED)

    def records(self, body: str) -> Iterable[str]:
        for line in body.splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                yield line

    def to_payload(self, url: str) -> URLhausEntry:
        return URLhausEntry(
            id=_entry_id(url),
            date_added=utc_now_iso(),
            url=url,
            url_status="online",
            threat=guess_threat_type(url),
            tags=[],
            host=_host_of(url),
            reporter="urlhaus",
        )

    def dedup_key(self, payload: URLhausEntry) -> str:
        return payload.url

    def synthesize(self) -> list[URLhausEntry]:
        batch = []
        for _ in range(self.rng.randint(2, 5)):
            host = random_domain(self.rng)
            url = f"http://{host}{self.rng.choice(_SIM_PATHS)}"
            batch.append(
                URLhausEntry(
                    id=f"sim{random_hex(self.rng, 13)}",
                    date_added=utc_now_iso(),
                    url=url,
                    url_status="online",
                    threat=guess_threat_type(url),
                    tags=[],
                    host=host,
                    reporter="urlhaus",
                )
            )
        return batch
