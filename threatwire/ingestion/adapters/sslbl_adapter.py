"""SSLBL (abuse.ch) malicious certificate adapter.

Each poll reads the SHA1 certificate blacklist CSV and then, best-effort,
the JA3 fingerprint CSV. A JA3 failure never fails the poll. Dedup key is the
certificate SHA1, or the JA3 hash for fingerprint rows.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.errors import SourceError
from threatwire.ingestion.simulate import random_domain, random_hex, sim_id
from threatwire.schemas.events import SSLBlacklistEntry, utc_now_iso

logger = logging.getLogger(__name__)

SSLBL_CERTS_URL = "https://sslbl.abuse.ch/blacklist/sslblacklist.csv"
SSLBL_JA3_URL = "https://sslbl.abuse.ch/blacklist/ja3_fingerprints.csv"

# JA3 rows are secondary; at most this many per poll
MAX_JA3_PER_POLL = 4

_SIM_MALWARE = ["Dridex", "TrickBot", "Emotet", "QakBot", "Cobalt Strike", "IcedID"]
_SIM_REASONS = ["C2 communication", "Payload delivery", "Data exfiltration", "Botnet traffic"]


@dataclass
class SSLBLSnapshot:
    certs: str
    ja3: str


def clean_field(field: str | None) -> str:
    if not field:
        return ""
    return field.strip().strip('"')


def _csv_rows(text: str) -> Iterable[list[str]]:
    for row in csv.reader(io.StringIO(text)):
        if row and not row[0].startswith("#"):
            yield row


class SSLBLAdapter(PollingAdapter):
    name = "sslbl"

    async def fetch(self) -> SSLBLSnapshot:
        certs = await self.fetch_text(SSLBL_CERTS_URL)
        try:
            ja3 = await self.fetch_text(SSLBL_JA3_URL)
        except SourceError as exc:
            logger.debug("[sslbl] JA3 feed unavailable: %s", exc)
            ja3 = ""
        return SSLBLSnapshot(certs=certs, ja3=ja3)

    def records(self, body: SSLBLSnapshot) -> Iterable[tuple[str, list[str]]]:
        for parts in _csv_rows(body.certs):
            yield ("cert", parts)
        for parts in _csv_rows(body.ja3):
            yield ("ja3", parts)

    def collect(self, body: SSLBLSnapshot):
        # Certificates and JA3 rows have separate per-poll caps
        batch = super().collect(SSLBLSnapshot(certs=body.certs, ja3=""))
        seen_keys = {key for key, _ in batch}
        ja3_batch = [
            (key, payload)
            for key, payload in super().collect(SSLBLSnapshot(certs="", ja3=body.ja3))
            if key not in seen_keys
        ]
        return batch + ja3_batch[:MAX_JA3_PER_POLL]

    def to_payload(self, record: tuple[str, list[str]]) -> SSLBlacklistEntry | None:
        kind, parts = record
        now = utc_now_iso()
        if kind == "ja3":
            ja3 = clean_field(parts[0]) if parts else ""
            if len(parts) < 2 or not ja3:
                return None
            return SSLBlacklistEntry(
                id=f"ja3-{ja3[:16]}",
                timestamp=now,
                sha1="",
                issuer="",
                subject="",
                malware=clean_field(parts[1]) or "Unknown Malware",
                listing_reason="Malicious JA3 fingerprint",
                listing_date=now,
                ja3_fingerprint=ja3,
            )

        if len(parts) < 3:
            return None
        sha1 = clean_field(parts[1])
        if not sha1:
            return None
        field = lambda i: clean_field(parts[i]) if len(parts) > i else ""  # noqa: E731
        return SSLBlacklistEntry(
            id=f"sslbl-{sha1[:16]}",
            timestamp=now,
            sha1=sha1,
            issuer=field(2) or "Unknown Issuer",
            subject=field(3) or "Unknown Subject",
            malware=field(4) or "Unknown Malware",
            listing_reason=field(5) or "Malicious SSL certificate",
            listing_date=clean_field(parts[0]) or now,
        )

    def dedup_key(self, payload: SSLBlacklistEntry) -> str:
        return payload.sha1 or payload.ja3_fingerprint or payload.id

    def synthesize(self) -> list[SSLBlacklistEntry]:
        rng = self.rng
        return [
            SSLBlacklistEntry(
                id=sim_id("sslbl", rng),
                timestamp=utc_now_iso(),
                sha1=random_hex(rng, 40),
                issuer=f"CN={random_domain(rng)}",
                subject=f"CN={random_domain(rng)}",
                malware=rng.choice(_SIM_MALWARE),
                listing_reason=rng.choice(_SIM_REASONS),
                listing_date=utc_now_iso(),
                ja3_fingerprint=random_hex(rng, 32) if rng.random() > 0.7 else None,
            )
            for _ in range(rng.randint(1, 3))
        ]
