"""OpenPhish free phishing URL adapter.

The feed refreshes slowly but returns hundreds of URLs at once, so this
source is paced through its own queue. Dedup key is the URL.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlparse

from threatwire.ingestion.base import PollingAdapter
from threatwire.ingestion.simulate import random_domain, sim_id
from threatwire.schemas.events import PhishingURL, utc_now_iso

OPENPHISH_FEED = "https://openphish.com/feed.txt"

BRANDS = [
    "paypal", "microsoft", "apple", "google", "amazon", "netflix",
    "facebook", "instagram", "linkedin", "twitter", "dropbox", "adobe",
    "chase", "wellsfargo", "bankofamerica", "citibank", "usbank",
    "outlook", "office365", "onedrive", "icloud", "docusign",
    "fedex", "ups", "dhl", "usps", "walmart", "ebay", "coinbase",
]


def detect_target_brand(url: str) -> str | None:
    lower = url.lower()
    for brand in BRANDS:
        if brand in lower:
            return brand.capitalize()
    return None


class OpenPhishAdapter(PollingAdapter):
    name = "phishing"

    async def fetch(self) -> str:
        return await self.fetch_text(OPENPHISH_FEED)

    def records(self, body: str) -> Iterable[str]:
        for line in body.strip().splitlines():
            line = line.strip()
            if line.startswith("http"):
                yield line

    def to_payload(self, url: str) -> PhishingURL:
        parsed = urlparse(url)
        if not parsed.hostname:
            raise ValueError(f"no host in {url!r}")
        return PhishingURL(
            id=f"phish-{parsed.hostname}",
            timestamp=utc_now_iso(),
            url=url,
            domain=parsed.hostname,
            target_brand=detect_target_brand(url),
            protocol=parsed.scheme,
        )

    def dedup_key(self, payload: PhishingURL) -> str:
        return payload.url

    def synthesize(self) -> list[PhishingURL]:
        rng = self.rng
        batch = []
        for _ in range(rng.randint(2, 4)):
            brand = rng.choice(BRANDS)
            domain = f"{brand}-{rng.choice(['login', 'verify', 'secure', 'account'])}.{random_domain(rng)}"
            scheme = rng.choice(["http", "https"])
            url = f"{scheme}://{domain}/{rng.choice(['signin', 'auth', 'update', 'billing'])}"
            batch.append(
                PhishingURL(
                    id=sim_id("phish", rng),
                    timestamp=utc_now_iso(),
                    url=url,
                    domain=domain,
                    target_brand=brand.capitalize(),
                    protocol=scheme,
                )
            )
        return batch
