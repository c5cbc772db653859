"""BGP hijack and route-leak adapter over the RIPE RIS Live relay.

RIS Live pushes every BGP UPDATE seen by RIPE's route collectors, far more
than a map can show. Only one in ``BGP_SAMPLE_EVERY`` updates is analysed,
each prefix is suppressed for 30 seconds after it is seen, and the
classified events go through a severity-ordered pacing queue.

Classification is a handful of cheap heuristics, not real hijack detection:

* AS path longer than 8 hops: possible leak (medium)
* the same ASN repeated in the path: leak (high)
* origin is a well-known major network: medium, named in the description
* prefix more specific than /24: possible hijack (high), overriding the rest
"""

from __future__ import annotations

import json
import logging
from typing import Any, NamedTuple

from threatwire.ingestion.base import StreamingAdapter
from threatwire.ingestion.errors import ParseError
from threatwire.ingestion.simulate import random_hex, sim_id
from threatwire.schemas.events import BGPEvent, utc_now_iso

logger = logging.getLogger(__name__)

RIS_LIVE_URL = "wss://ris-live.ripe.net/v1/ws/?client=threatwire"

RIS_SUBSCRIBE = {
    "type": "ris_subscribe",
    "data": {
        "type": "UPDATE",
        "moreSpecific": True,
        "lessSpecific": False,
        "socketOptions": {"includeRaw": False},
    },
}

LONG_PATH_HOPS = 8
HIJACK_PREFIX_LEN = 25
WITHDRAWAL_KEEP_RATIO = 0.1

KNOWN_ASNS: dict[int, str] = {
    15169: "Google",
    13335: "Cloudflare",
    16509: "Amazon",
    8075: "Microsoft",
    32934: "Facebook",
    20940: "Akamai",
    2914: "NTT",
    3356: "Lumen",
    174: "Cogent",
    6939: "Hurricane Electric",
    7018: "AT&T",
    701: "Verizon",
    3257: "GTT",
    1299: "Telia",
    6461: "Zayo",
    6762: "Telecom Italia",
    4134: "China Telecom",
    4837: "China Unicom",
    4808: "China Mobile",
    9808: "China Mobile HK",
    12389: "Rostelecom",
}

_SIM_PREFIXES = [
    "1.1.1.0/24", "8.8.8.0/24", "208.67.222.0/24",
    "13.32.0.0/16", "52.94.0.0/16", "104.16.0.0/16",
    "172.217.0.0/16", "31.13.64.0/18", "157.240.0.0/16",
]
_SIM_EVENT_TYPES = ["hijack", "leak", "announcement", "withdrawal"]
_SIM_SEVERITIES = ["low", "medium", "high"]
_SIM_LABELS = {"hijack": "Possible hijack", "leak": "Route leak"}


class Classification(NamedTuple):
    event_type: str
    severity: str
    description: str
    as_name: str | None


def prefix_length(prefix: str) -> int:
    _, _, length = prefix.partition("/")
    return int(length) if length else 24


def classify_announcement(prefix: str, path: list[int], origin_asn: int) -> Classification:
    """Apply the route heuristics to one announced prefix.

    >>> classify_announcement("10.0.0.0/26", [64500], 64500).event_type
    'hijack'
    """
    event_type = "announcement"
    severity = "low"
    description = f"New route: {prefix} via AS{origin_asn}"

    if len(path) > LONG_PATH_HOPS:
        event_type, severity = "leak", "medium"
        description = f"Possible route leak: {prefix} - unusually long AS path ({len(path)} hops)"

    if len(set(path)) < len(path):
        event_type, severity = "leak", "high"
        description = f"AS path loop detected: {prefix} - ASN appears multiple times in path"

    as_name = KNOWN_ASNS.get(origin_asn)
    if as_name:
        severity = "medium"
        description = f"{as_name} (AS{origin_asn}) announcing {prefix}"

    length = prefix_length(prefix)
    if length >= HIJACK_PREFIX_LEN:
        event_type, severity = "hijack", "high"
        description = f"Suspicious specific prefix: {prefix} (/{length}) from AS{origin_asn}"

    return Classification(event_type, severity, description, as_name)


def flatten_path(raw: Any) -> list[int]:
    """RIS paths may end in an AS_SET (a nested list); flatten to plain ASNs."""
    path: list[int] = []
    for hop in raw or []:
        if isinstance(hop, list):
            path.extend(int(asn) for asn in hop)
        else:
            path.append(int(hop))
    return path


class BGPAdapter(StreamingAdapter):
    name = "bgp"
    url = RIS_LIVE_URL

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._updates = 0

    @property
    def sample_every(self) -> int:
        return self.ctx.settings.bgp_sample_every

    @property
    def low_severity_keep_ratio(self) -> float:
        return self.ctx.settings.bgp_low_severity_keep_ratio

    async def on_open(self, connection: Any) -> None:
        await connection.send(json.dumps(RIS_SUBSCRIBE))
        logger.info("[%s] Subscribed to RIS Live updates", self.source_name)

    async def handle_message(self, message: Any) -> None:
        try:
            msg = json.loads(message)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"undecodable relay frame: {exc}") from exc
        if not isinstance(msg, dict) or msg.get("type") != "ris_message":
            return
        data = msg.get("data")
        if not isinstance(data, dict):
            raise ParseError("ris_message without data")

        self._updates += 1
        if self._updates % self.sample_every:
            return
        try:
            events = self.analyse_update(data)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ParseError(f"malformed BGP update: {exc}") from exc
        if events:
            await self.emit(events)
        self.seen.trim()

    def analyse_update(self, data: dict) -> list[BGPEvent]:
        """Turn one sampled RIS UPDATE into zero or more events."""
        path = flatten_path(data.get("path"))
        peer_asn = int(data.get("peer_asn") or 0)
        collector = data.get("host") or "unknown"
        origin_asn = path[-1] if path else 0
        events: list[BGPEvent] = []

        for announcement in data.get("announcements") or []:
            for prefix in announcement.get("prefixes") or []:
                if not isinstance(prefix, str) or prefix in self.seen:
                    continue
                self.seen.add(prefix)
                verdict = classify_announcement(prefix, path, origin_asn)
                if verdict.severity == "low" and self.rng.random() >= self.low_severity_keep_ratio:
                    continue
                events.append(
                    BGPEvent(
                        id=f"bgp-{random_hex(self.rng, 12)}",
                        timestamp=utc_now_iso(),
                        event_type=verdict.event_type,
                        prefix=prefix,
                        asn=origin_asn,
                        as_name=verdict.as_name,
                        path=path,
                        origin_asn=origin_asn,
                        peer_asn=peer_asn,
                        collector=collector,
                        severity=verdict.severity,
                        description=verdict.description,
                    )
                )

        for prefix in data.get("withdrawals") or []:
            if not isinstance(prefix, str) or self.rng.random() >= WITHDRAWAL_KEEP_RATIO:
                continue
            events.append(
                BGPEvent(
                    id=f"bgp-{random_hex(self.rng, 12)}",
                    timestamp=utc_now_iso(),
                    event_type="withdrawal",
                    prefix=prefix,
                    asn=peer_asn,
                    path=[],
                    origin_asn=0,
                    peer_asn=peer_asn,
                    collector=collector,
                    severity="low",
                    description=f"Route withdrawn: {prefix}",
                )
            )
        return events

    def synthesize(self) -> list[BGPEvent]:
        rng = self.rng
        prefix = rng.choice(_SIM_PREFIXES)
        event_type = rng.choice(_SIM_EVENT_TYPES)
        asn = rng.choice(list(KNOWN_ASNS))
        return [
            BGPEvent(
                id=sim_id("bgp", rng),
                timestamp=utc_now_iso(),
                event_type=event_type,
                prefix=prefix,
                asn=asn,
                as_name=KNOWN_ASNS[asn],
                path=[174, 3356, asn],
                origin_asn=asn,
                peer_asn=3356,
                collector="rrc00",
                severity=rng.choice(_SIM_SEVERITIES),
                description=f"{_SIM_LABELS.get(event_type, 'BGP update')}: {prefix}",
            )
        ]
