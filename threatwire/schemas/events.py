"""Normalized threat event schemas and the JSON wire format.

Every adapter produces one of the payload models below wrapped in a
NormalizedEvent. The category fully determines the payload model, and
NormalizedEvent refuses to be built from a mismatched or partial payload,
so nothing half-populated can reach a queue.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, model_validator
from pydantic.alias_generators import to_camel


class EventCategory(str, Enum):
    """Wire tags, one per upstream feed."""

    urlhaus = "urlhaus"
    greynoise = "greynoise"
    dshield = "dshield"
    feodo = "feodo"
    ransomware = "ransomware"
    phishing = "phishing"
    sslbl = "sslbl"
    bruteforce = "bruteforce"
    tor = "tor"
    hibp = "hibp"
    spamhaus = "spamhaus"
    bgp = "bgp"


Severity = Literal["low", "medium", "high", "critical"]

SEVERITY_RANK: dict[str, int] = {"low": 0, "medium": 1, "high": 2, "critical": 3}


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ── Payload models ───────────────────────────────────────────────────


class ThreatPayload(BaseModel):
    """Base for category payloads: camelCase on the wire, strict fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class URLhausEntry(ThreatPayload):
    id: str
    date_added: str
    url: str
    url_status: str
    threat: str
    tags: list[str] = Field(default_factory=list)
    host: str
    reporter: str


class GreyNoiseStats(ThreatPayload):
    scanner_count: int
    scanner_types: list[str]
    top_ports: list[int]
    top_tags: list[str]


class DShieldAttack(ThreatPayload):
    id: str
    timestamp: str
    source_ip: str = Field(..., alias="sourceIP")
    target_port: int
    protocol: str
    attack_type: str
    country: str
    reports: int


class FeodoC2(ThreatPayload):
    id: str
    timestamp: str
    ip: str
    port: int
    malware: str
    status: Literal["online", "offline"]
    country: str
    as_name: str
    first_seen: str
    last_online: str


class RansomwareVictim(ThreatPayload):
    id: str
    timestamp: str
    group: str
    victim: str
    website: str
    discovered: str
    published: str
    country: str
    sector: str


class PhishingURL(ThreatPayload):
    id: str
    timestamp: str
    url: str
    domain: str
    target_brand: Optional[str] = None
    protocol: str


class SSLBlacklistEntry(ThreatPayload):
    id: str
    timestamp: str
    sha1: str
    issuer: str
    subject: str
    malware: str
    listing_reason: str
    listing_date: str
    ja3_fingerprint: Optional[str] = None


class AttackReport(ThreatPayload):
    id: str
    timestamp: str
    ip: str
    attack_type: str
    report_count: Optional[int] = None
    country: Optional[str] = None


class TorExitNode(ThreatPayload):
    id: str
    timestamp: str
    ip: str
    nickname: str
    fingerprint: str
    bandwidth: int
    country: str
    flags: list[str]
    first_seen: str
    last_seen: str
    exit_policy: str


class HIBPBreach(ThreatPayload):
    id: str
    timestamp: str
    name: str
    title: str
    domain: str
    breach_date: str
    added_date: str
    pwn_count: int
    description: str
    data_classes: list[str]
    is_verified: bool
    is_sensitive: bool


class SpamhausDrop(ThreatPayload):
    id: str
    timestamp: str
    cidr: str
    sbl: str
    country: Optional[str] = None
    num_addresses: int
    list_type: Literal["drop", "edrop", "dropv6"]


class BGPEvent(ThreatPayload):
    id: str
    timestamp: str
    event_type: Literal["hijack", "leak", "outage", "announcement", "withdrawal"]
    prefix: str
    asn: int
    as_name: Optional[str] = None
    path: list[int]
    origin_asn: int
    peer_asn: int
    collector: str
    severity: Severity
    description: str


PAYLOAD_MODELS: dict[EventCategory, type[ThreatPayload]] = {
    EventCategory.urlhaus: URLhausEntry,
    EventCategory.greynoise: GreyNoiseStats,
    EventCategory.dshield: DShieldAttack,
    EventCategory.feodo: FeodoC2,
    EventCategory.ransomware: RansomwareVictim,
    EventCategory.phishing: PhishingURL,
    EventCategory.sslbl: SSLBlacklistEntry,
    EventCategory.bruteforce: AttackReport,
    EventCategory.tor: TorExitNode,
    EventCategory.hibp: HIBPBreach,
    EventCategory.spamhaus: SpamhausDrop,
    EventCategory.bgp: BGPEvent,
}


# ── Normalized event ─────────────────────────────────────────────────


class NormalizedEvent(BaseModel):
    """One event on its way from an adapter to the broadcaster."""

    category: EventCategory
    payload: SerializeAsAny[ThreatPayload]
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def _payload_matches_category(self) -> "NormalizedEvent":
        expected = PAYLOAD_MODELS[self.category]
        if type(self.payload) is not expected:
            raise ValueError(
                f"category {self.category.value!r} requires {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )
        return self

    @property
    def severity_rank(self) -> int:
        """Rank used by severity-ordered queues; unranked payloads count as low."""
        severity = getattr(self.payload, "severity", None)
        return SEVERITY_RANK.get(severity, 0) if severity else 0

    def to_wire(self) -> dict[str, Any]:
        """Return the `{type, data}` frame sent to subscribers."""
        return {
            "type": self.category.value,
            "data": self.payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), separators=(",", ":"))


# ── Welcome frame ────────────────────────────────────────────────────


class WelcomeData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    sources: list[str]
    client_count: int
    source_descriptions: dict[str, str]


class WelcomeMessage(BaseModel):
    type: Literal["welcome"] = "welcome"
    data: WelcomeData

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
