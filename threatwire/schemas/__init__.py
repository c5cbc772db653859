"""Pydantic schemas for normalized events and wire frames."""

from threatwire.schemas.events import (
    PAYLOAD_MODELS,
    SEVERITY_RANK,
    AttackReport,
    BGPEvent,
    DShieldAttack,
    EventCategory,
    FeodoC2,
    GreyNoiseStats,
    HIBPBreach,
    NormalizedEvent,
    PhishingURL,
    RansomwareVictim,
    SpamhausDrop,
    SSLBlacklistEntry,
    ThreatPayload,
    TorExitNode,
    URLhausEntry,
    WelcomeData,
    WelcomeMessage,
    utc_now_iso,
)

__all__ = [
    "PAYLOAD_MODELS",
    "SEVERITY_RANK",
    "AttackReport",
    "BGPEvent",
    "DShieldAttack",
    "EventCategory",
    "FeodoC2",
    "GreyNoiseStats",
    "HIBPBreach",
    "NormalizedEvent",
    "PhishingURL",
    "RansomwareVictim",
    "SpamhausDrop",
    "SSLBlacklistEntry",
    "ThreatPayload",
    "TorExitNode",
    "URLhausEntry",
    "WelcomeData",
    "WelcomeMessage",
    "utc_now_iso",
]
