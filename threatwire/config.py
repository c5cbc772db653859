"""
Application configuration. Loads from environment variables.
API keys must never be hardcoded; a missing key downgrades only its source.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache
from typing import Optional


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "Threatwire"
    debug: bool = False

    # Listener
    port: int = 3333
    # "proxy" = TLS terminated by a fronting proxy; "local" = serve TLS ourselves
    tls_termination: str = "proxy"
    tls_certfile: str = "cert.pem"
    tls_keyfile: str = "key.pem"

    # Upstream I/O (seconds); every fetch and stream connect is bounded
    fetch_timeout: float = 15.0
    stream_open_timeout: float = 10.0
    user_agent: str = "Threatwire-ThreatViz/1.0"

    # Fan-out
    subscriber_send_timeout: float = 5.0
    queue_max_length: int = 50

    # Simulation: SIMULATE_ONLY forces every source offline; the seed makes
    # synthetic output reproducible
    simulate_only: bool = False
    simulation_seed: Optional[int] = None

    # BGP volume knobs
    bgp_low_severity_keep_ratio: float = 0.05
    bgp_sample_every: int = 50

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = _env_flag("DEBUG")

        self.port = int(os.getenv("PORT", str(self.port)))
        termination = os.getenv("TLS_TERMINATION", self.tls_termination).strip().lower()
        if termination not in ("proxy", "local"):
            raise ValueError(f"TLS_TERMINATION must be 'proxy' or 'local', got {termination!r}")
        self.tls_termination = termination
        self.tls_certfile = os.getenv("TLS_CERTFILE", self.tls_certfile)
        self.tls_keyfile = os.getenv("TLS_KEYFILE", self.tls_keyfile)

        self.fetch_timeout = float(os.getenv("FETCH_TIMEOUT", str(self.fetch_timeout)))
        self.stream_open_timeout = float(
            os.getenv("STREAM_OPEN_TIMEOUT", str(self.stream_open_timeout))
        )
        self.user_agent = os.getenv("USER_AGENT", self.user_agent)

        self.subscriber_send_timeout = float(
            os.getenv("SUBSCRIBER_SEND_TIMEOUT", str(self.subscriber_send_timeout))
        )
        self.queue_max_length = int(os.getenv("QUEUE_MAX_LENGTH", str(self.queue_max_length)))

        self.simulate_only = _env_flag("SIMULATE_ONLY")
        seed = os.getenv("SIMULATION_SEED", "").strip()
        self.simulation_seed = int(seed) if seed else None

        self.bgp_low_severity_keep_ratio = float(
            os.getenv("BGP_LOW_SEVERITY_KEEP_RATIO", str(self.bgp_low_severity_keep_ratio))
        )
        self.bgp_sample_every = max(1, int(os.getenv("BGP_SAMPLE_EVERY", str(self.bgp_sample_every))))

    @property
    def tls_local(self) -> bool:
        return self.tls_termination == "local"

    def api_key_for(self, source: str) -> str | None:
        """Return <SOURCE>_API_KEY if set and non-empty.

        Absence is not an error: the caller switches that one source into
        simulate-mode.
        """
        key = os.getenv(f"{source.upper()}_API_KEY")
        return key.strip() if key and key.strip() else None
