"""Source adapters for the threat stream, one per upstream feed."""

from threatwire.ingestion.adapters.bgp_adapter import BGPAdapter
from threatwire.ingestion.adapters.blocklistde_adapter import BlocklistDeAdapter
from threatwire.ingestion.adapters.dshield_adapter import DShieldAdapter
from threatwire.ingestion.adapters.feodo_adapter import FeodoAdapter
from threatwire.ingestion.adapters.greynoise_adapter import GreyNoiseAdapter
from threatwire.ingestion.adapters.hibp_adapter import HIBPAdapter
from threatwire.ingestion.adapters.openphish_adapter import OpenPhishAdapter
from threatwire.ingestion.adapters.ransomwatch_adapter import RansomWatchAdapter
from threatwire.ingestion.adapters.spamhaus_adapter import SpamhausAdapter
from threatwire.ingestion.adapters.sslbl_adapter import SSLBLAdapter
from threatwire.ingestion.adapters.tor_adapter import TorAdapter
from threatwire.ingestion.adapters.urlhaus_adapter import URLhausAdapter

# Catalog name -> adapter class. Startup order comes from sources.yaml.
ADAPTER_CLASSES = {
    cls.name: cls
    for cls in (
        URLhausAdapter,
        GreyNoiseAdapter,
        DShieldAdapter,
        FeodoAdapter,
        RansomWatchAdapter,
        OpenPhishAdapter,
        SSLBLAdapter,
        BlocklistDeAdapter,
        TorAdapter,
        HIBPAdapter,
        SpamhausAdapter,
        BGPAdapter,
    )
}

__all__ = [
    "ADAPTER_CLASSES",
    "BGPAdapter",
    "BlocklistDeAdapter",
    "DShieldAdapter",
    "FeodoAdapter",
    "GreyNoiseAdapter",
    "HIBPAdapter",
    "OpenPhishAdapter",
    "RansomWatchAdapter",
    "SpamhausAdapter",
    "SSLBLAdapter",
    "TorAdapter",
    "URLhausAdapter",
]
