"""
Provider registry — the fixed set of jurisdictions the aggregator supports.

Adding a jurisdiction means adding a provider class and an entry here.
"""

from typing import Dict, Optional, Type

from providers.australia_provider import AustraliaProvider
from providers.base import BaseProvider
from providers.canada_provider import CanadaProvider
from providers.uk_provider import UKProvider
from providers.usa_provider import USAProvider

PROVIDERS: Dict[str, Type[BaseProvider]] = {
    "usa": USAProvider,
    "uk": UKProvider,
    "canada": CanadaProvider,
    "australia": AustraliaProvider,
}


def build_providers(live: Optional[bool] = None) -> Dict[str, BaseProvider]:
    """Instantiate one provider per registered jurisdiction."""
    return {code: cls(live=live) for code, cls in PROVIDERS.items()}
