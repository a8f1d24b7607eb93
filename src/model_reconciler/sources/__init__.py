from .base import DataSourceAdapter
from .catalog import OpenRouterCatalogAdapter
from .config_file import ConfigFileProvider
from .leaderboard import LMArenaAdapter
from .pricing_table import LiteLLMPricingAdapter

__all__ = [
    "DataSourceAdapter",
    "OpenRouterCatalogAdapter",
    "ConfigFileProvider",
    "LMArenaAdapter",
    "LiteLLMPricingAdapter",
]
