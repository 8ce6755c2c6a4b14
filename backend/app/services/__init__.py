from .llm_gateway import LLMGateway, LLMRateLimitError, LLMUnavailableError, default_gateway
from .market_data_provider import MarketDataProvider
from .request_cache import PlanCache, RequestCache, build_cache_key
from .search_client import SearchClient

__all__ = [
    "LLMGateway",
    "LLMRateLimitError",
    "LLMUnavailableError",
    "default_gateway",
    "MarketDataProvider",
    "PlanCache",
    "RequestCache",
    "build_cache_key",
    "SearchClient",
]
