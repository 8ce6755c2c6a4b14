"""
Async HTTP Timeout Configuration

Timeout presets for each external service the plan pipeline talks to.
Every client builds its own ``httpx.AsyncClient`` with one of these presets,
so a timeout always aborts the underlying request.
"""

import os

import httpx


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


# Timeout configurations (in seconds)
class Timeouts:
    """Timeout presets for external services."""
    SEARCH = 10.0        # Google Custom Search
    WORLD_BANK = 8.0     # World Bank indicators
    GEOCODE = 8.0        # Nominatim
    OVERPASS = 15.0      # OpenStreetMap Overpass
    NEWS = 8.0           # NewsAPI
    LLM = _env_float("LLM_REQUEST_TIMEOUT", 30.0)  # Together / OpenRouter

    # Whole enrichment fan-out - if it takes longer, fall back to heuristics
    ENRICHMENT_MAX = 25.0


def get_timeout(service: str) -> httpx.Timeout:
    """Get timeout configuration for a service."""
    timeouts = {
        "search": Timeouts.SEARCH,
        "world_bank": Timeouts.WORLD_BANK,
        "geocode": Timeouts.GEOCODE,
        "overpass": Timeouts.OVERPASS,
        "news": Timeouts.NEWS,
        "llm": Timeouts.LLM,
    }
    seconds = timeouts.get(service.lower(), 10.0)
    return httpx.Timeout(seconds, connect=5.0)
