"""Market data aggregation — live enrichment, search mining, heuristics.

Entry point: fetch_market_data(business_type, location, ...) -> MarketData

Tiers, first hit wins:
  1. Enrichment provider (World Bank / OpenStreetMap / NewsAPI) -> origin "live"
  2. Market-size web search mined for TAM / CAGR / demand   -> origin "search"
  3. Industry-profile heuristic                              -> origin "heuristic"

The heuristic tier cannot fail, so this function always returns data.
"""

from __future__ import annotations

import asyncio
import math
import re
from datetime import date
from typing import Any, Dict, List, Optional

from ...services.http_client import Timeouts
from . import text_patterns
from .rules import resolve_industry_profile
from .schema import MarketData, MarketSize, MarketTrends, SearchResult

_LEADING_NUMBER = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")
_ANY_NUMBER = re.compile(r"\d+(?:\.\d+)?")

_RISING_WORDS = ("growing", "increasing", "rising")
_DECLINING_WORDS = ("declining", "decreasing")


def _today() -> str:
    return date.today().isoformat()


def _leading_float(text: Optional[str]) -> Optional[float]:
    """Parse a number at the start of ``text`` ("2.5%" -> 2.5, "abc" -> None)."""
    if not text:
        return None
    match = _LEADING_NUMBER.match(str(text))
    return float(match.group(1)) if match else None


def classify_demand(sentiment: Optional[str], growth_rate: Optional[str]) -> str:
    """Rising iff sentiment is POSITIVE and growth > 2%; Declining iff sentiment
    is NEGATIVE or growth < 0%; Stable otherwise (including unparseable growth)."""
    growth = _leading_float(growth_rate)
    if sentiment == "POSITIVE" and growth is not None and growth > 2:
        return "Rising"
    if sentiment == "NEGATIVE" or (growth is not None and growth < 0):
        return "Declining"
    return "Stable"


def format_currency(value: float, unit: str) -> str:
    """Render a market size in the largest sensible unit."""
    if value is None or math.isnan(value) or value == 0:
        return "Market size analysis needed"
    if unit == "trillion":
        return f"${value:.1f} trillion" if value >= 1 else f"${value * 1000:.0f} billion"
    if unit == "billion":
        return f"${value:.1f} billion" if value >= 1 else f"${value * 1000:.0f} million"
    return f"${value:.0f} million"


def _size_unit(tam: str) -> str:
    lower = tam.lower()
    if "trillion" in lower:
        return "trillion"
    if "billion" in lower:
        return "billion"
    return "million"


def estimate_market_size(business_type: str, idea: str = "", tam_override: Optional[str] = None) -> Dict[str, str]:
    """TAM / SAM / SOM / CAGR strings from the industry profile.

    ``tam_override`` replaces the profile's TAM (e.g. a figure mined from
    search results); SAM and SOM are then derived from it.
    """
    profile = resolve_industry_profile(business_type, idea)
    tam = tam_override or profile.tam

    match = _ANY_NUMBER.search(tam.replace(",", ""))
    tam_number = float(match.group()) if match else float("nan")
    if math.isnan(tam_number) or tam_number == 0:
        tam_number = 100.0
    unit = _size_unit(tam)

    return {
        "tam": tam,
        "sam": format_currency(tam_number * profile.sam_multiplier, unit),
        "som": format_currency(tam_number * profile.som_multiplier, unit),
        "cagr": profile.cagr,
    }


# ── Tier 3: heuristic ────────────────────────────────────────────────────

def heuristic_market_data(business_type: str, idea: str = "") -> MarketData:
    estimates = estimate_market_size(business_type, idea)
    return MarketData(
        size=MarketSize(
            tam=estimates["tam"],
            sam=estimates["sam"],
            som=estimates["som"],
            cagr=estimates["cagr"],
            source="Industry estimates (API unavailable)",
            last_updated=_today(),
        ),
        trends=MarketTrends(
            growth_rate="3.2%",
            demand="Stable",
            seasonality="Varies by business type",
            key_drivers=["Economic growth", "Consumer demand", "Market trends"],
            threats=["Competition", "Economic changes", "Regulatory shifts"],
        ),
        sources=["Industry benchmarks", "Market estimates"],
        origin="heuristic",
    )


# ── Tier 2: search mining ────────────────────────────────────────────────

def analyze_market_search_results(results: List[SearchResult]) -> Dict[str, Any]:
    """Mine snippets for TAM, CAGR, demand direction and key drivers."""
    texts = [f"{r.title} {r.snippet}".lower() for r in results]
    insights: Dict[str, Any] = {}

    tam = text_patterns.first_match(text_patterns.MARKET_SIZE, texts)
    if tam:
        insights["tam"] = tam
    cagr = text_patterns.first_match(text_patterns.GROWTH_CAGR, texts)
    if cagr:
        insights["cagr"] = cagr

    for text in texts:
        if any(w in text for w in _RISING_WORDS):
            insights["demand"] = "Rising"
            break
        if any(w in text for w in _DECLINING_WORDS):
            insights["demand"] = "Declining"
            break

    drivers: List[str] = []
    for text in texts:
        if "driver" not in text and "factor" not in text:
            continue
        if "digital" in text:
            drivers.append("Digital transformation")
        if "mobile" in text:
            drivers.append("Mobile adoption")
        if re.search(r"\bai\b", text) or "artificial intelligence" in text:
            drivers.append("AI innovation")
    if drivers:
        insights["drivers"] = list(dict.fromkeys(drivers))
    return insights


async def _search_market_data(business_type: str, idea: str, search) -> Optional[MarketData]:
    if search is None:
        return None
    year = date.today().year
    results = await search.search(f"{business_type} {idea} market size {year} TAM CAGR growth".strip())
    if not results:
        return None
    insights = analyze_market_search_results(results)
    if not insights:
        return None

    base = heuristic_market_data(business_type, idea)
    estimates = estimate_market_size(business_type, idea, tam_override=insights.get("tam"))
    drivers = insights.get("drivers") or base.trends.key_drivers
    return MarketData(
        size=MarketSize(
            tam=estimates["tam"],
            sam=estimates["sam"],
            som=estimates["som"],
            cagr=insights.get("cagr") or estimates["cagr"],
            source="Web search market research",
            last_updated=_today(),
        ),
        trends=base.trends.model_copy(
            update={"demand": insights.get("demand", "Stable"), "key_drivers": drivers}
        ),
        sources=[r.link for r in results if r.link][:5] or ["Google Custom Search"],
        origin="search",
    )


# ── Tier 1: live enrichment ──────────────────────────────────────────────

def transform_comprehensive_data(data, business_type: str, idea: str = "") -> MarketData:
    """Turn a ``ComprehensiveMarketData`` snapshot into ``MarketData``."""
    trends = data.market_trends
    sentiment = data.consumer_sentiment
    competitors = data.competitor_analysis

    growth_rate = trends.growth_rate if trends else "3.5%"
    projected = trends.projected_growth if trends else "4.2%"
    estimates = estimate_market_size(business_type, idea)
    demand = classify_demand(sentiment.overall_sentiment if sentiment else None, growth_rate)

    key_drivers = [
        *(trends.key_drivers if trends else []),
        *(sentiment.trending_topics[:2] if sentiment else []),
        "Market demand trends",
        "Economic conditions",
    ][:4]
    threats = [*data.risk_factors[:2], "Market competition", "Economic uncertainty"][:3]

    sources: List[str] = []
    if trends:
        sources.append("World Bank Open Data API")
    if competitors:
        sources.append("OpenStreetMap (local competitor scan)")
    if sentiment:
        sources.append("NewsAPI media sentiment analysis")

    return MarketData(
        size=MarketSize(
            tam=estimates["tam"],
            sam=estimates["sam"],
            som=estimates["som"],
            cagr=projected,
            source=f"Real-time API integration: {data.overall_reliability} reliability",
            last_updated=_today(),
        ),
        trends=MarketTrends(
            growth_rate=growth_rate,
            demand=demand,
            seasonality=(trends.seasonality[0] if trends and trends.seasonality else "Year-round business patterns"),
            key_drivers=key_drivers,
            threats=threats,
        ),
        sources=sources,
        origin="live",
    )


async def fetch_market_data(
    business_type: str,
    location: Optional[str] = None,
    *,
    idea: str = "",
    provider=None,
    search=None,
) -> MarketData:
    """Market size and trend data for the plan. Never raises."""
    print(f"📊 [MARKET] Fetching market data for {business_type} in {location or 'global'}")

    if provider is not None:
        try:
            data = await asyncio.wait_for(
                provider.get_comprehensive_market_data(business_type, location or "US"),
                timeout=Timeouts.ENRICHMENT_MAX,
            )
            if data is not None:
                print(f"✅ [MARKET] Live data ({data.overall_reliability} reliability)")
                return transform_comprehensive_data(data, business_type, idea)
            print("⚠️  [MARKET] No live data available")
        except asyncio.TimeoutError:
            print("⚠️  [MARKET] Enrichment timed out")
        except Exception as exc:
            print(f"❌ [MARKET] Enrichment error: {exc}")

    try:
        searched = await _search_market_data(business_type, idea, search)
        if searched is not None:
            print("✅ [MARKET] Market data mined from search results")
            return searched
    except Exception as exc:
        print(f"❌ [MARKET] Search mining error: {exc}")

    print("ℹ️  [MARKET] Using industry heuristics")
    return heuristic_market_data(business_type, idea)
