"""Competitor discovery and competitor intelligence.

fetch_competitive_analysis()      -> up to 8 ``Competitor`` profiles
fetch_competitor_intelligence()   -> revenue / share / growth signals and
                                     31-point performance series for charts

Local competitors (OpenStreetMap, via the enrichment provider) come first,
then names mined from web search with the patterns in ``text_patterns``.
"""

from __future__ import annotations

import asyncio
import random
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from ...services.http_client import Timeouts
from . import text_patterns
from .rules import INDUSTRY_BENCHMARK_MULTIPLIERS, get_pricing_model
from .schema import Competitor, CompetitorPricing, SearchResult

MAX_COMPETITORS = 8
_MAX_SEARCH_NAMES = 10
_INTEL_TOP_N = 3
_SERIES_LENGTH = 31


# ── Attribute backfill ───────────────────────────────────────────────────

def generate_competitor_strengths(business_type: str) -> List[str]:
    strengths = ["Market presence", "Brand recognition", "Customer base", "Technical expertise", "Financial resources"]
    lower = business_type.lower()
    if "tech" in lower or "software" in lower:
        strengths += ["Technical infrastructure", "Development team"]
    if "ecommerce" in lower or "retail" in lower:
        strengths += ["Supply chain", "Customer relationships"]
    return strengths[:4]


def generate_competitor_weaknesses(business_type: str) -> List[str]:
    return [
        "Limited innovation speed",
        "High pricing structure",
        "Complex user experience",
        "Slow customer support response",
    ]


def generate_competitor_features(business_type: str) -> List[str]:
    features = [
        "Core platform functionality",
        "Customer dashboard",
        "Analytics and reporting",
        "Mobile accessibility",
        "API integration",
    ]
    if "saas" in business_type.lower():
        features += ["Multi-tenant architecture", "SSO integration"]
    return features[:5]


def generate_fallback_competitors(business_type: str) -> List[Competitor]:
    """Two generic profiles used when discovery finds nothing."""
    pricing_model = get_pricing_model(business_type)
    return [
        Competitor(
            name=f"Leading {business_type} Company A",
            description="Established market leader with strong brand presence",
            market_share="Significant market presence",
            funding="Well-funded operation",
            strengths=["Brand recognition", "Market experience", "Customer loyalty"],
            weaknesses=["Higher pricing", "Less agile", "Legacy systems"],
            pricing=CompetitorPricing(model=pricing_model, range="Premium pricing"),
            features=generate_competitor_features(business_type),
            differentiators=["Market leadership", "Established network", "Resources"],
        ),
        Competitor(
            name=f"Emerging {business_type} Startup",
            description="Fast-growing startup with innovative approach",
            market_share="Growing market share",
            funding="Recently funded",
            strengths=["Innovation", "Agility", "Modern technology"],
            weaknesses=["Limited resources", "Smaller customer base", "Brand awareness"],
            pricing=CompetitorPricing(model=pricing_model, range="Competitive pricing"),
            features=generate_competitor_features(business_type),
            differentiators=["Innovation focus", "Flexible approach", "Growth mindset"],
        ),
    ]


# ── Search mining ────────────────────────────────────────────────────────

def extract_competitor_names(results: Sequence[SearchResult], business_type: str) -> List[str]:
    texts = [f"{r.title} {r.snippet}" for r in results]
    names = text_patterns.extract_candidate_names(texts)
    return [n for n in names if not text_patterns.is_generic_term(n, business_type)][:_MAX_SEARCH_NAMES]


def extract_competitor_details(results: Sequence[SearchResult], name: str) -> Dict[str, str]:
    details: Dict[str, str] = {}
    lower_name = name.lower()
    share_re = text_patterns.company_share_pattern(name)
    funding_re = text_patterns.company_funding_pattern(name)

    for result in results:
        text = f"{result.title} {result.snippet}".lower()
        if lower_name not in text:
            continue
        if "market_share" not in details:
            match = share_re.search(text)
            if match:
                details["market_share"] = match.group(1)
        if "funding" not in details:
            match = funding_re.search(text)
            if match:
                details["funding"] = f"${match.group(1)} raised"
        if "description" not in details and len(result.snippet) > 50:
            details["description"] = result.snippet[:150] + "..."
    return details


def _is_duplicate(name: str, competitors: Sequence[Competitor]) -> bool:
    lower = name.lower()
    return any(lower in c.name.lower() for c in competitors)


def analyze_competitor_data(
    results: Sequence[SearchResult],
    business_type: str,
    landscape=None,
) -> List[Competitor]:
    """Merge local and search-derived competitors, deduplicated and capped."""
    competitors: List[Competitor] = []
    pricing_model = get_pricing_model(business_type)

    for local in getattr(landscape, "top_competitors", None) or []:
        if _is_duplicate(local.name, competitors):
            continue
        competitors.append(
            Competitor(
                name=local.name,
                description=f"Local {business_type} competitor - {local.address}",
                market_share="Local market presence",
                funding="Private/Local business",
                strengths=["Established local presence", "Local market knowledge", "Established location"],
                weaknesses=generate_competitor_weaknesses(business_type),
                pricing=CompetitorPricing(model=pricing_model, range="Competitive pricing"),
                features=generate_competitor_features(business_type),
                differentiators=[f"Distance: {round(local.distance)}m away", "Local customer base", "Physical presence"],
            )
        )

    for name in extract_competitor_names(results, business_type):
        if _is_duplicate(name, competitors):
            continue
        info = extract_competitor_details(results, name)
        competitors.append(
            Competitor(
                name=name,
                description=info.get("description") or f"Leading {business_type} company",
                market_share=info.get("market_share") or "Market research required",
                funding=info.get("funding") or "Funding information pending",
                strengths=generate_competitor_strengths(business_type),
                weaknesses=generate_competitor_weaknesses(business_type),
                pricing=CompetitorPricing(model=pricing_model, range="Contact for pricing"),
                features=generate_competitor_features(business_type),
                differentiators=["Brand recognition", "Market experience", "Customer base"],
            )
        )

    return competitors[:MAX_COMPETITORS]


async def _gather_searches(search, queries: Sequence[str]) -> List[SearchResult]:
    if search is None:
        return []
    batches = await asyncio.gather(*(search.search(q) for q in queries), return_exceptions=True)
    results: List[SearchResult] = []
    for query, batch in zip(queries, batches):
        if isinstance(batch, BaseException):
            print(f"⚠️  [COMP] Search failed for {query!r}: {batch}")
            continue
        results.extend(batch)
    return results


async def fetch_competitive_analysis(
    business_type: str,
    idea: str,
    location: Optional[str] = None,
    *,
    provider=None,
    search=None,
) -> List[Competitor]:
    """Discover competitors. Falls back to two generic profiles, never raises."""
    print(f"🏁 [COMP] Competitive analysis for {business_type} {'in ' + location if location else 'globally'}")
    try:
        landscape = None
        if location and provider is not None:
            try:
                data = await asyncio.wait_for(
                    provider.get_comprehensive_market_data(
                        business_type, location, include_trends=False, include_sentiment=False
                    ),
                    timeout=Timeouts.ENRICHMENT_MAX,
                )
                landscape = data.competitor_analysis if data else None
            except Exception as exc:
                print(f"⚠️  [COMP] Location competitor scan failed, using search only: {exc}")

        year = date.today().year
        queries = [
            f"{business_type} top competitors market leaders {year} {year + 1}",
            f"{business_type} competitive analysis comparison pricing features",
            f"{idea} similar companies alternatives startups",
            f"{business_type} funding investments Series A B C latest",
            f"best {business_type} companies customer reviews ratings",
        ]
        results = await _gather_searches(search, queries)
        competitors = analyze_competitor_data(results, business_type, landscape)
    except Exception as exc:
        print(f"❌ [COMP] Competitive analysis failed: {exc}")
        return generate_fallback_competitors(business_type)

    if not competitors:
        print("ℹ️  [COMP] No competitors found, using generic profiles")
        return generate_fallback_competitors(business_type)

    print(f"✅ [COMP] {len(competitors)} competitors")
    return competitors


# ===================================================================== #
#  Competitor intelligence                                                #
# ===================================================================== #

def _revenue_multiplier(estimated_revenue: str) -> float:
    lower = estimated_revenue.lower()
    if "billion" in lower:
        return 3.5
    if "million" in lower:
        match = re.search(r"\d+(?:\.\d+)?", lower)
        amount = float(match.group()) if match else 0.0
        if amount > 100:
            return 2.5
        if amount > 10:
            return 1.8
        return 1.2
    return 1.0


def generate_performance_series(seed: str, base: float, trend: float) -> List[int]:
    """31 daily points with +/-5% jitter and a small upward trend.

    Jitter comes from a generator seeded with ``seed``, so the same company
    always gets the same series.
    """
    rng = random.Random(seed)
    value = base
    series: List[int] = []
    for day in range(_SERIES_LENGTH):
        value = value * (0.95 + rng.random() * 0.1) * (1 + day * trend)
        series.append(round(value))
    return series


def extract_financial_metrics(results: Sequence[SearchResult], name: str) -> Dict[str, Any]:
    snippets = [(r.snippet or "").lower() for r in results]
    revenue = text_patterns.first_match(text_patterns.REVENUE_FIGURE, snippets)
    share = text_patterns.first_match(text_patterns.MARKET_SHARE, snippets)
    growth = text_patterns.first_match(text_patterns.GROWTH_PERCENT, snippets)

    metrics = {
        "estimatedRevenue": revenue or "Data not available",
        "marketShare": share or "Research required",
        "growth": f"+{growth} growth" if growth else "Analyzing trends",
    }
    metrics["performanceData"] = generate_performance_series(
        name, 100 * _revenue_multiplier(metrics["estimatedRevenue"]), 0.003
    )
    return metrics


def _industry_average_series(business_type: str) -> List[int]:
    lower = business_type.lower()
    multiplier = next((m for key, m in INDUSTRY_BENCHMARK_MULTIPLIERS.items() if key in lower), 1.0)
    rng = random.Random(f"{lower}:industry")
    base = 50 * multiplier
    return [round(base * (0.95 + rng.random() * 0.1) * (1 + day * 0.002)) for day in range(_SERIES_LENGTH)]


async def fetch_industry_benchmarks(business_type: str, search) -> Dict[str, Any]:
    year = date.today().year
    queries = [
        f"{business_type} industry average revenue per company {year}",
        f"{business_type} sector performance benchmarks statistics",
        f"{business_type} industry growth rate market data",
    ]
    results = await _gather_searches(search, queries)
    snippets = [(r.snippet or "").lower() for r in results]

    revenue = text_patterns.first_match(text_patterns.AVERAGE_REVENUE, snippets)
    growth = text_patterns.first_match(text_patterns.INDUSTRY_GROWTH, snippets)
    size = text_patterns.first_match(text_patterns.INDUSTRY_MARKET_SIZE, snippets)
    return {
        "averageRevenue": revenue or "revenue data being researched",
        "averageGrowth": f"{growth} annually" if growth else "growth data being researched",
        "marketSize": size or "market size data being researched",
        "performanceData": _industry_average_series(business_type),
    }


async def _competitor_profile(business_type: str, name: str, search) -> Dict[str, Any]:
    year = date.today().year
    queries = [
        f"{name} company revenue sales {year} {year + 1}",
        f"{name} market share performance data",
        f"{name} financial results quarterly earnings",
        f"{name} {business_type} industry statistics",
    ]
    results = await _gather_searches(search, queries)
    return {
        "name": name,
        **extract_financial_metrics(results, name),
        "searchResults": [r.dump() for r in results[:3]],
    }


async def fetch_competitor_intelligence(
    business_type: str,
    names: Sequence[str],
    search,
) -> Optional[Dict[str, Any]]:
    """Performance signals for the top competitors plus industry benchmarks."""
    top = [n for n in names if n][:_INTEL_TOP_N]
    if not top:
        return None
    print(f"📈 [COMP] Competitor intelligence for {', '.join(top)}")
    try:
        profiles, industry = await asyncio.gather(
            asyncio.gather(*(_competitor_profile(business_type, n, search) for n in top)),
            fetch_industry_benchmarks(business_type, search),
        )
    except Exception as exc:
        print(f"❌ [COMP] Competitor intelligence failed: {exc}")
        return None
    return {
        "competitors": list(profiles),
        "industry": industry,
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    }
