"""Market data enrichment — World Bank, OpenStreetMap and NewsAPI.

Fetches three independent signals in parallel and synthesizes them:

  * economic trends   (World Bank GDP growth / inflation / unemployment)
  * local competitors (Nominatim geocoding + Overpass amenity search)
  * media sentiment   (NewsAPI headlines scored with TextBlob polarity)

Each signal degrades to ``None`` on its own. ``get_comprehensive_market_data``
returns ``None`` only when no signal produced anything.
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import httpx
from textblob import TextBlob

from .http_client import get_timeout

logger = logging.getLogger(__name__)

_WORLD_BANK_URL = "https://api.worldbank.org/v2/country/{code}/indicator/{indicator}"
_NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
_NEWS_API_URL = "https://newsapi.org/v2/everything"
_USER_AGENT = "BusinessPlanGenerator/1.0"

_INDICATORS = {
    "NY.GDP.MKTP.KD.ZG": "gdp_growth",
    "FP.CPI.TOTL.ZG": "inflation",
    "SL.UEM.TOTL.ZS": "unemployment",
}

_COUNTRY_CODES: Dict[str, str] = {
    "us": "USA", "usa": "USA", "united states": "USA",
    "canada": "CAN", "uk": "GBR", "united kingdom": "GBR",
    "germany": "DEU", "france": "FRA", "japan": "JPN",
    "india": "IND", "china": "CHN", "australia": "AUS",
    "pakistan": "PAK", "singapore": "SGP", "uae": "ARE",
}

_GROWTH_MULTIPLIERS: Dict[str, float] = {
    "technology": 1.5, "digital": 1.5, "healthcare": 1.3, "renewable energy": 1.8,
    "e-commerce": 1.6, "food delivery": 1.4, "education": 1.1,
    "retail": 0.9, "manufacturing": 1.0,
}

_SEASONALITY: Dict[str, List[str]] = {
    "restaurant": ["Holiday peaks in Dec", "Summer outdoor dining", "Valentine's Day boost"],
    "retail": ["Black Friday surge", "Holiday shopping season", "Back-to-school period"],
    "tourism": ["Summer peak season", "Holiday travel", "Spring break period"],
    "healthcare": ["Flu season demand", "New Year wellness surge", "Summer procedure uptick"],
}

_DRIVERS: Dict[str, List[str]] = {
    "restaurant": ["Consumer disposable income", "Tourism levels", "Local population growth"],
    "technology": ["Digital transformation demand", "Remote work adoption", "AI/automation trends"],
    "digital": ["Digital transformation demand", "Remote work adoption", "AI/automation trends"],
    "healthcare": ["Aging population", "Health awareness", "Insurance coverage expansion"],
    "retail": ["Consumer confidence", "E-commerce adoption", "Supply chain efficiency"],
}

_AMENITIES: Dict[str, List[str]] = {
    "restaurant": ["restaurant", "fast_food", "cafe"],
    "cafe": ["cafe", "restaurant"],
    "coffee": ["cafe"],
    "fitness": ["gym", "fitness_centre"],
    "salon": ["beauty", "hairdresser"],
    "clinic": ["clinic", "doctors"],
    "pharmacy": ["pharmacy"],
    "bakery": ["bakery"],
    "bar": ["bar", "pub"],
    "hotel": ["hotel", "motel"],
    "bank": ["bank"],
    "grocery": ["supermarket", "convenience"],
}

_STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should", "this", "that", "from",
}


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class MarketTrendSignals:
    gdp_growth: Optional[str]
    inflation: Optional[str]
    unemployment: Optional[str]
    growth_rate: str
    projected_growth: str
    seasonality: List[str] = field(default_factory=list)
    key_drivers: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)


@dataclass
class LocalCompetitor:
    name: str
    address: str
    distance: float  # metres from the geocoded location


@dataclass
class CompetitorLandscape:
    competitor_count: int
    market_density: str  # Low | Medium | High
    average_distance: float
    top_competitors: List[LocalCompetitor] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)
    threats: List[str] = field(default_factory=list)


@dataclass
class SentimentSummary:
    overall_sentiment: str  # POSITIVE | NEGATIVE | NEUTRAL
    sentiment_score: float
    total_mentions: int
    trending_topics: List[str] = field(default_factory=list)


@dataclass
class ComprehensiveMarketData:
    industry: str
    location: str
    market_trends: Optional[MarketTrendSignals]
    competitor_analysis: Optional[CompetitorLandscape]
    consumer_sentiment: Optional[SentimentSummary]
    risk_factors: List[str] = field(default_factory=list)
    overall_reliability: str = "LOW"


def _lookup(table: Dict[str, Any], industry: str, default: Any) -> Any:
    lower = industry.lower()
    for key, value in table.items():
        if key in lower:
            return value
    return default


def _percent_value(text: Optional[str]) -> Optional[float]:
    if not text:
        return None
    match = re.search(r"-?\d+(?:\.\d+)?", text)
    return float(match.group()) if match else None


def haversine_metres(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in metres."""
    radius_km = 6371.0
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return round(radius_km * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a)) * 1000)


def score_sentiment(text: str) -> float:
    """TextBlob polarity in [-1, 1]; 0.0 for empty or unscorable text."""
    if not text or not text.strip():
        return 0.0
    try:
        return TextBlob(text).sentiment.polarity
    except Exception as exc:
        logger.warning("Sentiment scoring failed: %s", exc)
        return 0.0


def sentiment_label(score: float) -> str:
    if score > 0.1:
        return "POSITIVE"
    if score < -0.1:
        return "NEGATIVE"
    return "NEUTRAL"


class MarketDataProvider:
    """Aggregates free public data sources into one market snapshot."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    def _client(self, service: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=get_timeout(service),
            transport=self._transport,
            headers={"User-Agent": _USER_AGENT},
        )

    # ── Economic trends ──────────────────────────────────────────────────

    async def _fetch_indicator(self, client: httpx.AsyncClient, code: str, indicator: str) -> Optional[float]:
        url = _WORLD_BANK_URL.format(code=code, indicator=indicator)
        response = await client.get(url, params={"format": "json", "mrv": 1})
        if response.status_code != 200:
            return None
        payload = response.json()
        if not isinstance(payload, list) or len(payload) < 2 or not payload[1]:
            return None
        value = payload[1][0].get("value")
        return float(value) if value is not None else None

    async def get_market_trends(self, industry: str, location: str) -> Optional[MarketTrendSignals]:
        code = _COUNTRY_CODES.get((location or "").strip().lower(), "USA")
        try:
            async with self._client("world_bank") as client:
                values = await asyncio.gather(
                    *(self._fetch_indicator(client, code, ind) for ind in _INDICATORS),
                    return_exceptions=True,
                )
        except httpx.HTTPError as exc:
            logger.warning("World Bank request failed for %s: %s", code, exc)
            return None

        indicators: Dict[str, str] = {}
        for name, value in zip(_INDICATORS.values(), values):
            if isinstance(value, BaseException):
                logger.warning("World Bank indicator %s failed: %s", name, value)
                continue
            if value is not None:
                indicators[name] = f"{value:.1f}%"

        if not indicators:
            return None

        gdp = indicators.get("gdp_growth")
        base_growth = _percent_value(gdp) if gdp else 2.5
        multiplier = _lookup(_GROWTH_MULTIPLIERS, industry, 1.0)
        return MarketTrendSignals(
            gdp_growth=gdp,
            inflation=indicators.get("inflation"),
            unemployment=indicators.get("unemployment"),
            growth_rate=gdp or "2.5%",
            projected_growth=f"{base_growth * multiplier:.1f}%",
            seasonality=_lookup(_SEASONALITY, industry, ["Generally stable year-round"]),
            key_drivers=_lookup(_DRIVERS, industry, ["Economic growth", "Consumer demand", "Market competition"]),
            sources=["World Bank Open Data"],
        )

    # ── Local competitors ────────────────────────────────────────────────

    async def _geocode(self, client: httpx.AsyncClient, location: str) -> Optional[tuple]:
        response = await client.get(_NOMINATIM_URL, params={"format": "json", "q": location, "limit": 1})
        if response.status_code != 200:
            return None
        hits = response.json()
        if not hits:
            return None
        return float(hits[0]["lat"]), float(hits[0]["lon"])

    async def get_competitor_analysis(
        self, industry: str, location: str, radius: int = 5000
    ) -> Optional[CompetitorLandscape]:
        amenities = _lookup(_AMENITIES, industry, None)
        try:
            async with self._client("geocode") as client:
                coords = await self._geocode(client, location)
            if coords is None:
                logger.warning("Could not geocode %r", location)
                return None
            lat, lon = coords
            if amenities:
                selector = "".join(f'nwr(around:{radius},{lat},{lon})["amenity"="{a}"];' for a in amenities)
            else:
                selector = f'nwr(around:{radius},{lat},{lon})["shop"];'
            query = f"[out:json][timeout:25];({selector});out center 20;"
            async with self._client("overpass") as client:
                response = await client.post(_OVERPASS_URL, data={"data": query})
            if response.status_code != 200:
                logger.warning("Overpass HTTP %s for %r", response.status_code, location)
                return None
            elements = response.json().get("elements") or []
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.warning("Competitor location lookup failed for %r: %s", location, exc)
            return None

        competitors: List[LocalCompetitor] = []
        for element in elements[:20]:
            tags = element.get("tags") or {}
            el_lat = element.get("lat") or (element.get("center") or {}).get("lat")
            el_lon = element.get("lon") or (element.get("center") or {}).get("lon")
            name = tags.get("name")
            if not name or el_lat is None or el_lon is None:
                continue
            parts = [tags.get(k) for k in ("addr:housenumber", "addr:street", "addr:city", "addr:postcode")]
            address = ", ".join(p for p in parts if p) or "Address not available"
            competitors.append(
                LocalCompetitor(name=name, address=address, distance=haversine_metres(lat, lon, el_lat, el_lon))
            )
        competitors.sort(key=lambda c: c.distance)

        count = len(competitors)
        density = "Low" if count <= 3 else "Medium" if count <= 8 else "High"
        average = sum(c.distance for c in competitors) / count if count else float(radius)

        opportunities: List[str] = []
        if density == "Low":
            opportunities += ["First-mover advantage in underserved market", "Opportunity to establish strong brand presence"]
        if count == 0:
            opportunities.append("No direct competitors identified in immediate area")
        opportunities.append("Potential for customer loyalty building")

        threats: List[str] = []
        if density == "High":
            threats += ["Intense competition may impact profitability", "Market saturation risk", "Price competition pressure"]
        if count > 5:
            threats.append("Established competitors with customer loyalty")
        threats.append("New competitors entering the market")

        return CompetitorLandscape(
            competitor_count=count,
            market_density=density,
            average_distance=average,
            top_competitors=competitors[:5],
            opportunities=opportunities,
            threats=threats,
        )

    # ── Media sentiment ──────────────────────────────────────────────────

    async def get_consumer_sentiment(self, industry: str, location: str) -> Optional[SentimentSummary]:
        key = os.getenv("NEWS_API_KEY", "").strip()
        if not key:
            logger.warning("NEWS_API_KEY not set, skipping sentiment analysis")
            return None
        params = {
            "q": f"{industry} {location}".strip(),
            "from": (date.today() - timedelta(days=7)).isoformat(),
            "sortBy": "publishedAt",
            "pageSize": 50,
            "apiKey": key,
        }
        try:
            async with self._client("news") as client:
                response = await client.get(_NEWS_API_URL, params=params)
            if response.status_code != 200:
                logger.warning("NewsAPI HTTP %s", response.status_code)
                return None
            articles = response.json().get("articles") or []
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("NewsAPI request failed: %s", exc)
            return None

        if not articles:
            return None

        scores: List[float] = []
        topics: Counter = Counter()
        for article in articles:
            title = article.get("title") or ""
            scores.append(score_sentiment(f"{title} {article.get('description') or ''}"))
            words = [w for w in re.split(r"\W+", title.lower()) if len(w) > 3 and w not in _STOP_WORDS]
            topics.update(words[:3])

        average = sum(scores) / len(scores)
        return SentimentSummary(
            overall_sentiment=sentiment_label(average),
            sentiment_score=round(average, 2),
            total_mentions=len(articles),
            trending_topics=[word for word, _ in topics.most_common(5)],
        )

    # ── Synthesis ────────────────────────────────────────────────────────

    async def get_comprehensive_market_data(
        self,
        industry: str,
        location: Optional[str] = None,
        *,
        include_trends: bool = True,
        include_competitors: bool = True,
        include_sentiment: bool = True,
        radius: int = 10000,
    ) -> Optional[ComprehensiveMarketData]:
        location = location or "US"
        print(f"🌐 [MARKET] Enrichment for {industry!r} in {location!r}")

        async def _skip() -> None:
            return None

        trends, competitors, sentiment = await asyncio.gather(
            self.get_market_trends(industry, location) if include_trends else _skip(),
            self.get_competitor_analysis(industry, location, radius) if include_competitors else _skip(),
            self.get_consumer_sentiment(industry, location) if include_sentiment else _skip(),
            return_exceptions=True,
        )
        trends = None if isinstance(trends, BaseException) else trends
        competitors = None if isinstance(competitors, BaseException) else competitors
        sentiment = None if isinstance(sentiment, BaseException) else sentiment

        if trends is None and competitors is None and sentiment is None:
            return None

        available = sum(
            [
                trends is not None,
                competitors is not None and competitors.competitor_count > 0,
                sentiment is not None and sentiment.total_mentions > 0,
            ]
        )
        reliability = "HIGH" if available == 3 else "MEDIUM" if available == 2 else "LOW"

        return ComprehensiveMarketData(
            industry=industry,
            location=location,
            market_trends=trends,
            competitor_analysis=competitors,
            consumer_sentiment=sentiment,
            risk_factors=self._risk_factors(trends, competitors, sentiment),
            overall_reliability=reliability,
        )

    @staticmethod
    def _risk_factors(
        trends: Optional[MarketTrendSignals],
        competitors: Optional[CompetitorLandscape],
        sentiment: Optional[SentimentSummary],
    ) -> List[str]:
        risks: List[str] = []
        if trends:
            growth = _percent_value(trends.growth_rate)
            if growth is not None and growth < 0:
                risks.append("Industry showing negative growth")
            inflation = _percent_value(trends.inflation)
            if inflation is not None and inflation > 5:
                risks.append("High inflation may impact consumer spending")
            unemployment = _percent_value(trends.unemployment)
            if unemployment is not None and unemployment > 6:
                risks.append("High unemployment may reduce market demand")
        if competitors:
            if competitors.market_density == "High":
                risks.append("High competition density in area")
            if competitors.competitor_count > 10:
                risks.append("High number of established competitors")
        if sentiment:
            if sentiment.overall_sentiment == "NEGATIVE":
                risks.append("Negative consumer sentiment toward industry")
            if sentiment.total_mentions < 5:
                risks.append("Low consumer awareness/discussion about industry")
        return risks[:5]
