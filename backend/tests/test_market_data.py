"""Market data tests — demand rule, currency formatting, tier fallback, enrichment provider."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio

import httpx
import pytest

from app.agents.plan_agent.market_data import (
    analyze_market_search_results,
    classify_demand,
    estimate_market_size,
    fetch_market_data,
    format_currency,
    heuristic_market_data,
    transform_comprehensive_data,
)
from app.agents.plan_agent.schema import SearchResult
from app.services.market_data_provider import (
    ComprehensiveMarketData,
    MarketDataProvider,
    MarketTrendSignals,
    SentimentSummary,
    haversine_metres,
    score_sentiment,
    sentiment_label,
)


class FakeSearch:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return list(self.results)


class FakeProvider:
    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error

    async def get_comprehensive_market_data(self, industry, location=None, **kwargs):
        if self.error:
            raise self.error
        return self.data


def _snapshot(sentiment="POSITIVE", growth="2.9%"):
    return ComprehensiveMarketData(
        industry="DIGITAL",
        location="US",
        market_trends=MarketTrendSignals(
            gdp_growth=growth,
            inflation="3.1%",
            unemployment="3.7%",
            growth_rate=growth,
            projected_growth="4.1%",
            seasonality=["Peak in summer"],
            key_drivers=["Remote work adoption"],
            sources=["World Bank Open Data"],
        ),
        competitor_analysis=None,
        consumer_sentiment=SentimentSummary(
            overall_sentiment=sentiment, sentiment_score=0.4, total_mentions=20,
            trending_topics=["coffee", "prices", "ignored"],
        ),
        risk_factors=["High inflation may impact consumer spending"],
        overall_reliability="MEDIUM",
    )


# ===================================================================== #
#  Pure helpers                                                           #
# ===================================================================== #


class TestDemandClassification:
    @pytest.mark.parametrize("sentiment,growth,expected", [
        ("POSITIVE", "2.5%", "Rising"),
        ("POSITIVE", "2%", "Stable"),
        ("NEUTRAL", "5%", "Stable"),
        ("NEGATIVE", "5%", "Declining"),
        ("NEUTRAL", "-0.5%", "Declining"),
        ("POSITIVE", "n/a", "Stable"),
        (None, None, "Stable"),
    ])
    def test_classify_demand(self, sentiment, growth, expected):
        assert classify_demand(sentiment, growth) == expected


class TestCurrencyFormatting:
    def test_nan_and_zero_need_analysis(self):
        assert format_currency(float("nan"), "billion") == "Market size analysis needed"
        assert format_currency(0, "million") == "Market size analysis needed"

    def test_units(self):
        assert format_currency(2.5, "billion") == "$2.5 billion"
        assert format_currency(0.25, "billion") == "$250 million"
        assert format_currency(1.2, "trillion") == "$1.2 trillion"
        assert format_currency(42, "million") == "$42 million"

    def test_estimate_keeps_override_tam(self):
        estimates = estimate_market_size("DIGITAL", "", tam_override="$45.5 billion")
        assert estimates["tam"] == "$45.5 billion"
        assert estimates["sam"] != "Market size analysis needed"

    def test_estimate_without_number_uses_default_size(self):
        estimates = estimate_market_size("DIGITAL", "", tam_override="very large")
        assert estimates["sam"] != "Market size analysis needed"


class TestSearchMining:
    def test_mines_tam_cagr_and_demand(self):
        results = [SearchResult(
            title="Coffee market report",
            snippet="The coffee market was valued at $45.5 billion and is growing at 6.2% CAGR.",
        )]
        insights = analyze_market_search_results(results)
        assert insights["tam"] == "$45.5 billion"
        assert insights["cagr"].startswith("6.2%")
        assert insights["demand"] == "Rising"

    def test_first_snippet_with_signal_decides_demand(self):
        results = [
            SearchResult(snippet="Sales are declining in rural areas"),
            SearchResult(snippet="Urban demand keeps growing"),
        ]
        assert analyze_market_search_results(results)["demand"] == "Declining"

    def test_nothing_to_mine(self):
        assert analyze_market_search_results([SearchResult(snippet="Opening hours and menu")]) == {}


# ===================================================================== #
#  Tiers                                                                  #
# ===================================================================== #


class TestFetchMarketData:
    def test_live_tier(self):
        data = asyncio.run(fetch_market_data("DIGITAL", "US", provider=FakeProvider(_snapshot())))
        assert data.origin == "live"
        assert data.trends.demand == "Rising"
        assert data.size.cagr == "4.1%"
        assert data.trends.seasonality == "Peak in summer"
        assert data.trends.key_drivers == ["Remote work adoption", "coffee", "prices", "Market demand trends"]
        assert data.sources == ["World Bank Open Data API", "NewsAPI media sentiment analysis"]

    def test_negative_sentiment_declines(self):
        data = transform_comprehensive_data(_snapshot(sentiment="NEGATIVE"), "DIGITAL")
        assert data.trends.demand == "Declining"

    def test_search_tier_when_provider_empty(self):
        search = FakeSearch([SearchResult(
            title="Market size", snippet="valued at $12 billion, rising demand", link="https://example.org/a",
        )])
        data = asyncio.run(fetch_market_data("DIGITAL", "US", provider=FakeProvider(None), search=search))
        assert data.origin == "search"
        assert data.size.tam == "$12 billion"
        assert data.trends.demand == "Rising"
        assert data.sources == ["https://example.org/a"]

    def test_heuristic_tier_without_collaborators(self):
        data = asyncio.run(fetch_market_data("PHYSICAL/SERVICE", None))
        assert data.origin == "heuristic"
        assert data == heuristic_market_data("PHYSICAL/SERVICE")

    def test_failures_fall_through_to_heuristics(self):
        data = asyncio.run(fetch_market_data(
            "DIGITAL", "US",
            provider=FakeProvider(error=RuntimeError("provider down")),
            search=FakeSearch(error=RuntimeError("search down")),
        ))
        assert data.origin == "heuristic"
        assert data.size.tam


# ===================================================================== #
#  Enrichment provider                                                    #
# ===================================================================== #


class TestMarketDataProvider:
    def test_sentiment_polarity(self):
        assert sentiment_label(score_sentiment("Great growth, excellent results")) == "POSITIVE"
        assert sentiment_label(score_sentiment("Terrible decline and layoffs")) == "NEGATIVE"
        assert sentiment_label(score_sentiment("Quarterly report published")) == "NEUTRAL"
        assert score_sentiment("") == 0.0

    def test_negation_flips_sentiment(self):
        score = score_sentiment("Coffee cart sales not good as demand is not great this season")
        assert score < -0.1
        assert sentiment_label(score) == "NEGATIVE"

    def test_label_thresholds(self):
        assert sentiment_label(0.11) == "POSITIVE"
        assert sentiment_label(0.1) == "NEUTRAL"
        assert sentiment_label(-0.1) == "NEUTRAL"
        assert sentiment_label(-0.11) == "NEGATIVE"

    def test_negative_headlines_make_demand_decline(self, monkeypatch):
        monkeypatch.setenv("NEWS_API_KEY", "news-test-key")

        def handler(request):
            if request.url.host == "newsapi.org":
                return httpx.Response(200, json={"articles": [
                    {"title": "Coffee cart sales not good", "description": "Demand is not great this season"},
                    {"title": "Terrible quarter for street vendors", "description": ""},
                ]})
            return httpx.Response(500)

        provider = MarketDataProvider(transport=httpx.MockTransport(handler))
        snapshot = asyncio.run(provider.get_comprehensive_market_data("coffee", None))
        assert snapshot.consumer_sentiment.overall_sentiment == "NEGATIVE"
        data = transform_comprehensive_data(snapshot, "PHYSICAL/SERVICE")
        assert data.trends.demand == "Declining"

    def test_haversine_zero_distance(self):
        assert haversine_metres(30.0, -97.0, 30.0, -97.0) == 0

    def test_returns_none_when_every_signal_fails(self, monkeypatch):
        monkeypatch.delenv("NEWS_API_KEY", raising=False)
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        provider = MarketDataProvider(transport=transport)
        assert asyncio.run(provider.get_comprehensive_market_data("coffee", "Austin")) is None

    def test_world_bank_trends(self, monkeypatch):
        monkeypatch.delenv("NEWS_API_KEY", raising=False)

        def handler(request):
            if request.url.host == "api.worldbank.org":
                return httpx.Response(200, json=[{"page": 1}, [{"value": 2.5}]])
            return httpx.Response(500)

        provider = MarketDataProvider(transport=httpx.MockTransport(handler))
        data = asyncio.run(provider.get_comprehensive_market_data("technology", "US"))
        assert data is not None
        assert data.market_trends.growth_rate == "2.5%"
        assert data.market_trends.projected_growth == "3.8%"
        assert data.overall_reliability == "LOW"
