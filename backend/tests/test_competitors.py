"""Competitor discovery tests — name patterns, dedupe, cap, fallbacks, intelligence."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio

import pytest

from app.agents.plan_agent import text_patterns
from app.agents.plan_agent.competitors import (
    MAX_COMPETITORS,
    analyze_competitor_data,
    extract_competitor_names,
    fetch_competitive_analysis,
    fetch_competitor_intelligence,
    generate_fallback_competitors,
    generate_performance_series,
)
from app.agents.plan_agent.schema import SearchResult
from app.services.market_data_provider import CompetitorLandscape, LocalCompetitor


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


def _landscape(*names):
    return CompetitorLandscape(
        competitor_count=len(names),
        market_density="Low",
        average_distance=400.0,
        top_competitors=[
            LocalCompetitor(name=n, address="1 Main St", distance=100.0 * (i + 1))
            for i, n in enumerate(names)
        ],
    )


# ===================================================================== #
#  Text patterns                                                          #
# ===================================================================== #


class TestTextPatterns:
    def test_company_suffix(self):
        names = text_patterns.extract_candidate_names(["Acme Robotics Inc announced a new product"])
        assert "Acme Robotics" in names

    def test_versus_mention(self):
        names = text_patterns.extract_candidate_names(["Why teams pick Linear versus Jira Cloud today"])
        assert "Jira Cloud today" in names

    def test_too_short_names_dropped(self):
        assert text_patterns.extract_candidate_names(["compared to AB"]) == []

    def test_invalid_names(self):
        assert not text_patterns.is_valid_company_name("2024")
        assert not text_patterns.is_valid_company_name("the")
        assert not text_patterns.is_valid_company_name("Industry")
        assert text_patterns.is_valid_company_name("Stripe")

    def test_generic_terms_include_business_type(self):
        assert text_patterns.is_generic_term("Coffee Market Report", "DIGITAL")
        assert text_patterns.is_generic_term("Digital Leaders", "DIGITAL")
        assert not text_patterns.is_generic_term("Blue Bottle", "DIGITAL")

    def test_company_patterns_escape_names(self):
        pattern = text_patterns.company_share_pattern("C++ Labs (US)")
        assert pattern.search("c++ labs (us) holds 12% market share.")


class TestNamedPatterns:
    """One matching and one non-matching text per named pattern."""

    @pytest.mark.parametrize("pattern,text,expected", [
        (text_patterns.LEADING_COMPANY, "Brewly is the leading coffee app in Austin", "coffee app"),
        (text_patterns.LEADING_COMPANY, "Brewly opened a second kiosk downtown", None),
        (text_patterns.FOUNDED_BY, "Launched by Brewly Labs.", "Brewly Labs"),
        (text_patterns.FOUNDED_BY, "Brewly sells cold brew", None),
        (text_patterns.FUNDING_MENTION, "Brewly Labs raised $4 million", "Brewly Labs"),
        (text_patterns.FUNDING_MENTION, "Brewly Labs raised funding last year", None),
        (text_patterns.MARKET_SIZE, "The market reached $45.5 billion in 2024", "$45.5 billion"),
        (text_patterns.MARKET_SIZE, "The market is large", None),
        (text_patterns.GROWTH_CAGR, "expanding at 6.2% CAGR through 2030", "6.2% CAGR"),
        (text_patterns.GROWTH_CAGR, "expanding steadily through 2030", None),
        (text_patterns.REVENUE_FIGURE, "reported revenue of $150 million", "$150 million"),
        (text_patterns.REVENUE_FIGURE, "revenue was not disclosed", None),
        (text_patterns.MARKET_SHARE, "holds 12% market share", "12% market share"),
        (text_patterns.MARKET_SHARE, "holds a large share", None),
        (text_patterns.GROWTH_PERCENT, "Sales grew by 35% last year", "35%"),
        (text_patterns.GROWTH_PERCENT, "Sales grew steadily", None),
        (text_patterns.AVERAGE_REVENUE, "average revenue per company is $2.5 million", "$2.5 million"),
        (text_patterns.AVERAGE_REVENUE, "average revenue is unknown", None),
        (text_patterns.INDUSTRY_GROWTH, "the sector is growing at 7.5% per year", "7.5%"),
        (text_patterns.INDUSTRY_GROWTH, "the sector is growing quickly", None),
        (text_patterns.INDUSTRY_MARKET_SIZE, "global market valued at $1.2 trillion", "$1.2 trillion"),
        (text_patterns.INDUSTRY_MARKET_SIZE, "market valued at 1.2 trillion dollars", None),
    ])
    def test_pattern(self, pattern, text, expected):
        assert text_patterns.first_match(pattern, [text]) == expected

    def test_first_match_skips_non_matching_texts(self):
        texts = ["no numbers here", "grew 10% in Q1", "grew 20% in Q2"]
        assert text_patterns.first_match(text_patterns.GROWTH_PERCENT, texts) == "10%"

    def test_company_funding_pattern(self):
        pattern = text_patterns.company_funding_pattern("Brewly")
        assert pattern.search("brewly secured $12 million in seed funding").group(1) == "12 million"
        assert pattern.search("brewly is hiring baristas. it raised $3 million") is None


# ===================================================================== #
#  Analysis                                                               #
# ===================================================================== #


class TestAnalyzeCompetitors:
    def test_local_competitors_come_first_and_dedupe(self):
        results = [SearchResult(title="Blue Bottle Company expands", snippet="")]
        competitors = analyze_competitor_data(results, "PHYSICAL/SERVICE", _landscape("Blue Bottle Coffee"))
        names = [c.name for c in competitors]
        assert names[0] == "Blue Bottle Coffee"
        # "Blue Bottle" from search is contained in the local name
        assert "Blue Bottle" not in names
        assert competitors[0].differentiators[0] == "Distance: 100m away"

    def test_capped_at_eight(self):
        local = [f"Local Roaster {i}" for i in range(10)]
        competitors = analyze_competitor_data([], "PHYSICAL/SERVICE", _landscape(*local))
        assert len(competitors) == MAX_COMPETITORS

    def test_search_names_filtered_for_generic_terms(self):
        results = [SearchResult(snippet="Coffee Market Solutions Inc and Brewly Technologies lead")]
        names = extract_competitor_names(results, "PHYSICAL/SERVICE")
        assert all("market" not in n.lower() for n in names)

    def test_search_competitor_details(self):
        results = [SearchResult(
            title="Brewly Technologies raised $12 million",
            snippet="Brewly Technologies holds 8% market share in mobile ordering for independent cafes.",
        )]
        competitors = analyze_competitor_data(results, "PHYSICAL/SERVICE")
        brewly = next(c for c in competitors if c.name == "Brewly")
        assert brewly.market_share == "8% market share"
        assert brewly.funding == "$12 million raised"


# ===================================================================== #
#  fetch_competitive_analysis                                             #
# ===================================================================== #


class TestFetchCompetitiveAnalysis:
    def test_fallback_when_nothing_found(self):
        competitors = asyncio.run(fetch_competitive_analysis("DIGITAL", "Dog walking app", search=FakeSearch()))
        assert [c.name for c in competitors] == ["Leading DIGITAL Company A", "Emerging DIGITAL Startup"]

    def test_fallback_when_every_search_fails(self):
        competitors = asyncio.run(fetch_competitive_analysis(
            "DIGITAL", "Dog walking app", search=FakeSearch(error=RuntimeError("quota")),
        ))
        assert competitors == generate_fallback_competitors("DIGITAL")

    def test_runs_five_queries(self):
        search = FakeSearch()
        asyncio.run(fetch_competitive_analysis("DIGITAL", "Dog walking app", search=search))
        assert len(search.queries) == 5
        assert any("Dog walking app" in q for q in search.queries)


# ===================================================================== #
#  Competitor intelligence                                                #
# ===================================================================== #


class TestCompetitorIntelligence:
    def test_series_is_deterministic_per_name(self):
        assert generate_performance_series("Acme", 100, 0.003) == generate_performance_series("Acme", 100, 0.003)
        assert generate_performance_series("Acme", 100, 0.003) != generate_performance_series("Zenith", 100, 0.003)
        assert len(generate_performance_series("Acme", 100, 0.003)) == 31

    def test_top_three_profiles(self):
        search = FakeSearch([SearchResult(snippet="revenue of $150 million with 12% market share, growth of 20%")])
        data = asyncio.run(fetch_competitor_intelligence("saas", ["A Co", "B Co", "C Co", "D Co"], search))
        assert [c["name"] for c in data["competitors"]] == ["A Co", "B Co", "C Co"]
        first = data["competitors"][0]
        assert first["estimatedRevenue"] == "$150 million"
        assert first["marketShare"] == "12% market share"
        assert first["growth"] == "+20% growth"
        assert len(data["industry"]["performanceData"]) == 31
        assert "lastUpdated" in data

    def test_no_names_returns_none(self):
        assert asyncio.run(fetch_competitor_intelligence("saas", [], FakeSearch())) is None
