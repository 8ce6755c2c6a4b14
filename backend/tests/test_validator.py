"""Completeness validator and decode boundary tests."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import copy
from datetime import date

import pytest

from app.agents.plan_agent.competitors import generate_fallback_competitors
from app.agents.plan_agent.generators import (
    generate_action_roadmap,
    generate_financial_projections,
    generate_marketing_strategy,
    generate_risk_analysis,
)
from app.agents.plan_agent.market_data import heuristic_market_data
from app.agents.plan_agent.schema import FinancialProjection, decode_plan_payload
from app.agents.plan_agent.validator import (
    REQUIRED_SECTIONS,
    PlanContext,
    is_section_incomplete,
    validate_and_enhance_plan,
)

BT = "DIGITAL"
IDEA = "Mobile coffee cart with app ordering"


def _full_context(**overrides):
    ctx = dict(
        business_type=BT,
        idea=IDEA,
        market_data=heuristic_market_data(BT, IDEA),
        competitors=generate_fallback_competitors(BT),
        risks=generate_risk_analysis(BT),
        projections=generate_financial_projections(BT, "50000"),
        marketing=generate_marketing_strategy(BT, "50000"),
        roadmap=generate_action_roadmap(BT),
        budget="50000",
        currency="USD",
    )
    ctx.update(overrides)
    return PlanContext(**ctx)


# ===================================================================== #
#  Incompleteness rule                                                    #
# ===================================================================== #


class TestIncompleteness:
    @pytest.mark.parametrize("value", [None, "", "too short", [], {}])
    def test_incomplete_values(self, value):
        assert is_section_incomplete(value)

    @pytest.mark.parametrize("value", ["x" * 50, [1], {"a": 1}, 0, False])
    def test_complete_values(self, value):
        assert not is_section_incomplete(value)


# ===================================================================== #
#  Backfill                                                               #
# ===================================================================== #


class TestValidateAndEnhance:
    def test_empty_plan_fully_backfilled(self):
        plan = validate_and_enhance_plan({}, _full_context())
        for section in REQUIRED_SECTIONS:
            assert not is_section_incomplete(plan[section]), section
        assert plan["comprehensivenessScore"] == 10
        assert plan["lastUpdated"] == date.today().isoformat()

    def test_score_seven_when_three_sections_have_no_data(self):
        ctx = _full_context(market_data=None, competitors=[], risks=[])
        plan = validate_and_enhance_plan({}, ctx)
        assert plan["comprehensivenessScore"] == 7
        assert "marketAnalysis" not in plan
        assert "competitiveAnalysis" not in plan
        assert "riskAnalysis" not in plan

    def test_input_is_not_mutated(self):
        original = {"executiveSummary": "short", "legal": {}}
        snapshot = copy.deepcopy(original)
        validate_and_enhance_plan(original, _full_context())
        assert original == snapshot

    def test_idempotent(self):
        ctx = _full_context(market_data=None)
        once = validate_and_enhance_plan({"operations": "tbd"}, ctx)
        twice = validate_and_enhance_plan(once, ctx)
        assert once == twice

    def test_complete_model_sections_are_kept(self):
        text = "A thorough executive summary written by the model, well over fifty characters."
        plan = validate_and_enhance_plan({"executiveSummary": text}, _full_context())
        assert plan["executiveSummary"] == text

    def test_short_monthly_table_is_replaced(self):
        partial = {"financialProjections": {"year1Monthly": [{"month": 1, "revenue": 1, "costs": 1}]}}
        plan = validate_and_enhance_plan(partial, _full_context())
        assert len(plan["financialProjections"]["year1Monthly"]) == 12
        assert len(plan["financialProjections"]["year2Quarterly"]) == 4

    def test_risks_backfilled_in_priority_order(self):
        plan = validate_and_enhance_plan({}, _full_context())
        assert [r["priority"] for r in plan["riskAnalysis"]] == [1, 2, 3, 4, 5]

    def test_simplified_summary_feeds_executive_summary(self):
        summary = "A mobile coffee cart serving office parks with pre-ordering through a simple app."
        plan = validate_and_enhance_plan({"summary": summary}, _full_context())
        assert plan["executiveSummary"] == summary

    def test_existing_sources_kept(self):
        plan = validate_and_enhance_plan({"sources": ["https://example.org/report"]}, _full_context())
        assert plan["sources"] == ["https://example.org/report"]

    def test_default_sources_when_missing(self):
        plan = validate_and_enhance_plan({}, _full_context())
        assert plan["sources"][0] == "Live market research via Google Custom Search"
        assert plan["sources"][-1] == f"Generated on {date.today().isoformat()}"

    def test_funding_uses_budget_and_currency(self):
        plan = validate_and_enhance_plan({}, _full_context(budget="$25,000", currency="EUR"))
        assert plan["funding"]["requirements"] == "Initial funding: EUR 25,000 for MVP and early growth"

    def test_break_even_is_first_profitable_period(self):
        rows = [
            FinancialProjection(period="Month 1", revenue=10, costs=20, customers=1),
            FinancialProjection(period="Month 2", revenue=30, costs=20, customers=2),
        ]
        plan = validate_and_enhance_plan({}, _full_context(projections=rows))
        assert plan["financialProjections"]["breakEven"] == "Month 2 with sustained profitability"

    def test_break_even_beyond_horizon(self):
        rows = [FinancialProjection(period="Month 1", revenue=10, costs=20, customers=1)]
        plan = validate_and_enhance_plan({}, _full_context(projections=rows))
        assert plan["financialProjections"]["breakEven"] == "Beyond Year 3"


# ===================================================================== #
#  Decode boundary                                                        #
# ===================================================================== #


class TestDecodePlanPayload:
    def test_non_object_rejected(self):
        with pytest.raises(ValueError):
            decode_plan_payload(["not", "a", "plan"])

    def test_risks_sorted_and_reranked(self):
        payload = {"riskAnalysis": [
            {"risk": "c", "priority": "3"},
            {"risk": "a", "priority": 1},
            {"risk": "b", "priority": "High"},
        ]}
        risks = decode_plan_payload(payload)["riskAnalysis"]
        assert [r["risk"] for r in risks] == ["a", "c", "b"]
        assert [r["priority"] for r in risks] == [1, 2, 3]

    def test_projection_rows_get_profit_and_non_negative_customers(self):
        payload = {"financialProjections": {"year1Monthly": [
            {"month": 1, "revenue": "$1,000", "costs": 400, "profit": 999999, "customers": -5},
        ]}}
        row = decode_plan_payload(payload)["financialProjections"]["year1Monthly"][0]
        assert row["profit"] == 600
        assert row["customers"] == 0
        assert row["month"] == 1

    def test_string_profit_does_not_drop_projections(self):
        payload = {"financialProjections": {"year1Monthly": [
            {"month": 1, "revenue": 1000, "costs": "$6,000", "profit": "$-5,000", "customers": 10},
        ]}}
        row = decode_plan_payload(payload)["financialProjections"]["year1Monthly"][0]
        assert row["profit"] == -5000
        assert row["costs"] == 6000

    def test_unparseable_profit_is_recomputed(self):
        payload = {"financialProjections": {"year1Monthly": [
            {"revenue": 900, "costs": 300, "profit": "n/a"},
        ]}}
        row = decode_plan_payload(payload)["financialProjections"]["year1Monthly"][0]
        assert row["profit"] == 600

    def test_wrong_shaped_sections_dropped(self):
        payload = {"marketAnalysis": "just a string", "roadmap": {"not": "a list"}, "sources": "x"}
        decoded = decode_plan_payload(payload)
        assert "marketAnalysis" not in decoded
        assert "roadmap" not in decoded
        assert "sources" not in decoded
