"""Deterministic generator tests — risks, projections, marketing mix, roadmap, rules."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from app.agents.plan_agent.generators import (
    generate_action_roadmap,
    generate_financial_projections,
    generate_marketing_strategy,
    generate_risk_analysis,
    validate_milestone_dependencies,
)
from app.agents.plan_agent.rules import (
    DIGITAL,
    HYBRID,
    PHYSICAL_SERVICE,
    detect_business_type,
    get_budget_range,
    get_currency_symbol,
    parse_budget_amount,
    parse_timeline_weeks,
)
from app.agents.plan_agent.schema import Milestone


# ===================================================================== #
#  Risks                                                                  #
# ===================================================================== #


class TestRiskAnalysis:
    def test_five_risks_sorted_by_priority(self):
        risks = generate_risk_analysis(DIGITAL)
        assert len(risks) == 5
        assert [r.priority for r in risks] == [1, 2, 3, 4, 5]

    def test_levels_are_from_fixed_set(self):
        for risk in generate_risk_analysis(PHYSICAL_SERVICE):
            assert risk.probability in ("Low", "Medium", "High")
            assert risk.impact in ("Low", "Medium", "High")


# ===================================================================== #
#  Financial projections                                                  #
# ===================================================================== #


class TestFinancialProjections:
    def test_twelve_months_then_eight_quarters(self):
        rows = generate_financial_projections(DIGITAL, "50000")
        assert len(rows) == 20
        assert [r.period for r in rows[:12]] == [f"Month {m}" for m in range(1, 13)]
        assert rows[12].period == "Year 2 Q1"
        assert rows[-1].period == "Year 3 Q4"

    def test_profit_is_revenue_minus_costs(self):
        for row in generate_financial_projections(DIGITAL, "25000"):
            assert row.profit == row.revenue - row.costs
            assert row.dump()["profit"] == row.revenue - row.costs

    def test_month_one_formulas(self):
        month1 = generate_financial_projections("DIGITAL", "50000")[0]
        assert month1.revenue == 500
        assert month1.costs == 5000
        assert month1.customers == 50

    def test_saas_doubles_revenue_and_b2b_lowers_customers(self):
        month1 = generate_financial_projections("B2B SaaS", "50000")[0]
        assert month1.revenue == 1000
        assert month1.customers == 10

    def test_customers_never_negative(self):
        assert all(r.customers >= 0 for r in generate_financial_projections(HYBRID, None))

    def test_missing_budget_defaults_to_50000(self):
        assert generate_financial_projections(DIGITAL, None) == generate_financial_projections(DIGITAL, "50000")


# ===================================================================== #
#  Marketing                                                              #
# ===================================================================== #


class TestMarketingStrategy:
    def test_channel_budgets_split_monthly_budget(self):
        strategy = generate_marketing_strategy(DIGITAL, "120000")
        # 30% of 120000 per year = 36000, 3000 per month
        assert strategy.annual_budget == "$36,000/year"
        assert strategy.total_budget == "$3,000/month"
        assert [c.budget for c in strategy.channels] == [
            "$900/month", "$750/month", "$600/month", "$450/month", "$300/month",
        ]

    def test_currency_symbol_is_used(self):
        strategy = generate_marketing_strategy(DIGITAL, "120000", currency="EUR")
        assert strategy.total_budget.startswith("€")

    def test_channel_keys_serialize_with_acronyms(self):
        channel = generate_marketing_strategy(DIGITAL, "50000").channels[0].dump()
        assert "expectedCAC" in channel
        assert "expectedROI" in channel


# ===================================================================== #
#  Roadmap                                                                #
# ===================================================================== #


class TestRoadmap:
    def test_eight_milestones_with_known_dependencies(self):
        roadmap = generate_action_roadmap(DIGITAL)
        ids = {m.id for m in roadmap}
        assert len(roadmap) == 8
        assert all(dep in ids for m in roadmap for dep in m.dependencies)

    def test_default_windows_end_at_week_28(self):
        roadmap = generate_action_roadmap(DIGITAL)
        assert roadmap[-1].timeline == "Weeks 22-28"

    def test_windows_scale_to_requested_timeline(self):
        roadmap = generate_action_roadmap(DIGITAL, "1 year")
        assert roadmap[-1].timeline == "Weeks 41-52"

    def test_order_respects_dependencies(self):
        order = validate_milestone_dependencies(generate_action_roadmap(DIGITAL))
        assert order.index("market-validation") < order.index("mvp-design")
        assert order.index("mvp-development") < order.index("launch-prep")
        assert order[-1] == "beta-launch"

    def test_unknown_dependency_rejected(self):
        milestones = [
            Milestone(id="a", task="A", duration="1 week", dependencies=["ghost"], priority="High", timeline="Weeks 1-1"),
        ]
        with pytest.raises(ValueError, match="unknown"):
            validate_milestone_dependencies(milestones)

    def test_cycle_rejected(self):
        milestones = [
            Milestone(id="a", task="A", duration="1 week", dependencies=["b"], priority="High", timeline="Weeks 1-1"),
            Milestone(id="b", task="B", duration="1 week", dependencies=["a"], priority="High", timeline="Weeks 2-2"),
        ]
        with pytest.raises(ValueError, match="cycle"):
            validate_milestone_dependencies(milestones)


# ===================================================================== #
#  Rules                                                                  #
# ===================================================================== #


class TestRules:
    @pytest.mark.parametrize("budget,expected", [
        ("50000", 50000),
        ("$25,000", 25000),
        ("10k-25k", 10000),
        ("250k+", 250000),
        ("1.5m", 1500000),
        ("", 50000),
        (None, 50000),
        ("lots", 50000),
        ("0", 50000),
    ])
    def test_parse_budget_amount(self, budget, expected):
        assert parse_budget_amount(budget) == expected

    @pytest.mark.parametrize("timeline,expected", [
        ("3-6 months", 26),
        ("8 weeks", 8),
        ("1 year", 52),
        ("soon", None),
        (None, None),
    ])
    def test_parse_timeline_weeks(self, timeline, expected):
        assert parse_timeline_weeks(timeline) == expected

    def test_provided_business_type_wins(self):
        assert detect_business_type("online store", "HYBRID") == "HYBRID"

    def test_detects_digital(self):
        assert detect_business_type("A SaaS platform for dentists") == DIGITAL

    def test_detects_physical(self):
        assert detect_business_type("Neighborhood bakery and cafe") == PHYSICAL_SERVICE

    def test_no_keywords_defaults_to_physical_service(self):
        assert detect_business_type("Dog grooming") == PHYSICAL_SERVICE

    def test_currency_helpers(self):
        assert get_currency_symbol("gbp") == "£"
        assert get_currency_symbol(None) == "$"
        assert get_budget_range("10k-25k", "EUR") == "€10,000-25,000"
        assert get_budget_range("unknown") == "$5,000-15,000"
