"""Deterministic plan generators — risks, financial model, marketing mix, roadmap.

All functions are pure: same inputs, same outputs, no I/O. Their results are
embedded in the prompt and reused by the completeness validator when the
model leaves a section empty.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

from .rules import get_currency_symbol, parse_budget_amount, parse_timeline_weeks
from .schema import FinancialProjection, MarketingChannel, MarketingStrategy, Milestone, Risk


# ── Risk analysis ────────────────────────────────────────────────────────

_RISKS: List[Dict[str, object]] = [
    {
        "category": "Market",
        "description": "Market adoption slower than expected",
        "probability": "Medium",
        "impact": "High",
        "priority": 1,
        "mitigation": "Conduct pre-launch customer validation surveys and MVP testing with 50+ potential users",
        "timeline": "Pre-launch validation",
    },
    {
        "category": "Competition",
        "description": "Large competitor launches similar product",
        "probability": "High",
        "impact": "High",
        "priority": 2,
        "mitigation": "Focus on unique value proposition and build strong customer relationships. File provisional patents for key innovations",
        "timeline": "Ongoing monitoring",
    },
    {
        "category": "Technical",
        "description": "Scalability issues as user base grows",
        "probability": "Medium",
        "impact": "Medium",
        "priority": 3,
        "mitigation": "Implement cloud-native architecture from start. Plan load testing at 10x current capacity",
        "timeline": "Months 3-6",
    },
    {
        "category": "Financial",
        "description": "Funding runway shorter than projected",
        "probability": "Medium",
        "impact": "High",
        "priority": 4,
        "mitigation": "Maintain 6-month cash buffer. Identify multiple funding sources and maintain investor relationships",
        "timeline": "Quarterly reviews",
    },
    {
        "category": "Regulatory",
        "description": "Compliance requirements change",
        "probability": "Low",
        "impact": "Medium",
        "priority": 5,
        "mitigation": "Establish compliance monitoring system. Engage legal counsel for regulatory updates",
        "timeline": "Quarterly compliance audits",
    },
]


def generate_risk_analysis(business_type: str, idea: str = "") -> List[Risk]:
    """Five core startup risks, sorted by priority (1 = most urgent)."""
    risks = [Risk.model_validate(item) for item in _RISKS]
    return sorted(risks, key=lambda r: r.priority)


# ── Financial model ──────────────────────────────────────────────────────

def _monthly_revenue(month: int, business_type: str, budget: int) -> int:
    base_multiplier = 2 if "saas" in business_type.lower() else 1
    return math.floor(budget * 0.01 * base_multiplier * 1.3 ** (month - 1))


def _monthly_costs(month: int, budget: int) -> int:
    return math.floor(budget * 0.1 + (month - 1) * budget * 0.02)


def _monthly_customers(month: int, business_type: str) -> int:
    base = 10 if "b2b" in business_type.lower() else 50
    return math.floor(base * 1.4 ** (month - 1))


def _quarterly_revenue(year: int, quarter: int, business_type: str, budget: int) -> int:
    base = _monthly_revenue(12, business_type, budget) * 3
    return math.floor(base * 2 ** (year - 2) * (1 + (quarter - 1) * 0.2))


def _quarterly_costs(year: int, quarter: int, budget: int) -> int:
    base = _monthly_costs(12, budget) * 3
    return math.floor(base * 1.5 ** (year - 2) * (1 + (quarter - 1) * 0.1))


def _quarterly_customers(year: int, quarter: int, business_type: str) -> int:
    base = _monthly_customers(12, business_type)
    return math.floor(base * 2.5 ** (year - 2) * (1 + (quarter - 1) * 0.3))


def generate_financial_projections(
    business_type: str,
    budget: Optional[str],
    timeline: Optional[str] = None,
) -> List[FinancialProjection]:
    """Twelve monthly rows for year 1, then four quarterly rows each for years 2 and 3."""
    amount = parse_budget_amount(budget)
    projections: List[FinancialProjection] = []

    for month in range(1, 13):
        revenue = _monthly_revenue(month, business_type, amount)
        costs = _monthly_costs(month, amount)
        customers = _monthly_customers(month, business_type)
        projections.append(
            FinancialProjection(
                period=f"Month {month}",
                revenue=revenue,
                costs=costs,
                customers=customers,
                assumptions=[
                    f"Customer acquisition: {math.floor(customers * 0.2)} new/month",
                    f"Average revenue per user: ${math.floor(revenue / max(customers, 1))}",
                    f"Monthly burn rate: ${costs}",
                ],
            )
        )

    for year in (2, 3):
        for quarter in range(1, 5):
            projections.append(
                FinancialProjection(
                    period=f"Year {year} Q{quarter}",
                    revenue=_quarterly_revenue(year, quarter, business_type, amount),
                    costs=_quarterly_costs(year, quarter, amount),
                    customers=_quarterly_customers(year, quarter, business_type),
                    assumptions=[
                        f"Market penetration: {(year - 1) * 2 + quarter}%",
                        f"Customer churn rate: {5 - year}%",
                        f"Revenue growth: {20 + year * 5}% YoY",
                    ],
                )
            )

    return projections


# ── Marketing strategy ───────────────────────────────────────────────────

_MARKETING_SHARE_OF_BUDGET = 0.3

_CHANNELS: List[Tuple[float, Dict[str, object]]] = [
    (0.30, {
        "channel": "LinkedIn Ads (B2B Focus)",
        "audience": "Business decision makers, 35-55, $75K+ income",
        "expectedCAC": "$150-250",
        "expectedROI": "3:1 within 6 months",
        "implementation": [
            "Create LinkedIn business page with weekly content",
            "Run targeted lead generation campaigns",
            "A/B test ad creative and targeting",
            "Implement LinkedIn Pixel for retargeting",
        ],
    }),
    (0.25, {
        "channel": "Google Ads (Search)",
        "audience": "Active searchers for industry solutions",
        "expectedCAC": "$80-150",
        "expectedROI": "4:1 within 3 months",
        "implementation": [
            "Keyword research and competitive analysis",
            "Create high-converting landing pages",
            "Set up conversion tracking and analytics",
            "Daily bid optimization and budget management",
        ],
    }),
    (0.20, {
        "channel": "Content Marketing",
        "audience": "Industry professionals seeking solutions",
        "expectedCAC": "$50-100",
        "expectedROI": "5:1 over 12 months",
        "implementation": [
            "Weekly blog posts targeting buyer keywords",
            "Create downloadable industry guides",
            "Guest posting on industry publications",
            "SEO optimization for organic traffic",
        ],
    }),
    (0.15, {
        "channel": "Social Media (Organic)",
        "audience": "Followers and industry networks",
        "expectedCAC": "$30-70",
        "expectedROI": "3:1 through brand building",
        "implementation": [
            "Daily posting schedule across platforms",
            "Engage with industry conversations",
            "Share customer success stories",
            "Build community around brand values",
        ],
    }),
    (0.10, {
        "channel": "Email Marketing",
        "audience": "Newsletter subscribers and leads",
        "expectedCAC": "$20-40",
        "expectedROI": "6:1 for existing subscribers",
        "implementation": [
            "Set up automated drip campaigns",
            "Weekly newsletters with industry insights",
            "Personalized product recommendations",
            "A/B test subject lines and send times",
        ],
    }),
]


def generate_marketing_strategy(
    business_type: str,
    budget: Optional[str],
    timeline: Optional[str] = None,
    *,
    currency: Optional[str] = None,
) -> MarketingStrategy:
    """Split 30% of the budget per year across five channels.

    Channel shares are fractions of the monthly marketing budget, so the
    channel amounts add up to ``totalBudget``.
    """
    symbol = get_currency_symbol(currency)
    annual = math.floor(parse_budget_amount(budget) * _MARKETING_SHARE_OF_BUDGET)
    monthly = math.floor(annual / 12)

    channels = [
        MarketingChannel.model_validate(
            {**spec, "budget": f"{symbol}{math.floor(monthly * share):,}/month"}
        )
        for share, spec in _CHANNELS
    ]
    return MarketingStrategy(
        channels=channels,
        total_budget=f"{symbol}{monthly:,}/month",
        annual_budget=f"{symbol}{annual:,}/year",
    )


# ── Action roadmap ───────────────────────────────────────────────────────

_BASELINE_WEEKS = 28

# (id, task, duration, dependencies, deliverables, priority, (start_week, end_week))
_MILESTONES: List[Tuple[str, str, str, List[str], List[str], str, Tuple[int, int]]] = [
    (
        "market-validation", "Market Validation & Customer Discovery", "2-3 weeks", [],
        [
            "Customer interview summary (50+ interviews)",
            "Market size validation report",
            "Competitive analysis document",
            "Value proposition refinement",
        ],
        "Critical", (1, 3),
    ),
    (
        "mvp-design", "MVP Design & Technical Architecture", "3-4 weeks", ["market-validation"],
        [
            "Technical architecture document",
            "UI/UX wireframes and prototypes",
            "Database schema design",
            "API specification document",
        ],
        "Critical", (4, 7),
    ),
    (
        "legal-setup", "Legal Entity & Compliance Setup", "1-2 weeks", [],
        [
            "Business entity registration",
            "Terms of service and privacy policy",
            "Intellectual property filings",
            "Insurance and liability coverage",
        ],
        "High", (2, 4),
    ),
    (
        "team-building", "Core Team Assembly", "4-6 weeks", ["market-validation"],
        [
            "Co-founder agreements",
            "Key hire identification and recruitment",
            "Advisory board formation",
            "Team collaboration tools setup",
        ],
        "High", (3, 8),
    ),
    (
        "mvp-development", "MVP Development & Testing", "8-12 weeks", ["mvp-design", "team-building"],
        [
            "Core feature implementation",
            "Quality assurance testing",
            "User acceptance testing",
            "Performance optimization",
        ],
        "Critical", (8, 20),
    ),
    (
        "funding-prep", "Funding Strategy & Investor Outreach", "4-6 weeks", ["market-validation", "legal-setup"],
        [
            "Pitch deck creation",
            "Financial projections model",
            "Investor target list",
            "Due diligence document preparation",
        ],
        "High", (6, 12),
    ),
    (
        "launch-prep", "Go-to-Market Strategy & Launch Preparation", "3-4 weeks", ["mvp-development"],
        [
            "Marketing campaign creation",
            "Launch sequence planning",
            "Customer support setup",
            "Analytics and tracking implementation",
        ],
        "Critical", (18, 22),
    ),
    (
        "beta-launch", "Beta Launch & Customer Feedback", "4-6 weeks", ["launch-prep"],
        [
            "Beta user onboarding",
            "Feedback collection and analysis",
            "Product iteration based on feedback",
            "Success metrics evaluation",
        ],
        "Critical", (22, 28),
    ),
]


def _scaled_window(window: Tuple[int, int], factor: float) -> str:
    start, end = window
    scaled_start = max(1, round(start * factor))
    scaled_end = max(scaled_start, round(end * factor))
    return f"Weeks {scaled_start}-{scaled_end}"


def generate_action_roadmap(business_type: str, timeline: Optional[str] = None) -> List[Milestone]:
    """Eight dependency-linked milestones.

    When the timeline parses to a number of weeks, the week windows are
    stretched or compressed to end at that week.
    """
    target_weeks = parse_timeline_weeks(timeline)
    factor = target_weeks / _BASELINE_WEEKS if target_weeks else 1.0

    milestones = [
        Milestone(
            id=mid,
            task=task,
            duration=duration,
            dependencies=list(deps),
            deliverables=list(deliverables),
            priority=priority,
            timeline=_scaled_window(window, factor),
        )
        for mid, task, duration, deps, deliverables, priority, window in _MILESTONES
    ]
    validate_milestone_dependencies(milestones)
    return milestones


def validate_milestone_dependencies(milestones: Sequence[Milestone]) -> List[str]:
    """Check that dependencies name known milestones and contain no cycle.

    Returns the milestone ids in a valid execution order.

    Raises
    ------
    ValueError
        On duplicate ids, unknown dependency ids or a dependency cycle.
    """
    ids = [m.id for m in milestones]
    if len(set(ids)) != len(ids):
        raise ValueError("Duplicate milestone ids in roadmap")

    known = set(ids)
    for m in milestones:
        unknown = [d for d in m.dependencies if d not in known]
        if unknown:
            raise ValueError(f"Milestone {m.id!r} depends on unknown milestone(s): {', '.join(unknown)}")

    remaining = {m.id: set(m.dependencies) for m in milestones}
    order: List[str] = []
    while remaining:
        ready = [mid for mid in ids if mid in remaining and not remaining[mid]]
        if not ready:
            raise ValueError(f"Dependency cycle among milestones: {', '.join(sorted(remaining))}")
        for mid in ready:
            order.append(mid)
            del remaining[mid]
        for deps in remaining.values():
            deps.difference_update(ready)
    return order
