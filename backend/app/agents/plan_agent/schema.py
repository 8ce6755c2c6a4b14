"""Typed stage results for the Business Plan Generator.

Every aggregator and generator returns one of these models instead of a loose
dict. ``decode_plan_payload`` is the single point where the LLM's JSON is
checked against the shapes the rest of the pipeline relies on.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

Level = Literal["Low", "Medium", "High"]
Demand = Literal["Rising", "Stable", "Declining"]
Number = Union[int, float]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ── External search ──────────────────────────────────────────────────────

class SearchResult(CamelModel):
    title: str = ""
    link: str = ""
    snippet: str = ""


# ── Market data ──────────────────────────────────────────────────────────

class MarketSize(CamelModel):
    tam: str
    sam: str
    som: str
    cagr: str
    source: str
    last_updated: str


class MarketTrends(CamelModel):
    growth_rate: str
    demand: Demand = "Stable"
    seasonality: str
    key_drivers: List[str] = Field(default_factory=list)
    threats: List[str] = Field(default_factory=list)


class MarketData(CamelModel):
    size: MarketSize
    trends: MarketTrends
    sources: List[str] = Field(default_factory=list)
    origin: Literal["live", "search", "heuristic"] = "heuristic"


# ── Competitors ──────────────────────────────────────────────────────────

class CompetitorPricing(CamelModel):
    model: str
    range: str


class Competitor(CamelModel):
    name: str
    description: str
    market_share: Optional[str] = None
    funding: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    pricing: CompetitorPricing
    features: List[str] = Field(default_factory=list)
    differentiators: List[str] = Field(default_factory=list)


# ── Deterministic generators ─────────────────────────────────────────────

class Risk(CamelModel):
    category: str
    description: str
    probability: Level
    impact: Level
    priority: int
    mitigation: str
    timeline: str


class FinancialProjection(CamelModel):
    """One projection period. ``profit`` is derived, never stored."""

    period: str
    revenue: int
    costs: int
    customers: int = Field(ge=0)
    assumptions: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def profit(self) -> int:
        return self.revenue - self.costs


class MarketingChannel(CamelModel):
    channel: str
    audience: str
    budget: str
    expected_cac: str = Field(alias="expectedCAC")
    expected_roi: str = Field(alias="expectedROI")
    implementation: List[str] = Field(default_factory=list)


class MarketingStrategy(CamelModel):
    channels: List[MarketingChannel] = Field(default_factory=list)
    total_budget: str
    annual_budget: str


class Milestone(CamelModel):
    id: str
    task: str
    duration: str
    dependencies: List[str] = Field(default_factory=list)
    deliverables: List[str] = Field(default_factory=list)
    priority: Literal["Critical", "High", "Medium", "Low"]
    timeline: str


# ── Verified facts ───────────────────────────────────────────────────────

FactCategory = Literal["Legal Requirement", "Startup Costs", "Recommended Tool"]


class VerifiedFact(CamelModel):
    category: FactCategory
    content: str


# ===================================================================== #
#  Decode boundary for model output                                       #
# ===================================================================== #

_FIRST_INT = re.compile(r"-?\d+")


class PlanRisk(BaseModel):
    """A risk as written by the model. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    category: str = "General"
    risk: str = ""
    probability: str = "Medium"
    impact: str = "Medium"
    priority: int = 99
    mitigation: str = ""
    timeline: str = ""

    @field_validator("priority", mode="before")
    @classmethod
    def priority_as_int(cls, v: Any) -> int:
        if isinstance(v, bool):
            return 99
        if isinstance(v, (int, float)):
            return int(v)
        match = _FIRST_INT.search(str(v or ""))
        return int(match.group()) if match else 99


class PlanProjectionRow(BaseModel):
    """A projection row as written by the model. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    revenue: Number = 0
    costs: Number = 0
    profit: Number = 0
    customers: Number = 0

    @field_validator("revenue", "costs", "profit", "customers", mode="before")
    @classmethod
    def numeric(cls, v: Any) -> Number:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return v
        cleaned = re.sub(r"[^0-9.\-]", "", str(v or ""))
        try:
            value = float(cleaned)
        except ValueError:
            return 0
        return int(value) if value.is_integer() else value

    def normalized(self) -> Dict[str, Any]:
        row = self.model_dump()
        row["customers"] = max(0, row["customers"])
        row["profit"] = row["revenue"] - row["costs"]
        return row


_PROJECTION_TABLES = ("year1Monthly", "year2Quarterly", "year3Quarterly")


def _decode_risks(value: Any) -> Optional[List[Dict[str, Any]]]:
    if not isinstance(value, list):
        return None
    risks = [PlanRisk.model_validate(item) for item in value if isinstance(item, dict)]
    # Stable sort keeps the model's order for equal priorities
    risks.sort(key=lambda r: r.priority)
    decoded = []
    for rank, risk in enumerate(risks, start=1):
        item = risk.model_dump()
        item["priority"] = rank
        decoded.append(item)
    return decoded


def _decode_financials(value: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    decoded = dict(value)
    for table in _PROJECTION_TABLES:
        rows = value.get(table)
        if rows is None:
            continue
        if not isinstance(rows, list):
            decoded.pop(table)
            continue
        decoded[table] = [
            PlanProjectionRow.model_validate(row).normalized()
            for row in rows
            if isinstance(row, dict)
        ]
    return decoded


_SECTION_SHAPES: Dict[str, type] = {
    "executiveSummary": str,
    "marketAnalysis": dict,
    "competitiveAnalysis": dict,
    "operations": dict,
    "marketingStrategy": dict,
    "funding": dict,
    "legal": dict,
    "roadmap": list,
}


def decode_plan_payload(payload: Any) -> Dict[str, Any]:
    """Check model output against the plan schema.

    Sections with the wrong shape are dropped so the completeness validator
    rebuilds them from computed data. Risks come back sorted and ranked from 1;
    projection rows come back with ``profit = revenue - costs``.

    Raises
    ------
    ValueError
        If the payload is not a JSON object at all.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Plan payload must be a JSON object, got {type(payload).__name__}")

    plan = dict(payload)

    for section, expected in _SECTION_SHAPES.items():
        if section in plan and not isinstance(plan[section], expected):
            logger.warning(
                "Dropping section %s: expected %s, got %s",
                section, expected.__name__, type(plan[section]).__name__,
            )
            plan.pop(section)

    if "riskAnalysis" in plan:
        try:
            risks = _decode_risks(plan["riskAnalysis"])
        except ValidationError as exc:
            logger.warning("Dropping riskAnalysis: %s", exc)
            risks = None
        if risks is None:
            plan.pop("riskAnalysis")
        else:
            plan["riskAnalysis"] = risks

    if "financialProjections" in plan:
        try:
            financials = _decode_financials(plan["financialProjections"])
        except ValidationError as exc:
            logger.warning("Dropping financialProjections: %s", exc)
            financials = None
        if financials is None:
            plan.pop("financialProjections")
        else:
            plan["financialProjections"] = financials

    if "sources" in plan and not isinstance(plan["sources"], list):
        plan.pop("sources")

    return plan
