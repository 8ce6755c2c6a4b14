"""Verified industry facts from the SQL store.

Entry points:
  get_verified_facts(business_type, location, store) -> List[VerifiedFact]
  inject_verified_data(plan, facts) -> dict

Facts are only ever read from the database; nothing here is generated. Any
store failure degrades to an empty list.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models.industry import CommonTool, Industry, LegalRequirement, StartupCost
from .schema import VerifiedFact

logger = logging.getLogger(__name__)

MAX_LEGAL_REQUIREMENTS = 5
MAX_STARTUP_COSTS = 2
MAX_TOOLS = 5

_LEGAL_COST = re.compile(r"\(Est\. cost: ([^)]+)\)")
_TRAILING_PAREN = re.compile(r"\(([^)]+)\)$")


def business_type_variants(business_type: str) -> List[str]:
    """Spellings tried against ``industries.type``, in lookup order."""
    variants = [
        business_type,
        business_type.upper(),
        business_type.lower(),
        business_type.replace("/", "_", 1),
        business_type.replace("PHYSICAL/SERVICE", "SERVICE"),
        business_type.replace("PHYSICAL/SERVICE", "PHYSICAL"),
    ]
    return list(dict.fromkeys(variants))


def _location_filter(column, location: Optional[str]):
    return or_(column.ilike(f"%{location}%"), column.is_(None))


class VerifiedFactsStore:
    """Synchronous reader over the industries / requirements / costs / tools tables."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _find_industry(self, db: Session, business_type: str) -> Optional[Industry]:
        for variant in business_type_variants(business_type):
            industry = db.query(Industry).filter(Industry.type == variant).first()
            if industry is not None:
                return industry
        return None

    def lookup(self, business_type: str, location: Optional[str] = None) -> List[VerifiedFact]:
        db = self._session_factory()
        try:
            industry = self._find_industry(db, business_type)
            if industry is None:
                logger.info("No verified industry for business type %s", business_type)
                return []

            legal_q = db.query(LegalRequirement).filter(LegalRequirement.industry_id == industry.id)
            costs_q = db.query(StartupCost).filter(StartupCost.industry_id == industry.id)
            if location:
                legal_q = legal_q.filter(_location_filter(LegalRequirement.location, location))
                costs_q = costs_q.filter(_location_filter(StartupCost.location, location))
            legal = legal_q.order_by(LegalRequirement.id).limit(MAX_LEGAL_REQUIREMENTS).all()
            costs = costs_q.order_by(StartupCost.id).limit(MAX_STARTUP_COSTS).all()
            tools = (
                db.query(CommonTool)
                .filter(CommonTool.industry_id == industry.id)
                .order_by(CommonTool.id)
                .limit(MAX_TOOLS)
                .all()
            )

            facts: List[VerifiedFact] = []
            for req in legal:
                facts.append(VerifiedFact(
                    category="Legal Requirement",
                    content=f"{req.requirement} - {req.description} (Est. cost: {req.cost_estimate or 'Varies'})",
                ))
            for cost in costs:
                facts.append(VerifiedFact(
                    category="Startup Costs",
                    content=f"{cost.description}: ${cost.cost_range_min:,} - ${cost.cost_range_max:,}",
                ))
            for tool in tools:
                facts.append(VerifiedFact(
                    category="Recommended Tool",
                    content=f"{tool.name}: {tool.description} ({tool.cost or 'Varies'})",
                ))
            return facts
        finally:
            db.close()


async def get_verified_facts(
    business_type: str,
    location: Optional[str],
    store: Optional[VerifiedFactsStore],
) -> List[VerifiedFact]:
    """Verified facts for the business type, or [] when none / on failure."""
    if store is None:
        return []
    try:
        facts = await asyncio.to_thread(store.lookup, business_type, location)
    except Exception as exc:
        logger.error("Verified facts lookup failed for %s: %s", business_type, exc)
        return []
    print(f"🗄️  [PLAN] {len(facts)} verified facts for {business_type}")
    return facts


# ── Injection ────────────────────────────────────────────────────────────

def _legal_entry(content: str) -> Dict[str, Any]:
    requirement, _, description = content.partition(" - ")
    match = _LEGAL_COST.search(description)
    return {
        "requirement": requirement.strip(),
        "description": _LEGAL_COST.sub("", description).strip(),
        "cost": match.group(1) if match else "Varies",
        "source": "Verified Database",
        "reliability": "VERIFIED",
        "urgency": "Pre-launch",
    }


def _cost_entry(content: str) -> Dict[str, Any]:
    description, _, cost_range = content.rpartition(": ")
    return {
        "description": description.strip() or content,
        "range": cost_range.strip(),
        "source": "Verified Database",
        "reliability": "VERIFIED",
    }


def _tool_entry(content: str) -> Dict[str, Any]:
    name, _, remaining = content.partition(":")
    remaining = remaining.strip()
    match = _TRAILING_PAREN.search(remaining)
    return {
        "name": name.strip(),
        "description": _TRAILING_PAREN.sub("", remaining).strip(),
        "cost": match.group(1) if match else "Varies",
        "alternatives": ["See database for alternatives"],
        "link": "#",
    }


def inject_verified_data(plan: Dict[str, Any], facts: List[VerifiedFact]) -> Dict[str, Any]:
    """Return a copy of ``plan`` with legalRequirements, startupCosts and
    recommendedTools built from ``facts`` only (empty lists when none)."""
    result = dict(plan)
    try:
        result["legalRequirements"] = [_legal_entry(f.content) for f in facts if f.category == "Legal Requirement"]
        result["startupCosts"] = [_cost_entry(f.content) for f in facts if f.category == "Startup Costs"]
        result["recommendedTools"] = [_tool_entry(f.content) for f in facts if f.category == "Recommended Tool"]
    except Exception as exc:
        logger.error("Failed to inject verified data: %s", exc)
        result["legalRequirements"] = []
        result["startupCosts"] = []
        result["recommendedTools"] = []
    return result
