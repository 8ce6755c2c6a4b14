"""Business Plan Generator — pipeline orchestrator.

Entry point: PlanGenerator.generate(request) -> dict

Flow:
  1. Detect business type
  2. Verified facts lookup (SQL store)
  3. Concurrently: market data, competitive analysis, supplemental searches
  4. Competitor intelligence for the top three competitors
  5. Deterministic generators (risks, projections, marketing, roadmap)
  6. Compose prompts -> LLM gateway
  7. Extract JSON (simplified recovery generation on failure)
  8. Decode -> completeness validation -> verified data injection

Identical requests within the cache TTL share one run of the pipeline.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from ...schemas.plan_schema import PlanRequest
from ...services.llm_gateway import LLMGateway, default_gateway, get_plan_max_tokens
from ...services.request_cache import PlanCache, RequestCache, build_cache_key
from .competitors import fetch_competitive_analysis, fetch_competitor_intelligence, generate_fallback_competitors
from .generators import (
    generate_action_roadmap,
    generate_financial_projections,
    generate_marketing_strategy,
    generate_risk_analysis,
)
from .json_repair import JSONExtractionError, extract_plan_json
from .market_data import fetch_market_data, heuristic_market_data
from .prompts import (
    SIMPLIFIED_SYSTEM_PROMPT,
    PromptContext,
    compose_simplified_prompt,
    compose_system_prompt,
    compose_user_prompt,
)
from .rules import detect_business_type
from .schema import SearchResult, decode_plan_payload
from .validator import PlanContext, validate_and_enhance_plan
from .verified_facts import VerifiedFactsStore, get_verified_facts, inject_verified_data

MAX_SUPPLEMENTAL_RESULTS = 12
PLAN_TEMPERATURE = 0.7
SIMPLIFIED_TEMPERATURE = 0.5
SIMPLIFIED_MAX_TOKENS = 4000


class MissingIdeaError(ValueError):
    """Raised when the request carries no business idea."""


class PlanGenerationError(RuntimeError):
    """Raised when no usable plan could be produced from the model output."""


def supplemental_queries(idea: str, business_type: str, location: Optional[str]) -> List[str]:
    year = date.today().year
    where = location or ""
    return [
        f"{idea} market size {year} TAM SAM",
        f"{idea} competitors analysis pricing features",
        f"{idea} industry trends growth forecast {year}",
        f"{business_type.lower()} business startup requirements {where}".strip(),
        f"{business_type} funding investments venture capital trends",
        f"{business_type} regulatory compliance requirements {where}".strip(),
    ]


@dataclass
class PlanGenerator:
    """Runs the full generation pipeline. Collaborators are injected so tests
    can substitute stubs; ``None`` search / provider / store degrade to
    heuristics and empty verified data."""

    search: Any = None
    market_provider: Any = None
    gateway: LLMGateway = field(default_factory=default_gateway)
    facts_store: Optional[VerifiedFactsStore] = None
    cache: PlanCache = field(default_factory=RequestCache)

    async def generate(self, request: PlanRequest) -> Dict[str, Any]:
        """Generate (or join an in-flight generation of) a plan.

        Raises
        ------
        MissingIdeaError
            If the idea is missing or blank.
        LLMRateLimitError, LLMUnavailableError
            If every LLM provider failed.
        PlanGenerationError
            If the model output could not be turned into a plan.
        """
        if not request.has_idea():
            raise MissingIdeaError("Business idea is required")
        key = build_cache_key(request)
        return await self.cache.get_or_compute(key, lambda: self._process(request))

    async def _supplemental_research(
        self, idea: str, business_type: str, location: Optional[str]
    ) -> List[SearchResult]:
        if self.search is None:
            return []
        batches = await asyncio.gather(
            *(self.search.search(q) for q in supplemental_queries(idea, business_type, location)),
            return_exceptions=True,
        )
        flat: List[SearchResult] = []
        for batch in batches:
            if isinstance(batch, BaseException):
                print(f"⚠️  [PLAN] Supplemental search failed: {batch}")
                continue
            flat.extend(batch)
        return flat[:MAX_SUPPLEMENTAL_RESULTS]

    async def _simplified_plan(self, request: PlanRequest, business_type: str) -> Dict[str, Any]:
        print("🔄 [PLAN] Requesting simplified plan")
        prompt = compose_simplified_prompt(
            request.idea.strip(),
            business_type,
            location=request.location,
            budget=request.budget,
            timeline=request.timeline,
            currency=request.currency,
        )
        raw = await self.gateway.complete(
            SIMPLIFIED_SYSTEM_PROMPT,
            prompt,
            max_tokens=SIMPLIFIED_MAX_TOKENS,
            temperature=SIMPLIFIED_TEMPERATURE,
        )
        try:
            return extract_plan_json(raw)
        except JSONExtractionError as exc:
            raise PlanGenerationError(
                "The AI response was incomplete and fallback failed. Please try again with a "
                "simpler business idea or try again later."
            ) from exc

    async def _process(self, request: PlanRequest) -> Dict[str, Any]:
        idea = request.idea.strip()
        location = request.location

        # ── 1-2. Business type + verified facts ──
        business_type = detect_business_type(idea, request.business_type)
        print(f"🚀 [PLAN] Generating plan for {idea[:60]!r} ({business_type})")
        facts = await get_verified_facts(business_type, location, self.facts_store)

        # ── 3. Aggregation fan-out ──
        market, competitors, insights = await asyncio.gather(
            fetch_market_data(
                business_type, location, idea=idea, provider=self.market_provider, search=self.search
            ),
            fetch_competitive_analysis(
                business_type, idea, location, provider=self.market_provider, search=self.search
            ),
            self._supplemental_research(idea, business_type, location),
            return_exceptions=True,
        )
        if isinstance(market, BaseException):
            print(f"❌ [PLAN] Market data failed: {market}")
            market = heuristic_market_data(business_type, idea)
        if isinstance(competitors, BaseException):
            print(f"❌ [PLAN] Competitive analysis failed: {competitors}")
            competitors = generate_fallback_competitors(business_type)
        if isinstance(insights, BaseException):
            print(f"❌ [PLAN] Supplemental research failed: {insights}")
            insights = []

        # ── 4. Competitor intelligence ──
        competitor_data = await fetch_competitor_intelligence(
            business_type, [c.name for c in competitors], self.search
        )

        # ── 5. Deterministic generators ──
        risks = generate_risk_analysis(business_type, idea)
        projections = generate_financial_projections(business_type, request.budget, request.timeline)
        marketing = generate_marketing_strategy(
            business_type, request.budget, request.timeline, currency=request.currency
        )
        roadmap = generate_action_roadmap(business_type, request.timeline)

        # ── 6. Prompt + LLM ──
        system_prompt = compose_system_prompt(PromptContext(
            business_type=business_type,
            currency=request.currency,
            personalization=request.personalization,
            verified_facts=facts,
            market_insights=insights,
            market_data=market,
            competitors=competitors,
            risks=risks,
            projections=projections,
            marketing=marketing,
            roadmap=roadmap,
        ))
        print(f"📝 [PLAN] System prompt: {len(system_prompt)} chars")
        raw = await self.gateway.complete(
            system_prompt,
            compose_user_prompt(request),
            max_tokens=get_plan_max_tokens(),
            temperature=PLAN_TEMPERATURE,
        )

        # ── 7. Extraction ──
        try:
            payload = extract_plan_json(raw)
        except JSONExtractionError as exc:
            print(f"⚠️  [PLAN] Could not extract plan JSON: {exc}")
            payload = await self._simplified_plan(request, business_type)

        # ── 8. Decode, validate, inject ──
        try:
            plan = decode_plan_payload(payload)
        except ValueError as exc:
            raise PlanGenerationError("Failed to process the AI response. Please try again.") from exc

        plan = validate_and_enhance_plan(plan, PlanContext(
            business_type=business_type,
            idea=idea,
            market_data=market,
            competitors=competitors,
            risks=risks,
            projections=projections,
            marketing=marketing,
            roadmap=roadmap,
            budget=request.budget,
            currency=request.currency,
        ))

        plan = inject_verified_data(plan, facts)
        if competitor_data:
            plan["competitorData"] = competitor_data
        plan["businessType"] = business_type

        print(f"✅ [PLAN] Plan ready (score {plan.get('comprehensivenessScore')}/10)")
        return plan
