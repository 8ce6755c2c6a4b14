"""Business plan routes.

Endpoints:
  POST /generatePlan — Generate a full business plan for an idea
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..agents.plan_agent.agent import MissingIdeaError, PlanGenerator
from ..agents.plan_agent.verified_facts import VerifiedFactsStore
from ..database import SessionLocal
from ..schemas.plan_schema import ErrorResponse, PlanRequest
from ..services.llm_gateway import LLMRateLimitError, default_gateway
from ..services.market_data_provider import MarketDataProvider
from ..services.search_client import SearchClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Business Plan"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

_generator: Optional[PlanGenerator] = None


def get_plan_generator() -> PlanGenerator:
    """Process-wide generator, built on first use so the request cache is shared."""
    global _generator
    if _generator is None:
        _generator = PlanGenerator(
            search=SearchClient(),
            market_provider=MarketDataProvider(),
            gateway=default_gateway(),
            facts_store=VerifiedFactsStore(SessionLocal),
        )
    return _generator


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=NO_CACHE_HEADERS,
    )


@router.post(
    "/generatePlan",
    summary="Generate Business Plan",
    response_description="Ten-section business plan document",
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_plan(
    payload: PlanRequest,
    generator: PlanGenerator = Depends(get_plan_generator),
) -> JSONResponse:
    """Generate a business plan.

    1. Rejects a missing or blank idea with 400
    2. Runs (or joins) the generation pipeline
    3. Maps rate limiting to 429 and every other failure to 500
    """
    if not payload.has_idea():
        return _error(status.HTTP_400_BAD_REQUEST, "Business idea is required")

    print(f"➡️  [PLAN] /generatePlan START ({payload.idea.strip()[:60]!r})")
    try:
        plan = await generator.generate(payload)
        response = JSONResponse(content=plan, headers=NO_CACHE_HEADERS)
    except MissingIdeaError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except LLMRateLimitError as exc:
        logger.warning("Plan generation rate limited: %s", exc)
        return _error(status.HTTP_429_TOO_MANY_REQUESTS, str(exc))
    except Exception as exc:
        logger.exception("Plan generation failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal server error")

    print("✅ [PLAN] /generatePlan DONE")
    return response
