"""Pydantic schemas for the /generatePlan request."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PersonalizationOptions(BaseModel):
    """Writing style options forwarded to the prompt composer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tone: Literal["investor-focused", "lean-startup", "corporate", "technical"] = "investor-focused"
    jargon_level: Literal["minimal", "moderate", "heavy"] = Field(
        default="moderate", alias="jargonLevel"
    )
    audience: Literal["investors", "partners", "internal", "customers"] = "investors"


class PlanRequest(BaseModel):
    """Body of POST /generatePlan.

    ``idea`` is optional at the schema level so that a missing idea is
    reported as a 400 with an actionable message instead of a 422.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    idea: Optional[str] = Field(default=None, description="Free-text business idea")
    location: Optional[str] = Field(default=None, description="City / region / country")
    budget: Optional[str] = Field(default=None, description="Budget amount or range key, e.g. 10k-25k")
    timeline: Optional[str] = Field(default=None, description="Launch timeline, e.g. 3-6 months")
    business_type: Optional[str] = Field(
        default=None,
        alias="businessType",
        description="DIGITAL, PHYSICAL/SERVICE or HYBRID. Auto-detected when omitted.",
    )
    currency: Optional[str] = Field(default=None, description="ISO currency code")
    personalization: Optional[PersonalizationOptions] = None

    @field_validator("budget", "timeline", mode="before")
    @classmethod
    def numbers_as_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def has_idea(self) -> bool:
        return bool(self.idea and self.idea.strip())

    def cache_fields(self) -> dict:
        """Normalized field set used to derive the request cache key."""
        return {
            "idea": (self.idea or "").strip(),
            "location": self.location,
            "budget": self.budget,
            "timeline": self.timeline,
            "providedBusinessType": self.business_type,
            "currency": self.currency,
            "personalization": (
                self.personalization.model_dump(by_alias=True)
                if self.personalization
                else None
            ),
        }


class ErrorResponse(BaseModel):
    """Error body returned by every failing /generatePlan call."""

    error: str
