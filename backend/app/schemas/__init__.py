# Schemas package
from .plan_schema import ErrorResponse, PersonalizationOptions, PlanRequest

__all__ = [
    "ErrorResponse",
    "PersonalizationOptions",
    "PlanRequest",
]
