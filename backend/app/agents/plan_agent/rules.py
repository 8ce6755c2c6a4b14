"""Deterministic lookup rules for the Business Plan Generator.

Business-type detection, industry profiles for market sizing, pricing
models, currency symbols and budget / timeline parsing. Nothing in this
module touches the network.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple


# ── Business type detection ──────────────────────────────────────────────

DIGITAL = "DIGITAL"
PHYSICAL_SERVICE = "PHYSICAL/SERVICE"
HYBRID = "HYBRID"

DIGITAL_KEYWORDS: List[str] = [
    "app", "software", "website", "platform", "digital", "online", "saas", "tech",
    "mobile", "web", "ai", "automation", "cloud", "api", "blockchain", "cryptocurrency",
    "social media", "e-commerce", "marketplace", "streaming", "gaming",
]

PHYSICAL_KEYWORDS: List[str] = [
    "restaurant", "store", "shop", "cafe", "gym", "clinic", "salon", "garage",
    "warehouse", "factory", "office", "retail", "manufacturing", "construction",
    "real estate", "transportation", "logistics", "food", "hospitality",
]


def detect_business_type(idea: str, provided: Optional[str] = None) -> str:
    """Return the caller's business type, or infer one from the idea text.

    Keyword hits are counted as substrings, so "mobile coffee cart" scores a
    digital hit for "mobile". Ties with at least one hit on each side are
    HYBRID; no hits at all default to PHYSICAL/SERVICE.
    """
    if provided and provided.strip():
        return provided.strip()

    lower = (idea or "").lower()
    digital_score = sum(1 for kw in DIGITAL_KEYWORDS if kw in lower)
    physical_score = sum(1 for kw in PHYSICAL_KEYWORDS if kw in lower)

    if digital_score > physical_score and digital_score > 0:
        return DIGITAL
    if physical_score > digital_score and physical_score > 0:
        return PHYSICAL_SERVICE
    if digital_score > 0 and physical_score > 0:
        return HYBRID
    return PHYSICAL_SERVICE


# ── Industry profiles (market sizing heuristics) ─────────────────────────

@dataclass(frozen=True)
class IndustryProfile:
    key: str
    tam: str
    sam_multiplier: float
    som_multiplier: float
    cagr: str


def _profiles(year: int) -> Dict[str, IndustryProfile]:
    rows: List[Tuple[str, str, float, float, str]] = [
        ("restaurant", f"$899 billion ({year} global food service)", 0.05, 0.001, "4.1% annually (post-pandemic recovery)"),
        ("food delivery", f"$150 billion ({year} global food delivery)", 0.1, 0.002, "11.5% annually (urban growth driven)"),
        ("e-commerce", f"$6.2 trillion ({year} global e-commerce)", 0.02, 0.0005, "14.7% annually (digital transformation)"),
        ("saas", f"$195 billion ({year} SaaS market)", 0.08, 0.001, "18.4% annually (cloud adoption)"),
        ("consulting", f"$132 billion ({year} management consulting)", 0.03, 0.0008, "5.5% annually (digital advisory growth)"),
        ("fitness", f"$96 billion ({year} global fitness)", 0.04, 0.001, "7.8% annually (wellness trend)"),
        ("retail", f"$27 trillion ({year} global retail)", 0.01, 0.0002, "6.3% annually (omnichannel growth)"),
        ("education", f"$6 trillion ({year} global education)", 0.02, 0.0005, "8.2% annually (edtech adoption)"),
        ("healthcare", f"$4.4 trillion ({year} global healthcare)", 0.015, 0.0003, "5.9% annually (aging population)"),
        ("fintech", f"$179 billion ({year} fintech valuation)", 0.06, 0.0015, "23.5% annually (digital banking)"),
        ("real estate", f"$3.7 trillion ({year} global real estate)", 0.01, 0.0002, "4.2% annually (proptech growth)"),
        ("coffee", f"$45 billion ({year} global coffee market)", 0.08, 0.002, "4.1% annually (specialty coffee growth)"),
        ("cafe", f"$45 billion ({year} global coffee market)", 0.08, 0.002, "4.1% annually (specialty coffee growth)"),
        ("tech", f"$5.2 trillion ({year} global tech market)", 0.02, 0.0005, "12.8% annually (digital transformation)"),
        ("service", f"$2.8 trillion ({year} global services)", 0.025, 0.0006, "6.2% annually (service economy growth)"),
        ("default", f"$150 billion ({year} general business market)", 0.03, 0.0008, "4.5% annually (economic growth average)"),
    ]
    return {key: IndustryProfile(key, tam, sam, som, cagr) for key, tam, sam, som, cagr in rows}


# Broad buckets only win when neither the type nor the idea names an industry
_GENERIC_PROFILE_KEYS = {"tech", "service", "default"}
_TYPE_ALIASES = {"digital": "tech", "hybrid": "default"}


def resolve_industry_profile(business_type: str, idea: str = "") -> IndustryProfile:
    """Pick the industry profile for a business type, using the idea as a hint."""
    profiles = _profiles(date.today().year)
    specific = [p for k, p in profiles.items() if k not in _GENERIC_PROFILE_KEYS]
    bt = (business_type or "").strip().lower()

    if bt:
        for profile in specific:
            if profile.key in bt or bt in profile.key:
                return profile

    hint = (idea or "").lower()
    for profile in specific:
        if profile.key in hint:
            return profile

    for key in ("tech", "service"):
        if key in bt:
            return profiles[key]
    alias = _TYPE_ALIASES.get(bt)
    if alias:
        return profiles[alias]
    return profiles["default"]


# ── Pricing models ───────────────────────────────────────────────────────

PRICING_MODELS: Dict[str, str] = {
    "saas": "Subscription-based",
    "software": "Subscription/License",
    "restaurant": "Pay-per-meal",
    "retail": "Product sales",
    "consulting": "Hourly/Project-based",
    "e-commerce": "Commission/Transaction fees",
    "fitness": "Membership-based",
    "education": "Course/Tuition fees",
}


def get_pricing_model(business_type: str) -> str:
    lower = (business_type or "").lower()
    for key, model in PRICING_MODELS.items():
        if key in lower:
            return model
    return "Custom pricing"


# Relative performance level of an average company, used for benchmark series
INDUSTRY_BENCHMARK_MULTIPLIERS: Dict[str, float] = {
    "restaurant": 0.6,
    "e-commerce": 1.2,
    "saas": 1.8,
    "fintech": 2.1,
    "healthcare": 1.4,
    "retail": 0.8,
    "consulting": 1.1,
}


# ── Currency & budget helpers ────────────────────────────────────────────

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "C$",
    "AUD": "A$",
    "CHF": "CHF ",
    "CNY": "¥",
    "INR": "₹",
    "BRL": "R$",
    "MXN": "$",
    "KRW": "₩",
}


def get_currency_symbol(currency: Optional[str]) -> str:
    return CURRENCY_SYMBOLS.get((currency or "USD").upper(), "$")


_BUDGET_RANGES: Dict[str, str] = {
    "under-5k": "{s}1,000-5,000",
    "5k-10k": "{s}5,000-10,000",
    "10k-25k": "{s}10,000-25,000",
    "25k-50k": "{s}25,000-50,000",
    "50k-100k": "{s}50,000-100,000",
    "100k-250k": "{s}100,000-250,000",
    "250k+": "{s}250,000+",
}


def get_budget_range(budget: Optional[str], currency: Optional[str] = None) -> str:
    """Human-readable range for a budget key such as ``10k-25k``."""
    symbol = get_currency_symbol(currency)
    template = _BUDGET_RANGES.get((budget or "").strip().lower(), "{s}5,000-15,000")
    return template.format(s=symbol)


DEFAULT_BUDGET = 50_000

_AMOUNT_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([km])?", re.IGNORECASE)
_SUFFIX_MULTIPLIERS = {"k": 1_000, "m": 1_000_000}


def parse_budget_amount(budget: Optional[str]) -> int:
    """First amount mentioned in a budget string, in whole currency units.

    ``"$25,000"`` -> 25000, ``"10k-25k"`` -> 10000, ``"250k+"`` -> 250000.
    Empty, zero or unparseable budgets fall back to 50 000.
    """
    if not budget:
        return DEFAULT_BUDGET
    match = _AMOUNT_RE.search(str(budget))
    if not match:
        return DEFAULT_BUDGET
    try:
        value = float(match.group(1).replace(",", ""))
    except ValueError:
        return DEFAULT_BUDGET
    suffix = (match.group(2) or "").lower()
    value *= _SUFFIX_MULTIPLIERS.get(suffix, 1)
    return int(value) or DEFAULT_BUDGET


_TIMELINE_RE = re.compile(
    r"(\d+(?:\.\d+)?)(?:\s*-\s*(\d+(?:\.\d+)?))?\s*(week|month|year)s?",
    re.IGNORECASE,
)
_WEEKS_PER_UNIT = {"week": 1.0, "month": 52 / 12, "year": 52.0}


def parse_timeline_weeks(timeline: Optional[str]) -> Optional[int]:
    """Upper bound of a launch timeline in weeks, or None if unparseable.

    ``"3-6 months"`` -> 26, ``"8 weeks"`` -> 8, ``"1 year"`` -> 52.
    """
    if not timeline:
        return None
    match = _TIMELINE_RE.search(str(timeline))
    if not match:
        return None
    upper = float(match.group(2) or match.group(1))
    weeks = round(upper * _WEEKS_PER_UNIT[match.group(3).lower()])
    return weeks if weeks > 0 else None
