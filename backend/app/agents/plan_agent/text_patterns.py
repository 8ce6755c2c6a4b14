"""Named regular expressions used to mine search snippets.

Competitor-name patterns feed the competitor aggregator; the metric
patterns feed market sizing and competitor intelligence.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Pattern

# ── Competitor name extraction ───────────────────────────────────────────

COMPANY_SUFFIX = re.compile(
    r"(\w+(?:\s+\w+){0,2})\s+(?:Inc|Corp|LLC|Ltd|Company|Technologies|Software|Systems|Solutions|Group|Enterprises)",
    re.IGNORECASE,
)
LEADING_COMPANY = re.compile(
    r"(?:top|leading|best|major)\s+(?:\w+\s+)*?(\w+(?:\s+\w+){0,2})\s+(?:in|for|company|service)",
    re.IGNORECASE,
)
FOUNDED_BY = re.compile(
    r"(?:founded|launched|created|started)\s+(?:by\s+)?(\w+(?:\s+\w+){0,2})",
    re.IGNORECASE,
)
VERSUS_MENTION = re.compile(
    r"(?:vs|versus|compared to|alternative to)\s+(\w+(?:\s+\w+){0,2})",
    re.IGNORECASE,
)
FUNDING_MENTION = re.compile(
    r"(\w+(?:\s+\w+){0,2})\s+(?:raised|secured|received)\s+\$\d+",
    re.IGNORECASE,
)

COMPETITOR_NAME_PATTERNS: Dict[str, Pattern[str]] = {
    "company_suffix": COMPANY_SUFFIX,
    "leading_company": LEADING_COMPANY,
    "founded_by": FOUNDED_BY,
    "versus_mention": VERSUS_MENTION,
    "funding_mention": FUNDING_MENTION,
}

_INVALID_NAME_PATTERNS = [
    re.compile(r"^\d+$"),
    re.compile(r"^(the|and|or|of|in|to|for|with|by)$", re.IGNORECASE),
    re.compile(r"^(market|industry|business|company|service|solution)$", re.IGNORECASE),
]

_GENERIC_TERMS = [
    "market", "industry", "business", "service", "solution", "platform",
    "research", "report", "analysis", "data", "study", "survey",
]


def is_valid_company_name(name: str) -> bool:
    """Reject bare numbers, stop words and single generic nouns."""
    return not any(p.search(name) for p in _INVALID_NAME_PATTERNS)


def is_generic_term(name: str, business_type: str) -> bool:
    """True when the candidate contains a generic word or the business type itself."""
    lower = name.lower()
    terms = _GENERIC_TERMS + ([business_type.lower()] if business_type else [])
    return any(term in lower for term in terms)


def extract_candidate_names(texts: Iterable[str]) -> List[str]:
    """Run every competitor pattern over ``texts``; keep first-seen order."""
    seen: Dict[str, None] = {}
    for text in texts:
        for pattern in COMPETITOR_NAME_PATTERNS.values():
            for match in pattern.finditer(text):
                name = (match.group(1) or "").strip()
                if 2 < len(name) < 50 and is_valid_company_name(name):
                    seen.setdefault(name, None)
    return list(seen)


# ── Market sizing ────────────────────────────────────────────────────────

MARKET_SIZE = re.compile(r"(\$[\d.,]+\s*(?:billion|million|trillion))", re.IGNORECASE)
GROWTH_CAGR = re.compile(r"(\d+(?:\.\d+)?%?\s*(?:cagr|growth|annually))", re.IGNORECASE)


# ── Competitor intelligence ──────────────────────────────────────────────

REVENUE_FIGURE = re.compile(r"(\$\d+(?:\.\d+)?\s*(?:million|billion|m|b))", re.IGNORECASE)
MARKET_SHARE = re.compile(r"(\d+(?:\.\d+)?%\s*(?:market share|share))", re.IGNORECASE)
GROWTH_PERCENT = re.compile(r"(?:growth|grew|increased).*?(\d+(?:\.\d+)?%)", re.IGNORECASE)

AVERAGE_REVENUE = re.compile(r"average.*?(\$\d+(?:\.\d+)?\s*(?:million|billion|k))", re.IGNORECASE)
INDUSTRY_GROWTH = re.compile(r"(?:growth|growing).*?(\d+(?:\.\d+)?%)", re.IGNORECASE)
INDUSTRY_MARKET_SIZE = re.compile(r"market.*?(\$\d+(?:\.\d+)?\s*(?:trillion|billion|million))", re.IGNORECASE)


def first_match(pattern: Pattern[str], texts: Iterable[str]) -> Optional[str]:
    """Group 1 of the first text that matches ``pattern``."""
    for text in texts:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def company_share_pattern(name: str) -> Pattern[str]:
    escaped = re.escape(name.lower())
    return re.compile(
        escaped + r"[^.]*?(\d+(?:\.\d+)?%[^.]*?(?:market share|share))",
        re.IGNORECASE,
    )


def company_funding_pattern(name: str) -> Pattern[str]:
    escaped = re.escape(name.lower())
    return re.compile(
        escaped + r"[^.]*?(?:raised|secured|funding)[^.]*?\$(\d+(?:\.\d+)?\s*(?:million|billion))",
        re.IGNORECASE,
    )
