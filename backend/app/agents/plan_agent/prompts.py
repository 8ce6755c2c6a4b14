"""Prompt templates for business plan generation.

Contains:
1. The full system prompt, which embeds every computed stage result and the
   exact ten-section JSON schema
2. The user prompt (idea + parameters)
3. The simplified recovery prompt used when the full response is unusable
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from ...schemas.plan_schema import PersonalizationOptions, PlanRequest
from .rules import get_budget_range, get_currency_symbol
from .schema import (
    Competitor,
    FinancialProjection,
    MarketData,
    MarketingStrategy,
    Milestone,
    Risk,
    SearchResult,
    VerifiedFact,
)

TONE_INSTRUCTIONS = {
    "investor-focused": "Use professional, data-driven language with focus on ROI, scalability, and market opportunity. Include financial metrics and growth projections.",
    "lean-startup": "Use agile, experimental language focusing on MVP, iteration, and customer validation. Emphasize rapid testing and pivoting.",
    "corporate": "Use formal business language with emphasis on strategic alignment, risk management, and operational excellence.",
    "technical": "Use technical language focusing on architecture, implementation details, and technical feasibility.",
}

JARGON_INSTRUCTIONS = {
    "minimal": "Use simple, accessible language. Explain technical terms when used.",
    "moderate": "Use industry-standard terminology but provide context. Balance accessibility with precision.",
    "heavy": "Use industry-specific jargon and technical terminology freely. Assume expert knowledge.",
}

SIMPLIFIED_SYSTEM_PROMPT = "You are a business consultant. Create accurate, actionable business plans."


@dataclass
class PromptContext:
    """Everything the system prompt is composed from."""

    business_type: str
    currency: Optional[str] = None
    personalization: Optional[PersonalizationOptions] = None
    verified_facts: List[VerifiedFact] = field(default_factory=list)
    market_insights: List[SearchResult] = field(default_factory=list)
    market_data: Optional[MarketData] = None
    competitors: List[Competitor] = field(default_factory=list)
    risks: List[Risk] = field(default_factory=list)
    projections: List[FinancialProjection] = field(default_factory=list)
    marketing: Optional[MarketingStrategy] = None
    roadmap: List[Milestone] = field(default_factory=list)


# ── Section renderers ────────────────────────────────────────────────────

def _market_section(md: Optional[MarketData]) -> str:
    if md is None:
        return "Market data being analyzed via live APIs..."
    return (
        "Market Size Analysis:\n"
        f"- TAM (Total Addressable Market): {md.size.tam}\n"
        f"- SAM (Serviceable Addressable Market): {md.size.sam}\n"
        f"- SOM (Serviceable Obtainable Market): {md.size.som}\n"
        f"- CAGR (Compound Annual Growth Rate): {md.size.cagr}\n"
        f"- Data Source: {md.size.source}\n"
        f"- Last Updated: {md.size.last_updated}\n"
        "\nMarket Trends:\n"
        f"- Growth Rate: {md.trends.growth_rate}\n"
        f"- Demand Status: {md.trends.demand}\n"
        f"- Seasonality: {md.trends.seasonality}\n"
        f"- Key Drivers: {', '.join(md.trends.key_drivers)}\n"
        f"- Market Threats: {', '.join(md.trends.threats)}\n"
        f"\nData Sources: {', '.join(md.sources)}"
    )


def _competitor_section(competitors: List[Competitor]) -> str:
    if not competitors:
        return "Competitive analysis in progress..."
    blocks = []
    for c in competitors:
        blocks.append(
            f"Competitor: {c.name}\n"
            f"- Description: {c.description}\n"
            f"- Market Share: {c.market_share or 'Unknown'}\n"
            f"- Funding Status: {c.funding or 'Unknown'}\n"
            f"- Strengths: {', '.join(c.strengths)}\n"
            f"- Weaknesses: {', '.join(c.weaknesses)}\n"
            f"- Pricing Model: {c.pricing.model} ({c.pricing.range})\n"
            f"- Key Features: {', '.join(c.features)}\n"
            f"- Differentiators: {', '.join(c.differentiators)}"
        )
    return "\n\n".join(blocks)


def _risk_section(risks: List[Risk]) -> str:
    if not risks:
        return "Risk assessment pending..."
    return "\n\n".join(
        f"{r.priority}. {r.category} Risk: {r.description}\n"
        f"- Probability: {r.probability} | Impact: {r.impact}\n"
        f"- Mitigation: {r.mitigation}\n"
        f"- Timeline: {r.timeline}"
        for r in risks
    )


def _financial_section(projections: List[FinancialProjection]) -> str:
    if not projections:
        return "Financial modeling in progress..."
    return "\n".join(
        f"{p.period}: Revenue ${p.revenue:,}, Costs ${p.costs:,}, Profit ${p.profit:,}, "
        f"Customers {p.customers:,}\nAssumptions: {' | '.join(p.assumptions)}"
        for p in projections[:8]
    )


def _marketing_section(marketing: Optional[MarketingStrategy]) -> str:
    if marketing is None or not marketing.channels:
        return "Marketing strategy being developed..."
    lines = [f"Total Budget: {marketing.total_budget} ({marketing.annual_budget})"]
    for ch in marketing.channels:
        lines.append(
            f"\n{ch.channel}:\n"
            f"- Target Audience: {ch.audience}\n"
            f"- Budget: {ch.budget}\n"
            f"- Expected CAC: {ch.expected_cac}\n"
            f"- Expected ROI: {ch.expected_roi}\n"
            f"- Implementation: {'; '.join(ch.implementation[:2])}"
        )
    return "\n".join(lines)


def _roadmap_section(roadmap: List[Milestone]) -> str:
    if not roadmap:
        return "Project timeline being optimized..."
    return "\n\n".join(
        f"{m.task} ({m.priority} Priority)\n"
        f"- Duration: {m.duration}\n"
        f"- Timeline: {m.timeline}\n"
        f"- Dependencies: {', '.join(m.dependencies) if m.dependencies else 'None'}\n"
        f"- Key Deliverables: {', '.join(m.deliverables[:2])}"
        for m in roadmap
    )


def _facts_section(facts: List[VerifiedFact]) -> str:
    if not facts:
        return "Industry data verification in progress..."
    return "\n".join(f"• {f.content} ({f.category})" for f in facts[:10])


def _insights_section(insights: List[SearchResult]) -> str:
    if not insights:
        return "Market research compilation in progress..."
    return "\n".join(f"• {i.title}: {i.snippet}" for i in insights[:8])


# ── Output schema ────────────────────────────────────────────────────────

PLAN_OUTPUT_SCHEMA = """\
{
  "executiveSummary": "Clear value proposition with market opportunity and funding needs",
  "marketAnalysis": {
    "marketSize": {"tam": "...", "sam": "...", "som": "...", "cagr": "...", "sources": ["Data source URLs"]},
    "trends": "Growth trends and market drivers",
    "customers": "Detailed customer segments with demographics",
    "economicContext": "Economic indicators and business environment",
    "demandAnalysis": "Demand patterns and seasonality"
  },
  "competitiveAnalysis": {
    "competitors": [
      {"name": "...", "marketShare": "...", "funding": "...", "strengths": ["..."], "weaknesses": ["..."],
       "pricing": "Pricing model and range", "features": ["..."], "differentiators": ["..."]}
    ],
    "positioningMap": "How you differentiate from competitors",
    "competitiveAdvantages": "Your unique advantages",
    "marketGaps": "Opportunities competitors are missing"
  },
  "riskAnalysis": [
    {"category": "...", "risk": "Risk description", "probability": "Low/Medium/High", "impact": "Low/Medium/High",
     "priority": 1, "mitigation": "...", "timeline": "...", "monitoring": "How to track this risk"}
  ],
  "financialProjections": {
    "year1Monthly": [{"month": 1, "revenue": 0, "costs": 5000, "profit": -5000, "customers": 0, "assumptions": ["..."]}],
    "year2Quarterly": [{"quarter": "Q1", "revenue": 50000, "costs": 30000, "profit": 20000, "customers": 500, "assumptions": ["..."]}],
    "year3Quarterly": ["Same structure as year2Quarterly"],
    "unitEconomics": {"cac": "...", "ltv": "...", "arpu": "...", "churnRate": "..."},
    "assumptions": ["Key financial assumptions"],
    "breakEven": "Break-even timeline and metrics",
    "cashFlow": "Cash flow analysis and runway"
  },
  "marketingStrategy": {
    "channels": [{"channel": "...", "audience": "...", "budget": "...", "expectedCAC": "...", "expectedROI": "...",
                  "timeline": "...", "metrics": "..."}],
    "customerFunnel": "...", "budgetAllocation": "...", "conversionMetrics": "...", "retentionStrategy": "..."
  },
  "operations": {"technology": "...", "team": "...", "scalability": "...", "qualityControl": "...", "customerSupport": "..."},
  "roadmap": [
    {"id": "milestone-id", "milestone": "...", "duration": "...", "timeline": "...", "dependencies": ["..."],
     "deliverables": ["..."], "resources": "...", "successMetrics": "..."}
  ],
  "funding": {"requirements": "...", "useOfFunds": "...", "investorTargeting": "...", "timeline": "...", "exitStrategy": "..."},
  "legal": {"businessEntity": "...", "intellectualProperty": "...", "compliance": "...", "contracts": "...", "insurance": "..."},
  "sources": ["All URLs and data sources referenced with dates"],
  "lastUpdated": "__LAST_UPDATED__",
  "comprehensivenessScore": 10
}"""

_SECTION_GUIDE = """\
1. EXECUTIVE SUMMARY: value proposition, market opportunity, financial highlights, funding needs
2. MARKET ANALYSIS WITH SOURCES: TAM/SAM/SOM, growth trends and CAGR, customer segments, economic context
3. COMPETITIVE ANALYSIS MATRIX: features, pricing, strengths, weaknesses, positioning, market gaps
4. RISK ASSESSMENT: ranked by probability x impact, mitigation with timelines, monitoring
5. FINANCIAL PROJECTIONS: monthly for Year 1, quarterly for Years 2-3, unit economics, break-even, cash flow
6. MARKETING & CUSTOMER ACQUISITION: channel budgets, funnel, CAC and LTV, KPIs
7. OPERATIONS & IMPLEMENTATION: technology, team and hiring, scalability, quality, support
8. ROADMAP & MILESTONES: dependencies, critical path, success metrics
9. FUNDING STRATEGY: requirements and stages, investor targeting, use of funds, exit
10. LEGAL & COMPLIANCE: regulatory requirements with costs, IP, data privacy, insurance"""


def compose_system_prompt(ctx: PromptContext) -> str:
    """Build the full generation prompt from all computed stage results."""
    p = ctx.personalization or PersonalizationOptions()
    currency = ctx.currency or "USD"
    schema = PLAN_OUTPUT_SCHEMA.replace("__LAST_UPDATED__", date.today().isoformat())

    return f"""\
You are an expert business consultant creating a comprehensive business plan. {TONE_INSTRUCTIONS[p.tone]} {JARGON_INSTRUCTIONS[p.jargon_level]}

IMPORTANT: You MUST create a complete business plan with ALL 10 sections listed below. Use the provided live data and analysis. Do not skip any sections.

CONTEXT:
- Business Type: {ctx.business_type}
- Target Audience: {p.audience}
- Currency: {currency}

LIVE MARKET DATA:
{_market_section(ctx.market_data)}

COMPETITIVE ANALYSIS:
{_competitor_section(ctx.competitors)}

RISK ANALYSIS (Prioritized):
{_risk_section(ctx.risks)}

FINANCIAL PROJECTIONS:
{_financial_section(ctx.projections)}

MARKETING STRATEGY:
{_marketing_section(ctx.marketing)}

ACTION ROADMAP:
{_roadmap_section(ctx.roadmap)}

VERIFIED INDUSTRY DATA:
{_facts_section(ctx.verified_facts)}

SUPPLEMENTAL MARKET RESEARCH:
{_insights_section(ctx.market_insights)}

INSTRUCTIONS:
Create a comprehensive business plan with the following structure:
{_SECTION_GUIDE}

Format as JSON with the following structure (ALL SECTIONS REQUIRED):
{schema}

RULES:
- Do not invent placeholder companies or generic market figures; base them on the data above.
- If real data is unavailable, write "Research required" instead of inventing it.
- Include actual data sources and URLs whenever possible.
- Return ONLY the JSON object.

Ensure all financial figures use {currency} currency and are realistic for the specified budget and market."""


def compose_user_prompt(request: PlanRequest) -> str:
    lines = [f"Business idea: {(request.idea or '').strip()}"]
    if request.location:
        lines.append(f"Location: {request.location}")
    if request.budget:
        lines.append(f"Budget: {request.budget}")
    if request.timeline:
        lines.append(f"Timeline: {request.timeline}")
    if request.business_type:
        lines.append(f"Business type: {request.business_type}")
    if request.currency:
        lines.append(f"Currency: {request.currency}")
    return "\n".join(lines)


def compose_simplified_prompt(
    idea: str,
    business_type: str,
    location: Optional[str] = None,
    budget: Optional[str] = None,
    timeline: Optional[str] = None,
    currency: Optional[str] = None,
) -> str:
    """Shorter recovery prompt with a smaller output schema."""
    s = get_currency_symbol(currency)
    budget_range = get_budget_range(budget, currency) if budget else f"{s}5,000-15,000"
    launch = timeline or "3-6 months"
    where = f" in {location}" if location else ""

    return f"""\
You are a business consultant. Create a comprehensive business plan JSON for: "{idea}"{where}.

Budget: {budget_range}
Timeline: {launch}
Location: {location or 'General'}

CRITICAL: Return ONLY a complete JSON structure with relevant, actionable content:

{{
  "summary": "2-3 sentence business overview explaining market opportunity and unique value",
  "businessScope": {{
    "targetCustomers": "Specific demographic with pain points (not 'everyone')",
    "competitors": ["Name 2-3 actual competitors and your advantage"],
    "growthPotential": "What makes this scalable and timing factors",
    "marketReadiness": "Why this solution is needed now"
  }},
  "feasibility": {{
    "marketType": "{business_type}",
    "difficultyLevel": "Easy|Moderate|Complex",
    "estimatedTimeToLaunch": "{launch}",
    "estimatedStartupCost": "{budget_range}"
  }},
  "actionPlan": [
    {{
      "stepName": "Market Research & Validation",
      "phase": "Market Research",
      "description": "Specific research tasks and validation methods for this business idea",
      "recommendedTools": ["Google Trends", "SurveyMonkey"],
      "estimatedTime": "2-3 weeks",
      "estimatedCost": "{s}200-500",
      "responsibleRole": "Founder",
      "deliverables": ["Market analysis report", "Customer persona document"]
    }},
    {{
      "stepName": "Business Setup & Legal",
      "phase": "Development",
      "description": "Register business, get necessary permits, set up legal structure",
      "recommendedTools": ["LegalZoom", "QuickBooks"],
      "estimatedTime": "1-2 weeks",
      "estimatedCost": "{s}300-800",
      "responsibleRole": "Founder",
      "deliverables": ["Business registration", "Bank account setup"]
    }},
    {{
      "stepName": "Product/Service Development",
      "phase": "Development",
      "description": "Build MVP or initial service offering based on market research",
      "recommendedTools": ["Industry-specific tools"],
      "estimatedTime": "4-8 weeks",
      "estimatedCost": "{s}1,000-3,000",
      "responsibleRole": "Founder/Developer",
      "deliverables": ["Working MVP/service", "Quality testing complete"]
    }},
    {{
      "stepName": "Marketing Launch",
      "phase": "Launch",
      "description": "Execute go-to-market strategy with targeted customer acquisition",
      "recommendedTools": ["Google Ads", "Social Media"],
      "estimatedTime": "2-4 weeks",
      "estimatedCost": "{s}500-1,500",
      "responsibleRole": "Founder/Marketer",
      "deliverables": ["First 10 customers", "Marketing metrics dashboard"]
    }},
    {{
      "stepName": "Scale & Optimize",
      "phase": "Growth",
      "description": "Analyze performance, optimize processes, plan growth initiatives",
      "recommendedTools": ["Analytics tools", "CRM system"],
      "estimatedTime": "Ongoing",
      "estimatedCost": "{s}300-800/month",
      "responsibleRole": "Founder",
      "deliverables": ["Growth metrics", "Optimization plan"]
    }}
  ],
  "marketingPlan": {{
    "targetAudience": {{
      "demographics": "Age, income, location, job titles specific to this business",
      "behavior": "Where they spend time, how they make decisions"
    }},
    "channels": ["Specific marketing channels relevant to target audience"],
    "budget": "{s}200-800/month"
  }},
  "resources": [
    {{
      "name": "Real industry-specific resource",
      "description": "Government database, industry report or professional association relevant to this business",
      "link": "https://...",
      "type": "SUGGESTED"
    }}
  ]
}}

Make the action plan HIGHLY RELEVANT to "{idea}" - avoid generic steps. Include specific tools, realistic costs, and actionable deliverables."""
