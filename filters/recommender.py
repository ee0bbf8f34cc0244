"""
Recommendation engine — scores every tender against a company profile.

Composite score (0-1):
  50%  capability match — share of the tender's requirement tags covered
       by the company's capabilities
  30%  budget match     — tender budget relative to company revenue
  20%  location match   — tender country among the company's countries

Tenders scoring 0.1 or less are noise and are dropped.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from providers.models import CompanyProfile, Tender

logger = logging.getLogger(__name__)

CAPABILITY_WEIGHT = 0.5
BUDGET_WEIGHT = 0.3
LOCATION_WEIGHT = 0.2

MIN_SCORE = 0.1
DEFAULT_LIMIT = 50
UNPERSONALISED_LIMIT = 20


def matching_requirements(tender: Tender, capabilities: List[str]) -> List[str]:
    """Requirement tags that overlap a capability (substring either way)."""
    caps = [c.lower() for c in capabilities if c]
    matched = []
    for req in tender.requirements:
        r = req.lower()
        if any(r in c or c in r for c in caps):
            matched.append(req)
    return matched


def capability_match(tender: Tender, profile: CompanyProfile) -> float:
    matched = matching_requirements(tender, profile.capabilities)
    return len(matched) / max(len(tender.requirements), 1)


def budget_match(budget: Optional[float], profile: CompanyProfile) -> float:
    if not budget or not profile.total_revenue:
        return 0.5

    ratio = budget / profile.total_revenue
    if 0.1 <= ratio <= 0.5:
        return 1.0   # Sweet spot
    if ratio < 0.1:
        return 0.8   # Small project
    return 0.6       # Large project


def location_match(tender: Tender, profile: CompanyProfile) -> float:
    if not profile.countries:
        return 0.5
    countries = {c.strip().lower() for c in profile.countries}
    return 1.0 if tender.country.lower() in countries else 0.3


def match_reasons(
    tender: Tender,
    profile: CompanyProfile,
    capability: float,
    budget: float,
    location: float,
) -> List[str]:
    reasons = []

    if capability > 0.7:
        reasons.append(
            f"Strong capability match: Your expertise in "
            f"{', '.join(profile.capabilities[:3])} aligns well"
        )
    if budget > 0.8:
        reasons.append("Project budget fits your company size and experience")
    if location > 0.8:
        reasons.append(f"You have experience in {tender.country}")

    if not reasons:
        reasons.append("Potential opportunity based on market trends")
    return reasons


def score_tender(tender: Tender, profile: CompanyProfile) -> Tender:
    """Return a copy of the tender carrying its profile match score and reasons."""
    capability = capability_match(tender, profile)
    budget = budget_match(tender.budget, profile)
    location = location_match(tender, profile)

    composite = (
        capability * CAPABILITY_WEIGHT
        + budget * BUDGET_WEIGHT
        + location * LOCATION_WEIGHT
    )

    return replace(
        tender,
        similarity=min(composite, 1.0),
        matching_requirements=matching_requirements(tender, profile.capabilities),
        match_reasons=match_reasons(tender, profile, capability, budget, location),
    )


def recommend(
    tenders: List[Tender],
    profile: Optional[CompanyProfile],
    limit: int = DEFAULT_LIMIT,
) -> List[Tender]:
    """
    Rank tenders for a company.

    Without capabilities there is nothing to personalise on, so the first
    20 tenders of the batch are returned as they are.
    """
    if profile is None or not profile.capabilities:
        return list(tenders[:UNPERSONALISED_LIMIT])

    scored = [score_tender(t, profile) for t in tenders]
    kept = [t for t in scored if t.similarity > MIN_SCORE]
    kept.sort(key=lambda t: -t.similarity)

    logger.info(
        "Recommendations for %s: %d/%d tenders above %.1f.",
        profile.name or "profile", len(kept), len(tenders), MIN_SCORE,
    )
    return kept[:limit]
