"""
Search engine — free-text relevance and structured filters over an
aggregated tender batch.

Relevance (only when a query is given):
  base similarity from aggregation
  +0.3   query appears in the title
  +0.1   per requirement tag containing the query
  capped at 1.0

Filters are independent subtractive predicates: category, min/max budget,
region and requirements.  A tender with no disclosed budget never passes a
budget bound.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from providers.models import SearchFilters, Tender

logger = logging.getLogger(__name__)


def _normalise(text: Optional[str]) -> str:
    return (text or "").lower().strip()


def _contains(text: Optional[str], needle: str) -> bool:
    """Case-insensitive substring test; needle must already be normalised."""
    return needle in (text or "").lower()


def matches_query(tender: Tender, query: str) -> bool:
    q = _normalise(query)
    return (
        _contains(tender.title, q)
        or _contains(tender.description, q)
        or _contains(tender.category, q)
        or _contains(tender.region, q)
        or any(_contains(req, q) for req in tender.requirements)
    )


def search_similarity(tender: Tender, query: str) -> float:
    q = _normalise(query)
    score = tender.similarity

    if _contains(tender.title, q):
        score += 0.3

    score += 0.1 * sum(1 for req in tender.requirements if _contains(req, q))

    return min(score, 1.0)


def apply_filters(tenders: List[Tender], filters: SearchFilters) -> List[Tender]:
    """Drop every tender that fails one of the set filters."""
    result = tenders

    if filters.category:
        category = _normalise(filters.category)
        result = [t for t in result if _contains(t.category, category)]

    if filters.min_budget is not None:
        result = [t for t in result if t.budget is not None and t.budget >= filters.min_budget]

    if filters.max_budget is not None:
        result = [t for t in result if t.budget is not None and t.budget <= filters.max_budget]

    if filters.region:
        region = _normalise(filters.region)
        result = [t for t in result if _contains(t.region, region)]

    if filters.requirements:
        wanted = [_normalise(r) for r in filters.requirements if _normalise(r)]
        if wanted:
            result = [
                t for t in result
                if any(_contains(req, w) for w in wanted for req in t.requirements)
            ]

    return result


def search_tenders(
    tenders: List[Tender],
    query: Optional[str] = None,
    filters: Optional[SearchFilters] = None,
) -> List[Tender]:
    """
    Filter and rank tenders for a search request.

    Args:
        tenders:  Aggregated batch (not modified).
        query:    Free text; blank means "no text search" and keeps the
                  aggregation scores.
        filters:  Structured filters, already validated.

    Returns:
        Matching tenders (copies when rescored), sorted by similarity descending.
    """
    filters = filters or SearchFilters()
    results = list(tenders)

    query = (query or "").strip()
    if query:
        results = [
            replace(t, similarity=search_similarity(t, query))
            for t in results
            if matches_query(t, query)
        ]

    results = apply_filters(results, filters)
    results.sort(key=lambda t: -t.similarity)

    logger.info(
        "Search %r: %d/%d tenders kept.",
        query, len(results), len(tenders),
    )
    return results
