"""
Tender aggregator — fans out to the jurisdiction providers, annotates and
merges their tenders, and caches the merged batch.

Search, recommendations and statistics all start from the batch returned
by ``fetch_all_tenders`` and never call a provider themselves.
"""

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from aggregator.cache import TTLCache, make_key
from aggregator.errors import UnsupportedJurisdictionError
from filters.recommender import recommend
from filters.tender_filter import search_tenders
from output_engine.stats import summarize
from providers.base import BaseProvider, Clock, utc_now
from providers.models import CompanyProfile, SearchFilters, Tender, TenderStats
from providers.registry import build_providers
import config

logger = logging.getLogger(__name__)

TECH_KEYWORDS = ["AI", "Technology", "Software", "Digital", "Cloud", "Data"]

# bids_count is drawn from [BIDS_MIN, BIDS_MAX]
BIDS_MIN = 5
BIDS_MAX = 54


def days_until(deadline: Optional[datetime], now: datetime) -> int:
    """Whole days until the deadline, rounded up; -1 when unknown."""
    if deadline is None:
        return -1
    return math.ceil((deadline - now) / timedelta(days=1))


def base_similarity(tender: Tender, now: datetime) -> float:
    """
    Query-independent score given to every tender at aggregation time:
      0.5 base
      +0.2 deadline within the next 90 days
      +0.2 technology keyword in title, category or requirements
    """
    score = 0.5

    days = days_until(tender.deadline, now)
    if 0 < days <= 90:
        score += 0.2

    haystacks = [tender.title.lower(), tender.category.lower()] + [r.lower() for r in tender.requirements]
    if any(kw.lower() in h for kw in TECH_KEYWORDS for h in haystacks):
        score += 0.2

    return min(score, 1.0)


def time_left(deadline: Optional[datetime], now: datetime) -> str:
    if deadline is None:
        return "Unknown"
    if deadline < now:
        return "Expired"
    days = days_until(deadline, now)
    if days == 1:
        return "1 day"
    if days < 30:
        return f"{days} days"
    if days < 365:
        return f"{days // 30} months"
    return f"{days // 365} years"


def _sort_key(tender: Tender):
    # similarity descending, then soonest deadline; unknown deadlines last
    deadline_ts = tender.deadline.timestamp() if tender.deadline else math.inf
    return (-tender.similarity, deadline_ts)


class TenderAggregator:
    """Entry point for every tender query the application serves."""

    def __init__(
        self,
        providers: Optional[Dict[str, BaseProvider]] = None,
        cache: Optional[TTLCache] = None,
        now: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        provider_timeout: Optional[float] = None,
    ) -> None:
        self.providers = providers if providers is not None else build_providers()
        self.cache = cache if cache is not None else TTLCache()
        self.now = now or utc_now
        self.rng = rng or random.Random()
        self.provider_timeout = config.PROVIDER_TIMEOUT if provider_timeout is None else provider_timeout

    # ── Jurisdictions ─────────────────────────────────────────────────────────

    def _resolve(self, jurisdictions: Optional[Iterable[str]]) -> List[str]:
        """Lowercase, de-duplicate and validate the requested codes."""
        if jurisdictions is None:
            jurisdictions = [c for c in config.DEFAULT_JURISDICTIONS if c in self.providers] or list(self.providers)
        if isinstance(jurisdictions, str):
            jurisdictions = [jurisdictions]

        codes: List[str] = []
        for raw in jurisdictions:
            code = str(raw).strip().lower()
            if code not in self.providers:
                raise UnsupportedJurisdictionError(str(raw), self.providers)
            if code not in codes:
                codes.append(code)
        return codes

    def get_supported_jurisdictions(self) -> List[dict]:
        return [
            {
                "code": code,
                "name": provider.display_name,
                "flag": provider.flag,
                "source": provider.source_name,
                "source_url": provider.source_url,
                "supported": True,
            }
            for code, provider in self.providers.items()
        ]

    # ── Aggregation ───────────────────────────────────────────────────────────

    def fetch_all_tenders(self, jurisdictions: Optional[Iterable[str]] = None) -> List[Tender]:
        codes = self._resolve(jurisdictions)
        if not codes:
            return []
        key = make_key(codes)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Returning cached tenders for: %s", ", ".join(codes))
            return cached

        logger.info("Fetching fresh tender data from: %s", ", ".join(codes))
        batches = self._fetch_concurrently(codes)

        now = self.now()
        merged: List[Tender] = []
        for code in codes:
            merged.extend(self._annotate(t, code, now) for t in batches[code] if t.id)

        merged.sort(key=_sort_key)

        self.cache.put(key, merged)
        logger.info("Fetched %d tenders from %d countries", len(merged), len(codes))
        return list(merged)

    def _fetch_concurrently(self, codes: List[str]) -> Dict[str, List[Tender]]:
        """
        Run every requested provider in parallel and wait for all of them.
        Live failures are already absorbed by BaseProvider.run; a provider
        that crashes, or is still running at the deadline, is replaced by
        its fallback batch here.
        """
        executor = ThreadPoolExecutor(max_workers=len(codes), thread_name_prefix="provider")
        try:
            futures = {code: executor.submit(self.providers[code].run) for code in codes}
            wait(futures.values(), timeout=self.provider_timeout)
        finally:
            # Stragglers are abandoned, not joined
            executor.shutdown(wait=False, cancel_futures=True)

        batches: Dict[str, List[Tender]] = {}
        for code, future in futures.items():
            provider = self.providers[code]
            if not future.done():
                logger.warning("%s did not answer within %.0fs — using sample data", code, self.provider_timeout)
                batches[code] = provider.fallback_data()
                continue
            exc = future.exception()
            if exc is not None:
                logger.error("%s provider crashed: %s — using sample data", code, exc, exc_info=exc)
                batches[code] = provider.fallback_data()
                continue
            batches[code] = future.result()
        return batches

    def _annotate(self, tender: Tender, code: str, now: datetime) -> Tender:
        return replace(
            tender,
            country=code.upper(),
            similarity=base_similarity(tender, now),
            bids_count=self.rng.randint(BIDS_MIN, BIDS_MAX),
            time_left=time_left(tender.deadline, now),
            fetched_at=now,
        )

    def clear_cache(self) -> None:
        self.cache.invalidate()
        logger.info("Tender cache cleared")

    # ── Queries ───────────────────────────────────────────────────────────────

    def search_tenders(
        self,
        query: Optional[str] = None,
        jurisdictions: Optional[Iterable[str]] = None,
        filters=None,
    ) -> List[Tender]:
        """Free-text search plus structured filters over the aggregated batch.

        ``filters`` may be a SearchFilters or a raw dict; a raw dict is
        validated before any provider is contacted.
        """
        if not isinstance(filters, SearchFilters):
            filters = SearchFilters.from_dict(filters)
        tenders = self.fetch_all_tenders(jurisdictions)
        return search_tenders(tenders, query, filters)

    def get_tenders_by_country(self, country: str) -> List[Tender]:
        code = str(country).strip().lower()
        if code not in self.providers:
            raise UnsupportedJurisdictionError(country, self.providers)
        return self.fetch_all_tenders([code])

    def get_tenders_by_location(self, location: str) -> List[Tender]:
        needle = (location or "").strip().lower()
        if not needle:
            return []
        return [
            t for t in self.fetch_all_tenders()
            if t.location.matches(needle) or (t.region and needle in t.region.lower())
        ]

    def get_recommendations(self, profile: Optional[CompanyProfile]) -> List[Tender]:
        if isinstance(profile, dict):
            profile = CompanyProfile.from_dict(profile)
        return recommend(self.fetch_all_tenders(), profile, limit=config.RECOMMENDATION_LIMIT)

    def get_stats(self) -> TenderStats:
        return summarize(self.fetch_all_tenders(), self.now())
