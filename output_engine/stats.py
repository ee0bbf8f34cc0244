"""
Statistics summarizer — grouped counts and budget figures for a batch.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List

from providers.models import TenderStats, TenderStatus, Tender

TOP_N = 10
RECENT_WINDOW = timedelta(days=30)


def _top(counts: Counter, label: str, n: int = TOP_N) -> List[dict]:
    # Counter.most_common keeps first-seen order among equal counts
    return [{label: name, "count": count} for name, count in counts.most_common(n)]


def summarize(tenders: Iterable[Tender], now: datetime) -> TenderStats:
    by_country: Counter = Counter()
    by_category: Counter = Counter()
    by_region: Counter = Counter()
    budget_sum = 0.0
    budget_count = 0
    open_count = 0
    recent_count = 0
    total = 0
    recent_cutoff = now - RECENT_WINDOW

    for tender in tenders:
        total += 1
        by_country[tender.country] += 1
        by_category[tender.category] += 1
        if tender.region:
            by_region[tender.region] += 1

        if tender.budget and tender.budget > 0:
            budget_sum += tender.budget
            budget_count += 1

        if tender.status == TenderStatus.OPEN:
            open_count += 1

        if tender.deadline and tender.deadline > recent_cutoff:
            recent_count += 1

    return TenderStats(
        total=total,
        by_country=dict(by_country),
        by_category=dict(by_category),
        by_region=dict(by_region),
        total_budget=budget_sum,
        average_budget=budget_sum / budget_count if budget_count else 0.0,
        open_tenders=open_count,
        recent_tenders=recent_count,
        top_categories=_top(by_category, "category"),
        top_regions=_top(by_region, "region"),
    )
