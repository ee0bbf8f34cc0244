"""
main.py — command-line entry point for the tender aggregator.

Usage:
    python main.py                              # Aggregate all countries, print top tenders
    python main.py --countries usa uk           # Only these jurisdictions
    python main.py --search cloud --min-budget 1000000
    python main.py --profile company_profile.yaml   # Recommendations for a company
    python main.py --location Ontario           # Tenders in a city/state/province
    python main.py --stats                      # Summary statistics
    python main.py --export                     # Also save an Excel report
    python main.py --schedule --export          # Run now, then daily at the configured time
    python main.py --offline                    # Sample data only, no live portals
"""

import argparse
import logging
import sys
from datetime import datetime
from typing import List, Optional

import yaml

# ── Logging setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  —  %(message)s",
    datefmt="%H:%M:%S",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler("aggregator.log", encoding="utf-8"),
    ],
)
logger = logging.getLogger("main")

# ── Project imports ───────────────────────────────────────────────────────────
import config
from aggregator.errors import TenderAggregatorError
from aggregator.orchestrator import TenderAggregator
from output_engine.excel_exporter import export_to_excel
from providers.models import CompanyProfile, Tender, TenderStats
from providers.registry import build_providers


def load_profile(path: str) -> CompanyProfile:
    """Read a company profile YAML (capabilities, countries, total_revenue)."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return CompanyProfile.from_dict(data)


def run_aggregator(args: argparse.Namespace, aggregator: Optional[TenderAggregator] = None) -> Optional[str]:
    """
    One cycle: aggregate → query (search / recommend / location) → print → (export).
    Returns the path to the saved Excel file, or None when not exporting.
    """
    run_start = datetime.now()
    logger.info("=" * 60)
    logger.info("Tender aggregator starting at %s", run_start.strftime("%d %b %Y %H:%M:%S"))
    logger.info("=" * 60)

    aggregator = aggregator or TenderAggregator(providers=build_providers(live=not args.offline))
    countries = args.countries or None

    title = "Tender Opportunities"
    if args.profile:
        profile = load_profile(args.profile)
        results = aggregator.get_recommendations(profile)
        title = f"Recommended for {profile.name or args.profile}"
    elif args.location:
        results = aggregator.get_tenders_by_location(args.location)
        title = f"Tenders in {args.location}"
    elif args.search or _has_filters(args):
        filters = {
            "category": args.category,
            "min_budget": args.min_budget,
            "max_budget": args.max_budget,
            "region": args.region,
            "requirements": args.requirements,
        }
        results = aggregator.search_tenders(args.search, countries, filters)
        title = f"Search: {args.search}" if args.search else "Filtered Tenders"
    else:
        results = aggregator.fetch_all_tenders(countries)

    stats = aggregator.get_stats() if (args.stats or args.export) else None

    _print_summary(results, title, run_start)
    if args.stats:
        _print_stats(stats)

    if not args.export:
        return None

    filepath = export_to_excel(results, stats, title=title)
    logger.info("Report saved: %s", filepath)
    return filepath


def _has_filters(args: argparse.Namespace) -> bool:
    return any([args.category, args.min_budget, args.max_budget, args.region, args.requirements])


def _print_summary(tenders: List[Tender], title: str, run_start: datetime) -> None:
    """Print a readable summary table to stdout."""
    elapsed = (datetime.now() - run_start).seconds

    print()
    print("━" * 72)
    print(f"  {title.upper()}  —  {datetime.now().strftime('%d %b %Y')}")
    print("━" * 72)
    print(f"  Results : {len(tenders):>4}")
    print(f"  Elapsed : {elapsed}s")
    print("━" * 72)

    if not tenders:
        print("  No tenders matched. Try fewer filters or more countries.")
        print()
        return

    print(f"  {'#':>3}  {'Match':>5}  {'Country':<10}  {'Title':<38}  {'Time left'}")
    print(f"  {'─'*3}  {'─'*5}  {'─'*10}  {'─'*38}  {'─'*12}")

    for i, t in enumerate(tenders[:30], 1):
        title_col = (t.title[:37] + "…") if len(t.title) > 38 else t.title.ljust(38)
        print(f"  {i:>3}  {t.similarity:>5.2f}  {t.country[:10]:<10}  {title_col}  {t.time_left}")

    if len(tenders) > 30:
        print(f"  … and {len(tenders) - 30} more — use --export for the full list.")

    print()
    print("  Top 3:")
    for t in tenders[:3]:
        print(f"    [{t.similarity:.2f}]  {t.title}")
        print(f"           Country : {t.country} / {t.region}")
        print(f"           Budget  : {t.display_budget()}")
        print(f"           Due     : {t.display_deadline()} ({t.time_left})")
        print(f"           URL     : {t.source_url}")
        for reason in t.match_reasons:
            print(f"           Why     : {reason}")
        print()
    print("━" * 72)


def _print_stats(stats: TenderStats) -> None:
    print(f"  Total tenders   : {stats.total}")
    print(f"  Open tenders    : {stats.open_tenders}")
    print(f"  Recent tenders  : {stats.recent_tenders}")
    print(f"  Average budget  : {stats.average_budget:,.0f}")
    print("  By country      : " + ", ".join(f"{c} {n}" for c, n in stats.by_country.items()))
    print("  Top categories  :")
    for entry in stats.top_categories:
        print(f"      {entry['count']:>3}  {entry['category']}")
    print("━" * 72)


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Government tender aggregator — USA, UK, Canada, Australia"
    )
    parser.add_argument("--countries", nargs="+", default=None,
                        help=f"Jurisdiction codes (default: {' '.join(config.DEFAULT_JURISDICTIONS)})")
    parser.add_argument("--search", default=None, help="Free-text query")
    parser.add_argument("--category", default=None, help="Category substring filter")
    parser.add_argument("--min-budget", default=None, help="Minimum disclosed budget")
    parser.add_argument("--max-budget", default=None, help="Maximum disclosed budget")
    parser.add_argument("--region", default=None, help="Region/state/province substring filter")
    parser.add_argument("--requirements", default=None, help="Comma-separated requirement tags")
    parser.add_argument("--location", default=None, help="City/state/province/region substring")
    parser.add_argument("--profile", default=None, help="Company profile YAML for recommendations")
    parser.add_argument("--stats", action="store_true", help="Print summary statistics")
    parser.add_argument("--export", action="store_true", help="Save an Excel report")
    parser.add_argument("--offline", action="store_true", help="Skip live portals, use sample data")
    parser.add_argument("--schedule", action="store_true",
                        help="Keep running and repeat daily at the time set in settings.yaml")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.schedule:
            _run_scheduled(args)
        else:
            run_aggregator(args)
    except (TenderAggregatorError, OSError, yaml.YAMLError) as exc:
        logger.error("%s", exc)
        return 2
    return 0


def _run_scheduled(args: argparse.Namespace) -> None:
    """Run now, then repeat daily using APScheduler."""
    from apscheduler.schedulers.blocking import BlockingScheduler
    from apscheduler.triggers.cron import CronTrigger

    h, m = config.SCHEDULE_TIME.split(":")
    logger.info(
        "Scheduler mode: will run every day at %s (%s)",
        config.SCHEDULE_TIME,
        config.SCHEDULE_TIMEZONE,
    )

    # One aggregator for the life of the process, so the cache is reused
    aggregator = TenderAggregator(providers=build_providers(live=not args.offline))
    run_aggregator(args, aggregator)

    scheduler = BlockingScheduler(timezone=config.SCHEDULE_TIMEZONE)
    scheduler.add_job(
        func=run_aggregator,
        trigger=CronTrigger(hour=int(h), minute=int(m), timezone=config.SCHEDULE_TIMEZONE),
        args=[args, aggregator],
        id="daily_aggregation",
        name="Daily Tender Aggregation",
        replace_existing=True,
    )

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped by user.")


if __name__ == "__main__":
    sys.exit(main())
