import argparse
import logging
import os
import sys
import threading
from pathlib import Path

from visitor_analytics.app_shell.context import ServiceContext
from visitor_analytics.app_shell.export import result_to_csv
from visitor_analytics.app_shell.state import DashboardSnapshot
from visitor_analytics.components.analytics import AggregateResult, BreakdownItem
from visitor_analytics.components.timeframe import (
    DEFAULT_PRESET,
    PRESET_GROUPS,
    PRESETS_BY_KEY,
    TimeframeSelection,
)
from visitor_analytics.rules.loader import load_rules

logger = logging.getLogger("cli")

DATA_DIR = os.environ.get("VA_DATA_DIR", "./data")
RULES_PATH = os.environ.get("VA_RULES_PATH", "rules.yaml")


def get_context(rules_path: str, data_dir: str) -> ServiceContext:
    if not Path(rules_path).exists():
        logger.error("Rules file %s not found.", rules_path)
        sys.exit(1)

    try:
        rules = load_rules(Path(rules_path))
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(1)
    return ServiceContext.create(rules, Path(data_dir))


def _print_breakdown(title: str, items: tuple[BreakdownItem, ...]) -> None:
    print(f"\n{title}")
    if not items:
        print("  (none)")
    for item in items:
        print(f"  {item.label:<32} {item.count:>7} {item.percentage:6.1f}%")


def print_result(result: AggregateResult) -> None:
    tf = result.timeframe
    print(f"Range {tf.label}: {tf.start.isoformat()} -> {tf.end.isoformat()}")
    if result.is_empty:
        print("No page views in this range.")
        return

    print(f"Page views:      {result.page_views}")
    print(f"Visits:          {result.visits}")
    print(f"Unique visitors: {result.unique_visitors}")
    print(f"Bounce rate:     {result.bounce_rate_percent:.1f}%")

    print("\nTraffic")
    for bucket in result.series:
        print(f"  {bucket.label:>6}  {bucket.views:>6} views  {bucket.unique_visitors:>5} visitors")

    _print_breakdown("Top pages", result.top_pages)
    _print_breakdown("Referrers", result.top_referrers)
    _print_breakdown("Browsers", result.top_browsers)
    _print_breakdown("Operating systems", result.top_os)
    _print_breakdown("Devices", result.top_devices)
    _print_breakdown("Countries", result.top_countries)


def handle_query(ctx: ServiceContext, args: argparse.Namespace) -> int:
    if args.start or args.end:
        if not (args.start and args.end):
            logger.error("--start and --end must be given together")
            return 2
        selection = TimeframeSelection.custom(args.start, args.end)
    else:
        selection = TimeframeSelection.for_preset(args.preset or ctx.rules.analytics.default_preset)

    output = ctx.analytics.query(selection)
    if output.result is None:
        for error in output.errors:
            logger.error("%s: %s", error.code, error.message)
        return 2

    if args.csv:
        sys.stdout.write(result_to_csv(output.result))
    else:
        print_result(output.result)
    return 0


def handle_watch(ctx: ServiceContext, args: argparse.Namespace) -> int:
    if args.preset:
        ctx.analytics.selector.select_preset(args.preset)

    done = threading.Event()
    shown = 0

    # Runs on the refresher thread only
    def show(snapshot: DashboardSnapshot) -> None:
        nonlocal shown
        if done.is_set():
            return
        if snapshot.result is not None:
            print_result(snapshot.result)
            print()
        shown += 1
        if args.count is not None and shown >= args.count:
            done.set()

    ctx.refresher.add_listener(show)
    ctx.refresher.start()
    try:
        while not done.wait(timeout=0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        ctx.refresher.stop()
    return 0


def handle_reset(ctx: ServiceContext, args: argparse.Namespace) -> int:
    if not args.yes:
        logger.error("Refusing to clear analytics without --yes")
        return 2
    before = ctx.event_store.count()
    ctx.analytics.reset_analytics()
    ctx.renderer.clear_cache()
    print(f"Cleared {before} events.")
    return 0


def handle_presets(ctx: ServiceContext | None, args: argparse.Namespace) -> int:
    for group, keys in PRESET_GROUPS:
        print(group)
        for key in keys:
            preset = PRESETS_BY_KEY[key]
            marker = " (default)" if key == DEFAULT_PRESET else ""
            print(f"  {key:<4} {preset.buckets:>3} buckets{marker}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Visitor Analytics CLI")
    parser.add_argument("--rules", default=RULES_PATH, help="Path to rules.yaml")
    parser.add_argument("--data-dir", default=DATA_DIR, help="Directory for event storage")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # query
    query_parser = subparsers.add_parser("query", help="Aggregate page views over a range")
    query_parser.add_argument("--preset", choices=sorted(PRESETS_BY_KEY), help="Preset range key")
    query_parser.add_argument("--start", help="Custom range start (ISO-8601)")
    query_parser.add_argument("--end", help="Custom range end (ISO-8601)")
    query_parser.add_argument("--csv", action="store_true", help="Print breakdowns as CSV")

    # watch
    watch_parser = subparsers.add_parser(
        "watch", help="Re-run the query every refresh interval until interrupted"
    )
    watch_parser.add_argument("--preset", choices=sorted(PRESETS_BY_KEY), help="Preset range key")
    watch_parser.add_argument("--count", type=int, help="Stop after this many refreshes")

    # reset
    reset_parser = subparsers.add_parser("reset", help="Delete every recorded page view")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the reset")

    # presets
    subparsers.add_parser("presets", help="List range presets")

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    if args.command == "presets":
        return handle_presets(None, args)

    ctx = get_context(args.rules, args.data_dir)
    if args.command == "query":
        return handle_query(ctx, args)
    if args.command == "watch":
        return handle_watch(ctx, args)
    return handle_reset(ctx, args)


if __name__ == "__main__":
    sys.exit(main())
