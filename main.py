import argparse
import asyncio

from rivals_codex.ingest.crawler import PASSES, run_all_passes, run_pass
from rivals_codex.monitoring.metrics_server import run_metrics_server
from rivals_codex.scheduler import run_daily
from rivals_codex.storage.sink import InMemorySink


def main() -> None:
    parser = argparse.ArgumentParser(description="Rivals Codex CLI")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep records in memory instead of writing to Redis",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("news", help="Scrape the news feeds")
    sub.add_parser("roster", help="Scrape the character roster")
    sub.add_parser("lore", help="Scrape lore and stats for known characters")
    sub.add_parser("abilities", help="Scrape abilities for known characters")
    sub.add_parser("all", help="Run every pass once")
    schedule = sub.add_parser("schedule", help="Run every pass daily")
    schedule.add_argument("--at", default=None, help="UTC time of day, HH:MM")
    metrics = sub.add_parser("metrics", help="Run Prometheus metrics server")
    metrics.add_argument("--port", type=int, default=None, help="Defaults to METRICS_PORT")

    args = parser.parse_args()
    sink = InMemorySink() if args.dry_run else None

    if args.command in PASSES:
        summary = asyncio.run(run_pass(args.command, sink))
        print(summary)
        return
    if args.command == "all":
        for summary in asyncio.run(run_all_passes(sink)):
            print(summary)
        return
    if args.command == "schedule":
        asyncio.run(run_daily(args.at, sink))
        return
    if args.command == "metrics":
        run_metrics_server(args.port)
        return


if __name__ == "__main__":
    main()
