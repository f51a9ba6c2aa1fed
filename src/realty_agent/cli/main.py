from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from realty_agent.config import Settings
from realty_agent.errors import MonitorNotFound
from realty_agent.models import MonitorRequest, SearchCriteria
from realty_agent.repositories import get_store
from realty_agent.services.billing import make_charge_sink
from realty_agent.services.monitor import MonitorEngine, describe_setup, format_status
from realty_agent.services.orchestrator import build_orchestrator
from realty_agent.utils.log import configure_logging


logger = logging.getLogger(__name__)


def _add_criteria_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--location", required=True, help="City, neighborhood or zip code")
    p.add_argument("--min-price", type=int)
    p.add_argument("--max-price", type=int)
    p.add_argument("--property-type", default="any")
    p.add_argument("--bedrooms", type=int, help="Minimum bedrooms")
    p.add_argument("--bathrooms", type=int, help="Minimum bathrooms")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="realty-agent", description="Search and monitor real estate listings")
    sub = parser.add_subparsers(dest="action", required=True)

    search = sub.add_parser("search", help="Search listings once")
    _add_criteria_args(search)
    search.add_argument("--max-results", type=int, default=10)
    search.add_argument("--source", default="any")
    search.add_argument("--force-fallback", action="store_true", help="Skip specialized sources")

    monitor = sub.add_parser("monitor", help="Create a listing monitor")
    _add_criteria_args(monitor)
    monitor.add_argument("--monitor-id")
    monitor.add_argument("--frequency", default="daily")
    monitor.add_argument("--email", dest="notification_email")

    check = sub.add_parser("check-monitor", help="Show a monitor's status")
    check.add_argument("monitor_id")

    sub.add_parser("run-monitors", help="Poll every due monitor once")
    return parser


def _criteria_fields(args: argparse.Namespace, *names: str) -> dict[str, Any]:
    return {n: getattr(args, n) for n in names if getattr(args, n, None) is not None}


CRITERIA_FIELDS = ("location", "min_price", "max_price", "property_type", "bedrooms", "bathrooms")
# Only these actions run searches; the others just read or write monitor configs.
EXTRACTING_ACTIONS = ("search", "run-monitors")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    charges = make_charge_sink(settings)
    orchestrator = (
        build_orchestrator(settings, charges=charges) if args.action in EXTRACTING_ACTIONS else None
    )

    try:
        if args.action == "search":
            criteria = SearchCriteria(
                **_criteria_fields(args, *CRITERIA_FIELDS, "max_results", "source", "force_fallback")
            )
            print(orchestrator.extract(criteria).model_dump_json(by_alias=True, exclude_none=True, indent=2))
            return 0

        engine = MonitorEngine(get_store(settings), orchestrator, charges=charges, settings=settings)
        if args.action == "monitor":
            request = MonitorRequest(
                **_criteria_fields(args, *CRITERIA_FIELDS, "monitor_id", "frequency", "notification_email")
            )
            config = engine.create_monitor(request)
            print(json.dumps({"monitor": config.to_store(), "message": describe_setup(config)}, indent=2))
        elif args.action == "check-monitor":
            print(format_status(engine.get_status(args.monitor_id)))
        elif args.action == "run-monitors":
            return _run_monitors(engine)
    except ValidationError as e:
        print(e, file=sys.stderr)
        return 2
    except MonitorNotFound as e:
        print(e.message, file=sys.stderr)
        return 1
    return 0


def _run_monitors(engine: MonitorEngine) -> int:
    run_time = datetime.now(timezone.utc).isoformat()
    try:
        outcome = engine.process_all_monitors()
    except Exception as e:
        logger.exception("Error during monitor runner execution")
        print(json.dumps({"runTime": run_time, "status": "error", "errorMessage": str(e)}))
        return 1
    print(
        json.dumps(
            {
                "runTime": run_time,
                "processedCount": outcome.processed,
                "updatedCount": outcome.updated,
                "status": "success",
            }
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
