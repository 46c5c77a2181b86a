"""
Command line entry point.

Usage:
    queue-diagnostics analyze
    queue-diagnostics monitor [--iterations N] [--perpage N]

Commands:
    analyze (alias analyse)  Scan all request sets in the queue and report the
                             sharding distribution. May take a while.
    monitor                  Show and update the state of the queue every 2 seconds.
                             Keys: ,=first page .=last page 0-9=page in block
                             LEFT/RIGHT=prev/next page UP/DOWN=+10/-10 pages q=quit
"""

import argparse
import sys
from typing import List, Optional

from tracking_queue_app.analysis.analyzer import DistributionAnalyzer
from tracking_queue_app.config import settings
from tracking_queue_app.dependencies import get_backend, get_lock, get_queue_manager
from tracking_queue_app.exceptions import BackendError, BackendUnavailableError, ConfigurationError
from tracking_queue_app.monitor.dashboard import LiveDashboard


def parse_positive_int(name: str, value) -> int:
    """
    Validate a numeric option.

    Accepts anything numeric ("3", "3.0") and truncates it to an int.

    Raises:
        ConfigurationError: if the value is not numeric or not positive
    """
    try:
        number = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        raise ConfigurationError(f"{name} needs to be numeric")
    if number <= 0:
        raise ConfigurationError(f"{name} needs to be a non-zero positive number")
    return number


def get_iterations(value) -> Optional[int]:
    """None means no limit"""
    if value is None or str(value).strip() == "":
        return None
    return parse_positive_int("iterations", value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="queue-diagnostics",
        description=f"{settings.app_name}: read-only diagnostics for the sharded tracking request queue",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {settings.app_version}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "analyze",
        aliases=["analyse"],
        help="Analyzes the requests that are currently in the queues. Executing this command may take a while",
    )

    monitor = subparsers.add_parser(
        "monitor",
        help="Shows and updates the current state of the queue every 2 seconds",
        description=(
            "Shows and updates the current state of the queue every 2 seconds. "
            "Key ,=first page, .=last page, 0-9=move to page section, arrow LEFT=prev page, "
            "RIGHT=next page, UP=next 10 pages, DOWN=prev 10 pages, q=quit"
        ),
    )
    monitor.add_argument("--iterations", default=None,
                         help="If set, will limit the number of monitoring iterations done.")
    monitor.add_argument("-p", "--perpage", default=str(settings.monitor_per_page),
                         help="Number of queue workers displayed per page.")
    return parser


def run_analyze(args, output=None) -> int:
    backend = get_backend()
    manager = get_queue_manager(backend)

    analyzer = DistributionAnalyzer(
        backend,
        manager,
        output=output,
        page_size=settings.analyze_page_size,
    )
    analyzer.run()
    return 0


def run_monitor(args, output=None, terminal=None) -> int:
    # Validate options before touching the backend
    iterations = get_iterations(args.iterations)
    per_page = parse_positive_int("perpage", args.perpage)

    out = output if output is not None else sys.stdout

    if iterations is not None:
        print(f"Only running {iterations} iterations.", file=out)

    if settings.queue_enabled:
        print("Queue is enabled", file=out)
    else:
        print("QUEUE IS DISABLED: No new requests will be written into the queue, "
              "processing the remaining requests is still possible.", file=out)

    backend = get_backend()
    manager = get_queue_manager(backend)
    lock = get_lock(backend)

    if settings.process_during_tracking_request:
        print("Request sets in the queue will be processed automatically after a tracking request", file=out)
    else:
        print("The queue processor has to be run separately to process request sets within queue", file=out)

    print(f"Up to {manager.get_number_of_available_queues()} workers will be used", file=out)
    print(f"Processor will start once there are at least "
          f"{manager.get_number_of_requests_to_process_at_same_time()} request sets in the queue", file=out)

    dashboard = LiveDashboard(
        backend,
        manager,
        lock,
        output=out,
        terminal=terminal,
        per_page=per_page,
        refresh_interval_ms=settings.monitor_refresh_interval_ms,
        iterations=iterations,
        tick_ms=settings.monitor_tick_ms,
    )
    return dashboard.run()


COMMANDS = {
    "analyze": run_analyze,
    "analyse": run_analyze,
    "monitor": run_monitor,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return COMMANDS[args.command](args)
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1
    except BackendUnavailableError as e:
        print(f"❌ Backend unavailable: {e}", file=sys.stderr)
        return 1
    except BackendError as e:
        print(f"❌ Backend error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
