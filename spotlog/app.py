import argparse
import signal
import sys
from pathlib import Path

from . import __version__
from .client import FeedClient
from .config import HarvestConfig
from .emitter import Emitter
from .env import load_env
from .exceptions import FeedError
from .harvester import Harvester
from .logger import get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spotlog",
        description="Backfill and follow a SPOT messenger feed, one fix per line on stdout",
    )
    parser.add_argument("feed_id", nargs="?", help="SPOT public feed identifier")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--delay", type=float, help="Seconds between feed requests (default 180, or SPOT_REQUEST_DELAY)")
    parser.add_argument("--base-url", help="Feed API base URL (or SPOT_BASE_URL)")
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds (default 15)")
    parser.add_argument("--retries", type=int, help="Retries for transient network errors (default 0: abort)")
    parser.add_argument("--strict-errors", action="store_true", default=None,
                        help="Treat errors reported by the feed as failed windows and retry them")
    parser.add_argument("--backfill-only", action="store_true", help="Stop after the backfill phase")
    parser.add_argument("--max-polls", type=int, help="Stop after this many poll requests")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument("--log-dir", type=Path, help="Directory for log files (default: logs/)")
    parser.add_argument("--no-log-file", dest="log_to_file", action="store_false", default=None,
                        help="Log to stderr only")
    return parser


def build_config(args: argparse.Namespace) -> HarvestConfig:
    return HarvestConfig.from_env().with_overrides(
        base_url=args.base_url,
        request_delay=args.delay,
        request_timeout=args.timeout,
        max_retries=args.retries,
        strict_errors=args.strict_errors,
        log_level=args.log_level.upper() if args.log_level else None,
        log_dir=args.log_dir,
        log_to_file=args.log_to_file,
    )


def _interrupt(signum, frame):
    raise KeyboardInterrupt


def main(argv=None) -> None:
    # Load .env if present (SPOT_REQUEST_DELAY, SPOT_LOG_LEVEL, etc.)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return
    if not args.feed_id:
        parser.error("a feed identifier is required")

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    logger = get_logger(
        level=config.log_level,
        log_dir=config.log_dir,
        enable_file=config.log_to_file,
    )
    signal.signal(signal.SIGTERM, _interrupt)

    client = FeedClient(
        base_url=config.base_url,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        logger=logger,
    )
    harvester = Harvester(
        args.feed_id,
        client,
        emitter=Emitter(sys.stdout),
        delay=config.request_delay,
        strict_errors=config.strict_errors,
        logger=logger,
    )

    try:
        with client:
            harvester.run(backfill_only=args.backfill_only, max_polls=args.max_polls)
    except FeedError as e:
        logger.critical("Harvest aborted", error=str(e), error_type=type(e).__name__)
        logger.log_metrics_summary()
        raise SystemExit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping harvest")
        logger.log_metrics_summary()
        raise SystemExit(130)

    logger.log_metrics_summary()


if __name__ == "__main__":
    main()
