#!/usr/bin/env python3
"""
Ticker Bot - crypto price and gas fees as Discord bot nicknames.

Usage:
    python run.py                       # Run forever (config.json in ./ or ./config/)
    python run.py -c path/config.json   # Explicit config file
    python run.py --once                # Run every job once and exit
    python run.py --log-level DEBUG     # Verbose logging (or MODE=DEBUG)
"""

import argparse
import signal
import sys

from core.config import load_ticker_config, settings
from core.errors import ConfigError, TickerError
from core.logging_utils import get_logger, setup_logging
from core.ticker_core import TickerCore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tickerbot',
        description='Ticker Bot - crypto price/gas tickers on Discord',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-c', '--config', type=str, default=None,
                        help='Path to config.json (default: ./config.json or ./config/config.json)')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Log level (default: LOG_LEVEL env or INFO)')
    parser.add_argument('--once', action='store_true',
                        help='Run index refresh, price and gas update once, then exit')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level or settings.effective_log_level)
    logger = get_logger("init")

    logger.info("Loading ticker config...")
    try:
        cfg = load_ticker_config(args.config)
    except ConfigError as e:
        logger.error("Failed to load config: %s", e)
        return 1

    logger.info("Initializing core object...")
    core = TickerCore(cfg)
    scheduler = core.build_scheduler()

    if args.once:
        results = scheduler.run_all_once()
        core.close()
        failed = [name for name, ok in results.items() if not ok]
        if failed:
            logger.error("Jobs failed: %s", ", ".join(failed))
            return 1
        return 0

    try:
        core.refresh_index()
    except TickerError as e:
        # Price runs report NotReady until the hourly refresh succeeds
        logger.error("Initial symbol index refresh failed: %s", e)

    def _stop(signum, _frame):
        logger.info("Received signal %s, shutting down...", signum)
        scheduler.shutdown()

    signal.signal(signal.SIGTERM, _stop)

    logger.info("Starting scheduler...")
    scheduler.start()
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        scheduler.shutdown()
        core.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
