"""
Objkt Signals - CLI.

============================================================
USAGE
============================================================
python -m objkt_signals.cli --limit 30
python -m objkt_signals.cli --tokens 123 456 --self-address tz1...
python -m objkt_signals.cli --rank-by sold_rate --log-format json
python -m objkt_signals.cli --serve --port 8000

============================================================
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional

from .config import AvailabilityThresholds, SignalConfig
from .exceptions import ConfigurationError
from .models import RANKING_FIELDS, SignalBatch
from .pipeline import SignalPipeline


logger = logging.getLogger(__name__)


# ============================================================
# LOGGING
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Configure root logging with a single stdout handler.

    Args:
        level: Log level name
        log_format: "text" or "json"

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("objkt_signals")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="objkt-signals",
        description="Available-token signals from objkt marketplace ledgers",
    )

    parser.add_argument(
        "--limit", "-n",
        type=int,
        default=None,
        help="Candidates to discover (default: OBJKT_DISCOVERY_LIMIT or 30)",
    )
    parser.add_argument(
        "--tokens",
        nargs="+",
        default=None,
        help="Score these token ids instead of running discovery",
    )
    parser.add_argument(
        "--self-address",
        type=str,
        default=None,
        help="Operator wallet; tokens transferred to it are skipped",
    )
    parser.add_argument(
        "--rank-by",
        type=str,
        choices=list(RANKING_FIELDS),
        default=None,
        help="Sort accepted signals instead of keeping discovery order",
    )

    # --------------------------------------------------------
    # Thresholds
    # --------------------------------------------------------
    threshold_group = parser.add_argument_group("Availability Thresholds")
    threshold_group.add_argument("--min-listed", type=int, default=None)
    threshold_group.add_argument("--max-listed", type=int, default=None)
    threshold_group.add_argument("--min-sold", type=int, default=None)

    # --------------------------------------------------------
    # Worker Pool
    # --------------------------------------------------------
    pool_group = parser.add_argument_group("Worker Pool")
    pool_group.add_argument("--concurrency", type=int, default=None)
    pool_group.add_argument("--timeout", type=float, default=None, help="Per-fetch deadline (seconds)")

    # --------------------------------------------------------
    # Logging / Server
    # --------------------------------------------------------
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.environ.get("LOG_LEVEL", "INFO"),
    )
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["text", "json"],
        default="text",
    )
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API instead")
    parser.add_argument("--host", type=str, default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)

    return parser


def build_config(args: argparse.Namespace) -> SignalConfig:
    """Environment configuration overridden by CLI flags."""
    config = SignalConfig.from_env()

    thresholds = config.thresholds
    thresholds = AvailabilityThresholds(
        min_listed=args.min_listed if args.min_listed is not None else thresholds.min_listed,
        max_listed=args.max_listed if args.max_listed is not None else thresholds.max_listed,
        min_sold=args.min_sold if args.min_sold is not None else thresholds.min_sold,
    )

    config = replace(
        config,
        thresholds=thresholds,
        self_address=args.self_address or config.self_address,
        concurrency_limit=args.concurrency if args.concurrency is not None else config.concurrency_limit,
        fetch_timeout_seconds=args.timeout if args.timeout is not None else config.fetch_timeout_seconds,
    )
    config.validate()
    return config


# ============================================================
# RUNNERS
# ============================================================

async def run_once(config: SignalConfig, args: argparse.Namespace) -> SignalBatch:
    pipeline = SignalPipeline(config)
    try:
        if args.tokens:
            return await pipeline.compute_signals(args.tokens)
        return await pipeline.get_available_token_signals(args.limit)
    finally:
        await pipeline.close()


def render_batch(batch: SignalBatch, rank_by: Optional[str] = None) -> str:
    output = batch.to_dict()
    if rank_by:
        output["signals"] = [s.to_dict() for s in batch.ranked(rank_by)]
    return json.dumps(output, indent=2)


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_format)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e.message}")
        return 2

    if args.serve:
        import uvicorn

        from .api import create_app
        from .config import set_config

        set_config(config)
        uvicorn.run(create_app(), host=args.host, port=args.port)
        return 0

    batch = asyncio.run(run_once(config, args))
    print(render_batch(batch, args.rank_by))
    return 0


if __name__ == "__main__":
    sys.exit(main())
