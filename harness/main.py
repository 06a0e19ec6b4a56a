# ============================================================================
# HARNESS MAIN ENTRY POINT
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - CLI entry point
# PURPOSE: Register the job, run the pool, print the summary
# CREATED: 18 OCT 2026
# ============================================================================
"""
Harness Main Entry Point

Dispatches a parameterized Nomad job from many concurrent workers and
reports how many dispatches succeeded.

Usage:
    # 50 workers, 10 dispatches each, sleeps of 0-2s
    python -m harness.main --job sleeper.nomad.hcl

    # Smaller run with a 5 minute budget
    dispatch-harness --workers 5 -n 3 --max-sleep 5 --timeout 300

Environment Variables:
    NOMAD_ADDR, NOMAD_TOKEN, NOMAD_NAMESPACE, NOMAD_REGION: Nomad API access
    HARNESS_*: defaults for every flag (see --help)

Exit codes:
    0  run completed or was cancelled (summary printed)
    1  startup failed: client, job read, parse or register
    2  --strict and the run had errors
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from core.errors import InitError
from core.logging import configure_logging, get_logger, log_checkpoint, log_context
from harness.cancellation import CancellationSource
from harness.contracts import HarnessConfig
from harness.runner import run_harness
from scheduler.base import SchedulerAPIError, SchedulerClient
from scheduler.nomad import NomadClient
from __version__ import __version__

logger = get_logger(__name__)

ClientFactory = Callable[[HarnessConfig], SchedulerClient]


# ============================================================================
# ARGUMENTS
# ============================================================================

def build_parser(config: HarnessConfig) -> argparse.ArgumentParser:
    """Build the CLI parser with defaults taken from `config`."""
    parser = argparse.ArgumentParser(
        prog="dispatch-harness",
        description="Load-test a batch scheduler by dispatching a parameterized job concurrently",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --job sleeper.nomad.hcl
  %(prog)s --workers 5 -n 3 --max-sleep 5 --timeout 300
  %(prog)s --poll-interval 1 --strict
        """,
    )
    parser.add_argument(
        "--job",
        default=config.job_file,
        help=f"Name of parameterized job file (default: {config.job_file})",
    )
    parser.add_argument(
        "--workers", "--goroutines",
        dest="workers",
        type=int,
        default=config.workers,
        help=f"Number of concurrent workers (default: {config.workers})",
    )
    parser.add_argument(
        "--max-sleep",
        type=int,
        default=config.max_sleep,
        help=f"Max number of seconds each dispatch sleeps (default: {config.max_sleep})",
    )
    parser.add_argument(
        "-n", "--iterations",
        dest="iterations",
        type=int,
        default=config.iterations,
        help=f"Number of dispatches per worker (default: {config.iterations})",
    )
    parser.add_argument(
        "--job-id",
        default=config.job_id,
        help=f"Parameterized job ID to dispatch (default: {config.job_id})",
    )
    parser.add_argument(
        "--task-name",
        default=config.task_name,
        help=f"Task whose state decides success (default: {config.task_name})",
    )
    parser.add_argument(
        "--param-key",
        default=config.param_key,
        help=f"Dispatch meta key for the work parameter (default: {config.param_key})",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=config.poll_interval_seconds,
        help=f"Seconds between state queries (default: {config.poll_interval_seconds})",
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=config.timeout_seconds,
        help="Global time budget in seconds, 0 for none (default: %(default)s)",
    )
    parser.add_argument(
        "--diagnostics-dir",
        default=config.diagnostics_dir,
        help="Where allocation snapshots are written (default: %(default)s)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=config.strict,
        help="Exit with code 2 when any dispatch failed",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("HARNESS_LOG_LEVEL", "INFO"),
        help="Log level (default: %(default)s)",
    )
    parser.add_argument(
        "--log-format",
        choices=("human", "json"),
        default="json" if os.getenv("HARNESS_LOG_FORMAT", "").lower() == "json" else "human",
        help="Log output format (default: %(default)s)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def parse_config(argv: Optional[List[str]] = None) -> Tuple[HarnessConfig, argparse.Namespace]:
    """Resolve defaults, environment and flags into a HarnessConfig."""
    try:
        base = HarnessConfig.from_env()
    except ValueError as e:
        build_parser(HarnessConfig()).error(f"invalid environment: {e}")
    parser = build_parser(base)
    args = parser.parse_args(argv)

    config = HarnessConfig(
        job_file=args.job,
        job_id=args.job_id,
        task_name=args.task_name,
        param_key=args.param_key,
        workers=args.workers,
        iterations=args.iterations,
        max_sleep=args.max_sleep,
        poll_interval_seconds=args.poll_interval,
        channel_capacity=base.channel_capacity,
        timeout_seconds=args.timeout,
        diagnostics_dir=args.diagnostics_dir,
        strict=args.strict,
    )

    problems = config.validate()
    if problems:
        parser.error("; ".join(problems))

    return config, args


# ============================================================================
# STARTUP
# ============================================================================

def default_client_factory(config: HarnessConfig) -> SchedulerClient:
    return NomadClient()


def create_client(factory: ClientFactory, config: HarnessConfig) -> SchedulerClient:
    try:
        return factory(config)
    except (ValueError, TypeError, SchedulerAPIError) as e:
        raise InitError("creating client", str(e)) from e


async def register(client: SchedulerClient, config: HarnessConfig) -> str:
    """
    Read, parse and register the job definition.

    Returns:
        Job ID to dispatch

    Raises:
        InitError at the first failing step
    """
    try:
        definition = Path(config.job_file).read_text(encoding="utf-8")
    except OSError as e:
        raise InitError("reading jobspec", str(e)) from e

    try:
        job = await client.parse_job(definition)
    except SchedulerAPIError as e:
        raise InitError("parsing job", str(e)) from e

    try:
        registered_id = await client.register_job(job)
    except SchedulerAPIError as e:
        raise InitError("registering job", str(e)) from e

    log_checkpoint("job_registered", {"job_id": registered_id})
    return config.job_id or registered_id


# ============================================================================
# MAIN
# ============================================================================

async def main(
    argv: Optional[List[str]] = None,
    client_factory: ClientFactory = default_client_factory,
) -> int:
    """
    Main entry point.

    Returns:
        Process exit code
    """
    config, args = parse_config(argv)
    configure_logging(level=args.log_level, json_output=args.log_format == "json")

    logger.info(f"Dispatch harness v{__version__}")

    try:
        client = create_client(client_factory, config)
    except InitError as e:
        print(str(e), file=sys.stderr)
        return 1

    async with client:
        with CancellationSource(timeout_seconds=config.timeout_seconds) as token:
            try:
                job_id = await register(client, config)
            except InitError as e:
                print(str(e), file=sys.stderr)
                return 1

            if token.cancelled:
                logger.info(f"Cancelled before dispatching: {token.reason}")
                return 0

            with log_context(job_id=job_id):
                summary = await run_harness(client, config, token, job_id=job_id)

    if config.strict and summary.errors:
        return 2
    return 0


def run() -> None:
    """Synchronous entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
