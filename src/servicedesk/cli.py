from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys

from .app_logging import log_with_fields, setup_logger
from .config import AppConfig, build_jobs, build_workers, load_config
from .dispatcher import Dispatcher, NoWorkersError
from .models import Job
from .report import format_queue, format_summary, summarize


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="servicedesk", description="Repair-shop worker pool simulator")
    parser.add_argument("--config", required=True, help="Path to servicedesk YAML config")
    parser.add_argument("--verbose", action="store_true", help="Log worker waits and other debug events")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Process the whole queue and print a summary")
    run_parser.add_argument("--seed", type=int, default=None, help="Seed for random phone series")

    queue_parser = subparsers.add_parser("queue", help="Show the queue that `run` would process")
    queue_parser.add_argument("--seed", type=int, default=None, help="Seed for random phone series")
    return parser


def _queue(config: AppConfig, seed: int | None) -> list[Job]:
    return build_jobs(config, random.Random(seed))


def cmd_queue(config: AppConfig, seed: int | None = None) -> int:
    for line in format_queue(_queue(config, seed)):
        print(line)
    return 0


def cmd_run(config: AppConfig, seed: int | None = None, *, verbose: bool = False) -> int:
    logger = setup_logger(config.log, level=logging.DEBUG if verbose else logging.INFO)
    workers = build_workers(config)
    jobs = _queue(config, seed)
    dispatcher = Dispatcher(
        config.center.name,
        config.center.location,
        workers,
        jobs,
        config=config.dispatch,
        logger=logger,
    )

    for line in format_queue(jobs):
        print(line)
    print()

    try:
        asyncio.run(dispatcher.run())
    except NoWorkersError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        log_with_fields(logger, logging.INFO, "shutdown", reason="keyboard_interrupt")
        return 130

    summary = summarize(dispatcher.repair_records, [worker.name for worker in workers])
    print()
    for line in format_summary(summary, dispatcher.elapsed_seconds):
        print(line)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config(args.config)

    if args.command == "run":
        return cmd_run(config, args.seed, verbose=bool(args.verbose))
    if args.command == "queue":
        return cmd_queue(config, args.seed)
    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
