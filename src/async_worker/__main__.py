"""
Demo runner.

Queues synthetic busy-work jobs on an asyncio event loop and reports how
the worker interleaved them with a heartbeat task running on the same loop.

    python -m async_worker --jobs 500 --jobs-per-tick 10
"""

import argparse
import asyncio
import os
import sys
import time
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .config import load_config
from .entities import EventSnapshot
from .hosts import AsyncioHost
from .logging_config import setup_logging
from .worker import AsyncWorker


def busy_work(data: dict, size: int) -> None:
    """Burn a little CPU and record the result in the shared data."""
    data["checksum"] = (data.get("checksum", 0) + sum(i * i for i in range(size))) % 1_000_003


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run synthetic jobs through an AsyncWorker")
    parser.add_argument("--jobs", type=int, default=200, help="Number of jobs to queue")
    parser.add_argument("--job-size", type=int, default=20_000, help="Loop size of each job")
    parser.add_argument(
        "--jobs-per-tick", type=float, default=None,
        help="Override ASYNC_WORKER_JOBS_PER_TICK",
    )
    parser.add_argument("--background", action="store_true", help="Run as a backgrounded host")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--log-dir", default=None, help="Write daily log files here (overrides LOG_DIR)")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> dict:
    config = load_config(dotenv=False)
    if args.jobs_per_tick is not None:
        config.jobs_per_tick = args.jobs_per_tick

    host = AsyncioHost(foregrounded=not args.background)
    worker = AsyncWorker(host, config)
    done = asyncio.get_running_loop().create_future()
    stats = {"ticks": 0, "heartbeats": 0}

    def on_tick(event: EventSnapshot) -> None:
        stats["ticks"] += 1

    def on_finish(event: EventSnapshot) -> None:
        if not done.done():
            done.set_result(event)

    worker.add_event_listener("tick", on_tick)
    worker.add_event_listener("complete", on_finish)
    worker.add_event_listener("error", on_finish)

    for _ in range(args.jobs):
        worker.append(busy_work, args=(worker.data, args.job_size))

    async def heartbeat() -> None:
        while not done.done():
            stats["heartbeats"] += 1
            await asyncio.sleep(0)

    started = time.perf_counter()
    worker.start()
    beat = asyncio.create_task(heartbeat())
    final: EventSnapshot = await done
    await beat

    stats.update(
        event=final.event_name,
        jobs_complete=final.jobs_complete,
        checksum=worker.data.get("checksum"),
        seconds=round(time.perf_counter() - started, 3),
    )
    return stats


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    args = parse_args(argv)
    log_level = (args.log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger = setup_logging(log_level, log_dir=args.log_dir or os.getenv("LOG_DIR") or None)

    stats = asyncio.run(run(args))
    logger.info(
        f"Finished with {stats['event']}: {stats['jobs_complete']} jobs in "
        f"{stats['ticks']} ticks, {stats['heartbeats']} heartbeats, {stats['seconds']}s"
    )
    return 0 if stats["event"] == "complete" else 1


if __name__ == "__main__":
    sys.exit(main())
