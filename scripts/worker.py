#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
import logging
import os

from rq import SimpleWorker, Worker

from db.session import engine
from pipeline.queue import get_queue, get_redis

logger = logging.getLogger("explore.worker")


def main() -> None:
    parser = ArgumentParser(description="Process queued explore analytics sweeps")
    parser.add_argument("--queue", default=os.getenv("RQ_QUEUE", "default"))
    parser.add_argument("--burst", action="store_true", help="Drain the queue and exit")
    args = parser.parse_args()

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if hasattr(os, "register_at_fork"):
        os.register_at_fork(after_in_child=lambda: engine.dispose())

    simple = os.getenv("RQ_SIMPLE_WORKER", "1") == "1"
    worker_cls = SimpleWorker if simple else Worker
    logger.info("starting %s on queue=%s burst=%s", worker_cls.__name__, args.queue, args.burst)
    worker = worker_cls([get_queue(args.queue)], connection=get_redis())
    worker.work(with_scheduler=False, burst=args.burst)


if __name__ == "__main__":
    main()
