#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
import logging
import os
import sys

from db.session import SessionLocal
from pipeline.jobs import SWEEPS


def main() -> None:
    parser = ArgumentParser(description="Run explore analytics sweeps inline (cron entrypoint)")
    parser.add_argument("--kind", default="all", choices=[*SWEEPS, "all"])
    args = parser.parse_args()

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    kinds = list(SWEEPS) if args.kind == "all" else [args.kind]
    all_failed = False
    session = SessionLocal()
    try:
        for kind in kinds:
            report = SWEEPS[kind](session)
            print(
                f"[sweep] kind={kind} processed={report.processed} "
                f"updated={report.updated} failed={len(report.failures)}"
            )
            all_failed = all_failed or report.all_failed
    finally:
        session.close()

    if all_failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
