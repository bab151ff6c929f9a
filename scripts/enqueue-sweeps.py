#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser

from pipeline.queue import SWEEP_KINDS, enqueue_sweep


def main() -> None:
    parser = ArgumentParser(description="Enqueue explore analytics sweeps")
    parser.add_argument("--kind", default="all", choices=SWEEP_KINDS)
    args = parser.parse_args()

    for item in enqueue_sweep(args.kind):
        print(f"[enqueue] sweep={item['sweep']} job_id={item['job_id']} rq_id={item['rq_id']}")


if __name__ == "__main__":
    main()
