#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
from dataclasses import asdict
from datetime import datetime
import json

from db.session import SessionLocal
from explore.analytics import TimeWindow, creator_analytics, video_analytics
from explore.errors import ExploreError


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def main() -> None:
    parser = ArgumentParser(description="Print explore analytics as JSON")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--video-id", type=int)
    target.add_argument("--creator-id", type=int)
    parser.add_argument("--start", default=None, help="ISO-8601 lower bound (inclusive)")
    parser.add_argument("--end", default=None, help="ISO-8601 upper bound (inclusive)")
    args = parser.parse_args()

    window = TimeWindow(start=_parse_dt(args.start), end=_parse_dt(args.end))
    session = SessionLocal()
    try:
        if args.video_id is not None:
            result = video_analytics(session, args.video_id, window)
        else:
            result = creator_analytics(session, args.creator_id, window)
    except ExploreError as exc:
        raise SystemExit(f"[analytics] {exc.code}: {exc}") from exc
    finally:
        session.close()

    print(json.dumps(asdict(result), indent=2, default=str))


if __name__ == "__main__":
    main()
