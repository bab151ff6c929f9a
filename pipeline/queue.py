import os
from datetime import UTC, datetime

from redis import Redis
from rq import Queue

from db.models import Job
from db.session import SessionLocal
from pipeline.jobs import (
    completion_rate_sweep_job,
    engagement_score_sweep_job,
    rq_on_failure,
    rq_on_success,
)

SWEEP_JOBS = {
    "engagement_score": engagement_score_sweep_job,
    "completion_rate": completion_rate_sweep_job,
}
SWEEP_KINDS = (*SWEEP_JOBS, "all")


def _redis_url() -> str:
    return os.getenv("REDIS_URL", "redis://localhost:6379/0")


def _timeout_seconds() -> int:
    return int(os.getenv("RQ_SWEEP_TIMEOUT", "1800"))


def get_redis() -> Redis:
    return Redis.from_url(_redis_url())


def get_queue(name: str = "default") -> Queue:
    return Queue(name, connection=get_redis())


def _sweep_kinds(kind: str) -> list[str]:
    if kind == "all":
        return list(SWEEP_JOBS)
    if kind not in SWEEP_JOBS:
        raise ValueError(f"Unknown sweep: {kind}")
    return [kind]


def enqueue_sweep(kind: str) -> list[dict]:
    kinds = _sweep_kinds(kind)
    session = SessionLocal()
    try:
        queue = get_queue()
        enqueued: list[dict] = []
        for sweep_kind in kinds:
            db_job = Job(
                job_type=f"{sweep_kind}_sweep",
                status="queued",
                payload={"sweep": sweep_kind},
                queued_at=datetime.now(UTC),
            )
            session.add(db_job)
            session.commit()
            session.refresh(db_job)

            rq_job = queue.enqueue(
                SWEEP_JOBS[sweep_kind],
                db_job.id,
                job_timeout=_timeout_seconds(),
                on_failure=rq_on_failure,
                on_success=rq_on_success,
            )
            payload = dict(db_job.payload or {})
            payload["rq_id"] = rq_job.id
            db_job.payload = payload
            session.commit()

            enqueued.append({"job_id": db_job.id, "sweep": sweep_kind, "rq_id": rq_job.id})
        return enqueued
    finally:
        session.close()
