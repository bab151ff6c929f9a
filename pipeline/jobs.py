from __future__ import annotations

from datetime import UTC, datetime
from typing import Callable

from rq.job import Job as RQJob
from sqlalchemy.orm import Session

from db.models import Job
from db.session import SessionLocal
from explore.cache import SweepReport, recompute_completion_rates, recompute_engagement_scores

SWEEPS: dict[str, Callable[[Session], SweepReport]] = {
    "engagement_score": recompute_engagement_scores,
    "completion_rate": recompute_completion_rates,
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _update_job(
    session,
    job_id: int,
    status: str,
    result: dict | None = None,
    error: str | None = None,
) -> None:
    job = session.get(Job, job_id)
    if job is None:
        raise RuntimeError(f"Job not found: {job_id}")
    job.status = status
    if result is not None:
        job.result = result
    if error is not None:
        job.error = error
    job.updated_at = _utc_now()
    session.add(job)


def rq_on_failure(job: RQJob, connection, exc_type, exc_value, traceback) -> None:  # type: ignore[no-untyped-def]
    session = SessionLocal()
    try:
        job_id = job.args[0] if job.args else None
        if job_id is None:
            return
        _update_job(session, int(job_id), "failed", error=str(exc_value))
        session.commit()
    finally:
        session.close()


def rq_on_success(job: RQJob, connection, result, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
    session = SessionLocal()
    try:
        job_id = job.args[0] if job.args else None
        if job_id is None:
            return
        _update_job(session, int(job_id), "succeeded")
        session.commit()
    finally:
        session.close()


def run_sweep(job_id: int, kind: str) -> dict:
    sweep = SWEEPS.get(kind)
    if sweep is None:
        raise ValueError(f"Unknown sweep: {kind}")

    session = SessionLocal()
    try:
        _update_job(session, job_id, "running")
        session.commit()

        report = sweep(session)

        result = report.as_dict()
        _update_job(session, job_id, "succeeded", result=result)
        session.commit()
        return result
    except Exception as exc:
        session.rollback()
        _update_job(session, job_id, "failed", error=str(exc))
        session.commit()
        raise
    finally:
        session.close()


def engagement_score_sweep_job(job_id: int) -> dict:
    return run_sweep(job_id, "engagement_score")


def completion_rate_sweep_job(job_id: int) -> dict:
    return run_sweep(job_id, "completion_rate")
