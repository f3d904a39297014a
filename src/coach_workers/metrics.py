"""Process-local counters surfaced by the /health endpoint.

Jobs and handler timings per job_type, plus how many evaluations ended at each
risk level. Counters reset on restart; nothing is persisted.
"""

import time

from .health_models import RISK_LEVELS

_start_time = time.monotonic()

_metrics: dict = {
    "jobs_processed": 0,
    "jobs_failed": 0,
    "jobs_dead": 0,
    "handlers": {},
    "evaluations": dict.fromkeys(RISK_LEVELS, 0),
}


def record_handler_invocation(job_type: str, duration_ms: float, success: bool) -> None:
    h = _metrics["handlers"].setdefault(job_type, {
        "invocations": 0,
        "successes": 0,
        "failures": 0,
        "total_duration_ms": 0.0,
    })
    h["invocations"] += 1
    h["total_duration_ms"] += duration_ms
    if success:
        h["successes"] += 1
    else:
        h["failures"] += 1


def record_evaluation(risk_level: str) -> None:
    evaluations = _metrics["evaluations"]
    if risk_level not in evaluations:
        raise ValueError(f"unknown risk level {risk_level!r}")
    evaluations[risk_level] += 1


def record_job_completed() -> None:
    _metrics["jobs_processed"] += 1


def record_job_failed() -> None:
    _metrics["jobs_failed"] += 1


def record_job_dead() -> None:
    _metrics["jobs_dead"] += 1


def get_metrics() -> dict:
    """Snapshot for /health; evaluation counts are ordered safe to critical."""
    return {
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "jobs_processed": _metrics["jobs_processed"],
        "jobs_failed": _metrics["jobs_failed"],
        "jobs_dead": _metrics["jobs_dead"],
        "handlers": {
            job_type: dict(stats)
            for job_type, stats in _metrics["handlers"].items()
        },
        "evaluations": {level: _metrics["evaluations"][level] for level in RISK_LEVELS},
    }
