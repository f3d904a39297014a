"""Health-compatibility background jobs.

- health.compatibility_check: one client against a workout or an ad-hoc
  exercise selection; result upserted into client_health_checks.
- health.assignment_validation: evaluates a freshly assigned workout, applies
  the acknowledgement gate and appends to workout_assignment_validations.
- health.batch_check: every active assignment (optionally per client list),
  sharing one catalog snapshot across the batch.
"""

import hashlib
import logging
import time
from collections import Counter
from collections.abc import Sequence
from typing import Any

import psycopg

from ..assignment_gate import assignment_decision
from ..compatibility import CompatibilityResult, evaluate
from ..condition_mapping import active_condition_mapping
from ..conditions import ClientHealthProfile
from ..health_models import Exercise
from ..metrics import record_evaluation
from ..registry import register
from ..stores import (
    WorkoutNotFoundError,
    fetch_active_assignments,
    fetch_client_workout,
    fetch_exercises,
    fetch_restriction_catalog,
    fetch_workout_exercises,
    load_client_health_profile,
    record_assignment_validation,
    save_health_check,
)

logger = logging.getLogger(__name__)


def workout_check_key(workout_id: str) -> str:
    return f"workout:{workout_id}"


def exercise_selection_check_key(exercise_ids: Sequence[str]) -> str:
    """Stable key for an ad-hoc selection, independent of order and repeats."""
    canonical = ",".join(sorted(set(exercise_ids)))
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
    return f"exercises:{digest}"


def _required_id(payload: dict[str, Any], field: str, job_type: str) -> str:
    value = payload.get(field)
    if value is None or not str(value).strip():
        raise ValueError(f"Missing {field} in {job_type} payload")
    return str(value).strip()


def _optional_id_list(payload: dict[str, Any], field: str, job_type: str) -> list[str] | None:
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"{field} in {job_type} payload must be a list")
    return [str(item).strip() for item in value if str(item).strip()]


def _log_result(job_type: str, client_id: str, result: CompatibilityResult, started: float) -> None:
    duration_ms = (time.monotonic() - started) * 1000
    logger.info(
        "%s client=%s risk_level=%s warnings=%d critical=%d",
        job_type,
        client_id,
        result.risk_level,
        len(result.warnings),
        len(result.critical_issues),
        extra={
            "coach_job_type": job_type,
            "coach_client_id": client_id,
            "coach_risk_level": result.risk_level,
            "coach_duration_ms": round(duration_ms, 1),
        },
    )


@register("health.compatibility_check")
async def handle_compatibility_check(
    conn: psycopg.AsyncConnection[Any], payload: dict[str, Any]
) -> None:
    job_type = "health.compatibility_check"
    started = time.monotonic()
    client_id = _required_id(payload, "client_id", job_type)
    workout_id = payload.get("workout_id")
    exercise_ids = _optional_id_list(payload, "exercise_ids", job_type)

    if workout_id:
        workout_id = str(workout_id)
        exercises = await fetch_workout_exercises(conn, workout_id)
        check_key = workout_check_key(workout_id)
    elif exercise_ids is not None:
        workout_id = None
        exercises = await fetch_exercises(conn, exercise_ids)
        check_key = exercise_selection_check_key(exercise_ids)
    else:
        raise ValueError(f"{job_type} payload needs workout_id or exercise_ids")

    profile = await load_client_health_profile(conn, client_id)
    catalog = await fetch_restriction_catalog(conn)
    result = evaluate(profile, exercises, catalog)
    record_evaluation(result.risk_level)

    await save_health_check(
        conn,
        client_id=client_id,
        check_key=check_key,
        workout_id=workout_id,
        result=result,
    )
    _log_result(job_type, client_id, result, started)


@register("health.assignment_validation")
async def handle_assignment_validation(
    conn: psycopg.AsyncConnection[Any], payload: dict[str, Any]
) -> None:
    job_type = "health.assignment_validation"
    started = time.monotonic()
    client_workout_id = _required_id(payload, "client_workout_id", job_type)

    assignment = await fetch_client_workout(conn, client_workout_id)
    if not assignment:
        logger.info("%s skipped: client_workout %s no longer exists", job_type, client_workout_id)
        return
    if not assignment["client_id"] or not assignment["workout_id"]:
        logger.info(
            "%s skipped: client_workout %s has no client or workout", job_type, client_workout_id
        )
        return

    client_id = str(assignment["client_id"])
    exercises = await fetch_workout_exercises(conn, str(assignment["workout_id"]))
    profile = await load_client_health_profile(conn, client_id)
    catalog = await fetch_restriction_catalog(conn)
    result = evaluate(profile, exercises, catalog)
    record_evaluation(result.risk_level)

    decision = assignment_decision(result, bool(payload.get("risk_acknowledged")))
    if not decision.allowed:
        logger.warning(
            "client_workout %s has critical health issues and no risk acknowledgement",
            client_workout_id,
            extra={"coach_client_id": client_id, "coach_risk_level": result.risk_level},
        )

    assigned_by = payload.get("assigned_by") or assignment.get("assigned_by")
    await record_assignment_validation(
        conn,
        client_workout_id=client_workout_id,
        result=result,
        override_reason=decision.override_reason,
        assigned_by=str(assigned_by) if assigned_by else None,
    )
    _log_result(job_type, client_id, result, started)


@register("health.batch_check")
async def handle_batch_check(
    conn: psycopg.AsyncConnection[Any], payload: dict[str, Any]
) -> None:
    job_type = "health.batch_check"
    started = time.monotonic()
    client_ids = _optional_id_list(payload, "client_ids", job_type)

    assignments = await fetch_active_assignments(conn, client_ids)
    if not assignments:
        logger.info("%s: no active assignments to evaluate", job_type)
        return

    mapping = active_condition_mapping()
    catalog = await fetch_restriction_catalog(conn)
    profiles: dict[str, ClientHealthProfile] = {}
    workout_exercises: dict[str, list[Exercise]] = {}
    tally: Counter[str] = Counter()

    for assignment in assignments:
        client_id = str(assignment["client_id"])
        workout_id = str(assignment["workout_id"])

        if client_id not in profiles:
            profiles[client_id] = await load_client_health_profile(conn, client_id, mapping)
        if workout_id not in workout_exercises:
            try:
                workout_exercises[workout_id] = await fetch_workout_exercises(conn, workout_id)
            except WorkoutNotFoundError:
                logger.warning(
                    "%s: assignment %s points at missing workout %s",
                    job_type,
                    assignment["id"],
                    workout_id,
                )
                continue

        result = evaluate(profiles[client_id], workout_exercises[workout_id], catalog)
        record_evaluation(result.risk_level)
        await save_health_check(
            conn,
            client_id=client_id,
            check_key=workout_check_key(workout_id),
            workout_id=workout_id,
            result=result,
        )
        tally[result.risk_level] += 1

    logger.info(
        "%s evaluated %d assignments for %d clients: %s",
        job_type,
        sum(tally.values()),
        len(profiles),
        dict(tally),
        extra={
            "coach_job_type": job_type,
            "coach_duration_ms": round((time.monotonic() - started) * 1000, 1),
        },
    )
