"""Database accessors for health-compatibility inputs and outputs.

Reads go through the boundary models in health_models; rows that fail
validation are logged and skipped so one bad catalog entry cannot stall every
check. The engine never sees a raw row.
"""

import logging
from collections.abc import Sequence
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Json
from pydantic import ValidationError

from .compatibility import CompatibilityResult
from .condition_mapping import ConditionMapping, active_condition_mapping
from .conditions import ClientHealthProfile, build_health_profile
from .health_models import Exercise, IntakeAnswers, RestrictionRule

logger = logging.getLogger(__name__)

ACTIVE_ASSIGNMENT_STATUS = "Ativo"

_EXERCISE_COLUMNS = "e.id, e.name, e.exercise_group, e.contraindication"


class WorkoutNotFoundError(LookupError):
    pass


def _validated_exercises(rows: list[dict[str, Any]]) -> list[Exercise]:
    exercises: list[Exercise] = []
    for row in rows:
        try:
            exercises.append(Exercise.model_validate(row))
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid exercise row id=%s: %s",
                row.get("id"),
                exc.errors(include_url=False),
            )
    return exercises


async def fetch_medical_conditions(
    conn: psycopg.AsyncConnection[Any], client_id: str
) -> str | None:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            "SELECT medical_conditions FROM profiles WHERE id = %s",
            (client_id,),
        )
        row = await cur.fetchone()
    if not row:
        return None
    return row["medical_conditions"]


async def fetch_intake_answers(
    conn: psycopg.AsyncConnection[Any], client_id: str
) -> IntakeAnswers | None:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            SELECT has_joint_pain, pain_locations, pain_details,
                   has_injury_or_surgery, injury_type, injury_details,
                   medical_restrictions, medical_restrictions_details
            FROM anamnesis
            WHERE client_id = %s
            LIMIT 1
            """,
            (client_id,),
        )
        row = await cur.fetchone()
    if not row:
        return None
    try:
        return IntakeAnswers.model_validate(row)
    except ValidationError as exc:
        logger.warning(
            "Ignoring invalid anamnesis for client=%s: %s",
            client_id,
            exc.errors(include_url=False),
        )
        return None


async def fetch_restriction_catalog(
    conn: psycopg.AsyncConnection[Any],
) -> list[RestrictionRule]:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            SELECT id, condition_keyword, restricted_exercise_groups,
                   severity_level, recommendation
            FROM medical_condition_exercise_restrictions
            ORDER BY condition_keyword, id
            """
        )
        rows = await cur.fetchall()

    catalog: list[RestrictionRule] = []
    for row in rows:
        try:
            catalog.append(RestrictionRule.model_validate(row))
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid restriction rule id=%s: %s",
                row.get("id"),
                exc.errors(include_url=False),
            )
    return catalog


async def fetch_exercises(
    conn: psycopg.AsyncConnection[Any], exercise_ids: Sequence[str] | None = None
) -> list[Exercise]:
    """Load exercises by id, or every exercise when exercise_ids is None."""
    if exercise_ids is not None and not exercise_ids:
        return []

    async with conn.cursor(row_factory=dict_row) as cur:
        if exercise_ids is None:
            await cur.execute(
                f"SELECT {_EXERCISE_COLUMNS} FROM exercises e ORDER BY e.name, e.id"
            )
        else:
            await cur.execute(
                f"SELECT {_EXERCISE_COLUMNS} FROM exercises e WHERE e.id = ANY(%s) "
                "ORDER BY e.name, e.id",
                (list(exercise_ids),),
            )
        rows = await cur.fetchall()
    return _validated_exercises(rows)


async def fetch_workout_exercises(
    conn: psycopg.AsyncConnection[Any], workout_id: str
) -> list[Exercise]:
    """Exercises reachable from a workout, in session then exercise order."""
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute("SELECT id FROM workouts WHERE id = %s", (workout_id,))
        if await cur.fetchone() is None:
            raise WorkoutNotFoundError(f"Workout {workout_id} not found")

        await cur.execute(
            f"""
            SELECT {_EXERCISE_COLUMNS}
            FROM workout_sessions ws
            JOIN session_exercises se ON se.session_id = ws.session_id
            JOIN exercises e ON e.id = se.exercise_id
            WHERE ws.workout_id = %s
            ORDER BY ws.order_index, se.order_index
            """,
            (workout_id,),
        )
        rows = await cur.fetchall()
    return _validated_exercises(rows)


async def fetch_client_workout(
    conn: psycopg.AsyncConnection[Any], client_workout_id: str
) -> dict[str, Any] | None:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            SELECT id, client_id, workout_id, assigned_by, status
            FROM client_workouts
            WHERE id = %s
            """,
            (client_workout_id,),
        )
        return await cur.fetchone()


async def fetch_active_assignments(
    conn: psycopg.AsyncConnection[Any], client_ids: Sequence[str] | None = None
) -> list[dict[str, Any]]:
    async with conn.cursor(row_factory=dict_row) as cur:
        if client_ids is None:
            await cur.execute(
                """
                SELECT id, client_id, workout_id
                FROM client_workouts
                WHERE status = %s AND client_id IS NOT NULL AND workout_id IS NOT NULL
                ORDER BY client_id, assigned_at, id
                """,
                (ACTIVE_ASSIGNMENT_STATUS,),
            )
        else:
            await cur.execute(
                """
                SELECT id, client_id, workout_id
                FROM client_workouts
                WHERE status = %s AND client_id = ANY(%s) AND workout_id IS NOT NULL
                ORDER BY client_id, assigned_at, id
                """,
                (ACTIVE_ASSIGNMENT_STATUS, list(client_ids)),
            )
        return await cur.fetchall()


async def load_client_health_profile(
    conn: psycopg.AsyncConnection[Any],
    client_id: str,
    mapping: ConditionMapping | None = None,
) -> ClientHealthProfile:
    medical_conditions = await fetch_medical_conditions(conn, client_id)
    intake = await fetch_intake_answers(conn, client_id)
    return build_health_profile(
        medical_conditions, intake, mapping or active_condition_mapping()
    )


async def save_health_check(
    conn: psycopg.AsyncConnection[Any],
    *,
    client_id: str,
    check_key: str,
    workout_id: str | None,
    result: CompatibilityResult,
) -> None:
    async with conn.cursor() as cur:
        await cur.execute(
            """
            INSERT INTO client_health_checks
                (client_id, check_key, workout_id, risk_level, compatible, result, checked_at)
            VALUES (%s, %s, %s, %s, %s, %s, NOW())
            ON CONFLICT (client_id, check_key) DO UPDATE SET
                workout_id = EXCLUDED.workout_id,
                risk_level = EXCLUDED.risk_level,
                compatible = EXCLUDED.compatible,
                result = EXCLUDED.result,
                checked_at = NOW()
            """,
            (
                client_id,
                check_key,
                workout_id,
                result.risk_level,
                result.compatible,
                Json(result.to_dict()),
            ),
        )


async def record_assignment_validation(
    conn: psycopg.AsyncConnection[Any],
    *,
    client_workout_id: str,
    result: CompatibilityResult,
    override_reason: str | None,
    assigned_by: str | None,
) -> None:
    async with conn.cursor() as cur:
        await cur.execute(
            """
            INSERT INTO workout_assignment_validations
                (client_workout_id, validation_result, override_reason, assigned_by)
            VALUES (%s, %s, %s, %s)
            """,
            (client_workout_id, Json(result.to_dict()), override_reason, assigned_by),
        )
