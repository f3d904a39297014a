"""CLI entry point for one-off health compatibility checks."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Sequence

import psycopg
from pydantic import ValidationError

from .compatibility import CompatibilityResult, evaluate, risk_summary
from .condition_mapping import ConditionMapping, load_condition_mapping
from .conditions import build_health_profile
from .health_models import HealthSnapshot
from .stores import (
    WorkoutNotFoundError,
    fetch_exercises,
    fetch_restriction_catalog,
    fetch_workout_exercises,
    load_client_health_profile,
)

EXIT_CRITICAL = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coach-health-check",
        description="Evaluate a client's health compatibility with a set of exercises.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--snapshot",
        help="JSON file with medical_conditions, intake, exercises and restrictions.",
    )
    source.add_argument(
        "--client-id",
        help="Client UUID to evaluate against the database in DATABASE_URL.",
    )
    parser.add_argument(
        "--workout-id",
        help="Workout whose exercises are evaluated (with --client-id).",
    )
    parser.add_argument(
        "--exercise-id",
        action="append",
        default=None,
        help="Exercise id to evaluate (repeatable, with --client-id).",
    )
    parser.add_argument(
        "--condition-mapping",
        default=None,
        help="JSON file overriding the anamnesis label translation table.",
    )
    return parser


def evaluate_snapshot(data: Any, mapping: ConditionMapping) -> CompatibilityResult:
    snapshot = HealthSnapshot.model_validate(data)
    profile = build_health_profile(snapshot.medical_conditions, snapshot.intake, mapping)
    return evaluate(profile, snapshot.exercises, snapshot.restrictions)


async def _evaluate_from_database(
    database_url: str,
    client_id: str,
    workout_id: str | None,
    exercise_ids: list[str] | None,
    mapping: ConditionMapping,
) -> CompatibilityResult:
    async with await psycopg.AsyncConnection.connect(database_url) as conn:
        if workout_id:
            exercises = await fetch_workout_exercises(conn, workout_id)
        else:
            exercises = await fetch_exercises(conn, exercise_ids or [])
        profile = await load_client_health_profile(conn, client_id, mapping)
        catalog = await fetch_restriction_catalog(conn)
    return evaluate(profile, exercises, catalog)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        mapping = load_condition_mapping(args.condition_mapping)
    except (OSError, ValueError) as exc:
        parser.error(f"invalid condition mapping: {exc}")

    if args.snapshot:
        try:
            data = json.loads(Path(args.snapshot).read_text(encoding="utf-8"))
            result = evaluate_snapshot(data, mapping)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            parser.error(f"invalid snapshot: {exc}")
    else:
        if not args.workout_id and not args.exercise_id:
            parser.error("--client-id requires --workout-id or --exercise-id")
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            parser.error("DATABASE_URL must be set for --client-id checks")
        try:
            result = asyncio.run(
                _evaluate_from_database(
                    database_url,
                    args.client_id,
                    args.workout_id,
                    args.exercise_id,
                    mapping,
                )
            )
        except WorkoutNotFoundError as exc:
            parser.error(str(exc))

    output = {
        **result.to_dict(),
        "summary": risk_summary(result),
        "conditionMappingVersion": mapping.version,
    }
    print(json.dumps(output, indent=2, ensure_ascii=False))
    return EXIT_CRITICAL if result.risk_level == "critical" else 0


if __name__ == "__main__":
    sys.exit(main())
