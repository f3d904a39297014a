"""Boundary models for health-compatibility inputs.

Rows read from the application database (exercises, restriction catalog,
anamnesis answers) are validated here before the engine sees them. The engine
itself assumes well-typed input and never re-validates.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

WarningSeverity = Literal["warning", "danger", "critical"]
MatchSeverity = Literal["warning", "error", "info"]
RiskLevel = Literal["safe", "caution", "high-risk", "critical"]
ConditionSource = Literal["profile", "intake"]
ExerciseGroup = Literal[
    "Abdômen",
    "Peito",
    "Costas",
    "Pernas",
    "Ombros",
    "Bíceps",
    "Tríceps",
    "Glúteos",
    "Panturrilha",
    "Outro",
    "Quadríceps",
    "Posterior",
    "Lombar",
]

RISK_LEVELS: tuple[RiskLevel, ...] = ("safe", "caution", "high-risk", "critical")


def _normalized_non_empty(value: str, *, field_name: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{field_name} must not be empty")
    return normalized


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class Exercise(BaseModel):
    """Exercise row subset relevant to contraindication checks."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    exercise_group: ExerciseGroup
    contraindication: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        # uuid.UUID from psycopg
        if value is not None and not isinstance(value, str):
            return str(value)
        return value

    @field_validator("id", "name")
    @classmethod
    def validate_non_empty(cls, value: str, info: Any) -> str:
        return _normalized_non_empty(value, field_name=info.field_name)

    @field_validator("contraindication")
    @classmethod
    def normalize_contraindication(cls, value: str | None) -> str | None:
        return _optional_text(value)


class RestrictionRule(BaseModel):
    """One row of the medical condition → exercise group restriction catalog."""

    model_config = ConfigDict(frozen=True)

    condition_keyword: str
    restricted_exercise_groups: frozenset[str]
    severity_level: WarningSeverity
    recommendation: str | None = None

    @field_validator("condition_keyword")
    @classmethod
    def validate_keyword(cls, value: str) -> str:
        return _normalized_non_empty(value, field_name="condition_keyword")

    @field_validator("restricted_exercise_groups", mode="before")
    @classmethod
    def require_groups(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("restricted_exercise_groups must be a list of exercise groups")
        return value

    @field_validator("recommendation")
    @classmethod
    def normalize_recommendation(cls, value: str | None) -> str | None:
        return _optional_text(value)


class IntakeAnswers(BaseModel):
    """Anamnesis fields that carry health conditions.

    Database NULLs are folded into False / [] / None so the extractor never
    has to distinguish "unanswered" from "answered no".
    """

    model_config = ConfigDict(frozen=True)

    has_joint_pain: bool = False
    pain_locations: list[str] = []
    pain_details: str | None = None
    has_injury_or_surgery: bool = False
    injury_type: str | None = None
    injury_details: str | None = None
    medical_restrictions: list[str] = []
    medical_restrictions_details: str | None = None

    @field_validator("has_joint_pain", "has_injury_or_surgery", mode="before")
    @classmethod
    def null_flag_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("pain_locations", "medical_restrictions", mode="before")
    @classmethod
    def null_list_is_empty(cls, value: Any) -> Any:
        if value is None:
            return []
        # text[] columns may hold NULL elements
        if isinstance(value, (list, tuple)):
            return [item for item in value if item is not None]
        return value

    @field_validator(
        "pain_details",
        "injury_type",
        "injury_details",
        "medical_restrictions_details",
    )
    @classmethod
    def normalize_optional_text(cls, value: str | None) -> str | None:
        return _optional_text(value)


class HealthSnapshot(BaseModel):
    """Offline bundle of everything one evaluation reads (CLI / fixtures)."""

    medical_conditions: str | None = None
    intake: IntakeAnswers | None = None
    exercises: list[Exercise] = []
    restrictions: list[RestrictionRule] = []
