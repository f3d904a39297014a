"""Condition extraction: anamnesis answers + profile notes → condition keywords."""

from __future__ import annotations

from dataclasses import dataclass, field

from .condition_mapping import DEFAULT_CONDITION_MAPPING, ConditionMapping
from .health_models import ConditionSource, IntakeAnswers


@dataclass(frozen=True)
class ExtractedCondition:
    keyword: str
    source: ConditionSource
    detail: str | None = None


@dataclass(frozen=True)
class ClientHealthProfile:
    """Everything known about a client's health for one evaluation."""

    free_text_conditions: str = ""
    extracted_conditions: tuple[ExtractedCondition, ...] = field(default_factory=tuple)


def normalize_condition_text(text: str | None) -> str:
    return (text or "").strip().lower()


def extract_conditions(
    intake: IntakeAnswers | None,
    mapping: ConditionMapping = DEFAULT_CONDITION_MAPPING,
) -> list[ExtractedCondition]:
    """Flatten structured anamnesis answers into condition keywords.

    Order is pain locations, then injury, then medical restrictions. Repeats
    are kept; blank labels are skipped.
    """
    if intake is None:
        return []

    extracted: list[ExtractedCondition] = []

    if intake.has_joint_pain:
        for location in intake.pain_locations:
            if not location.strip():
                continue
            extracted.append(
                ExtractedCondition(
                    keyword=mapping.translate(location),
                    source="intake",
                    detail=intake.pain_details,
                )
            )

    if intake.has_injury_or_surgery and intake.injury_type:
        extracted.append(
            ExtractedCondition(
                keyword=intake.injury_type.lower(),
                source="intake",
                detail=intake.injury_details,
            )
        )

    for restriction in intake.medical_restrictions:
        if not restriction.strip():
            continue
        extracted.append(
            ExtractedCondition(
                keyword=mapping.translate(restriction),
                source="intake",
                detail=intake.medical_restrictions_details,
            )
        )

    return extracted


def combined_condition_text(
    free_text: str | None, extracted: list[ExtractedCondition] | tuple[ExtractedCondition, ...]
) -> str:
    """Profile text followed by every extracted keyword, space separated."""
    parts = [normalize_condition_text(free_text)]
    parts.extend(condition.keyword for condition in extracted)
    return " ".join(parts)


def build_health_profile(
    medical_conditions: str | None,
    intake: IntakeAnswers | None,
    mapping: ConditionMapping = DEFAULT_CONDITION_MAPPING,
) -> ClientHealthProfile:
    return ClientHealthProfile(
        free_text_conditions=normalize_condition_text(medical_conditions),
        extracted_conditions=tuple(extract_conditions(intake, mapping)),
    )
