"""Direct contraindication matching against a fixed risk vocabulary.

A vocabulary entry matches when its keyword appears in BOTH the exercise's
contraindication text and the client's condition text. This is a plain
substring match: phrasing that avoids the vocabulary is not detected.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .health_models import Exercise, MatchSeverity


@dataclass(frozen=True)
class RiskKeyword:
    keyword: str
    severity: MatchSeverity
    context: str


@dataclass(frozen=True)
class ContraindicationResult:
    has_risk: bool
    severity: MatchSeverity
    message: str
    matched_keywords: tuple[str, ...]


# Accented and unaccented spellings both appear in trainer-authored text.
RISK_KEYWORDS: tuple[RiskKeyword, ...] = (
    RiskKeyword("articular", "warning", "dor nas articulações"),
    RiskKeyword("lesão", "error", "histórico de lesões"),
    RiskKeyword("lesao", "error", "histórico de lesões"),
    RiskKeyword("cirurgia", "error", "cirurgia prévia"),
    RiskKeyword("dor", "warning", "dor"),
    RiskKeyword("lombar", "warning", "problemas lombares"),
    RiskKeyword("coluna", "warning", "problemas na coluna"),
    RiskKeyword("joelho", "warning", "problemas no joelho"),
    RiskKeyword("ombro", "warning", "problemas no ombro"),
    RiskKeyword("cardíaco", "error", "problemas cardíacos"),
    RiskKeyword("cardiaco", "error", "problemas cardíacos"),
    RiskKeyword("hipertensão", "warning", "hipertensão"),
    RiskKeyword("hipertensao", "warning", "hipertensão"),
    RiskKeyword("diabetes", "warning", "diabetes"),
    RiskKeyword("hérnia", "error", "hérnia"),
    RiskKeyword("hernia", "error", "hérnia"),
    RiskKeyword("tendinite", "warning", "tendinite"),
    RiskKeyword("bursite", "warning", "bursite"),
)

NO_RISK = ContraindicationResult(
    has_risk=False,
    severity="info",
    message="",
    matched_keywords=(),
)


def _match(contraindication: str, conditions_lower: str) -> ContraindicationResult:
    contra_lower = contraindication.lower()
    matched = [
        risk
        for risk in RISK_KEYWORDS
        if risk.keyword in contra_lower and risk.keyword in conditions_lower
    ]
    if not matched:
        return NO_RISK

    severity: MatchSeverity = (
        "error" if any(risk.severity == "error" for risk in matched) else "warning"
    )
    # dict.fromkeys keeps first-seen order while deduplicating
    contexts = tuple(dict.fromkeys(risk.context for risk in matched))
    return ContraindicationResult(
        has_risk=True,
        severity=severity,
        message=contraindication,
        matched_keywords=contexts,
    )


def check_contraindication(
    exercise: Exercise | None, condition_text: str | None
) -> ContraindicationResult:
    if exercise is None or not exercise.contraindication or not condition_text:
        return NO_RISK
    return _match(exercise.contraindication, condition_text.lower())


def check_contraindication_batch(
    exercises: Iterable[Exercise], condition_text: str | None
) -> dict[str, ContraindicationResult]:
    """Run check_contraindication for every exercise, keyed by exercise id."""
    conditions_lower = (condition_text or "").lower()
    results: dict[str, ContraindicationResult] = {}
    for exercise in exercises:
        if not exercise.contraindication or not conditions_lower:
            results[exercise.id] = NO_RISK
            continue
        results[exercise.id] = _match(exercise.contraindication, conditions_lower)
    return results
