"""Health compatibility evaluation (advisory).

Cross-references a client's conditions against a set of exercises using two
strategies: the restriction catalog (condition keyword → restricted exercise
groups) and direct contraindication matching per exercise. The result carries
warnings, critical issues, deduplicated recommendations and one risk level.

Pure and synchronous: callers fetch the snapshots, this module only computes.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from .conditions import (
    ClientHealthProfile,
    ExtractedCondition,
    combined_condition_text,
    normalize_condition_text,
)
from .contraindications import check_contraindication_batch
from .health_models import Exercise, RestrictionRule, RiskLevel, WarningSeverity

NO_CONDITION_RECOMMENDATION = (
    "Nenhuma condição médica registrada. Considere fazer uma avaliação física completa."
)
DEFAULT_RULE_RECOMMENDATION = "Considere exercícios alternativos"
DIRECT_CONTRAINDICATION_CONDITION = "Contraindicação direta"
DIRECT_CONTRAINDICATION_RECOMMENDATION = (
    "Substituir por exercício alternativo ou consultar médico"
)
SOURCE_LABEL_INTAKE = "(Relatado na anamnese)"
SOURCE_LABEL_PROFILE = "(Informado no perfil)"

_RISK_LEVEL_LABELS: dict[RiskLevel, str] = {
    "safe": "Compatível",
    "caution": "Atenção",
    "high-risk": "Alto Risco",
    "critical": "Crítico",
}


@dataclass(frozen=True)
class AffectedExercise:
    id: str
    name: str
    group: str

    @classmethod
    def from_exercise(cls, exercise: Exercise) -> AffectedExercise:
        return cls(id=exercise.id, name=exercise.name, group=exercise.exercise_group)


@dataclass(frozen=True)
class HealthWarning:
    severity: WarningSeverity
    condition: str
    message: str
    affected_exercises: tuple[AffectedExercise, ...]
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "condition": self.condition,
            "message": self.message,
            "affectedExercises": [
                {"id": ex.id, "name": ex.name, "group": ex.group}
                for ex in self.affected_exercises
            ],
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class CompatibilityResult:
    compatible: bool
    warnings: tuple[HealthWarning, ...]
    critical_issues: tuple[HealthWarning, ...]
    recommendations: tuple[str, ...]
    risk_level: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        """JSON shape stored in validation_result columns."""
        return {
            "compatible": self.compatible,
            "warnings": [w.to_dict() for w in self.warnings],
            "criticalIssues": [w.to_dict() for w in self.critical_issues],
            "recommendations": list(self.recommendations),
            "riskLevel": self.risk_level,
        }


def derive_risk_level(
    warnings: Sequence[HealthWarning], critical_issues: Sequence[HealthWarning]
) -> RiskLevel:
    """First matching rule wins: critical > danger > any warning > safe."""
    if critical_issues:
        return "critical"
    if any(w.severity == "danger" for w in warnings):
        return "high-risk"
    if warnings:
        return "caution"
    return "safe"


def _unique_exercises(exercises: Iterable[Exercise]) -> list[Exercise]:
    seen: set[str] = set()
    unique: list[Exercise] = []
    for exercise in exercises:
        if exercise.id in seen:
            continue
        seen.add(exercise.id)
        unique.append(exercise)
    return unique


def _intake_match(
    keyword: str, extracted: Sequence[ExtractedCondition]
) -> ExtractedCondition | None:
    for condition in extracted:
        if condition.keyword in keyword or keyword in condition.keyword:
            return condition
    return None


def _rule_warning(
    rule: RestrictionRule,
    affected: list[Exercise],
    intake_match: ExtractedCondition | None,
) -> HealthWarning:
    source = SOURCE_LABEL_INTAKE if intake_match else SOURCE_LABEL_PROFILE
    message = (
        f"Cliente possui {rule.condition_keyword} {source} - "
        f"{len(affected)} exercício(s) podem ser inadequados"
    )
    if intake_match is not None and intake_match.detail:
        message += f'\nDetalhes: "{intake_match.detail}"'
    return HealthWarning(
        severity=rule.severity_level,
        condition=rule.condition_keyword,
        message=message,
        affected_exercises=tuple(AffectedExercise.from_exercise(ex) for ex in affected),
        recommendation=rule.recommendation or DEFAULT_RULE_RECOMMENDATION,
    )


def evaluate(
    profile: ClientHealthProfile,
    exercises: Iterable[Exercise],
    catalog: Iterable[RestrictionRule],
) -> CompatibilityResult:
    free_text = normalize_condition_text(profile.free_text_conditions)
    extracted = profile.extracted_conditions

    if not free_text and not extracted:
        return CompatibilityResult(
            compatible=True,
            warnings=(),
            critical_issues=(),
            recommendations=(NO_CONDITION_RECOMMENDATION,),
            risk_level="safe",
        )

    evaluated = _unique_exercises(exercises)
    warnings: list[HealthWarning] = []
    critical_issues: list[HealthWarning] = []
    recommendations: list[str] = []

    for rule in catalog:
        keyword = rule.condition_keyword.lower()
        intake_match = _intake_match(keyword, extracted)
        if keyword not in free_text and intake_match is None:
            continue

        affected = [
            ex for ex in evaluated if ex.exercise_group in rule.restricted_exercise_groups
        ]
        if not affected:
            continue

        warning = _rule_warning(rule, affected, intake_match)
        if rule.severity_level == "critical":
            critical_issues.append(warning)
        else:
            warnings.append(warning)

        if rule.recommendation:
            recommendations.append(rule.recommendation)

    condition_text = combined_condition_text(free_text, extracted)
    direct_results = check_contraindication_batch(evaluated, condition_text)
    for exercise in evaluated:
        result = direct_results[exercise.id]
        if not result.has_risk:
            continue
        warnings.append(
            HealthWarning(
                severity="danger",
                condition=DIRECT_CONTRAINDICATION_CONDITION,
                message=(
                    f'"{exercise.name}" possui contraindicação: '
                    f"{', '.join(result.matched_keywords)}"
                ),
                affected_exercises=(AffectedExercise.from_exercise(exercise),),
                recommendation=DIRECT_CONTRAINDICATION_RECOMMENDATION,
            )
        )

    return CompatibilityResult(
        compatible=not critical_issues,
        warnings=tuple(warnings),
        critical_issues=tuple(critical_issues),
        recommendations=tuple(dict.fromkeys(recommendations)),
        risk_level=derive_risk_level(warnings, critical_issues),
    )


def risk_summary(result: CompatibilityResult) -> dict[str, Any]:
    """Short title/headline pair for trainer-facing surfaces."""
    issue_count = len(result.warnings) + len(result.critical_issues)
    headlines: dict[RiskLevel, str] = {
        "safe": "Nenhuma restrição detectada",
        "caution": f"{issue_count} restrição(ões) leve(s)",
        "high-risk": f"{issue_count} restrição(ões) importante(s)",
        "critical": "Treino contraindicado",
    }
    return {
        "title": _RISK_LEVEL_LABELS[result.risk_level],
        "headline": headlines[result.risk_level],
        "issue_count": issue_count,
    }
