"""Acknowledgement gate for assigning a workout to a client.

Warnings are advisory. Only a critical evaluation blocks an assignment, and
even that can be overridden when the trainer explicitly acknowledges the risk;
the override reason is stored alongside the validation snapshot.

This is the submit-time rule of the assignment dialog, not its button state:
the dialog never enables its submit button for a critical result, but an
acknowledged critical submission is still accepted. The dialog also stores
the override reason for any acknowledged assignment; here it is stored only
when the risk level actually called for an acknowledgement, so safe and
caution snapshots never carry one.
"""

from __future__ import annotations

from dataclasses import dataclass

from .compatibility import CompatibilityResult

RISK_OVERRIDE_REASON = "Personal reconheceu os riscos e decidiu atribuir"
_ACKNOWLEDGEMENT_LEVELS = frozenset({"high-risk", "critical"})


@dataclass(frozen=True)
class AssignmentDecision:
    allowed: bool
    requires_acknowledgement: bool
    override_reason: str | None


def assignment_decision(
    result: CompatibilityResult | None, risk_acknowledged: bool
) -> AssignmentDecision:
    if result is None:
        return AssignmentDecision(allowed=True, requires_acknowledgement=False, override_reason=None)

    requires_ack = result.risk_level in _ACKNOWLEDGEMENT_LEVELS
    override_reason = RISK_OVERRIDE_REASON if requires_ack and risk_acknowledged else None

    if result.risk_level == "critical":
        return AssignmentDecision(
            allowed=risk_acknowledged,
            requires_acknowledgement=True,
            override_reason=override_reason,
        )
    return AssignmentDecision(
        allowed=True,
        requires_acknowledgement=requires_ack,
        override_reason=override_reason,
    )
