"""Versioned translation table from anamnesis labels to condition keywords.

The anamnesis form stores human labels ("Joelhos", "Cardiopatia"). Restriction
rules and contraindication texts speak in condition phrases ("dor no joelho",
"problema cardíaco"). The mapping is data, not code: deployments can ship a
JSON override via COACH_CONDITION_MAPPING_PATH.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

CONDITION_MAPPING_VERSION_V1 = "intake_condition_mapping.v1"


@dataclass(frozen=True)
class ConditionMapping:
    version: str
    translations: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        cleaned: dict[str, str] = {}
        for label, phrase in self.translations.items():
            key = str(label).strip()
            if not key:
                raise ValueError("condition mapping labels must be non-empty")
            # An empty phrase is a substring of every rule keyword.
            if not isinstance(phrase, str) or not phrase.strip():
                raise ValueError(f"translation for {label!r} must be a non-empty string")
            cleaned[key] = phrase.strip().lower()
        # Read-only view so a shared mapping cannot drift between evaluations.
        object.__setattr__(self, "translations", MappingProxyType(cleaned))

    def translate(self, label: str) -> str:
        """Return the condition keyword for an intake label (lowercased fallback)."""
        cleaned = label.strip()
        return self.translations.get(cleaned, cleaned.lower())

    def with_overrides(self, extra: Mapping[str, str]) -> ConditionMapping:
        merged = {**self.translations, **extra}
        return ConditionMapping(version=f"{self.version}+overrides", translations=merged)

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "translations": dict(self.translations)}

    @classmethod
    def from_dict(cls, data: Any) -> ConditionMapping:
        if not isinstance(data, dict):
            raise ValueError("condition mapping must be a JSON object")
        version = data.get("version")
        if not isinstance(version, str) or not version.strip():
            raise ValueError("condition mapping requires a non-empty 'version'")
        translations = data.get("translations")
        if not isinstance(translations, dict):
            raise ValueError("condition mapping requires a 'translations' object")
        return cls(version=version.strip(), translations=translations)


DEFAULT_CONDITION_MAPPING = ConditionMapping(
    version=CONDITION_MAPPING_VERSION_V1,
    translations={
        # pain locations
        "Joelhos": "dor no joelho",
        "Costas": "dor nas costas",
        "Ombros": "dor no ombro",
        "Quadril": "dor no quadril",
        "Tornozelos": "dor no tornozelo",
        "Cervical": "dor cervical",
        "Lombar": "dor lombar",
        "Punhos": "dor no punho",
        "Cotovelos": "dor no cotovelo",
        # medical restrictions
        "Hipertensão": "hipertensão",
        "Diabetes": "diabetes",
        "Hérnia": "hérnia",
        "Hérnia de disco": "hérnia de disco",
        "Cardiopatia": "problema cardíaco",
        "Asma": "asma",
        "Artrose": "artrose",
        "Tendinite": "tendinite",
    },
)

_active_mapping: ConditionMapping = DEFAULT_CONDITION_MAPPING


def load_condition_mapping(path: str | Path | None) -> ConditionMapping:
    """Load a mapping document from disk, or the built-in default when path is None."""
    if path is None:
        return DEFAULT_CONDITION_MAPPING
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"condition mapping at {path} is not valid JSON: {exc}") from exc
    mapping = ConditionMapping.from_dict(data)
    logger.info(
        "Loaded condition mapping %s (%d translations) from %s",
        mapping.version,
        len(mapping.translations),
        path,
    )
    return mapping


def activate_condition_mapping(mapping: ConditionMapping) -> None:
    global _active_mapping
    _active_mapping = mapping
    logger.info("Active condition mapping: %s", mapping.version)


def active_condition_mapping() -> ConditionMapping:
    return _active_mapping
