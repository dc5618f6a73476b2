"""Builds an AnalysisResult from a decoded provider payload.

Models answer with loosely shaped JSON: field names in snake_case, severity
labels in several vocabularies, threats given as bare strings. The builders
below accept those variants and reject anything that cannot be mapped without
guessing.
"""

import math
from collections.abc import Mapping
from typing import Any

from docsentry.analysis.models import AnalysisResult, TestScenario, Threat, ThreatLevel
from docsentry.exceptions import ValidationError

_LEVEL_ALIASES: dict[str, ThreatLevel] = {
    "critical": ThreatLevel.CRITICAL,
    "severe": ThreatLevel.CRITICAL,
    "urgent": ThreatLevel.CRITICAL,
    "blocker": ThreatLevel.CRITICAL,
    "严重": ThreatLevel.CRITICAL,
    "high": ThreatLevel.HIGH,
    "major": ThreatLevel.HIGH,
    "serious": ThreatLevel.HIGH,
    "高危": ThreatLevel.HIGH,
    "高": ThreatLevel.HIGH,
    "medium": ThreatLevel.MEDIUM,
    "moderate": ThreatLevel.MEDIUM,
    "med": ThreatLevel.MEDIUM,
    "中等": ThreatLevel.MEDIUM,
    "中危": ThreatLevel.MEDIUM,
    "中": ThreatLevel.MEDIUM,
    "low": ThreatLevel.LOW,
    "minor": ThreatLevel.LOW,
    "info": ThreatLevel.LOW,
    "informational": ThreatLevel.LOW,
    "低危": ThreatLevel.LOW,
    "低": ThreatLevel.LOW,
}

# Lower bounds on a 0-10 scale, highest first.
_SCORE_BANDS = (
    (9.0, ThreatLevel.CRITICAL),
    (7.0, ThreatLevel.HIGH),
    (4.0, ThreatLevel.MEDIUM),
    (0.0, ThreatLevel.LOW),
)


def validate_and_build(data: Mapping[str, Any]) -> AnalysisResult:
    """Validate a decoded payload and build an AnalysisResult.

    Missing fields take safe defaults; present fields of the wrong type fail.

    Raises:
        ValidationError: on any field that cannot be mapped.
    """
    if not isinstance(data, Mapping):
        raise ValidationError("Analysis payload must be a JSON object")
    return AnalysisResult(
        summary=_optional_text(data.get("summary"), "summary"),
        assets=tuple(_build_string_list(data.get("assets"), "assets", _asset_text)),
        threats=tuple(
            _build_threat(item, i) for i, item in enumerate(_list_field(data, "threats"))
        ),
        test_scenarios=tuple(
            _build_scenario(item, i)
            for i, item in enumerate(_list_field(data, "testScenarios", "test_scenarios"))
        ),
        recommendations=tuple(
            _build_string_list(data.get("recommendations"), "recommendations", _recommendation_text)
        ),
    )


def coerce_threat_level(raw: Any) -> ThreatLevel:
    """Map a model-supplied severity onto ThreatLevel.

    Accepts enum names and synonyms in any case, the Chinese labels, and
    numeric scores: floats in [0, 1] are fractions, anything else is read on a
    0-10 scale. ``None`` and blank strings mean MEDIUM.

    Raises:
        ValidationError: for any other value.
    """
    if raw is None:
        return ThreatLevel.MEDIUM
    if isinstance(raw, bool):
        raise ValidationError(f"Unrecognized threat level: {raw!r}")
    if isinstance(raw, (int, float)):
        return _level_from_score(raw)
    if isinstance(raw, str):
        key = raw.strip().lower()
        if not key:
            return ThreatLevel.MEDIUM
        if key in _LEVEL_ALIASES:
            return _LEVEL_ALIASES[key]
        for parse in (int, float):
            try:
                return _level_from_score(parse(key))
            except ValueError:
                continue
    raise ValidationError(f"Unrecognized threat level: {raw!r}")


def _level_from_score(score: int | float) -> ThreatLevel:
    if isinstance(score, float) and 0.0 <= score <= 1.0:
        score = score * 10
    if math.isnan(score) or not 0 <= score <= 10:
        raise ValidationError(f"Threat score out of range: {score!r}")
    for bound, level in _SCORE_BANDS:
        if score >= bound:
            return level
    return ThreatLevel.LOW


def _list_field(data: Mapping[str, Any], *names: str) -> list[Any]:
    for name in names:
        if name in data and data[name] is not None:
            value = data[name]
            if not isinstance(value, list):
                raise ValidationError(f"'{name}' must be a list")
            return value
    return []


def _optional_text(raw: Any, name: str) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise ValidationError(f"'{name}' must be a string")
    return raw.strip()


def _build_string_list(raw: Any, name: str, convert) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"'{name}' must be a list")
    items = []
    for i, item in enumerate(raw):
        text = convert(item)
        if text is None:
            raise ValidationError(f"'{name}' item at index {i} must be a string")
        if text:
            items.append(text)
    return items


def _asset_text(item: Any) -> str | None:
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, Mapping) and isinstance(item.get("name"), str):
        description = item.get("description")
        if isinstance(description, str) and description.strip():
            return f"{item['name'].strip()}: {description.strip()}"
        return item["name"].strip()
    return None


def _recommendation_text(item: Any) -> str | None:
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, Mapping):
        for key in ("description", "recommendation", "title"):
            if isinstance(item.get(key), str):
                return item[key].strip()
    return None


def _build_threat(raw: Any, index: int) -> Threat:
    if isinstance(raw, str):
        return Threat(type="", description=raw.strip())
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Threat at index {index} must be an object or string")
    level = raw.get("level", raw.get("severity"))
    try:
        threat_level = coerce_threat_level(level)
    except ValidationError as exc:
        raise ValidationError(f"Threat at index {index}: {exc}") from exc
    return Threat(
        type=_optional_text(raw.get("type", raw.get("category")), f"threats[{index}].type"),
        description=_optional_text(raw.get("description"), f"threats[{index}].description"),
        level=threat_level,
        impact=_optional_text(raw.get("impact"), f"threats[{index}].impact"),
    )


def _build_scenario(raw: Any, index: int) -> TestScenario:
    if isinstance(raw, str):
        return TestScenario(category="", description=raw.strip())
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Test scenario at index {index} must be an object or string")
    steps = raw.get("steps")
    if isinstance(steps, str):
        steps = [steps]
    expected = raw.get("expectedResult", raw.get("expected_result"))
    return TestScenario(
        category=_optional_text(raw.get("category"), f"testScenarios[{index}].category"),
        description=_optional_text(
            raw.get("description"), f"testScenarios[{index}].description"
        ),
        steps=tuple(
            _build_string_list(steps, f"testScenarios[{index}].steps", _step_text)
        ),
        expected_result=_optional_text(expected, f"testScenarios[{index}].expectedResult"),
    )


def _step_text(item: Any) -> str | None:
    return item.strip() if isinstance(item, str) else None
