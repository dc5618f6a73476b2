"""Turns a provider's raw reply into a validated AnalysisResult."""

import json
from collections.abc import Mapping
from typing import Any

from docsentry.analysis.models import AnalysisResult
from docsentry.analysis.validator import validate_and_build
from docsentry.exceptions import ValidationError
from docsentry.logging.logger import Log


class ResultNormalizer:
    def normalize(self, raw_payload: str | Mapping[str, Any]) -> AnalysisResult:
        """Decode (if needed) and validate one payload.

        Raises:
            ValidationError: if the payload is not a JSON object or a field
                cannot be mapped onto the result schema.
        """
        data = raw_payload if isinstance(raw_payload, Mapping) else self._parse_json(raw_payload)
        result = validate_and_build(data)
        Log.info(
            "Analysis normalized",
            threats=len(result.threats),
            scenarios=len(result.test_scenarios),
        )
        return result

    @staticmethod
    def _parse_json(raw: Any) -> Any:
        if not isinstance(raw, str):
            raise ValidationError(f"Unsupported payload type: {type(raw).__name__}")
        cleaned = _strip_code_fence(raw.strip())
        if not cleaned:
            raise ValidationError("Empty analysis payload")

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            start, end = cleaned.find("{"), cleaned.rfind("}")
            if start < 0 or end <= start:
                raise ValidationError(f"Invalid JSON response: {exc}") from exc
            try:
                parsed = json.loads(cleaned[start : end + 1])
            except json.JSONDecodeError as inner:
                raise ValidationError(f"Invalid JSON response: {inner}") from inner
            Log.debug("Recovered JSON object from surrounding text")

        if not isinstance(parsed, dict):
            raise ValidationError("JSON response must be an object")
        return parsed


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    lines = text.splitlines()
    lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()
