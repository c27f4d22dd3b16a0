"""AI summary of the report collection for relief coordinators."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from pydantic import ValidationError

from .errors import AnalysisError
from .llm_provider import LLMProvider, get_provider
from .models import AnalysisResult, Report
from .settings import is_ai_analysis_enabled

_log = logging.getLogger(__name__)

ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["summary", "priorities", "recommendations"],
    "properties": {
        "summary": {"type": "string"},
        "priorities": {"type": "array", "items": {"type": "string"}},
        "recommendations": {"type": "string"},
    },
}

SYSTEM_PROMPT = (
    "You assist humanitarian relief coordinators. Answer in Arabic and only with "
    "JSON matching the requested schema."
)


def build_prompt(reports: Sequence[Report]) -> str:
    payload = json.dumps([r.model_dump(mode="json") for r in reports], ensure_ascii=False)
    return (
        "حلل البيانات التالية للدواوير المتضررة وقدم ملخصاً باللغة العربية:\n"
        f"{payload}\n\n"
        "المطلوب:\n"
        "1. ملخص للوضع العام.\n"
        "2. قائمة بالأولويات القصوى.\n"
        "3. توصيات لفرق الإغاثة."
    )


def analyze_reports(
    reports: Sequence[Report],
    provider: LLMProvider | None = None,
    *,
    timeout: float = 60.0,
) -> AnalysisResult:
    """Summarize reports; raises AnalysisError so the caller can offer a retry."""
    if not is_ai_analysis_enabled():
        raise AnalysisError("AI analysis is disabled by feature flag")

    try:
        llm = provider or get_provider()
    except ValueError as exc:
        raise AnalysisError(f"LLM provider unavailable: {exc}") from exc
    raw = llm.complete(
        system=SYSTEM_PROMPT,
        user=build_prompt(reports),
        json_schema=ANALYSIS_SCHEMA,
        schema_name="relief_analysis",
        timeout=timeout,
    )
    if raw is None:
        raise AnalysisError(f"Analysis unavailable from {llm.name()}")

    try:
        result = AnalysisResult.model_validate(raw)
    except ValidationError as exc:
        _log.warning("Analysis payload rejected: %s", exc)
        raise AnalysisError("Analysis payload did not match the expected shape") from exc

    _log.info("Analysis produced %d priorities for %d reports", len(result.priorities), len(reports))
    return result
