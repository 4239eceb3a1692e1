"""Wellness analysis service: selfie + questionnaire in, AnalysisResult out."""

from __future__ import annotations

import logging
import math
from typing import Any, Protocol, runtime_checkable

from nutriaura.core.llm.client import USER_FACING_FAILURE, LLMClient
from nutriaura.core.llm.provider import ImagePart
from nutriaura.core.llm.response import MalformedResponseError
from nutriaura.core.storage.models import SCORE_KEYS
from nutriaura.domains.wellness.models import (
    FINDING_ICONS,
    AnalysisResult,
    AnalysisScores,
    CapturedImage,
    KeyFinding,
    Location,
    QuizAnswers,
    Recommendation,
)

logger = logging.getLogger(__name__)

ANALYSIS_INSTRUCTIONS = """\
Produce a JSON object with exactly these keys:

- "scores": {"nutrition", "sleep", "stress", "hydration"}, each an integer 0-100. \
For stress, a higher reported stress level means a LOWER score (stress level 5 \
is roughly 20-30).
- "keyFindings": 2-4 objects {"title", "description", "icon"} where icon is one \
of "nutrition", "sleep", "stress", "hydration". Description is one sentence.
- "recommendations": 2-3 objects {"title", "description", "items"} where items \
is a list of 3-5 short, specific actions.
"""


@runtime_checkable
class AnalysisService(Protocol):
    """The external analysis collaborator the orchestrator depends on."""

    @property
    def provider_name(self) -> str: ...

    async def analyze(
        self,
        image: CapturedImage,
        answers: QuizAnswers,
        location: Location | None = None,
    ) -> AnalysisResult: ...


def build_analysis_prompt(answers: QuizAnswers, location: Location | None) -> str:
    """Render the questionnaire (and optional coordinates) as the user turn."""
    lines = [
        "User's selfie: [image attached]",
        "",
        "User's lifestyle answers:",
        f"- Average sleep per night: {answers.sleep_hours:g} hours",
        f"- Current stress level (1-5): {answers.stress_level}",
        f"- Current energy level (1-5): {answers.energy_level}",
        f"- Typical diet quality: {answers.diet_quality}",
        f"- Daily hydration: {answers.hydration}",
        f"- Weekly activity level: {answers.activity_level}",
    ]
    if location is not None:
        lines += [
            "",
            f"User's approximate location: {location.latitude:.4f}, {location.longitude:.4f}. "
            "Where it helps, tailor suggestions to what is typically available nearby.",
        ]
    lines += ["", "Generate the wellness analysis now."]
    return "\n".join(lines)


def _score(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise MalformedResponseError(f"score {key!r} is not a number: {value!r}")
    clamped = min(100, max(0, round(value)))
    if clamped != value:
        logger.info("Normalized score %s from %r to %d", key, value, clamped)
    return int(clamped)


def parse_analysis_payload(
    payload: dict[str, Any],
    attributions: list[dict[str, Any]] | None = None,
) -> AnalysisResult:
    """Validate a structured block against the AnalysisResult shape.

    Scores are required; findings and recommendations with missing fields are
    dropped with a warning rather than failing the whole analysis.

    Raises:
        MalformedResponseError: If scores are missing or not numeric.
    """
    raw_scores = payload.get("scores")
    if not isinstance(raw_scores, dict):
        raise MalformedResponseError("Analysis response has no scores object")
    missing = [k for k in SCORE_KEYS if k not in raw_scores]
    if missing:
        raise MalformedResponseError(f"Analysis response is missing scores: {missing}")
    scores = AnalysisScores(**{k: _score(raw_scores[k], k) for k in SCORE_KEYS})

    findings: list[KeyFinding] = []
    for entry in payload.get("keyFindings") or []:
        if not isinstance(entry, dict) or not entry.get("title") or entry.get("icon") not in FINDING_ICONS:
            logger.warning("Dropping malformed key finding: %r", entry)
            continue
        findings.append(KeyFinding(
            title=str(entry["title"]),
            description=str(entry.get("description", "")),
            icon=entry["icon"],
        ))

    recommendations: list[Recommendation] = []
    for entry in payload.get("recommendations") or []:
        if not isinstance(entry, dict) or not entry.get("title"):
            logger.warning("Dropping malformed recommendation: %r", entry)
            continue
        items = entry.get("items") or []
        recommendations.append(Recommendation(
            title=str(entry["title"]),
            description=str(entry.get("description", "")),
            items=tuple(str(i) for i in items if isinstance(i, (str, int, float))),
        ))

    grounding = payload.get("groundingAttribution")
    if isinstance(grounding, list):
        grounding = [g for g in grounding if isinstance(g, dict)]
    else:
        grounding = attributions or None

    return AnalysisResult(
        scores=scores,
        key_findings=tuple(findings),
        recommendations=tuple(recommendations),
        grounding_attribution=tuple(grounding) if grounding else None,
    )


class WellnessAnalysisService:
    """AnalysisService backed by a multimodal LLM.

    Usage::

        service = WellnessAnalysisService(LLMClient(create_provider("mock")))
        result = await service.analyze(image, answers, location=None)
    """

    def __init__(self, llm_client: LLMClient, max_tokens: int = 2048) -> None:
        self._llm = llm_client
        self._max_tokens = max_tokens

    @property
    def provider_name(self) -> str:
        return self._llm.provider_name

    async def analyze(
        self,
        image: CapturedImage,
        answers: QuizAnswers,
        location: Location | None = None,
    ) -> AnalysisResult:
        response = await self._llm.generate_structured(
            task_instructions=ANALYSIS_INSTRUCTIONS,
            user_message=build_analysis_prompt(answers, location),
            image=ImagePart(mime_type=image.mime_type, base64_data=image.to_base64()),
            max_tokens=self._max_tokens,
        )
        try:
            return parse_analysis_payload(response.payload, response.attributions)
        except MalformedResponseError as exc:
            logger.warning("Analysis payload rejected: %s", exc)
            raise MalformedResponseError(USER_FACING_FAILURE) from exc
