"""Display preferences: theme and novelty ("chaos") mode.

Novelty mode only changes what is displayed. ``apply_novelty_overlay``
returns a new result with a playful finding and recommendation in front;
the stored history and the original result are never touched.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from nutriaura.core.storage.repository import THEMES, WellnessRepository
from nutriaura.domains.wellness.models import AnalysisResult, KeyFinding, Recommendation, ValidationError

logger = logging.getLogger(__name__)

NOVELTY_FINDING = KeyFinding(
    title="Cosmic Pizza Alignment",
    description=(
        "Your facial scan indicates a severe deficiency in cheese and pepperoni. "
        "This is a critical wellness indicator."
    ),
    icon="pizza",
)

NOVELTY_RECOMMENDATION = Recommendation(
    title="Embrace the Chaos",
    description=(
        "Sometimes, the best plan is no plan. Your aura suggests a dose of pure, "
        "unadulterated fun."
    ),
    items=(
        "Eat pizza for breakfast.",
        "Wear mismatched socks with confidence.",
        "Replace one workout with a spontaneous dance party.",
    ),
)


def apply_novelty_overlay(result: AnalysisResult) -> AnalysisResult:
    return replace(
        result,
        key_findings=(NOVELTY_FINDING, *result.key_findings),
        recommendations=(NOVELTY_RECOMMENDATION, *result.recommendations),
    )


class Preferences:
    def __init__(self, repository: WellnessRepository) -> None:
        self._repo = repository

    @property
    def theme(self) -> str:
        return self._repo.get_theme()

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValidationError(f"theme must be one of {THEMES}, got {theme!r}")
        self._repo.set_theme(theme)
        return theme

    def toggle_theme(self) -> str:
        return self.set_theme("dark" if self.theme == "light" else "light")

    @property
    def novelty_mode(self) -> bool:
        return self._repo.get_novelty_mode()

    def set_novelty_mode(self, enabled: bool) -> bool:
        self._repo.set_novelty_mode(enabled)
        logger.info("Novelty mode %s", "enabled" if enabled else "disabled")
        return bool(enabled)

    def display_result(self, result: AnalysisResult) -> AnalysisResult:
        return apply_novelty_overlay(result) if self.novelty_mode else result

    def to_dict(self) -> dict:
        return {"theme": self.theme, "novelty_mode": self.novelty_mode}
