"""Wellness domain models: questionnaire input, captured image, analysis result."""

from __future__ import annotations

import base64
import binascii
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal

from nutriaura.core.storage.models import SCORE_KEYS

FindingIcon = Literal["nutrition", "sleep", "stress", "hydration", "pizza"]
FINDING_ICONS = ("nutrition", "sleep", "stress", "hydration", "pizza")

DIET_OPTIONS = ("Very Healthy", "Mostly Healthy", "Average", "Unhealthy")
ACTIVITY_OPTIONS = ("Sedentary", "Light", "Moderate", "Very Active")

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^,;]*)*),(?P<data>.*)$", re.DOTALL)


class ValidationError(Exception):
    """Raised when analysis input is missing or outside its domain."""


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class QuizAnswers:
    """Lifestyle questionnaire answers. Immutable once submitted."""

    sleep_hours: float
    stress_level: int
    energy_level: int
    diet_quality: str
    hydration: str
    activity_level: str

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.sleep_hours) <= 24.0:
            raise ValidationError(f"sleep_hours must be between 0 and 24, got {self.sleep_hours}")
        for name in ("stress_level", "energy_level"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
                raise ValidationError(f"{name} must be an integer from 1 to 5, got {value!r}")
        for name in ("diet_quality", "hydration", "activity_level"):
            if not str(getattr(self, name)).strip():
                raise ValidationError(f"{name} must not be empty")

    def to_dict(self) -> dict[str, Any]:
        return {
            "sleepHours": self.sleep_hours,
            "stressLevel": self.stress_level,
            "energyLevel": self.energy_level,
            "dietQuality": self.diet_quality,
            "hydration": self.hydration,
            "activityLevel": self.activity_level,
        }


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class CapturedImage:
    """Opaque still image from the camera or a file upload."""

    mime_type: str
    data: bytes

    def __post_init__(self) -> None:
        if not self.data:
            raise ValidationError("Captured image is empty")
        if not self.mime_type.startswith("image/"):
            raise ValidationError(f"Unsupported media type: {self.mime_type!r}")

    @classmethod
    def from_data_url(cls, data_url: str) -> CapturedImage:
        """Decode a ``data:image/jpeg;base64,...`` URL.

        The media type defaults to ``image/jpeg`` when the URL omits it.
        """
        match = _DATA_URL_RE.match(data_url.strip())
        if match is None:
            raise ValidationError("Image must be a data URL")
        if ";base64" not in match.group("params"):
            raise ValidationError("Image data URL must be base64-encoded")
        try:
            data = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError(f"Image data is not valid base64: {exc}") from exc
        return cls(mime_type=match.group("mime") or "image/jpeg", data=data)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True)
class Submission:
    """One image + answers pair handed to the orchestrator."""

    image: CapturedImage | None
    answers: QuizAnswers | None
    location: Location | None = None
    submission_id: str = field(default_factory=lambda: uuid.uuid4().hex)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisScores:
    nutrition: int
    sleep: int
    stress: int
    hydration: int

    def __post_init__(self) -> None:
        for key in SCORE_KEYS:
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
                raise ValidationError(f"score {key} must be an integer 0-100, got {value!r}")

    def to_dict(self) -> dict[str, int]:
        return {key: getattr(self, key) for key in SCORE_KEYS}


@dataclass(frozen=True)
class KeyFinding:
    title: str
    description: str
    icon: FindingIcon

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "description": self.description, "icon": self.icon}


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str
    items: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "description": self.description, "items": list(self.items)}


@dataclass(frozen=True)
class AnalysisResult:
    """Synthesized wellness analysis. Read-only after creation."""

    scores: AnalysisScores
    key_findings: tuple[KeyFinding, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    grounding_attribution: tuple[dict[str, Any], ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "scores": self.scores.to_dict(),
            "keyFindings": [f.to_dict() for f in self.key_findings],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
        if self.grounding_attribution is not None:
            data["groundingAttribution"] = [dict(g) for g in self.grounding_attribution]
        return data
