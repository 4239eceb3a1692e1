"""Shared test fixtures for NutriAura tests."""

from __future__ import annotations

import base64
import sys
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "state.db"))
    monkeypatch.delenv("HOME_LATITUDE", raising=False)
    monkeypatch.delenv("HOME_LONGITUDE", raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from nutriaura.core.storage.store import InMemoryKeyValueStore, StorageUnavailableError  # noqa: E402
from nutriaura.domains.wellness.models import CapturedImage, QuizAnswers  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


class BrokenStore:
    """A store whose backend is down: every call raises."""

    def get(self, key: str) -> Any | None:
        raise StorageUnavailableError("backend down")

    def set(self, key: str, value: Any) -> None:
        raise StorageUnavailableError("backend down")

    def delete(self, key: str) -> None:
        raise StorageUnavailableError("backend down")

    def keys(self) -> list[str]:
        raise StorageUnavailableError("backend down")


# ---------------------------------------------------------------------------
# Domain inputs
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_image() -> CapturedImage:
    return CapturedImage(mime_type="image/png", data=PNG_BYTES)


@pytest.fixture
def sample_answers() -> QuizAnswers:
    return QuizAnswers(
        sleep_hours=6.5,
        stress_level=3,
        energy_level=4,
        diet_quality="Mostly Healthy",
        hydration="6-8 glasses",
        activity_level="Moderate",
    )


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def wellness_db():
    """Create an in-memory WellnessDatabase for testing."""
    from nutriaura.core.storage.database import WellnessDatabase

    db = WellnessDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def repository(memory_store):
    """A WellnessRepository over an in-memory store."""
    from nutriaura.core.storage.repository import WellnessRepository

    return WellnessRepository(memory_store)


@pytest.fixture
def audit_logger(wellness_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from nutriaura.core.audit.logger import AuditLogger

    return AuditLogger(wellness_db)


# ---------------------------------------------------------------------------
# Progression and analysis fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def badges(repository):
    from nutriaura.domains.wellness.registries import BadgeRegistry

    return BadgeRegistry(repository)


@pytest.fixture
def engine(repository, badges):
    from nutriaura.domains.wellness.progression import ProgressionEngine

    return ProgressionEngine(repository, badges)


@pytest.fixture
def mock_provider():
    from nutriaura.core.llm.providers.mock import MockProvider

    return MockProvider()


@pytest.fixture
def analysis_service(mock_provider):
    """A WellnessAnalysisService over the mock provider."""
    from nutriaura.core.llm.client import LLMClient
    from nutriaura.domains.wellness.analysis_service import WellnessAnalysisService

    return WellnessAnalysisService(LLMClient(provider=mock_provider))


@pytest.fixture
def broken_store() -> BrokenStore:
    return BrokenStore()


@pytest.fixture
def png_data_url() -> str:
    return PNG_DATA_URL
