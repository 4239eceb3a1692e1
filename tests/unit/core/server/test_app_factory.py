"""Tests for settings and the server wiring helpers."""

from __future__ import annotations

import pytest

from nutriaura.core.config.settings import get_settings
from nutriaura.core.server.app import _build_analysis_service, _build_geolocation
from nutriaura.core.server.main import InsecureBindError, _is_loopback_host, check_bind, run
from nutriaura.domains.wellness.geolocation import NoGeolocation, StaticGeolocation


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LLM_PROVIDER", raising=False)
        settings = get_settings()
        assert settings.llm_provider == "anthropic"
        assert settings.analysis_reward_ap == 100
        assert settings.nutriaura_host == "127.0.0.1"
        assert settings.geolocation_timeout_s == 10.0

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ANALYSIS_REWARD_AP", "250")
        monkeypatch.setenv("HOME_LATITUDE", "52.52")
        settings = get_settings()
        assert settings.analysis_reward_ap == 250
        assert settings.home_latitude == 52.52


class TestAnalysisServiceSelection:
    def test_mock_provider(self):
        assert _build_analysis_service(get_settings()).provider_name == "mock"

    @pytest.mark.parametrize("provider", ["anthropic", "openai"])
    def test_missing_key_falls_back_to_mock(self, monkeypatch, provider):
        monkeypatch.setenv("LLM_PROVIDER", provider)
        assert _build_analysis_service(get_settings()).provider_name == "mock"


class TestGeolocationSelection:
    def test_home_coordinates(self, monkeypatch):
        monkeypatch.setenv("HOME_LATITUDE", "52.52")
        monkeypatch.setenv("HOME_LONGITUDE", "13.405")
        assert isinstance(_build_geolocation(get_settings()), StaticGeolocation)

    def test_partial_coordinates_ignored(self, monkeypatch):
        monkeypatch.setenv("HOME_LATITUDE", "52.52")
        assert isinstance(_build_geolocation(get_settings()), NoGeolocation)


class TestBindGuard:
    @pytest.mark.parametrize("host,expected", [
        ("127.0.0.1", True),
        ("::1", True),
        ("localhost", True),
        ("0.0.0.0", False),
        ("example.com", False),
    ])
    def test_loopback_detection(self, host, expected):
        assert _is_loopback_host(host) is expected

    def test_refuses_public_bind(self, monkeypatch):
        monkeypatch.setenv("NUTRIAURA_HOST", "0.0.0.0")
        with pytest.raises(RuntimeError, match="non-loopback"):
            run()

    def test_refusal_names_the_host(self, monkeypatch):
        monkeypatch.setenv("NUTRIAURA_HOST", "192.168.1.20")
        with pytest.raises(InsecureBindError, match="192.168.1.20"):
            check_bind(get_settings())

    def test_override_allows_public_bind_with_warning(self, monkeypatch, caplog):
        monkeypatch.setenv("NUTRIAURA_HOST", "0.0.0.0")
        monkeypatch.setenv("NUTRIAURA_ALLOW_INSECURE_BIND", "true")
        with caplog.at_level("WARNING", logger="nutriaura.core.server.main"):
            check_bind(get_settings())
        assert "no authentication" in caplog.text

    def test_loopback_bind_is_silent(self, caplog):
        with caplog.at_level("WARNING", logger="nutriaura.core.server.main"):
            check_bind(get_settings())
        assert caplog.text == ""
