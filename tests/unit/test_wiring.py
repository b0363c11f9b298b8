from __future__ import annotations

import pytest

from linkedin_pipeline.config import Settings
from linkedin_pipeline.domain.errors import ConfigurationError
from linkedin_pipeline.presentation.wiring import build_pipeline, build_proxy_gateway, build_session_store

AIRTABLE = {"AIRTABLE_API_KEY": "patKEY", "AIRTABLE_BASE_ID": "appBASE"}


def test_pipeline_requires_airtable():
    with pytest.raises(ConfigurationError, match="AIRTABLE"):
        build_pipeline(Settings.from_env({"REQUIRE_PROXY": "false"}))


def test_missing_required_proxy_fails_before_launch():
    with pytest.raises(ConfigurationError):
        build_pipeline(Settings.from_env(AIRTABLE))


def test_pipeline_builds_from_settings(tmp_path):
    settings = Settings.from_env(
        {
            **AIRTABLE,
            "PROXY_URL": "http://u:p@proxy.example:8080",
            "COOKIES_FILE": str(tmp_path / "cookies.json"),
            "MAX_POSTS_PER_SOURCE": "4",
            "HEADLESS": "false",
        }
    )
    pipeline = build_pipeline(settings)

    assert pipeline.session_store.path == tmp_path / "cookies.json"
    assert pipeline.launcher.launch_kwargs(headless=True)["proxy"]["server"] == "http://proxy.example:8080"
    assert pipeline.run_scrape.options.max_records_per_source == 4
    assert pipeline.run_scrape.options.headless is False
    assert pipeline.run_scrape.metrics is pipeline.metrics


def test_proxy_gateway_optional_when_not_required():
    gateway = build_proxy_gateway(Settings.from_env({"REQUIRE_PROXY": "false"}))
    assert gateway.config is None
    assert gateway.launch_options() is None


def test_session_store_uses_environment_blob(tmp_path):
    settings = Settings.from_env(
        {"COOKIES_FILE": str(tmp_path / "c.json"), "LINKEDIN_COOKIES": '[{"name": "li_at", "value": "env"}]'}
    )
    assert build_session_store(settings).load()[0].value == "env"
