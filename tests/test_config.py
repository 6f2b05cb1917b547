import os
from dataclasses import FrozenInstanceError

import pytest

from worklogger.config import Settings, load_config, settings_from_namespace
from worklogger.errors import ConfigurationError

TEMPLATE = os.path.join(os.path.dirname(__file__), os.pardir, "config.template.py")


def test_template_loads():
    settings = load_config(TEMPLATE, environ={})

    assert settings.base_url == "https://openproject.example.com"
    assert settings.project_mappings["PROJECT_NAME_1"] == 64
    assert settings.activity_id("meeting") == 14
    assert settings.recurring_without_link == "drop"
    assert settings.validate_against_server is True


def test_environment_overrides_credentials():
    settings = load_config(
        TEMPLATE,
        environ={"OPENPROJECT_BASE_URL": "https://op.local/", "OPENPROJECT_API_TOKEN": "abc"},
    )

    assert settings.base_url == "https://op.local"
    assert settings.api_token == "abc"


def test_missing_file():
    with pytest.raises(ConfigurationError, match="not found"):
        load_config("/nonexistent/config.py")


def test_missing_credentials():
    namespace = {"CONFIG": {"base_url": ""}, "PROJECT_MAPPINGS": {"HRIS": 63}}
    with pytest.raises(ConfigurationError, match="Base URL"):
        settings_from_namespace(namespace, environ={})


def test_missing_project_mappings():
    namespace = {"CONFIG": {"base_url": "https://x", "api_token": "t"}}
    with pytest.raises(ConfigurationError, match="PROJECT_MAPPINGS"):
        settings_from_namespace(namespace, environ={})


def test_unknown_option():
    namespace = {
        "CONFIG": {"base_url": "https://x", "api_token": "t"},
        "PROJECT_MAPPINGS": {"HRIS": 63},
        "OPTIONS": {"retry_forever": True},
    }
    with pytest.raises(ConfigurationError, match="retry_forever"):
        settings_from_namespace(namespace, environ={})


def test_invalid_recurring_mode():
    namespace = {
        "CONFIG": {"base_url": "https://x", "api_token": "t"},
        "PROJECT_MAPPINGS": {"HRIS": 63},
        "OPTIONS": {"recurring_without_link": "guess"},
    }
    with pytest.raises(ConfigurationError):
        settings_from_namespace(namespace, environ={})


def test_settings_are_immutable(settings):
    with pytest.raises(FrozenInstanceError):
        settings.base_url = "https://elsewhere"
    with pytest.raises(TypeError):
        settings.project_mappings["NEW"] = 1


def test_project_id_lookup(settings):
    assert settings.project_id("CBL") == 66
    with pytest.raises(ConfigurationError):
        settings.project_id("UNKNOWN")


def test_activity_id_falls_back_to_development():
    settings = Settings(base_url="https://x", api_token="t", project_mappings={"A": 1})
    assert settings.activity_id("Unheard of") == 3
