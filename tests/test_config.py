"""Tests for the configuration singleton."""
import pytest

from sales_dashboard.config import ApiConfig, Config, _as_bool, config


def test_config_is_singleton():
    assert Config() is config


def test_api_config_has_url_and_timeout():
    api_config = config.get_api_config()

    assert api_config['base_url']
    assert api_config['timeout_seconds'] > 0
    assert config.api_config == api_config


def test_app_settings_defaults():
    assert config.get_app_setting("DEFAULT_PERIOD") in ("30d", "90d", "ytd")
    assert config.get_app_setting("MISSING_KEY", "fallback") == "fallback"
    assert isinstance(config.is_feature_enabled("EXPORT"), bool)


def test_app_config_is_a_copy():
    settings = config.app_config
    settings["CURRENCY"] = "XXX"
    assert settings is not config.app_config
    assert config.get_app_setting("CURRENCY") != "XXX"


@pytest.mark.parametrize("value, expected", [
    ("true", True),
    ("1", True),
    (" Yes ", True),
    ("on", True),
    ("false", False),
    ("0", False),
    ("", False),
])
def test_as_bool(value, expected):
    assert _as_bool(value) is expected


def test_as_bool_default_for_missing():
    assert _as_bool(None, default=True) is True


def test_api_config_to_dict():
    assert ApiConfig(base_url="http://x/api", timeout_seconds=3.0).to_dict() == {
        'base_url': "http://x/api",
        'timeout_seconds': 3.0,
    }
