"""
Tests for the configuration loader.
"""
from decimal import Decimal

import pytest

from buildflow.config import (
    BuildFlowConfig,
    ConfigurationError,
    DATABASE_URL_ENV,
    get_config,
    reload_config,
)


class TestBuildFlowConfig:
    """Tests for BuildFlowConfig class."""

    def test_load_default_config(self):
        config = get_config()
        assert config.version == "1.0.0"
        assert config.default_page_size == 25
        assert config.max_page_size == 200

    def test_estimate_defaults(self):
        config = get_config()
        assert config.default_overall_multiplier == 1.0
        assert config.default_line_multiplier == 1.0
        assert config.default_strategy == "AVERAGE"
        assert config.default_unit_cost == Decimal("0.00")

    def test_default_currency(self):
        assert get_config().default_currency == "USD"

    def test_pagination_settings_for_resource(self):
        settings = get_config().get_pagination_settings("quotes")
        assert settings["default_sort"] == "created_at"
        assert settings["default_direction"] == "desc"
        assert "unit_price" in settings["sort_fields"]

    def test_pagination_settings_unknown_resource(self):
        settings = get_config().get_pagination_settings("nothing")
        assert settings == {"sort_fields": ["id"], "default_sort": "id", "default_direction": "asc"}

    def test_get_nested(self):
        config = get_config()
        assert config.get_nested("estimates", "default_strategy") == "AVERAGE"
        assert config.get_nested("estimates", "missing", default="x") == "x"
        assert config.get_nested("version", "deeper", default=None) is None

    def test_database_url_env_override(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "sqlite:///override.db")
        assert BuildFlowConfig().database_url == "sqlite:///override.db"

    def test_database_url_from_file(self, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        assert BuildFlowConfig().database_url == "sqlite:///./buildflow.db"


class TestConfigErrors:
    """Tests for configuration error handling."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            BuildFlowConfig(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("version: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            BuildFlowConfig(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            BuildFlowConfig(path)

    def test_custom_file_defaults(self, tmp_path):
        path = tmp_path / "minimal.yaml"
        path.write_text("version: '2.0'\n")
        config = BuildFlowConfig(path)
        assert config.version == "2.0"
        assert config.default_page_size == 25
        assert config.default_unit_cost == Decimal("0.00")
        assert config.log_level == "INFO"


class TestReload:

    def test_reload_returns_fresh_instance(self):
        first = get_config()
        second = reload_config()
        assert first is not second
        assert get_config() is second
