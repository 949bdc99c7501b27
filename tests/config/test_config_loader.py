"""
Tests for configuration loading.

The packaged defaults parse; DATABASE_URL overrides the file; bad files
surface as ConfigError naming the source.
"""

from decimal import Decimal

import pytest
import yaml

from invoicing_config import DEFAULT_CONFIG_PATH, get_active_config
from invoicing_config.bridges import build_default_settings, build_document_templates
from invoicing_config.loader import compute_checksum, load_yaml_file, parse_config
from invoicing_kernel.domain.accounts import AppSettings
from invoicing_kernel.domain.documents import DEFAULT_TEMPLATES, DocumentKind
from invoicing_kernel.exceptions import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("INVOICING_CONFIG", raising=False)


@pytest.fixture
def defaults_data():
    return load_yaml_file(DEFAULT_CONFIG_PATH)


def _write(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:

    def test_packaged_defaults_load(self):
        config = get_active_config()

        assert config.database.url == "sqlite:///invoicing.db"
        assert config.logging.level == "INFO"
        assert config.settings.default_tax_rate == Decimal("6")
        assert config.document_defaults("quotation").days_until_secondary_date == 30
        assert len(config.checksum) == 64

    def test_bridges_match_builtin_defaults(self):
        config = get_active_config()

        assert build_default_settings(config) == AppSettings()
        assert build_document_templates(config) == DEFAULT_TEMPLATES

    def test_config_loaded_is_logged(self, captured_logs):
        config = get_active_config()

        (record,) = [r for r in captured_logs() if r["message"] == "config_loaded"]

        assert record["checksum"] == config.checksum
        assert record["database_override"] is False


class TestOverrides:

    def test_database_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/invoicing")
        assert get_active_config().database.url == "postgresql://u:p@db/invoicing"

    def test_config_path_from_environment(self, monkeypatch, tmp_path, defaults_data):
        defaults_data["settings"]["company_name"] = "Coral Co"
        monkeypatch.setenv("INVOICING_CONFIG", str(_write(tmp_path, defaults_data)))

        assert get_active_config().settings.company_name == "Coral Co"

    def test_explicit_path_wins(self, monkeypatch, tmp_path, defaults_data):
        defaults_data["documents"]["invoice"]["number_prefix"] = "BILL"
        path = _write(tmp_path, defaults_data)

        config = get_active_config(path)

        assert build_document_templates(config)[DocumentKind.INVOICE].number_prefix == "BILL"
        assert config.source == str(path)


class TestErrors:

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            get_active_config(tmp_path / "nope.yaml")
        assert exc_info.value.code == "CONFIG_ERROR"

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("settings: [unclosed")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_yaml_file(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_yaml_file(path)

    def test_missing_section(self, defaults_data):
        del defaults_data["settings"]
        with pytest.raises(ConfigError, match="settings"):
            parse_config(defaults_data, source="test.yaml")

    def test_negative_tax_rate(self, defaults_data):
        defaults_data["settings"]["default_tax_rate"] = "-1"
        with pytest.raises(ConfigError, match="default_tax_rate"):
            parse_config(defaults_data, source="test.yaml")

    def test_non_numeric_days(self, defaults_data):
        defaults_data["documents"]["quotation"]["days_until_secondary_date"] = "soon"
        with pytest.raises(ConfigError):
            parse_config(defaults_data, source="test.yaml")


class TestChecksum:

    def test_checksum_is_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_checksum_changes_with_content(self, defaults_data):
        before = compute_checksum(defaults_data)
        defaults_data["logging"]["level"] = "DEBUG"
        assert compute_checksum(defaults_data) != before
