"""Unit tests for YAML configuration loading."""

from decimal import Decimal

import pytest

from treasury_kernel.config import (
    DATABASE_URL_ENV,
    DEFAULT_DATABASE_URL,
    load_config,
    parse_config,
)
from treasury_kernel.domain.rates import DEFAULT_TAX_RATES
from treasury_kernel.exceptions import ConfigError, UnknownTaxRateError


def _write(tmp_path, text: str):
    path = tmp_path / "treasury.yaml"
    path.write_text(text)
    return path


class TestLoadConfig:

    def test_full_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        path = _write(
            tmp_path,
            """
database:
  url: postgresql://treasury@localhost/treasury
  echo: true
  pool_size: 5
logging:
  level: debug
tax_defaults:
  incomeTaxRate: 0.12
""",
        )
        config = load_config(path)
        assert config.database.url == "postgresql://treasury@localhost/treasury"
        assert config.database.echo is True
        assert config.database.pool_size == 5
        assert config.database.max_overflow == 10
        assert config.log_level == "DEBUG"
        assert config.tax_defaults.income == Decimal("0.12")
        assert config.tax_defaults.salary == DEFAULT_TAX_RATES.salary

    def test_no_path_uses_builtins(self, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        config = load_config()
        assert config.database.url == DEFAULT_DATABASE_URL
        assert config.tax_defaults == DEFAULT_TAX_RATES

    def test_empty_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        config = load_config(_write(tmp_path, ""))
        assert config.log_level == "INFO"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, "database: [unclosed"))

    def test_top_level_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, "- a\n- b\n"))


class TestParseConfig:

    def test_env_overrides_url(self):
        config = parse_config(
            {"database": {"url": "sqlite:///a.db"}},
            environ={DATABASE_URL_ENV: "sqlite:///b.db"},
        )
        assert config.database.url == "sqlite:///b.db"

    def test_unknown_log_level(self):
        with pytest.raises(ConfigError):
            parse_config({"logging": {"level": "LOUD"}}, environ={})

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigError):
            parse_config({"database": "sqlite://"}, environ={})

    def test_bad_pool_size(self):
        with pytest.raises(ConfigError):
            parse_config({"database": {"pool_size": "many"}}, environ={})

    def test_unknown_tax_default_rejected(self):
        with pytest.raises(UnknownTaxRateError):
            parse_config({"tax_defaults": {"luxuryTaxRate": 0.2}}, environ={})
