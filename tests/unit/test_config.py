"""
Unit tests for CLI configuration management.
"""

import json

import pytest
import yaml

from cli.config import DEFAULT_CONFIG, ConfigurationError, ConfigurationManager
from registry.schema import ContractConfig


class TestConfigurationManager:
    """Test hierarchical configuration loading."""

    @pytest.fixture
    def isolated(self, monkeypatch, temp_dir):
        """Run from an empty directory so no project config file is found."""
        monkeypatch.setattr("cli.config.CONFIG_SEARCH_PATHS", [])
        return temp_dir

    def test_defaults(self, isolated):
        manager = ConfigurationManager(environ={})

        assert manager.get("contract_id") == DEFAULT_CONFIG["contract_id"]
        assert manager.get("storage.backup_count") == 5
        assert manager.get("contract.max_tokens") == 10_000
        assert manager.get("missing.key", "fallback") == "fallback"
        assert manager.get_sources() == ["defaults"]
        assert manager.validate() == []

    def test_data_dir_expanded(self, isolated):
        manager = ConfigurationManager(environ={})
        assert "~" not in manager.get("storage.data_dir")

    def test_yaml_file_overrides_defaults(self, isolated):
        path = isolated / "config.yml"
        path.write_text(yaml.safe_dump({"contract": {"max_tokens": 50}, "cli": {"output_format": "json"}}))

        manager = ConfigurationManager(str(path), environ={})

        assert manager.get("contract.max_tokens") == 50
        assert manager.get("contract.tokens_reserved") == 5
        assert manager.get("cli.output_format") == "json"
        assert manager.get_sources() == ["defaults", f"file:{path}"]

    def test_json_file(self, isolated):
        path = isolated / "config.json"
        path.write_text(json.dumps({"storage": {"backup_count": 0}}))

        assert ConfigurationManager(str(path), environ={}).get("storage.backup_count") == 0

    def test_missing_explicit_file(self, isolated):
        with pytest.raises(ConfigurationError):
            ConfigurationManager(str(isolated / "nope.yml"), environ={}).load()

    def test_unknown_file_format(self, isolated):
        path = isolated / "config.toml"
        path.write_text("x = 1")

        with pytest.raises(ConfigurationError):
            ConfigurationManager(str(path), environ={}).load()

    def test_environment_overrides_file(self, isolated):
        path = isolated / "config.yml"
        path.write_text(yaml.safe_dump({"contract": {"max_tokens": 50}}))
        environ = {
            "MINTREG_CONTRACT__MAX_TOKENS": "75",
            "MINTREG_STORAGE__COMPRESSED": "true",
            "MINTREG_STORAGE__DATA_DIR": str(isolated / "data"),
            "MINTREG_CONTRACT_ID": "other",
            "MINTREG_PRIVATE_KEY": "ab" * 32,
        }

        manager = ConfigurationManager(str(path), environ=environ)

        assert manager.get("contract.max_tokens") == 75
        assert manager.get("storage.compressed") is True
        assert manager.get("storage.data_dir") == str(isolated / "data")
        assert manager.get("contract_id") == "other"
        assert manager.get("private_key") is None
        assert "environment" in manager.get_sources()

    def test_validate_reports_errors(self, isolated):
        environ = {
            "MINTREG_CLI__OUTPUT_FORMAT": "xml",
            "MINTREG_STORAGE__BACKUP_COUNT": "-1",
            "MINTREG_CONTRACT__TOKENS_RESERVED": "20000",
        }

        errors = ConfigurationManager(environ=environ).validate()

        assert any("output format" in e for e in errors)
        assert any("backup_count" in e for e in errors)
        assert any(e.startswith("contract") for e in errors)

    def test_contract_config(self, isolated):
        manager = ConfigurationManager(environ={
            "MINTREG_CONTRACT__MAX_MINT_PER_TX": "3",
            "MINTREG_CONTRACT__TOKENS_RESERVED": "2",
        })
        config = manager.contract_config()

        assert isinstance(config, ContractConfig)
        assert config.max_mint_per_tx == 3

    def test_invalid_contract_config(self, isolated):
        manager = ConfigurationManager(environ={"MINTREG_CONTRACT__MAX_TOKENS": "0"})

        with pytest.raises(ConfigurationError):
            manager.contract_config()

    def test_set_and_save(self, isolated):
        manager = ConfigurationManager(environ={})
        manager.set("contract.max_tokens", 42)

        path = manager.save(str(isolated / "saved.yml"))
        reloaded = ConfigurationManager(str(path), environ={})

        assert reloaded.get("contract.max_tokens") == 42

    def test_reset(self, isolated):
        manager = ConfigurationManager(environ={})
        manager.set("contract.max_tokens", 42)
        manager.reset()

        assert manager.get("contract.max_tokens") == 10_000
