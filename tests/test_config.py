"""
Tests for configuration loading and validation.
"""

import pytest

from snowflake_service.core.config import (
    Settings,
    load_yaml_config,
    merge_configs,
    setup_logging,
    validate_config,
)
from snowflake_service.core.const import DEFAULT_EPOCH
from snowflake_service.core.exceptions import InvalidConfiguration
from snowflake_service.core.generator import build_generator, generate_id, get_generator


def make_settings(**values):
    return Settings(_env_file=None, **values)


class TestYamlConfig:
    """Tests for the configuration file loader."""

    def test_missing_file(self, tmp_path):
        assert load_yaml_config(str(tmp_path / "missing.yaml")) == {}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")

        assert load_yaml_config(str(path)) == {}

    def test_loads_sections(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("snowflake:\n  node_id: 7\n  epoch: 1600000000000\n")

        assert load_yaml_config(str(path)) == {"snowflake": {"node_id": 7, "epoch": 1600000000000}}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("snowflake: [unclosed\n")

        assert load_yaml_config(str(path)) == {}

    def test_empty_sections(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("app:\nlogging:\nsnowflake:\n  node_id: 2\n")

        file_config = load_yaml_config(str(path))

        assert file_config == {"app": None, "logging": None, "snowflake": {"node_id": 2}}
        assert validate_config(file_config)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- node_id\n- epoch\n")

        assert load_yaml_config(str(path)) == {}


class TestMergeConfigs:
    """Tests for overlaying environment settings on the file configuration."""

    def test_environment_overrides_file(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        monkeypatch.delenv("EPOCH", raising=False)
        settings = make_settings(node_id=5, wait_timeout_ms=25, log_level="DEBUG", timezone="Asia/Singapore")
        file_config = {"snowflake": {"node_id": 1, "epoch": 1600000000000}}

        merged = merge_configs(settings, file_config)

        assert merged["snowflake"] == {"node_id": 5, "epoch": 1600000000000, "wait_timeout_ms": 25}
        assert merged["logging"]["level"] == "DEBUG"
        assert merged["app"]["timezone"] == "Asia/Singapore"

    def test_unset_environment_keeps_file_values(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        for name in ("NODE_ID", "EPOCH", "WAIT_TIMEOUT_MS", "LOG_LEVEL", "TIMEZONE"):
            monkeypatch.delenv(name, raising=False)
        file_config = {"snowflake": {"node_id": 3}}

        assert merge_configs(make_settings(), file_config) == {"snowflake": {"node_id": 3}}

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "9000")

        merged = merge_configs(make_settings(), {})

        assert merged["app"]["port"] == 9000

    def test_empty_sections_dropped(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        for name in ("EPOCH", "WAIT_TIMEOUT_MS", "LOG_LEVEL", "TIMEZONE"):
            monkeypatch.delenv(name, raising=False)

        merged = merge_configs(make_settings(node_id=4), {"app": None, "logging": None, "snowflake": None})

        assert merged == {"snowflake": {"node_id": 4}}

    def test_invalid_port_ignored(self, monkeypatch):
        monkeypatch.setenv("PORT", "not-a-port")

        merged = merge_configs(make_settings(), {})

        assert "port" not in merged.get("app", {})


class TestValidateConfig:
    """Tests for configuration validation."""

    def test_empty_config_uses_defaults(self):
        assert validate_config({})

    def test_valid_config(self):
        config = {
            "app": {"port": 8000, "max_batch_size": 500},
            "snowflake": {
                "node_id": 1023,
                "epoch": DEFAULT_EPOCH,
                "wait_timeout_ms": 10,
                "layout": {"timestamp_bits": 41, "node_bits": 10, "sequence_bits": 12}
            }
        }

        assert validate_config(config)

    @pytest.mark.parametrize("snowflake_config", [
        {"node_id": 1024},
        {"node_id": -1},
        {"node_id": "1"},
        {"epoch": -5},
        {"wait_timeout_ms": 0},
        {"layout": {"timestamp_bits": 41, "node_bits": 10, "sequence_bits": 13}},
        {"layout": {"worker_bits": 10}},
        {"node_id": 300, "layout": {"timestamp_bits": 43, "node_bits": 8, "sequence_bits": 12}},
    ])
    def test_invalid_snowflake_section(self, snowflake_config):
        assert not validate_config({"snowflake": snowflake_config})

    def test_empty_sections_are_valid(self):
        assert validate_config({"app": None, "logging": None, "snowflake": None})

    @pytest.mark.parametrize("config", [
        {"app": ["port"]},
        {"logging": "DEBUG"},
        {"snowflake": 5},
        {"logging": {"file": "logs/snowflake.log"}},
    ])
    def test_sections_must_be_mappings(self, config):
        assert not validate_config(config)

    @pytest.mark.parametrize("app_config", [{"max_batch_size": 0}, {"port": "8000"}])
    def test_invalid_app_section(self, app_config):
        assert not validate_config({"app": app_config})


class TestBuildGenerator:
    """Tests for creating the generator from configuration."""

    def test_defaults(self):
        generator = build_generator({})

        assert generator.node_id == 0
        assert generator.epoch == DEFAULT_EPOCH
        assert generator.wait_timeout is None

    def test_from_config(self):
        generator = build_generator({
            "snowflake": {
                "node_id": 12,
                "epoch": 1600000000000,
                "wait_timeout_ms": 50,
                "layout": {"timestamp_bits": 42, "node_bits": 9, "sequence_bits": 12}
            }
        })

        assert generator.node_id == 12
        assert generator.epoch == 1600000000000
        assert generator.wait_timeout == 0.05
        assert generator.layout.node_bits == 9

    def test_empty_snowflake_section(self):
        generator = build_generator({"snowflake": None})

        assert generator.node_id == 0
        assert generator.layout.to_dict() == {"timestamp_bits": 41, "node_bits": 10, "sequence_bits": 12}

    def test_invalid_node_id(self):
        with pytest.raises(InvalidConfiguration):
            build_generator({"snowflake": {"node_id": 2048}})

    def test_global_generator(self):
        first = int(generate_id())
        second = int(generate_id())

        assert second > first
        assert get_generator().decode(first).node_id == get_generator().node_id


class TestSetupLogging:
    """Tests for logging setup."""

    def test_empty_logging_section(self):
        setup_logging({"logging": None})

    def test_file_sink(self, tmp_path):
        log_path = tmp_path / "snowflake.log"

        setup_logging({"logging": {"level": "INFO", "file": {"path": str(log_path)}}})

        assert log_path.exists()

        setup_logging({})
