"""
Tests for gooracle/config.py - OracleConfig.
"""

import json
import os

import pytest

from gooracle.compilers import DEFAULT_GC_COMMAND
from gooracle.config import OracleConfig, OracleConfigError, default_config_path


class TestOracleConfig:
    """Tests for the OracleConfig class."""

    def test_config_init_defaults(self):
        """Test config initialization with default values."""
        config = OracleConfig()
        assert config.gc_enabled is True
        assert config.gccgo_enabled is True
        assert config.goarch == "386"
        assert config.timeout is None
        assert config.parallel_compilers is False
        assert config.revalidate_after_format is False
        assert config.gc_command == DEFAULT_GC_COMMAND

    def test_config_init_custom_values(self, sample_config_data):
        """Test config initialization with custom values."""
        config = OracleConfig(**sample_config_data)
        assert config.gccgo_enabled is False
        assert config.goarch == "amd64"
        assert config.timeout == 30
        assert config.gc_command[0] == "go"

    def test_defaults_not_shared(self):
        """Mutating one config's command list leaves new configs untouched"""
        config = OracleConfig()
        config.gc_command.append("-race")
        assert OracleConfig().gc_command == DEFAULT_GC_COMMAND

    def test_config_get_method(self):
        """Test the get method with default fallback."""
        config = OracleConfig(goarch="arm")
        assert config.get("goarch") == "arm"
        assert config.get("nonexistent_key") is None
        assert config.get("nonexistent_key", "default") == "default"

    def test_config_attribute_set(self):
        """Test setting config values via attributes."""
        config = OracleConfig()
        config.goarch = "amd64"
        assert config.goarch == "amd64"

    def test_config_unknown_attribute_set(self):
        config = OracleConfig()
        with pytest.raises(OracleConfigError):
            config.gcc_enabled = False

    def test_config_invalid_attribute(self):
        """Test accessing non-existent attribute raises error."""
        config = OracleConfig()
        with pytest.raises(AttributeError):
            _ = config.nonexistent_attribute

    def test_config_unknown_keys(self):
        with pytest.raises(OracleConfigError, match="gcc_command"):
            OracleConfig(gcc_command=["gcc"])

    @pytest.mark.parametrize("command", [[], "go tool compile", ["go", 1]])
    def test_config_bad_command(self, command):
        with pytest.raises(OracleConfigError):
            OracleConfig(gc_command=command)

    @pytest.mark.parametrize("timeout", [0, -1, "10"])
    def test_config_bad_timeout(self, timeout):
        with pytest.raises(OracleConfigError):
            OracleConfig(timeout=timeout)

    def test_validate_after_assignment(self):
        config = OracleConfig()
        config.timeout = -1
        with pytest.raises(OracleConfigError):
            config.validate()

    def test_config_path_expansion(self):
        """Test that paths are properly expanded."""
        config = OracleConfig(workdir="~/scratch", log_file="~/oracle.log")
        assert not config.workdir.startswith("~")
        assert config.workdir.endswith("/scratch")
        assert not config.log_file.startswith("~")

    def test_to_dict_is_a_copy(self):
        config = OracleConfig()
        data = config.to_dict()
        data["goarch"] = "mips"
        assert config.goarch == "386"


class TestOracleConfigFiles:
    """Tests for loading and saving config files."""

    def test_config_save_and_load(self, tmp_path):
        """Test saving and loading config from file."""
        path = tmp_path / "conf" / "config.json"
        config = OracleConfig(goarch="arm", timeout=12)
        assert config.save(str(path)) == str(path)

        with open(path) as f:
            data = json.load(f)
        assert data["goarch"] == "arm"

        loaded = OracleConfig.load(str(path))
        assert loaded.goarch == "arm"
        assert loaded.timeout == 12

    def test_load_missing_default_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = OracleConfig.load()
        assert config.goarch == "386"
        assert default_config_path() == os.path.join(str(tmp_path), ".gooracle", "config.json")

    def test_load_default_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        OracleConfig(parallel_compilers=True).save()
        assert OracleConfig.load().parallel_compilers is True

    def test_load_missing_explicit_path(self, tmp_path):
        with pytest.raises(OracleConfigError, match="not found"):
            OracleConfig.load(str(tmp_path / "missing.json"))

    def test_load_bad_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(OracleConfigError, match="Failed to load"):
            OracleConfig.load(str(path))

    def test_load_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(OracleConfigError, match="JSON object"):
            OracleConfig.load(str(path))

    def test_load_unknown_key(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"max_parallel_vms": 2}))
        with pytest.raises(OracleConfigError):
            OracleConfig.load(str(path))
