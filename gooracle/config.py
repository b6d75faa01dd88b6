# gooracle/config.py
import copy
import json
import os
from typing import Any, Dict, Optional

from .compilers import DEFAULT_GC_COMMAND, DEFAULT_GCCGO_COMMAND

ORACLE_DIR = "~/.gooracle"

DEFAULTS: Dict[str, Any] = {
    "gc_command": DEFAULT_GC_COMMAND,
    "gccgo_command": DEFAULT_GCCGO_COMMAND,
    "gc_enabled": True,
    "gccgo_enabled": True,
    "gofmt_binary": "gofmt",
    "gotype_binary": "gotype",
    "ssadump_binary": "ssadump",
    "goarch": "386",
    "workdir": None,
    "timeout": None,
    "parallel_compilers": False,
    "revalidate_after_format": False,
    "log_file": os.path.join(ORACLE_DIR, "gooracle.log"),
}


class OracleConfigError(Exception):
    """Configuration could not be loaded, saved or validated."""
    pass


class OracleConfig:
    def __init__(self, **kwargs):
        unknown = set(kwargs) - set(DEFAULTS)
        if unknown:
            raise OracleConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        self._data = copy.deepcopy(DEFAULTS)
        self._data.update(kwargs)
        self.validate()

    def validate(self) -> None:
        """Check the settings; attribute assignment is not checked, so call this after changing them"""
        for key in ("gc_command", "gccgo_command"):
            cmd = self._data[key]
            if not isinstance(cmd, list) or not cmd or not all(isinstance(a, str) for a in cmd):
                raise OracleConfigError(f"'{key}' must be a non-empty list of strings")
        timeout = self._data["timeout"]
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            raise OracleConfigError(f"'timeout' must be a positive number or null, got {timeout!r}")
        if self._data["workdir"]:
            self._data["workdir"] = os.path.expanduser(self._data["workdir"])
        self._data["log_file"] = os.path.expanduser(self._data["log_file"])

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._data:
            return self._data[name]
        raise AttributeError(f"'OracleConfig' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "_data":
            super().__setattr__(name, value)
        elif name in DEFAULTS:
            self._data[name] = value
        else:
            raise OracleConfigError(f"Unknown config key: {name}")

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "OracleConfig":
        """Load from ``path`` (default ~/.gooracle/config.json); defaults when absent."""
        config_path = os.path.expanduser(path) if path else default_config_path()
        if not os.path.exists(config_path):
            if path:
                raise OracleConfigError(f"Config file not found: {config_path}")
            return cls()
        try:
            with open(config_path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise OracleConfigError(f"Failed to load config from {config_path}: {e}")
        if not isinstance(data, dict):
            raise OracleConfigError(f"Config in {config_path} must be a JSON object")
        return cls(**data)

    def save(self, path: Optional[str] = None) -> str:
        config_path = os.path.expanduser(path) if path else default_config_path()
        config_dir = os.path.dirname(config_path)
        try:
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(config_path, "w") as f:
                json.dump(self._data, f, indent=2)
        except OSError as e:
            raise OracleConfigError(f"Failed to save config to {config_path}: {e}")
        return config_path


def default_config_path() -> str:
    return os.path.join(os.path.expanduser(ORACLE_DIR), "config.json")
