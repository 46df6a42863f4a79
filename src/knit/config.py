"""
Configuration for Knit

Settings are resolved from built-in defaults, then a JSON settings file,
then ``KNIT_*`` environment variables. The CLI applies its own options last.
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError

DEFAULT_SETTINGS_FILE = str(Path.home() / ".knit" / "settings.json")
DEFAULT_LOG_FILE = str(Path.home() / ".knit" / "logs" / "knit.log")

ENV_PREFIX = "KNIT_"


@dataclass
class KnitConfig:
    """Resolved Knit settings"""

    repo: str = field(default_factory=os.getcwd)
    committer_name: str = "Knit"
    committer_email: str = "knit@localhost"
    update_jobs: int = 4
    git_executable: str = "git"
    log_file: str = DEFAULT_LOG_FILE
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "repo": self.repo,
            "committer_name": self.committer_name,
            "committer_email": self.committer_email,
            "update_jobs": self.update_jobs,
            "git_executable": self.git_executable,
            "log_file": self.log_file,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], source: Optional[str] = None
    ) -> "KnitConfig":
        """Create from a dictionary, ignoring unknown keys"""
        return cls().merge(data, source=source)

    def merge(
        self, overrides: Mapping[str, Any], source: Optional[str] = None
    ) -> "KnitConfig":
        """Return a copy with the non-empty values of ``overrides`` applied"""
        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known or value is None or value == "":
                continue
            if key == "update_jobs":
                value = _parse_jobs(value, source)
            else:
                value = str(value)
            changes[key] = value
        return replace(self, **changes)


def _parse_jobs(value: Any, source: Optional[str]) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"update_jobs must be an integer, got {value!r}", source)
    try:
        jobs = int(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"update_jobs must be an integer, got {value!r}", source
        ) from None
    if jobs < 1:
        raise ConfigError(f"update_jobs must be at least 1, got {jobs}", source)
    return jobs


def load_settings_file(path: str) -> Dict[str, Any]:
    """Load a JSON settings file; a missing file yields no settings"""
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON: {e}", path) from e

    if not isinstance(data, dict):
        raise ConfigError("settings must be a JSON object", path)
    return data


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Collect ``KNIT_<FIELD>`` environment overrides"""
    environ = os.environ if environ is None else environ
    settings = {}
    for f in fields(KnitConfig):
        value = environ.get(ENV_PREFIX + f.name.upper())
        if value:
            settings[f.name] = value
    return settings


def load_config(
    config_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> KnitConfig:
    """Resolve configuration from the settings file and environment

    Args:
        config_file: Settings file to read; defaults to ``KNIT_CONFIG`` or
            ``~/.knit/settings.json``
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Resolved configuration

    Raises:
        ConfigError: If the settings file or an override is invalid
    """
    environ = os.environ if environ is None else environ
    path = config_file or environ.get("KNIT_CONFIG") or DEFAULT_SETTINGS_FILE

    config = KnitConfig.from_dict(load_settings_file(path), source=path)
    return config.merge(settings_from_env(environ), source="environment")
