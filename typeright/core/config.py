"""Application settings: optional YAML file plus environment overrides."""

from __future__ import annotations

import getpass
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = Path.home() / ".typeright"
DEFAULT_LESSONS_DIR = PACKAGE_DIR / "data" / "lessons"

_ENV_OVERRIDES = {
    "TYPERIGHT_DATA_DIR": "data_dir",
    "TYPERIGHT_LESSONS_DIR": "lessons_dir",
    "TYPERIGHT_USER": "user_id",
    "TYPERIGHT_LOG_LEVEL": "log_level",
    "ELEVENLABS_API_KEY": "elevenlabs_api_key",
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "student"


@dataclass
class AppConfig:
    data_dir: Path = DEFAULT_DATA_DIR
    lessons_dir: Path = DEFAULT_LESSONS_DIR
    user_id: str = field(default_factory=_default_user)
    log_level: str = "INFO"
    voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    elevenlabs_api_key: Optional[str] = None

    @property
    def progress_file(self) -> Path:
        return self.data_dir / "progress.json"


def load_config(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build an :class:`AppConfig` from *path* (if it exists) and the environment.

    Environment variables win over the file. Unknown keys in the file are
    logged and ignored.
    """
    env = os.environ if environ is None else environ
    config_path = path if path is not None else DEFAULT_DATA_DIR / "config.yaml"

    values: Dict[str, Any] = {}
    if config_path.exists():
        values.update(_read_yaml(config_path))

    for env_key, attr in _ENV_OVERRIDES.items():
        if env.get(env_key):
            values[attr] = env[env_key]

    known = {f.name for f in fields(AppConfig)}
    for key in list(values):
        if key not in known:
            logger.warning("Ignoring unknown config key %r in %s", key, config_path)
            values.pop(key)

    for key in ("data_dir", "lessons_dir"):
        if key in values:
            values[key] = Path(str(values[key])).expanduser()
    if "log_level" in values:
        level = str(values["log_level"]).upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"{config_path.name}: invalid log_level {values['log_level']!r}")
        values["log_level"] = level

    return AppConfig(**values)


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"{path.name}: invalid YAML ({e})") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name}: expected a mapping of settings")
    return dict(raw)
