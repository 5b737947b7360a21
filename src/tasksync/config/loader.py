"""Load and save the ``config.json`` document."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tasksync.contracts.config import LinearConfig
from tasksync.contracts.exceptions import ConfigurationError


def load_config(path: str | Path) -> LinearConfig:
    """Read the Linear settings stored at *path*.

    A missing file yields an empty, unconfigured ``LinearConfig``.

    Raises:
        ConfigurationError: If the file cannot be read or does not match the schema.
    """
    config_path = Path(path).expanduser()
    if not config_path.exists():
        return LinearConfig()

    try:
        raw_payload: Any = json.loads(config_path.read_text(encoding="utf-8"))
        return LinearConfig.model_validate(raw_payload)
    except OSError as exc:
        raise ConfigurationError(f"failed reading config file: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"invalid JSON in config file: {config_path}") from exc
    except ValidationError as exc:
        raise ConfigurationError(f"invalid config: {exc}") from exc


def write_config(path: str | Path, config: LinearConfig) -> None:
    """Persist *config* with its camelCase keys, keeping unknown keys."""
    config_path = Path(path).expanduser()
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.model_dump_json(by_alias=True, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"failed to write config file: {config_path}") from exc
