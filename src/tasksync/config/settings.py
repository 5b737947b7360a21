"""Runtime settings resolution."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from pydantic import ValidationError

from tasksync.contracts.config import Settings
from tasksync.contracts.exceptions import ConfigurationError


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    data_dir: str | Path | None = None,
) -> Settings:
    """Resolve settings from ``TASKSYNC_*`` variables; *data_dir* overrides the environment.

    Raises:
        ConfigurationError: If a variable holds an invalid value (e.g. a non-numeric port).
    """
    try:
        settings = Settings.from_env(None if environ is None else dict(environ))
    except ValidationError as exc:
        raise ConfigurationError(f"invalid TASKSYNC_* environment: {exc}") from exc
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": Path(data_dir).expanduser()})
    return settings
