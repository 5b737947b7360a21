"""Configuration loading."""

from tasksync.config.loader import load_config, write_config
from tasksync.config.settings import load_settings

__all__ = ["load_config", "load_settings", "write_config"]
