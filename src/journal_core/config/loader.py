"""Config loader — reads YAML, applies JOURNAL_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from journal_core.config.schema import AppConfig

_ENV_OVERRIDES = {
    "JOURNAL_DATABASE_URL": ("database", "url"),
    "JOURNAL_LOG_LEVEL": ("logging", "level"),
    "JOURNAL_LOG_FORMAT": ("logging", "format"),
    "JOURNAL_ACCOUNTING_METHOD": ("accounting", "method"),
    "JOURNAL_EXCESS_EXIT_POLICY": ("journal", "excess_exit_policy"),
    "JOURNAL_API_PORT": ("api", "port"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        JOURNAL_DATABASE_URL       -> database.url
        JOURNAL_LOG_LEVEL          -> logging.level
        JOURNAL_LOG_FORMAT         -> logging.format
        JOURNAL_ACCOUNTING_METHOD  -> accounting.method
        JOURNAL_EXCESS_EXIT_POLICY -> journal.excess_exit_policy
        JOURNAL_API_PORT           -> api.port
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})[key] = value

    return AppConfig.model_validate(data)
