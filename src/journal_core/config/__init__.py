"""Configuration system."""

from journal_core.config.loader import load_config
from journal_core.config.schema import AppConfig, JournalConfig

__all__ = ["AppConfig", "JournalConfig", "load_config"]
