"""
Package configuration management.

This module loads configuration from multiple sources with a clear priority
order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/ticket_sale.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The SaleConfig
dataclass provides typed access to all settings.

Usage:
    from ticket_sale.config import config, configure_logging

    configure_logging()
    print(config.journal.absolute_root)

Environment Variable Mapping:
    TICKET_SALE_LOG_LEVEL        -> logging.level
    TICKET_SALE_LOG_FORMAT       -> logging.format
    TICKET_SALE_JOURNAL_ENABLED  -> journal.enabled
    TICKET_SALE_JOURNAL_ROOT     -> journal.root
"""

import configparser
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "ticket_sale.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "ticket_sale.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed", "json"] = "detailed"


@dataclass
class JournalSettings:
    """Audit journal configuration."""

    enabled: bool = True
    root: str = "data/ledger"

    @property
    def absolute_root(self) -> Path:
        """Get absolute path to the journal directory."""
        p = Path(self.root)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class SaleConfig:
    """
    Complete package configuration.

    Aggregates all settings sections. Access via the module-level `config`
    singleton.
    """

    logging: LoggingSettings = field(default_factory=LoggingSettings)
    journal: JournalSettings = field(default_factory=JournalSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _load_from_ini(parser: configparser.ConfigParser, cfg: SaleConfig) -> None:
    """Load configuration from parsed INI file into SaleConfig."""
    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed", "json"):
                cfg.logging.format = val  # type: ignore[assignment]

    # Journal section
    if parser.has_section("journal"):
        if parser.has_option("journal", "enabled"):
            cfg.journal.enabled = _parse_bool(parser.get("journal", "enabled"))
        if parser.has_option("journal", "root"):
            cfg.journal.root = parser.get("journal", "root")


def _apply_env_overrides(cfg: SaleConfig) -> None:
    """Apply environment variable overrides to configuration."""
    if env_log := os.getenv("TICKET_SALE_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()
    if env_format := os.getenv("TICKET_SALE_LOG_FORMAT"):
        val = env_format.lower()
        if val in ("simple", "detailed", "json"):
            cfg.logging.format = val  # type: ignore[assignment]

    if env_enabled := os.getenv("TICKET_SALE_JOURNAL_ENABLED"):
        cfg.journal.enabled = _parse_bool(env_enabled)
    if env_root := os.getenv("TICKET_SALE_JOURNAL_ROOT"):
        cfg.journal.root = env_root


def load_config() -> SaleConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/ticket_sale.ini
        3. config/ticket_sale.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        SaleConfig: Fully populated configuration object.
    """
    cfg = SaleConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "SaleConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton.

    Returns:
        SaleConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


class _JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


_LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
}


def configure_logging(cfg: SaleConfig | None = None) -> None:
    """
    Install a root log handler using the configured level and format.

    Replaces any handlers already installed on the root logger, so it is
    safe to call more than once.

    Args:
        cfg: Configuration to apply. Defaults to the module-level `config`.
    """
    cfg = cfg or config
    handler = logging.StreamHandler()
    if cfg.logging.format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_LOG_FORMATS[cfg.logging.format]))
    logging.basicConfig(level=cfg.logging.level, handlers=[handler], force=True)


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "log_level": config.logging.level,
        "log_format": config.logging.format,
        "journal_enabled": config.journal.enabled,
        "journal_root": str(config.journal.absolute_root),
    }


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_journal:
    """
    Context manager for redirecting the audit journal to a temporary directory.

    Usage:
        from ticket_sale.config import use_test_journal

        def test_something(tmp_path):
            with use_test_journal(tmp_path / "ledger"):
                sale.purchase_ticket(alice)

    Args:
        root: Directory that journal files are written to
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self.original_root: str | None = None
        self.original_enabled: bool | None = None

    def __enter__(self) -> Path:
        """Point the journal at the test directory and enable it."""
        self.original_root = config.journal.root
        self.original_enabled = config.journal.enabled
        config.journal.root = str(self.root)
        config.journal.enabled = True
        return self.root

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore the original journal settings."""
        if self.original_root is not None:
            config.journal.root = self.original_root
        if self.original_enabled is not None:
            config.journal.enabled = self.original_enabled
        return None
