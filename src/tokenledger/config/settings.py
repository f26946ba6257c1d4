"""
Configuration management with Pydantic validation.

Loads settings from YAML config file and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from tokenledger.ledger.address import is_null_address
from tokenledger.ledger.token import MAX_DECIMALS


class TokenConfig(BaseModel):
    """Token metadata and genesis allocation."""

    name: str = Field(default="SYZYGY", min_length=1)
    symbol: str = Field(default="CZG", min_length=1, max_length=16)
    decimals: int = Field(default=18, ge=0, le=MAX_DECIMALS)
    initial_supply: int = Field(default=1_000_000, ge=0)
    creator: str = Field(default="0x" + "1" * 40, min_length=1)

    @field_validator("creator")
    @classmethod
    def validate_creator(cls, v: str) -> str:
        if is_null_address(v):
            raise ValueError("creator must not be the null address")
        return v

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    journal_path: str = "./data/journal"
    logs_path: str = "./logs"


class MonitoringConfig(BaseModel):
    """Monitoring configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    error_log_max_bytes: int = Field(default=5_000_000, ge=100_000, le=50_000_000)
    error_log_backup_count: int = Field(default=3, ge=1, le=20)


class Settings(BaseSettings):
    """Main application settings."""

    token: TokenConfig = Field(default_factory=TokenConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = {
        "env_prefix": "TOKENLEDGER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "env_nested_delimiter": "__",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):  # type: ignore[no-untyped-def]
        # Environment beats values passed in from the YAML file.
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @property
    def lock_path(self) -> Path:
        """Lock file guarding the journal directory across processes."""
        return Path(self.storage.journal_path) / "ledger.lock"


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Load settings from YAML config file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (``TOKENLEDGER_TOKEN__SYMBOL=...``)
    2. Config file values
    3. Default values
    """
    config_data = {}

    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config.yaml")

    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            config_data = yaml.safe_load(f) or {}

    env_path = config_file.parent / ".env"
    return Settings(**config_data, _env_file=env_path)


def create_default_config(path: str | Path = "config.yaml") -> None:
    """Create a default configuration file."""
    default_config = {
        "token": {
            "name": "SYZYGY",
            "symbol": "CZG",
            "decimals": 18,
            "initial_supply": 1_000_000,
            "creator": "0x" + "1" * 40,
        },
        "storage": {
            "journal_path": "./data/journal",
            "logs_path": "./logs",
        },
        "monitoring": {
            "log_level": "INFO",
            "error_log_max_bytes": 5000000,
            "error_log_backup_count": 3,
        },
    }

    with open(path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
