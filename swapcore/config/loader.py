"""
swapcore TOML Configuration Loader

Loads config.toml with environment variable overrides, following the
dataclass + from_dict + from_file pattern used for every section.

Environment variable mapping:
    [exchange] exchange_address → SWAPCORE_EXCHANGE_ADDRESS
    [logging]  level            → SWAPCORE_LOG_LEVEL
    [logging]  file_output      → SWAPCORE_LOG_FILE_OUTPUT

The swap fee is fixed per deployment. It is read once at startup and has
no runtime change path.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import FEE_DENOM, FEE_NUM, SWAPCORE_EXCHANGE_ADDRESS, parse_bool
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class ExchangeSectionConfig:
    """[exchange] section."""
    exchange_address: str = str(SWAPCORE_EXCHANGE_ADDRESS)
    fee_num: int = FEE_NUM
    fee_denom: int = FEE_DENOM

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExchangeSectionConfig":
        return cls(
            exchange_address=data.get("exchange_address", str(SWAPCORE_EXCHANGE_ADDRESS)),
            fee_num=data.get("fee_num", FEE_NUM),
            fee_denom=data.get("fee_denom", FEE_DENOM),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SWAPCORE_EXCHANGE_ADDRESS"):
            self.exchange_address = v

    def validate(self) -> None:
        if not self.exchange_address:
            raise ConfigurationError("exchange_address must not be empty")
        for name in ("fee_num", "fee_denom"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if not 0 <= self.fee_num < self.fee_denom:
            raise ConfigurationError(
                f"Fee must satisfy 0 <= fee_num < fee_denom, got {self.fee_num}/{self.fee_denom}"
            )


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = "INFO"
    file_output: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(
            level=data.get("level", "INFO"),
            file_output=data.get("file_output", False),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SWAPCORE_LOG_LEVEL"):
            self.level = v
        if v := os.environ.get("SWAPCORE_LOG_FILE_OUTPUT"):
            parsed = parse_bool(v)
            if isinstance(parsed, bool):
                self.file_output = parsed

    def validate(self) -> None:
        if self.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid log level: {self.level}")


@dataclass
class SwapCoreConfig:
    """Top-level configuration."""
    exchange: ExchangeSectionConfig = field(default_factory=ExchangeSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwapCoreConfig":
        return cls(
            exchange=ExchangeSectionConfig.from_dict(data.get("exchange", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "SwapCoreConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides applied).
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        self.exchange.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Raises:
            ConfigurationError: on invalid config
        """
        self.exchange.validate()
        self.logging.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exchange": {
                "exchange_address": self.exchange.exchange_address,
                "fee_num": self.exchange.fee_num,
                "fee_denom": self.exchange.fee_denom,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
        }


def load_config(path: Optional[str] = None) -> SwapCoreConfig:
    """
    Load and validate configuration.

    Resolution order:
        1. Explicit *path* argument
        2. SWAPCORE_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("SWAPCORE_CONFIG", "config.toml")

    cfg = SwapCoreConfig.from_file(path)
    cfg.validate()
    return cfg
