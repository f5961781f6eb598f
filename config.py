# config.py
"""
Configuration management for the MLM plan simulator.
Loads from .env, falls back to built-in defaults.
"""
import os
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Configuration error exception."""
    pass


class Config:
    """
    Configuration manager with static and dynamic values.

    Usage:
        # Load from .env
        Config.initialize_from_env()

        # Get value
        tolerance = Config.get(Config.SALES_RATIO_TOLERANCE)

        # Set dynamic value
        Config.set(Config.RANDOM_SEED, 42)
    """

    # ═══════════════════════════════════════════════════════════════════════
    # CONFIGURATION KEYS
    # ═══════════════════════════════════════════════════════════════════════

    # Simulation
    SALES_RATIO_TOLERANCE = "SALES_RATIO_TOLERANCE"
    RANDOM_SEED = "RANDOM_SEED"
    DEFAULT_PAYOUT_CAP = "DEFAULT_PAYOUT_CAP"

    # Tree walking
    CHAIN_WALK_MAX_DEPTH = "CHAIN_WALK_MAX_DEPTH"

    # System
    LOG_LEVEL = "LOG_LEVEL"

    # ═══════════════════════════════════════════════════════════════════════
    # DEFAULTS
    # ═══════════════════════════════════════════════════════════════════════

    DEFAULTS: Dict[str, Any] = {
        SALES_RATIO_TOLERANCE: Decimal("0.01"),
        RANDOM_SEED: None,
        DEFAULT_PAYOUT_CAP: None,
        CHAIN_WALK_MAX_DEPTH: None,
        LOG_LEVEL: "INFO",
    }

    # ═══════════════════════════════════════════════════════════════════════
    # STORAGE
    # ═══════════════════════════════════════════════════════════════════════

    _config: Dict[str, Any] = {}
    _initialized: bool = False

    # ═══════════════════════════════════════════════════════════════════════
    # METHODS
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    def initialize_from_env(cls) -> None:
        """
        Load configuration from .env file and process environment.

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        load_dotenv()

        logger.info("Loading configuration from environment...")

        try:
            cls._config[cls.SALES_RATIO_TOLERANCE] = Decimal(
                os.getenv("SALES_RATIO_TOLERANCE", "0.01")
            )

            cls._config[cls.RANDOM_SEED] = cls._parse_optional_int(
                os.getenv("SIMULATION_RANDOM_SEED")
            )

            payout_cap = os.getenv("DEFAULT_PAYOUT_CAP")
            cls._config[cls.DEFAULT_PAYOUT_CAP] = Decimal(payout_cap) if payout_cap else None

            cls._config[cls.CHAIN_WALK_MAX_DEPTH] = cls._parse_optional_int(
                os.getenv("CHAIN_WALK_MAX_DEPTH")
            )

            cls._config[cls.LOG_LEVEL] = os.getenv("LOG_LEVEL", "INFO").upper()

            cls._initialized = True
            logger.info("Configuration loaded from environment successfully")

        except (ValueError, InvalidOperation) as e:
            logger.error(f"Failed to load configuration: {e}")
            raise ConfigurationError(f"Configuration loading failed: {e}")

    @staticmethod
    def _parse_optional_int(raw: Optional[str]) -> Optional[int]:
        if raw is None or raw.strip() == "":
            return None
        return int(raw)

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Falls back to the built-in default for known keys, so the
        simulator works without calling initialize_from_env().

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if key in cls._config:
            return cls._config[key]
        if default is not None:
            return default
        return cls.DEFAULTS.get(key)

    @classmethod
    def set(cls, key: str, value: Any, source: str = "runtime") -> None:
        """
        Set configuration value (for dynamic updates).

        Args:
            key: Configuration key
            value: New value
            source: Source of the update (for logging)
        """
        cls._config[key] = value
        logger.debug(f"Config updated: {key} = {value} (source: {source})")

    @classmethod
    def get_all(cls) -> Dict[str, Any]:
        """
        Get all configuration values.

        Returns:
            Copy of configuration dictionary merged over defaults
        """
        merged = dict(cls.DEFAULTS)
        merged.update(cls._config)
        return merged

    @classmethod
    def reset(cls) -> None:
        """Drop all loaded values. Used by tests."""
        cls._config = {}
        cls._initialized = False
