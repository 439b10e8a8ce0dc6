"""Configuration models and loading utilities."""

import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .topology.models import SlotSize

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PARKING_ENGINE_CONFIG"


class FlatRate(BaseModel):
    """Rate applied to the first ``max_hours`` of every stay."""

    hourly: Decimal = Field(default=Decimal("20"), ge=0)
    daily: Decimal = Field(default=Decimal("300"), ge=0)  # Cap per full day past the flat window
    max_hours: int = Field(default=3, ge=0)


class SlotSizeRates(BaseModel):
    """Hourly rate per slot size once the flat window is over."""

    small: Decimal = Field(default=Decimal("15"), ge=0)
    medium: Decimal = Field(default=Decimal("20"), ge=0)
    large: Decimal = Field(default=Decimal("30"), ge=0)

    def for_size(self, size: SlotSize) -> Decimal:
        return getattr(self, size.value)


class NormalRate(BaseModel):
    slot_size: SlotSizeRates = SlotSizeRates()


class FeeRules(BaseModel):
    """Fee rules document served to clients and used at checkout."""

    currency: str = "USD"
    flat_rate: FlatRate = FlatRate()
    normal_rate: NormalRate = NormalRate()

    @field_validator("currency", mode="before")
    @classmethod
    def resolve_env_var(cls, v: str) -> str:
        """Resolve environment variable references like ${VAR_NAME}."""
        if isinstance(v, str) and v.startswith("${") and v.endswith("}"):
            env_var = v[2:-1]
            return os.environ.get(env_var, "USD")
        return v


class LotConfig(BaseModel):
    """Parking lot limits and defaults."""

    max_width: int = Field(default=100, ge=2)
    max_height: int = Field(default=100, ge=2)
    default_gate_size: int = Field(default=3, ge=1)


class APIConfig(BaseModel):
    """API server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000  # Port the operator client expects
    cors_origins: list[str] = ["*"]


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    """Main application configuration."""

    lot: LotConfig = LotConfig()
    fee_rules: FeeRules = FeeRules()
    api: APIConfig = APIConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: str | Path) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(**data)


def get_config_path() -> Path:
    """Get the default configuration file path."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    # Check for config in current directory first
    local_config = Path("config/config.yaml")
    if local_config.exists():
        return local_config

    # Check for config in parent directory (for Docker)
    parent_config = Path("/app/config/config.yaml")
    if parent_config.exists():
        return parent_config

    return local_config  # Return default even if doesn't exist


def load_config_or_default(path: Optional[str | Path] = None) -> AppConfig:
    """Load configuration, falling back to built-in defaults when no file exists."""
    config_path = Path(path) if path else get_config_path()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}, using defaults")
        return AppConfig()

    config = load_config(config_path)
    logger.info(f"Loaded configuration from {config_path}")
    return config
