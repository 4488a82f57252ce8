"""
Relay settings.

Loads configuration from environment variables using pydantic-settings.
"""

from typing import Literal

from eth_utils import is_hex_address, to_checksum_address
from loguru import logger
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from event_relay.config.constants import (
    BLOCKCHAIN_LOG_CHUNK_SIZE,
    BLOCKCHAIN_POLL_INTERVAL,
    BLOCKCHAIN_RPC_TIMEOUT,
    DEFAULT_ABI_PATH,
    HTTP_REQUEST_TIMEOUT,
)
from event_relay.utils.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Relay settings loaded from environment variables."""

    # Blockchain
    rpc_url: str
    contract_addr: str
    abi_path: str = DEFAULT_ABI_PATH

    # First block to read logs from. 0 replays the whole contract history
    # on every restart; "latest" starts from the current head.
    start_block: int | Literal["latest"] = Field(
        default=0,
        description="Starting block for event streams (number or 'latest')",
    )
    poll_interval: float = Field(
        default=BLOCKCHAIN_POLL_INTERVAL,
        gt=0,
        description="Blockchain log polling interval in seconds",
    )
    log_chunk_size: int = Field(
        default=BLOCKCHAIN_LOG_CHUNK_SIZE,
        ge=1,
        description="Maximum blocks per eth_getLogs request",
    )
    rpc_timeout: int = Field(
        default=BLOCKCHAIN_RPC_TIMEOUT,
        gt=0,
        description="RPC provider HTTP timeout in seconds",
    )

    # Downstream API
    api_base_url: str
    http_timeout: float = Field(
        default=HTTP_REQUEST_TIMEOUT,
        gt=0,
        description="Per-attempt downstream request timeout in seconds",
    )

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        """Validate RPC endpoint URL."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("RPC_URL must start with http:// or https://")
        return v

    @field_validator("contract_addr")
    @classmethod
    def validate_contract_address(cls, v: str) -> str:
        """Validate contract address format."""
        v = v.strip()
        if not v.startswith("0x") or len(v) != 42 or not is_hex_address(v):
            raise ValueError(
                f"Invalid contract address: {v}. "
                "Must start with 0x and be 42 characters long."
            )
        return to_checksum_address(v)

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate downstream API base URL."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("start_block", mode="before")
    @classmethod
    def validate_start_block(cls, v: object) -> object:
        """Accept 'latest' in any case, otherwise a non-negative integer."""
        if isinstance(v, str):
            v = v.strip()
            if v.lower() == "latest":
                return "latest"
        if isinstance(v, (str, int)) and int(v) < 0:
            raise ValueError("START_BLOCK must be >= 0 or 'latest'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.strip().upper()
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(allowed)}")
        return level

    @model_validator(mode="after")
    def warn_full_replay(self) -> "Settings":
        """Warn when every restart replays the full event history."""
        if self.start_block == 0:
            logger.warning(
                "START_BLOCK is 0: all contract events will be replayed and "
                "relayed again on every restart"
            )
        return self


def load_settings(**overrides) -> Settings:
    """
    Load settings from the environment.

    Args:
        **overrides: Explicit values taking precedence over the environment

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']).upper() or 'SETTINGS'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
