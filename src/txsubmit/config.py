"""
Configuration management for the transaction submitter.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SubmitterConfig(BaseSettings):
    """
    Configuration settings for the node adapter, key store and CLI.

    All settings can be configured via environment variables with the TXSUBMIT_ prefix.
    The submission pipeline itself takes no settings; callers tune each
    transaction through override functions.
    """

    model_config = SettingsConfigDict(
        env_prefix="TXSUBMIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Node settings
    rpc_url: str = Field(
        default="http://localhost:8545",
        description="JSON-RPC endpoint of the node"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single JSON-RPC round trip"
    )

    # Key store settings
    keystore_dir: Optional[str] = Field(
        default=None,
        description="Directory holding encrypted JSON key files"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )


# Global config instance
_config: Optional[SubmitterConfig] = None


def get_config() -> SubmitterConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = SubmitterConfig()
    return _config


def set_config(config: SubmitterConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
