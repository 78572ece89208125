"""
Registry settings loaded from the environment.

Environment variables:
- SR_CONTRACT_OWNER: Address allowed to administer the registry
- SR_MAX_MINT_PER_USER: Initial per-user mint quota (positive integer)
- SR_AUDIT_DIR: Directory for the JSONL event log (unset disables it)
- SR_LOG_LEVEL: Logging level name (DEBUG, INFO, WARNING, ...)
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

from story_registry.core.exceptions import ConfigurationError
from story_registry.core.models import (
    DEFAULT_MAX_MINT_PER_USER,
    NULL_PRINCIPAL,
    Principal,
)

DEFAULT_CONTRACT_OWNER = "ST1OWNER"
DEFAULT_LOG_LEVEL = "WARNING"


class RegistrySettings(BaseModel):
    """Settings used to construct a StoryRegistry."""

    contract_owner: str = DEFAULT_CONTRACT_OWNER
    max_mint_per_user: int = Field(default=DEFAULT_MAX_MINT_PER_USER)
    audit_dir: Path | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    model_config = {"frozen": True}

    @property
    def owner_principal(self) -> Principal:
        return Principal(self.contract_owner)

    @classmethod
    def from_env(cls) -> "RegistrySettings":
        """
        Load settings from SR_* environment variables.

        Raises:
            ConfigurationError: If any variable holds an invalid value
        """
        owner = os.getenv("SR_CONTRACT_OWNER", DEFAULT_CONTRACT_OWNER).strip()
        if not owner:
            raise ConfigurationError(
                "Contract owner cannot be empty", env_var="SR_CONTRACT_OWNER"
            )
        if owner == NULL_PRINCIPAL.address:
            raise ConfigurationError(
                "Contract owner cannot be the null address",
                env_var="SR_CONTRACT_OWNER",
            )

        max_mint = parse_max_mint(
            os.getenv("SR_MAX_MINT_PER_USER", ""), env_var="SR_MAX_MINT_PER_USER"
        )
        log_level = parse_log_level(
            os.getenv("SR_LOG_LEVEL", DEFAULT_LOG_LEVEL), env_var="SR_LOG_LEVEL"
        )

        audit_dir_str = os.getenv("SR_AUDIT_DIR", "").strip()
        audit_dir = Path(audit_dir_str) if audit_dir_str else None

        return cls(
            contract_owner=owner,
            max_mint_per_user=max_mint,
            audit_dir=audit_dir,
            log_level=log_level,
        )


def parse_max_mint(value: str, *, env_var: str | None = None) -> int:
    """Parse a mint quota, falling back to the default when empty."""
    value = value.strip()
    if not value:
        return DEFAULT_MAX_MINT_PER_USER
    try:
        parsed = int(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid mint quota: {value!r}",
            env_var=env_var,
            config_key="max_mint_per_user",
        ) from e
    if parsed <= 0:
        raise ConfigurationError(
            f"Mint quota must be positive, got {parsed}",
            env_var=env_var,
            config_key="max_mint_per_user",
        )
    return parsed


def parse_log_level(value: str, *, env_var: str | None = None) -> str:
    """Normalize a logging level name."""
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(
            f"Unknown log level: {value!r}",
            env_var=env_var,
            config_key="log_level",
        )
    return level
