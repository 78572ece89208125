"""Tests for environment-driven registry settings."""

from pathlib import Path

import pytest

from story_registry.audit.logger import AuditLogger
from story_registry.core.config import (
    RegistrySettings,
    parse_log_level,
    parse_max_mint,
)
from story_registry.core.exceptions import ConfigurationError
from story_registry.core.models import Principal
from story_registry.registry.core import StoryRegistry


class TestFromEnv:
    """Tests for RegistrySettings.from_env."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unset variables give the defaults."""
        for var in ("SR_CONTRACT_OWNER", "SR_MAX_MINT_PER_USER", "SR_AUDIT_DIR", "SR_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)

        settings = RegistrySettings.from_env()

        assert settings.contract_owner == "ST1OWNER"
        assert settings.max_mint_per_user == 10
        assert settings.audit_dir is None
        assert settings.log_level == "WARNING"

    def test_reads_variables(self, monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
        """All variables are honoured."""
        monkeypatch.setenv("SR_CONTRACT_OWNER", "ST9ADMIN")
        monkeypatch.setenv("SR_MAX_MINT_PER_USER", "3")
        monkeypatch.setenv("SR_AUDIT_DIR", str(temp_dir))
        monkeypatch.setenv("SR_LOG_LEVEL", "debug")

        settings = RegistrySettings.from_env()

        assert settings.owner_principal == Principal("ST9ADMIN")
        assert settings.max_mint_per_user == 3
        assert settings.audit_dir == temp_dir
        assert settings.log_level == "DEBUG"

    def test_empty_owner(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A blank owner is rejected."""
        monkeypatch.setenv("SR_CONTRACT_OWNER", "  ")
        with pytest.raises(ConfigurationError) as exc_info:
            RegistrySettings.from_env()
        assert exc_info.value.env_var == "SR_CONTRACT_OWNER"

    def test_null_owner(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The null address cannot be the owner."""
        monkeypatch.setenv("SR_CONTRACT_OWNER", "SP000000000000000000002Q6VF78")
        with pytest.raises(ConfigurationError, match="null address"):
            RegistrySettings.from_env()

    @pytest.mark.parametrize("value", ["abc", "0", "-2"])
    def test_bad_quota(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        """Quota must be a positive integer."""
        monkeypatch.setenv("SR_MAX_MINT_PER_USER", value)
        with pytest.raises(ConfigurationError) as exc_info:
            RegistrySettings.from_env()
        assert exc_info.value.env_var == "SR_MAX_MINT_PER_USER"

    def test_bad_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unknown log levels are rejected."""
        monkeypatch.setenv("SR_LOG_LEVEL", "chatty")
        with pytest.raises(ConfigurationError, match="log level"):
            RegistrySettings.from_env()


class TestParsers:
    """Tests for value parsers."""

    def test_parse_max_mint_blank_is_default(self) -> None:
        """Blank values fall back to the default."""
        assert parse_max_mint("") == 10
        assert parse_max_mint(" 7 ") == 7

    def test_parse_log_level(self) -> None:
        """Level names are upper-cased."""
        assert parse_log_level("info") == "INFO"


class TestFromSettings:
    """Tests for StoryRegistry.from_settings."""

    def test_without_audit_dir(self) -> None:
        """No audit directory means no audit logger."""
        registry = StoryRegistry.from_settings(
            RegistrySettings(contract_owner="ST9ADMIN", max_mint_per_user=2)
        )
        assert registry.config.contract_owner == Principal("ST9ADMIN")
        assert registry.config.max_mint_per_user == 2
        assert registry.audit_logger is None

    def test_with_audit_dir(self, temp_dir: Path) -> None:
        """An audit directory attaches a logger there."""
        audit_dir = temp_dir / "audit"
        registry = StoryRegistry.from_settings(RegistrySettings(audit_dir=audit_dir))
        assert isinstance(registry.audit_logger, AuditLogger)
        assert registry.audit_logger.audit_dir == audit_dir
        assert audit_dir.exists()
