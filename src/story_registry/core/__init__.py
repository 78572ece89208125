"""
Story Registry Core Module.

Provides foundational types, settings and exceptions for the registry.
"""

__all__ = [
    "Principal",
    "NULL_PRINCIPAL",
    "ErrorKind",
    "Token",
    "TokenUpdate",
    "RegistryConfig",
    "RegistrySettings",
    # Exceptions
    "StoryRegistryError",
    "RegistryOperationError",
    "ConfigurationError",
    "ScriptError",
]

from story_registry.core.config import RegistrySettings
from story_registry.core.exceptions import (
    ConfigurationError,
    RegistryOperationError,
    ScriptError,
    StoryRegistryError,
)
from story_registry.core.models import (
    NULL_PRINCIPAL,
    ErrorKind,
    Principal,
    RegistryConfig,
    Token,
    TokenUpdate,
)
