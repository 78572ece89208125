"""
Story Registry State Module.

Provides the token state machine and its operation results.
"""

__all__ = [
    "StoryRegistry",
    "StoryOperation",
    "RegistryResult",
]

from story_registry.registry.core import (
    RegistryResult,
    StoryOperation,
    StoryRegistry,
)
