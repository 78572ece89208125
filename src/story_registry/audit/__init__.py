"""
Story Registry Audit Module.

Events emitted by registry transitions and an append-only JSONL sink for them.

Usage:
    >>> from story_registry.audit import AuditLogger
    >>> from story_registry.registry import StoryRegistry
    >>>
    >>> registry = StoryRegistry(owner, audit_logger=AuditLogger(Path("var/audit")))
    >>> for event in registry.audit_logger.read_events():
    ...     print(event.to_payload())
"""

from .logger import AuditLogger, WriteResult
from .models import AuditEvent, StoryEventType

__all__ = [
    "AuditEvent",
    "AuditLogger",
    "StoryEventType",
    "WriteResult",
]
