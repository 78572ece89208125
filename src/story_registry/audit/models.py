"""
Audit data models for the Story Registry.

Defines the events emitted by successful registry transitions.
"""

import hashlib
import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StoryEventType(str, Enum):
    """Events emitted by registry state transitions."""

    MINTED = "story-minted"
    TRANSFERRED = "story-transferred"
    BURNED = "story-burned"
    UPDATED = "story-updated"


def _utc_now() -> str:
    """Return current UTC timestamp as ISO8601 string."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class AuditEvent(BaseModel):
    """
    A single emitted registry event.

    Immutable record of one successful state transition.
    """

    event_id: str = Field(default_factory=lambda: f"evt_{uuid.uuid4().hex[:16]}")
    recorded_at: str = Field(default_factory=_utc_now)
    event_type: StoryEventType = Field(description="Type of transition")

    token_id: int = Field(description="Token the event refers to")
    actor: str = Field(description="Address of the caller that caused the event")
    recipient: str | None = Field(default=None, description="New owner, transfers only")
    block_height: int | None = Field(default=None, description="Block height supplied with the call")

    checksum: str | None = Field(default=None, description="SHA256 hash for integrity verification")

    model_config = {"frozen": True}

    def to_payload(self) -> dict[str, Any]:
        """Return the emitted event shape, e.g. {"event": "story-minted", "id": 0}."""
        payload: dict[str, Any] = {"event": self.event_type.value, "id": self.token_id}
        if self.event_type == StoryEventType.TRANSFERRED:
            payload["to"] = self.recipient
        return payload

    def compute_checksum(self) -> str:
        """Compute SHA256 checksum of event data for integrity verification."""
        data = {
            "event_id": self.event_id,
            "recorded_at": self.recorded_at,
            "event_type": self.event_type.value,
            "token_id": self.token_id,
            "actor": self.actor,
            "recipient": self.recipient,
            "block_height": self.block_height,
        }
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()

    def with_checksum(self) -> "AuditEvent":
        """Return a new event with checksum computed."""
        return self.model_copy(update={"checksum": self.compute_checksum()})

    def to_log_line(self) -> str:
        """Convert to JSONL string for file storage."""
        return self.with_checksum().model_dump_json(exclude_none=True)
