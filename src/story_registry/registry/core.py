"""
Story Registry - token state machine.

Holds all token and configuration state. Each operation validates its
preconditions in a fixed order and either applies one mutation plus one
emitted event, or returns a failure result and leaves state untouched.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from story_registry.audit.logger import AuditLogger
from story_registry.audit.models import AuditEvent, StoryEventType
from story_registry.core.config import RegistrySettings
from story_registry.core.exceptions import ConfigurationError, RegistryOperationError
from story_registry.core.models import (
    DEFAULT_MAX_MINT_PER_USER,
    NULL_PRINCIPAL,
    ErrorKind,
    Principal,
    RegistryConfig,
    Token,
    TokenUpdate,
)
from story_registry.registry.validation import (
    validate_content_hash,
    validate_metadata,
    validate_provenance_id,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoryOperation(Enum):
    """Registry operations that report a RegistryResult."""

    CONFIGURE_PROVENANCE_TRACKER = "configure_provenance_tracker"
    SET_MAX_MINT_PER_USER = "set_max_mint_per_user"
    TOGGLE_MINT_PAUSE = "toggle_mint_pause"
    MINT_STORY = "mint_story"
    TRANSFER_STORY = "transfer_story"
    BURN_STORY = "burn_story"
    UPDATE_STORY_METADATA = "update_story_metadata"
    GET_NEXT_TOKEN_ID = "get_next_token_id"
    VERIFY_OWNER = "verify_owner"


@dataclass(frozen=True)
class RegistryResult(Generic[T]):
    """Result of a registry operation: a value on success, an ErrorKind on failure."""

    operation: StoryOperation
    value: T | None = None
    error: ErrorKind | None = None
    token_id: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        return "success" if self.ok else "failure"

    def unwrap(self) -> T:
        """
        Return the success value.

        Raises:
            RegistryOperationError: If the operation failed
        """
        if self.error is not None:
            raise RegistryOperationError(
                self.error,
                operation=self.operation.value,
                token_id=self.token_id,
            )
        return self.value  # type: ignore[return-value]


class StoryRegistry:
    """
    Single-authority registry of story tokens.

    State:
    - tokens by id and owner by id (always agree on membership and owner)
    - mint count by caller (never decremented)
    - latest metadata update record by id (kept after burn)
    - configuration fields fixed at construction or changed by the owner

    All calls are serialized by one re-entrant lock.
    """

    def __init__(
        self,
        contract_owner: Principal,
        *,
        max_mint_per_user: int = DEFAULT_MAX_MINT_PER_USER,
        audit_logger: AuditLogger | None = None,
    ):
        """
        Initialize an empty registry.

        Args:
            contract_owner: The only principal allowed to administer configuration
            max_mint_per_user: Initial per-user mint quota
            audit_logger: Optional sink that receives every emitted event

        Raises:
            ConfigurationError: If the owner or quota is invalid
        """
        owner = Principal.of(contract_owner)
        if not owner.address.strip():
            raise ConfigurationError(
                "Contract owner cannot be empty", config_key="contract_owner"
            )
        if owner == NULL_PRINCIPAL:
            raise ConfigurationError(
                "Contract owner cannot be the null address", config_key="contract_owner"
            )
        if max_mint_per_user <= 0:
            raise ConfigurationError(
                f"Mint quota must be positive, got {max_mint_per_user}",
                config_key="max_mint_per_user",
            )

        self._contract_owner = owner
        self._provenance_tracker: Principal | None = None
        self._max_mint_per_user = max_mint_per_user
        self._mint_paused = False
        self._next_token_id = 0

        self._tokens: dict[int, Token] = {}
        self._token_owners: dict[int, Principal] = {}
        self._mint_counts: dict[Principal, int] = {}
        self._token_updates: dict[int, TokenUpdate] = {}

        self._events: list[AuditEvent] = []
        self._audit_logger = audit_logger
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: RegistrySettings) -> "StoryRegistry":
        """Build a registry, and its audit sink when configured, from settings."""
        audit_logger = AuditLogger(settings.audit_dir) if settings.audit_dir else None
        return cls(
            settings.owner_principal,
            max_mint_per_user=settings.max_mint_per_user,
            audit_logger=audit_logger,
        )

    # Internal helpers

    def _fail(
        self, operation: StoryOperation, kind: ErrorKind, token_id: int | None = None
    ) -> RegistryResult:
        logger.debug(f"{operation.value} rejected: {kind.label} (token_id={token_id})")
        return RegistryResult(operation=operation, error=kind, token_id=token_id)

    def _emit(
        self,
        event_type: StoryEventType,
        token_id: int,
        actor: Principal,
        *,
        recipient: Principal | None = None,
        block_height: int | None = None,
    ) -> None:
        event = AuditEvent(
            event_type=event_type,
            token_id=token_id,
            actor=actor.address,
            recipient=recipient.address if recipient is not None else None,
            block_height=block_height,
        )
        self._events.append(event)
        logger.info(f"{event_type.value} id={token_id} by {actor}")
        if self._audit_logger is not None:
            self._audit_logger.log(event)

    def _is_contract_owner(self, caller: Principal) -> bool:
        return caller == self._contract_owner

    # Administration

    def configure_provenance_tracker(
        self, caller: Principal, address: Principal
    ) -> RegistryResult[bool]:
        """Set the provenance tracker address. Owner only."""
        op = StoryOperation.CONFIGURE_PROVENANCE_TRACKER
        caller, address = Principal.of(caller), Principal.of(address)
        with self._lock:
            if not self._is_contract_owner(caller):
                return self._fail(op, ErrorKind.NOT_AUTHORIZED)
            if address == NULL_PRINCIPAL:
                return self._fail(op, ErrorKind.INVALID_OWNER)
            self._provenance_tracker = address
            logger.info(f"Provenance tracker set to {address}")
            return RegistryResult(operation=op, value=True)

    def set_max_mint_per_user(
        self, caller: Principal, new_max: int
    ) -> RegistryResult[bool]:
        """Change the per-user mint quota. Owner only."""
        op = StoryOperation.SET_MAX_MINT_PER_USER
        caller = Principal.of(caller)
        with self._lock:
            if not self._is_contract_owner(caller):
                return self._fail(op, ErrorKind.NOT_AUTHORIZED)
            if new_max <= 0:
                return self._fail(op, ErrorKind.INVALID_UPDATE_PARAM)
            self._max_mint_per_user = new_max
            logger.info(f"Mint quota set to {new_max}")
            return RegistryResult(operation=op, value=True)

    def toggle_mint_pause(self, caller: Principal) -> RegistryResult[bool]:
        """Flip the mint pause flag and return its new value. Owner only."""
        op = StoryOperation.TOGGLE_MINT_PAUSE
        caller = Principal.of(caller)
        with self._lock:
            if not self._is_contract_owner(caller):
                return self._fail(op, ErrorKind.NOT_AUTHORIZED)
            self._mint_paused = not self._mint_paused
            logger.info(f"Minting {'paused' if self._mint_paused else 'resumed'}")
            return RegistryResult(operation=op, value=self._mint_paused)

    # Token lifecycle

    def mint_story(
        self,
        caller: Principal,
        content_hash: bytes,
        title: str,
        description: str,
        media_link: str | None,
        provenance_id: int | None,
        block_height: int,
    ) -> RegistryResult[int]:
        """
        Mint a new token owned by the caller.

        Returns the new token id on success.
        """
        op = StoryOperation.MINT_STORY
        caller = Principal.of(caller)
        with self._lock:
            if self._mint_paused:
                return self._fail(op, ErrorKind.MINT_PAUSED)
            minted = self._mint_counts.get(caller, 0)
            if minted >= self._max_mint_per_user:
                return self._fail(op, ErrorKind.MAX_MINT_EXCEEDED)
            error = (
                validate_content_hash(content_hash)
                or validate_metadata(title, description, media_link)
                or validate_provenance_id(provenance_id)
            )
            if error is not None:
                return self._fail(op, error)
            token_id = self._next_token_id
            if token_id in self._tokens:
                return self._fail(op, ErrorKind.TOKEN_ALREADY_EXISTS, token_id)
            if self._provenance_tracker is None:
                return self._fail(op, ErrorKind.PROVENANCE_NOT_SET)

            self._tokens[token_id] = Token(
                owner=caller,
                content_hash=bytes(content_hash),
                title=title,
                description=description,
                media_link=media_link,
                timestamp=block_height,
                provenance_id=provenance_id,
            )
            self._token_owners[token_id] = caller
            self._mint_counts[caller] = minted + 1
            self._next_token_id = token_id + 1
            self._emit(StoryEventType.MINTED, token_id, caller, block_height=block_height)
            return RegistryResult(operation=op, value=token_id, token_id=token_id)

    def transfer_story(
        self,
        caller: Principal,
        token_id: int,
        recipient: Principal,
        block_height: int,
    ) -> RegistryResult[bool]:
        """Move a token to a new owner. The token's timestamp is not changed."""
        op = StoryOperation.TRANSFER_STORY
        caller, recipient = Principal.of(caller), Principal.of(recipient)
        with self._lock:
            token = self._tokens.get(token_id)
            if token is None:
                return self._fail(op, ErrorKind.TOKEN_NOT_FOUND, token_id)
            if token.owner != caller:
                return self._fail(op, ErrorKind.NOT_AUTHORIZED, token_id)
            if recipient == NULL_PRINCIPAL:
                return self._fail(op, ErrorKind.INVALID_RECIPIENT, token_id)

            self._tokens[token_id] = token.model_copy(update={"owner": recipient})
            self._token_owners[token_id] = recipient
            self._emit(
                StoryEventType.TRANSFERRED,
                token_id,
                caller,
                recipient=recipient,
                block_height=block_height,
            )
            return RegistryResult(operation=op, value=True, token_id=token_id)

    def burn_story(self, caller: Principal, token_id: int) -> RegistryResult[bool]:
        """Destroy a token. Its update record and the caller's mint count are kept."""
        op = StoryOperation.BURN_STORY
        caller = Principal.of(caller)
        with self._lock:
            token = self._tokens.get(token_id)
            if token is None:
                return self._fail(op, ErrorKind.TOKEN_NOT_FOUND, token_id)
            if token.owner != caller:
                return self._fail(op, ErrorKind.NOT_AUTHORIZED, token_id)

            del self._tokens[token_id]
            del self._token_owners[token_id]
            self._emit(StoryEventType.BURNED, token_id, caller)
            return RegistryResult(operation=op, value=True, token_id=token_id)

    def update_story_metadata(
        self,
        caller: Principal,
        token_id: int,
        new_title: str,
        new_description: str,
        new_media_link: str | None,
        block_height: int,
    ) -> RegistryResult[bool]:
        """Replace a token's title, description and media link."""
        op = StoryOperation.UPDATE_STORY_METADATA
        caller = Principal.of(caller)
        with self._lock:
            token = self._tokens.get(token_id)
            if token is None:
                return self._fail(op, ErrorKind.TOKEN_NOT_FOUND, token_id)
            if token.owner != caller:
                return self._fail(op, ErrorKind.NOT_AUTHORIZED, token_id)
            error = validate_metadata(new_title, new_description, new_media_link)
            if error is not None:
                return self._fail(op, error, token_id)

            self._tokens[token_id] = token.model_copy(
                update={
                    "title": new_title,
                    "description": new_description,
                    "media_link": new_media_link,
                    "timestamp": block_height,
                }
            )
            self._token_updates[token_id] = TokenUpdate(
                title=new_title,
                description=new_description,
                media_link=new_media_link,
                timestamp=block_height,
                updater=caller,
            )
            self._emit(StoryEventType.UPDATED, token_id, caller, block_height=block_height)
            return RegistryResult(operation=op, value=True, token_id=token_id)

    # Queries

    def get_next_token_id(self) -> RegistryResult[int]:
        with self._lock:
            return RegistryResult(
                operation=StoryOperation.GET_NEXT_TOKEN_ID, value=self._next_token_id
            )

    def verify_owner(
        self, token_id: int, claimed_owner: Principal
    ) -> RegistryResult[bool]:
        """
        Check whether claimed_owner owns the token.

        A wrong claim is a successful False; only a missing token fails.
        """
        op = StoryOperation.VERIFY_OWNER
        claimed_owner = Principal.of(claimed_owner)
        with self._lock:
            owner = self._token_owners.get(token_id)
            if owner is None:
                return self._fail(op, ErrorKind.TOKEN_NOT_FOUND, token_id)
            return RegistryResult(
                operation=op, value=owner == claimed_owner, token_id=token_id
            )

    def get_token(self, token_id: int) -> Token | None:
        with self._lock:
            return self._tokens.get(token_id)

    def get_token_update(self, token_id: int) -> TokenUpdate | None:
        """Latest metadata update record, or None if the token was never updated."""
        with self._lock:
            return self._token_updates.get(token_id)

    def get_mint_count(self, principal: Principal) -> int:
        with self._lock:
            return self._mint_counts.get(Principal.of(principal), 0)

    @property
    def config(self) -> RegistryConfig:
        with self._lock:
            return RegistryConfig(
                contract_owner=self._contract_owner,
                provenance_tracker=self._provenance_tracker,
                max_mint_per_user=self._max_mint_per_user,
                mint_paused=self._mint_paused,
                next_token_id=self._next_token_id,
            )

    @property
    def events(self) -> list[AuditEvent]:
        """Events emitted so far, oldest first."""
        with self._lock:
            return list(self._events)

    @property
    def audit_logger(self) -> AuditLogger | None:
        return self._audit_logger

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-ready dump of all registry state."""
        with self._lock:
            return {
                "config": self.config.model_dump(mode="json"),
                "tokens": {
                    str(tid): token.model_dump(mode="json")
                    for tid, token in sorted(self._tokens.items())
                },
                "owners": {
                    str(tid): owner.address
                    for tid, owner in sorted(self._token_owners.items())
                },
                "mint_counts": {
                    principal.address: count
                    for principal, count in self._mint_counts.items()
                },
                "token_updates": {
                    str(tid): update.model_dump(mode="json")
                    for tid, update in sorted(self._token_updates.items())
                },
                "events": [event.to_payload() for event in self._events],
            }
