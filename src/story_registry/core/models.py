"""
Core data models for the Story Registry.

Tokens, update records and configuration snapshots are immutable;
the registry replaces them whole instead of mutating them in place.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, field_serializer

CONTENT_HASH_LENGTH = 32
MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_MEDIA_LINK_LENGTH = 200
DEFAULT_MAX_MINT_PER_USER = 10


@dataclass(frozen=True)
class Principal:
    """Opaque caller or owner identity, compared by address."""

    address: str

    def __str__(self) -> str:
        return self.address

    @staticmethod
    def of(value: "Principal | str") -> "Principal":
        """Return value as a Principal, wrapping plain address strings."""
        if isinstance(value, Principal):
            return value
        if not isinstance(value, str):
            raise TypeError(f"Expected an address string, got {type(value).__name__}")
        return Principal(value)


NULL_PRINCIPAL = Principal("SP000000000000000000002Q6VF78")


class ErrorKind(Enum):
    """Closed set of registry failure kinds, valued by their error code."""

    NOT_AUTHORIZED = 100
    INVALID_HASH = 103
    TOKEN_ALREADY_EXISTS = 104
    TOKEN_NOT_FOUND = 105
    INVALID_OWNER = 108
    INVALID_RECIPIENT = 109
    MINT_PAUSED = 110
    INVALID_TITLE = 111
    INVALID_DESCRIPTION = 112
    INVALID_MEDIA_LINK = 113
    MAX_MINT_EXCEEDED = 114
    PROVENANCE_NOT_SET = 116
    INVALID_PROVENANCE_ID = 117
    INVALID_UPDATE_PARAM = 119

    @property
    def label(self) -> str:
        """CamelCase name, e.g. NotAuthorized."""
        return "".join(part.capitalize() for part in self.name.split("_"))

    @property
    def description(self) -> str:
        return _ERROR_DESCRIPTIONS[self]


_ERROR_DESCRIPTIONS = {
    ErrorKind.NOT_AUTHORIZED: "caller is not allowed to perform this operation",
    ErrorKind.INVALID_HASH: f"content hash must be exactly {CONTENT_HASH_LENGTH} bytes",
    ErrorKind.TOKEN_ALREADY_EXISTS: "next token id is already occupied",
    ErrorKind.TOKEN_NOT_FOUND: "token does not exist",
    ErrorKind.INVALID_OWNER: "address cannot be the null address",
    ErrorKind.INVALID_RECIPIENT: "recipient cannot be the null address",
    ErrorKind.MINT_PAUSED: "minting is paused",
    ErrorKind.INVALID_TITLE: f"title must be 1-{MAX_TITLE_LENGTH} characters",
    ErrorKind.INVALID_DESCRIPTION: f"description must be at most {MAX_DESCRIPTION_LENGTH} characters",
    ErrorKind.INVALID_MEDIA_LINK: f"media link must be at most {MAX_MEDIA_LINK_LENGTH} characters",
    ErrorKind.MAX_MINT_EXCEEDED: "caller has reached the per-user mint quota",
    ErrorKind.PROVENANCE_NOT_SET: "provenance tracker has not been configured",
    ErrorKind.INVALID_PROVENANCE_ID: "provenance id must be positive",
    ErrorKind.INVALID_UPDATE_PARAM: "value must be positive",
}


class Token(BaseModel):
    """A minted story token."""

    owner: Principal
    content_hash: bytes = Field(description="Exactly 32 bytes, immutable after mint")
    title: str
    description: str = ""
    media_link: str | None = None
    timestamp: int = Field(description="Block height at mint or last metadata update")
    provenance_id: int | None = Field(default=None, description="Immutable after mint")

    model_config = {"frozen": True}

    @field_serializer("owner", when_used="json")
    def serialize_owner(self, owner: Principal) -> str:
        return owner.address

    @field_serializer("content_hash", when_used="json")
    def serialize_hash(self, content_hash: bytes) -> str:
        return content_hash.hex()


class TokenUpdate(BaseModel):
    """Audit record of the most recent metadata update to a token."""

    title: str
    description: str
    media_link: str | None = None
    timestamp: int
    updater: Principal

    model_config = {"frozen": True}

    @field_serializer("updater", when_used="json")
    def serialize_updater(self, updater: Principal) -> str:
        return updater.address


class RegistryConfig(BaseModel):
    """Point-in-time view of registry configuration."""

    contract_owner: Principal
    provenance_tracker: Principal | None = None
    max_mint_per_user: int = DEFAULT_MAX_MINT_PER_USER
    mint_paused: bool = False
    next_token_id: int = 0

    model_config = {"frozen": True}

    @field_serializer("contract_owner", "provenance_tracker", when_used="json")
    def serialize_principal(self, principal: Principal | None) -> str | None:
        return principal.address if principal is not None else None
