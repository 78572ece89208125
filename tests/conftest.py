"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from story_registry.core.models import Principal
from story_registry.registry.core import StoryRegistry

# Keep test runs independent of the caller's environment
for _var in ("SR_CONTRACT_OWNER", "SR_MAX_MINT_PER_USER", "SR_AUDIT_DIR", "SR_LOG_LEVEL"):
    os.environ.pop(_var, None)

OWNER = Principal("ST1OWNER")
ALICE = Principal("ST1ALICE")
BOB = Principal("ST1BOB")
TRACKER = Principal("ST2PROV")
HASH = bytes([1]) * 32


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def registry() -> StoryRegistry:
    """Fresh registry owned by OWNER with no provenance tracker."""
    return StoryRegistry(OWNER)


@pytest.fixture
def ready_registry(registry: StoryRegistry) -> StoryRegistry:
    """Registry with the provenance tracker configured, ready to mint."""
    registry.configure_provenance_tracker(OWNER, TRACKER).unwrap()
    return registry


def mint(
    registry: StoryRegistry,
    caller: Principal = ALICE,
    *,
    content_hash: bytes = HASH,
    title: str = "Title",
    description: str = "Desc",
    media_link: str | None = "link.com",
    provenance_id: int | None = 1,
    block_height: int = 0,
):
    """Mint with valid defaults, overriding only what a test cares about."""
    return registry.mint_story(
        caller,
        content_hash,
        title,
        description,
        media_link,
        provenance_id,
        block_height,
    )


@pytest.fixture
def alice_token(ready_registry: StoryRegistry) -> int:
    """Id of a token minted by ALICE at block height 5."""
    return mint(ready_registry, ALICE, block_height=5).unwrap()
