"""Tests for scripted call replay."""

import json
from pathlib import Path

import pytest
from conftest import HASH, OWNER

from story_registry.core.exceptions import ScriptError
from story_registry.core.models import ErrorKind
from story_registry.registry.core import StoryOperation, StoryRegistry
from story_registry.replay import (
    ReplayCall,
    ReplayScript,
    apply_call,
    load_script,
    run_script,
)


def _script(*calls: dict) -> ReplayScript:
    return ReplayScript(calls=[ReplayCall(**c) for c in calls])


SETUP = {
    "op": "configure_provenance_tracker",
    "caller": "ST1OWNER",
    "args": {"address": "ST2PROV"},
}
MINT = {
    "op": "mint_story",
    "caller": "ST1ALICE",
    "block_height": 4,
    "args": {
        "content_hash": HASH.hex(),
        "title": "Title",
        "description": "Desc",
        "media_link": "link.com",
        "provenance_id": 1,
    },
}


class TestLoadScript:
    """Tests for load_script."""

    def test_load_object(self, temp_dir: Path) -> None:
        """Object scripts carry overrides and calls."""
        path = temp_dir / "script.json"
        path.write_text(json.dumps({"contract_owner": "ST9", "calls": [SETUP]}))

        script = load_script(path)

        assert script.contract_owner == "ST9"
        assert script.calls[0].op == "configure_provenance_tracker"

    def test_load_bare_list(self, temp_dir: Path) -> None:
        """A bare list is treated as the call list."""
        path = temp_dir / "script.json"
        path.write_text(json.dumps([SETUP, MINT]))
        assert len(load_script(path).calls) == 2

    def test_missing_file(self, temp_dir: Path) -> None:
        """Unreadable scripts raise ScriptError."""
        with pytest.raises(ScriptError, match="Cannot read"):
            load_script(temp_dir / "missing.json")

    def test_invalid_json(self, temp_dir: Path) -> None:
        """Non-JSON scripts raise ScriptError."""
        path = temp_dir / "script.json"
        path.write_text("{nope")
        with pytest.raises(ScriptError, match="not valid JSON"):
            load_script(path)

    def test_wrong_shape(self, temp_dir: Path) -> None:
        """Calls without an op are rejected."""
        path = temp_dir / "script.json"
        path.write_text(json.dumps({"calls": [{"caller": "ST1A"}]}))
        with pytest.raises(ScriptError, match="invalid shape"):
            load_script(path)


class TestApplyCall:
    """Tests for apply_call."""

    def test_mint_and_query(self) -> None:
        """Scripted mint decodes the hex hash."""
        registry = StoryRegistry(OWNER)
        outcomes = run_script(
            registry,
            _script(
                SETUP,
                MINT,
                {"op": "verify_owner", "args": {"token_id": 0, "claimed_owner": "ST1ALICE"}},
                {"op": "get_next_token_id"},
            ),
        )

        assert [o.result.ok for o in outcomes] == [True, True, True, True]
        assert outcomes[1].result.value == 0
        assert outcomes[2].result.value is True
        assert outcomes[3].result.value == 1
        assert registry.get_token(0).content_hash == HASH
        assert registry.get_token(0).timestamp == 4

    def test_all_mutations(self) -> None:
        """Every mutating operation can be scripted."""
        registry = StoryRegistry(OWNER)
        outcomes = run_script(
            registry,
            _script(
                SETUP,
                {"op": "set_max_mint_per_user", "caller": "ST1OWNER", "args": {"new_max": 2}},
                MINT,
                {
                    "op": "update_story_metadata",
                    "caller": "ST1ALICE",
                    "block_height": 6,
                    "args": {"token_id": 0, "title": "New"},
                },
                {
                    "op": "transfer_story",
                    "caller": "ST1ALICE",
                    "args": {"token_id": 0, "recipient": "ST1BOB"},
                },
                {"op": "burn_story", "caller": "ST1BOB", "args": {"token_id": 0}},
                {"op": "toggle_mint_pause", "caller": "ST1OWNER"},
            ),
        )

        assert all(o.result.ok for o in outcomes)
        assert [o.result.operation for o in outcomes][-1] == StoryOperation.TOGGLE_MINT_PAUSE
        assert registry.config.max_mint_per_user == 2
        assert registry.config.mint_paused is True
        assert registry.get_token(0) is None
        assert registry.get_token_update(0).title == "New"

    def test_registry_failures_are_outcomes(self) -> None:
        """Rejected calls are reported, not raised."""
        registry = StoryRegistry(OWNER)
        outcomes = run_script(registry, _script(MINT))
        assert outcomes[0].result.error == ErrorKind.PROVENANCE_NOT_SET

    def test_unknown_op(self) -> None:
        """Unknown operations raise ScriptError with the step."""
        call = ReplayCall(op="mint_many", caller="ST1A")
        with pytest.raises(ScriptError) as exc_info:
            apply_call(StoryRegistry(OWNER), call, 3)
        assert exc_info.value.step == 3
        assert exc_info.value.op == "mint_many"

    def test_missing_caller(self) -> None:
        """Mutations need a caller."""
        call = ReplayCall(op="toggle_mint_pause")
        with pytest.raises(ScriptError, match="requires a caller"):
            apply_call(StoryRegistry(OWNER), call, 1)

    def test_missing_argument(self) -> None:
        """Missing arguments are named."""
        call = ReplayCall(op="burn_story", caller="ST1A")
        with pytest.raises(ScriptError, match="token_id"):
            apply_call(StoryRegistry(OWNER), call, 1)

    def test_non_string_address(self) -> None:
        """Addresses must be strings."""
        call = ReplayCall(
            op="transfer_story", caller="ST1A", args={"token_id": 0, "recipient": None}
        )
        with pytest.raises(ScriptError, match="Invalid arguments"):
            apply_call(StoryRegistry(OWNER), call, 1)

    def test_bad_hex(self) -> None:
        """Content hashes must be hex."""
        call = ReplayCall(
            op="mint_story", caller="ST1A", args={"content_hash": "zz", "title": "T"}
        )
        with pytest.raises(ScriptError, match="Invalid arguments"):
            apply_call(StoryRegistry(OWNER), call, 1)
