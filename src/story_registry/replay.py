"""
Replay - run a scripted sequence of calls against a registry.

A script is JSON of the form:

    {
      "contract_owner": "ST1OWNER",
      "calls": [
        {"op": "configure_provenance_tracker", "caller": "ST1OWNER",
         "args": {"address": "ST2PROV"}},
        {"op": "mint_story", "caller": "ST1A", "block_height": 3,
         "args": {"content_hash": "<64 hex chars>", "title": "Title"}}
      ]
    }

Principals are given as address strings and content hashes as hex.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from story_registry.core.exceptions import ScriptError
from story_registry.core.models import Principal
from story_registry.registry.core import RegistryResult, StoryRegistry

QUERY_OPS = frozenset({"get_next_token_id", "verify_owner"})


class ReplayCall(BaseModel):
    """A single scripted registry call."""

    op: str
    caller: str | None = None
    block_height: int = 0
    args: dict[str, Any] = Field(default_factory=dict)


class ReplayScript(BaseModel):
    """A sequence of calls plus optional registry construction overrides."""

    contract_owner: str | None = None
    max_mint_per_user: int | None = None
    calls: list[ReplayCall] = Field(default_factory=list)


@dataclass
class StepOutcome:
    """Outcome of one replayed call."""

    step: int
    op: str
    caller: str | None
    result: RegistryResult


def load_script(path: Path) -> ReplayScript:
    """
    Load and validate a replay script.

    Raises:
        ScriptError: If the file is unreadable, not JSON, or the wrong shape
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ScriptError(f"Cannot read script {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ScriptError(f"Script {path} is not valid JSON: {e}") from e

    try:
        return ReplayScript(**data) if isinstance(data, dict) else ReplayScript(calls=data)
    except (ValidationError, TypeError) as e:
        raise ScriptError(f"Script {path} has an invalid shape: {e}") from e


def apply_call(registry: StoryRegistry, call: ReplayCall, step: int) -> RegistryResult:
    """
    Apply one scripted call and return the registry's result.

    Raises:
        ScriptError: If the operation is unknown or its arguments are malformed
    """
    if call.op not in QUERY_OPS and call.caller is None:
        raise ScriptError("Operation requires a caller", step=step, op=call.op)

    caller = Principal(call.caller) if call.caller is not None else None
    args = call.args
    height = call.block_height

    try:
        match call.op:
            case "configure_provenance_tracker":
                return registry.configure_provenance_tracker(
                    caller, Principal.of(args["address"])
                )
            case "set_max_mint_per_user":
                return registry.set_max_mint_per_user(caller, int(args["new_max"]))
            case "toggle_mint_pause":
                return registry.toggle_mint_pause(caller)
            case "mint_story":
                provenance_id = args.get("provenance_id")
                return registry.mint_story(
                    caller,
                    bytes.fromhex(args["content_hash"]),
                    args["title"],
                    args.get("description", ""),
                    args.get("media_link"),
                    int(provenance_id) if provenance_id is not None else None,
                    height,
                )
            case "transfer_story":
                return registry.transfer_story(
                    caller, int(args["token_id"]), Principal.of(args["recipient"]), height
                )
            case "burn_story":
                return registry.burn_story(caller, int(args["token_id"]))
            case "update_story_metadata":
                return registry.update_story_metadata(
                    caller,
                    int(args["token_id"]),
                    args["title"],
                    args.get("description", ""),
                    args.get("media_link"),
                    height,
                )
            case "get_next_token_id":
                return registry.get_next_token_id()
            case "verify_owner":
                return registry.verify_owner(
                    int(args["token_id"]), Principal.of(args["claimed_owner"])
                )
            case _:
                raise ScriptError(f"Unknown operation: {call.op}", step=step, op=call.op)
    except KeyError as e:
        raise ScriptError(
            f"Missing argument: {e.args[0]}", step=step, op=call.op
        ) from e
    except (ValueError, TypeError) as e:
        raise ScriptError(f"Invalid arguments: {e}", step=step, op=call.op) from e


def run_script(registry: StoryRegistry, script: ReplayScript) -> list[StepOutcome]:
    """Apply every call in order. Stops at the first malformed call."""
    outcomes = []
    for step, call in enumerate(script.calls, start=1):
        result = apply_call(registry, call, step)
        outcomes.append(
            StepOutcome(step=step, op=call.op, caller=call.caller, result=result)
        )
    return outcomes
