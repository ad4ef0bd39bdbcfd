"""
Hook configuration models.

Actions and conditions are decoded from loosely typed YAML into closed
types here, so the dispatcher never has to inspect raw dictionaries.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

DEFAULT_BASH_TIMEOUT_MS = 60000


class HookCondition(str, Enum):
    """Gating predicates a hook can require."""

    IS_MAIN_SESSION = "isMainSession"
    HAS_CODE_CHANGE = "hasCodeChange"


@dataclass(frozen=True)
class CommandAction:
    """Run a named command against the session."""

    name: str
    args: str = ""

    def to_dict(self) -> dict:
        if self.args:
            return {"command": {"name": self.name, "args": self.args}}
        return {"command": self.name}


@dataclass(frozen=True)
class SkillAction:
    """Ask the session to load a skill and follow it."""

    name: str

    def to_dict(self) -> dict:
        return {"skill": self.name}


@dataclass(frozen=True)
class ToolAction:
    """Ask the session to call a tool with literal arguments."""

    name: str
    args: dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> dict:
        return {"tool": {"name": self.name, "args": dict(self.args)}}


@dataclass(frozen=True)
class BashAction:
    """Run a shell command in a subprocess."""

    command: str
    timeout_ms: Optional[int] = None  # None -> configured default

    def to_dict(self) -> dict:
        if self.timeout_ms is None:
            return {"bash": self.command}
        return {"bash": {"command": self.command, "timeout": self.timeout_ms}}


HookAction = Union[CommandAction, SkillAction, ToolAction, BashAction]


@dataclass(frozen=True)
class HookDefinition:
    """One configured hook: an event, optional gates and ordered actions."""

    event: str
    actions: tuple[HookAction, ...]
    # None means "no gating"; an empty tuple is an explicit empty gate
    conditions: Optional[tuple[HookCondition, ...]] = None
    source: Optional[Path] = field(default=None, compare=False)

    def to_dict(self) -> dict:
        """Serialize for listings."""
        return {
            "event": self.event,
            "conditions": (
                [c.value for c in self.conditions] if self.conditions is not None else None
            ),
            "actions": [a.to_dict() for a in self.actions],
            "source": str(self.source) if self.source else None,
        }


@dataclass
class HookError:
    """Record of a failed hook action."""

    hook_event: str
    session_id: str
    action: str
    error: str
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "hook_event": self.hook_event,
            "session_id": self.session_id,
            "action": self.action,
            "error": self.error,
            "timestamp": self.timestamp,
        }


@dataclass
class BashContext:
    """JSON payload handed to a bash action on stdin."""

    session_id: str
    event: str
    cwd: str
    files: Optional[list[str]] = None
    tool_name: Optional[str] = None
    tool_args: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict:
        """Serialize, leaving out optional fields that do not apply."""
        data: dict[str, Any] = {
            "session_id": self.session_id,
            "event": self.event,
            "cwd": self.cwd,
        }
        if self.files is not None:
            data["files"] = list(self.files)
        if self.tool_name is not None:
            data["tool_name"] = self.tool_name
        if self.tool_args is not None:
            data["tool_args"] = self.tool_args
        return data


@dataclass
class BashResult:
    exit_code: int
    stdout: str
    stderr: str


@dataclass
class DispatchResult:
    """Outcome of running one hook (or a group of hooks)."""

    blocked: bool = False
    block_reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Decoding from raw configuration
# ---------------------------------------------------------------------------


def parse_action(raw: Any) -> HookAction:
    """Decode one raw action mapping.

    Raises:
        ValueError: if the entry is not exactly one known action variant.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"action must be a mapping, got {type(raw).__name__}")

    kinds = [k for k in ("command", "skill", "tool", "bash") if k in raw]
    if len(kinds) != 1:
        raise ValueError(f"action must have exactly one of command/skill/tool/bash: {raw!r}")
    kind = kinds[0]
    value = raw[kind]

    if kind == "command":
        if isinstance(value, str) and value:
            return CommandAction(name=value)
        if isinstance(value, dict) and isinstance(value.get("name"), str) and value["name"]:
            args = value.get("args", "")
            return CommandAction(name=value["name"], args=args if isinstance(args, str) else "")
        raise ValueError(f"invalid command action: {value!r}")

    if kind == "skill":
        if isinstance(value, str) and value:
            return SkillAction(name=value)
        raise ValueError(f"invalid skill action: {value!r}")

    if kind == "tool":
        if isinstance(value, dict) and isinstance(value.get("name"), str) and value["name"]:
            args = value.get("args") or {}
            if not isinstance(args, dict):
                raise ValueError(f"tool args must be a mapping: {args!r}")
            return ToolAction(name=value["name"], args=dict(args))
        raise ValueError(f"invalid tool action: {value!r}")

    # bash
    if isinstance(value, str) and value.strip():
        return BashAction(command=value)
    if isinstance(value, dict) and isinstance(value.get("command"), str) and value["command"].strip():
        timeout = value.get("timeout")
        if timeout is not None and (
            isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0
        ):
            raise ValueError(f"bash timeout must be a positive integer (ms): {timeout!r}")
        return BashAction(command=value["command"], timeout_ms=timeout)
    raise ValueError(f"invalid bash action: {value!r}")


def parse_conditions(raw: Any) -> Optional[tuple[HookCondition, ...]]:
    """Decode a raw condition list; anything but a list means no gating.

    Raises:
        ValueError: on an unknown condition name.
    """
    if not isinstance(raw, list):
        return None
    conditions = []
    for name in raw:
        try:
            conditions.append(HookCondition(name))
        except ValueError:
            raise ValueError(f"unknown condition: {name!r}") from None
    return tuple(conditions)
