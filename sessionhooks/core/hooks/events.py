"""
Hook event taxonomy.

Session lifecycle events are a fixed set. Tool events are built from a
phase and a tool name: ``tool.before.write``, ``tool.after.*`` and so on.
"""

from enum import Enum
from typing import Any


class HookEvent(str, Enum):
    """Session lifecycle events that can trigger hooks."""

    SESSION_IDLE = "session.idle"
    SESSION_CREATED = "session.created"
    SESSION_DELETED = "session.deleted"


class ToolPhase(str, Enum):
    """When a tool hook fires relative to tool execution."""

    BEFORE = "before"
    AFTER = "after"


TOOL_EVENT_PREFIX = "tool"
WILDCARD = "*"

# Only these phases may veto the tool call that triggered them
BLOCKING_PHASES = {ToolPhase.BEFORE}

# Tools whose file argument is tracked as a modification
FILE_MODIFYING_TOOLS = {"write", "edit"}

_SESSION_EVENTS = {e.value for e in HookEvent}
_PHASES = {p.value for p in ToolPhase}


def tool_event(phase: ToolPhase | str, tool_name: str) -> str:
    """Build the event id for a tool phase, e.g. ``tool.before.write``."""
    phase_str = phase.value if isinstance(phase, ToolPhase) else phase
    return f"{TOOL_EVENT_PREFIX}.{phase_str}.{tool_name}"


def is_tool_event(event: str) -> bool:
    return event.startswith(f"{TOOL_EVENT_PREFIX}.")


def is_valid_hook_event(event: Any) -> bool:
    """Check an event id against the hook event grammar.

    A tool event needs all three segments; ``tool.before`` on its own is
    not a valid event.
    """
    if not isinstance(event, str):
        return False
    if event in _SESSION_EVENTS:
        return True

    parts = event.split(".", 2)
    return (
        len(parts) == 3
        and parts[0] == TOOL_EVENT_PREFIX
        and parts[1] in _PHASES
        and bool(parts[2].strip())
    )
