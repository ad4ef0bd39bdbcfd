"""
Event-driven hooks for coding-assistant sessions.

Loads hook definitions from the global and project hook directories and
runs them on session and tool lifecycle events.
"""

from sessionhooks.core.hooks.errors import HookBlockedError, SessionHooksError
from sessionhooks.core.hooks.events import HookEvent, ToolPhase
from sessionhooks.core.hooks.loader import load_hooks, merge_hooks
from sessionhooks.core.hooks.models import HookDefinition
from sessionhooks.core.hooks.runner import HookRunner

__all__ = [
    "HookBlockedError",
    "HookDefinition",
    "HookEvent",
    "HookRunner",
    "SessionHooksError",
    "ToolPhase",
    "load_hooks",
    "merge_hooks",
]
