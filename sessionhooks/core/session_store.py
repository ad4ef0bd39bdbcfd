"""
Per-session mutable state for the hook engine.

Two keyed maps, nothing else:

- modified files, keyed by session id, filled by write/edit tool calls and
  drained when the session goes idle
- staged tool arguments, keyed by call id, created before a tool runs and
  consumed when the same call finishes

Concurrent sessions and concurrent tool calls never share a key, so no
locking is needed on a single event loop.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory state for live sessions. Nothing survives a restart."""

    def __init__(self):
        # dict keys double as an insertion-ordered set
        self._modified_files: dict[str, dict[str, None]] = {}
        self._pending_args: dict[str, tuple[str, dict[str, Any]]] = {}

    # --- Modified files ---

    def record_file(self, session_id: str, file_path: str) -> None:
        self._modified_files.setdefault(session_id, {})[file_path] = None

    def peek_files(self, session_id: str) -> list[str]:
        """Current modified files for a session, without clearing them."""
        return list(self._modified_files.get(session_id, {}))

    def take_files(self, session_id: str) -> list[str]:
        """Return and clear a session's modified files in one step."""
        return list(self._modified_files.pop(session_id, {}))

    # --- Staged tool arguments ---

    def stage_args(self, call_id: str, session_id: str, args: dict[str, Any]) -> None:
        if call_id in self._pending_args:
            logger.warning(f"Tool call {call_id} staged twice, replacing arguments")
        self._pending_args[call_id] = (session_id, dict(args))

    def pop_args(self, call_id: str) -> dict[str, Any]:
        """Consume the staged arguments for a call ({} if none were staged)."""
        entry = self._pending_args.pop(call_id, None)
        return entry[1] if entry else {}

    def discard_args(self, call_id: str) -> None:
        self._pending_args.pop(call_id, None)

    # --- Lifecycle ---

    def forget(self, session_id: str) -> None:
        """Drop everything held for a deleted session."""
        self._modified_files.pop(session_id, None)
        stale = [cid for cid, (sid, _) in self._pending_args.items() if sid == session_id]
        for call_id in stale:
            del self._pending_args[call_id]
        if stale:
            logger.debug(f"Dropped {len(stale)} staged tool calls for deleted session {session_id}")

    def has_session(self, session_id: str) -> bool:
        """True if any state is held for the session."""
        return session_id in self._modified_files or any(
            sid == session_id for sid, _ in self._pending_args.values()
        )

    @property
    def pending_calls(self) -> int:
        return len(self._pending_args)

    def stats(self) -> dict[str, int]:
        return {
            "tracked_sessions": len(self._modified_files),
            "tracked_files": sum(len(f) for f in self._modified_files.values()),
            "pending_tool_calls": len(self._pending_args),
        }
