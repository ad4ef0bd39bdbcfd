"""
Hook runner: routes host lifecycle events to configured hooks.

The host calls one method per event:

    runner = await HookRunner.create(client, project_dir)

    await runner.on_session_created(session_id)
    await runner.before_tool("write", session_id, call_id, args)  # may raise HookBlockedError
    await runner.after_tool("write", session_id, call_id)
    await runner.on_session_idle(session_id)
    await runner.on_session_deleted(session_id)

Tool phases run the wildcard group (``tool.before.*``) in full before the
tool-specific group (``tool.before.write``). A block anywhere in the before
phase ends the phase and fails the tool call.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from sessionhooks.config import Settings, get_settings
from sessionhooks.core.hooks.conditions import ConditionEvaluator
from sessionhooks.core.hooks.dispatcher import DEFAULT_BLOCK_REASON, HookDispatcher
from sessionhooks.core.hooks.errors import HookBlockedError
from sessionhooks.core.hooks.events import (
    BLOCKING_PHASES,
    FILE_MODIFYING_TOOLS,
    WILDCARD,
    HookEvent,
    ToolPhase,
    tool_event,
)
from sessionhooks.core.hooks.loader import EventHookMap, load_hook_layers
from sessionhooks.core.hooks.models import DispatchResult, HookDefinition
from sessionhooks.core.interfaces import CommandInfo, SessionClient
from sessionhooks.core.session_store import SessionStore

logger = logging.getLogger(__name__)

# Argument keys that carry the target path of write/edit tools
FILE_PATH_KEYS = ("filePath", "file_path", "path")


def extract_file_path(args: Mapping[str, Any]) -> Optional[str]:
    for key in FILE_PATH_KEYS:
        value = args.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class HookRunner:
    """Owns the hook map and per-session state; one instance per process."""

    def __init__(
        self,
        hooks: EventHookMap,
        client: SessionClient,
        directory: Path,
        store: Optional[SessionStore] = None,
        commands: Optional[Mapping[str, CommandInfo]] = None,
        settings: Optional[Settings] = None,
    ):
        self.directory = Path(directory)
        self.client = client
        self.store = store if store is not None else SessionStore()
        self.settings = settings or get_settings()
        self._hooks: Mapping[str, tuple[HookDefinition, ...]] = MappingProxyType(
            {event: tuple(defs) for event, defs in hooks.items() if defs}
        )
        self.dispatcher = HookDispatcher(
            client,
            self.directory,
            commands=commands,
            evaluator=ConditionEvaluator(client),
            settings=self.settings,
        )

    @classmethod
    async def create(
        cls,
        client: SessionClient,
        directory: Path,
        settings: Optional[Settings] = None,
        store: Optional[SessionStore] = None,
    ) -> "HookRunner":
        """Load global + project hooks and the host's command table."""
        settings = settings or get_settings()
        hooks = load_hook_layers(Path(directory), settings)

        try:
            commands = await client.list_commands()
        except Exception as e:
            logger.warning(f"Could not load command table, command agents/models unresolved: {e}")
            commands = {}

        runner = cls(hooks, client, directory, store=store, commands=commands, settings=settings)
        logger.info(
            f"Hook runner ready: {sum(len(h) for h in runner._hooks.values())} hooks "
            f"(events: {', '.join(runner._hooks) or 'none'}), {len(commands)} commands"
        )
        return runner

    def hooks_for(self, event: str) -> tuple[HookDefinition, ...]:
        return self._hooks.get(event, ())

    # --- Session lifecycle ---

    async def on_session_created(self, session_id: str, parent_id: Optional[str] = None) -> None:
        logger.info(
            f"Session created: {session_id}"
            + (f" (parent {parent_id})" if parent_id else " (main)")
        )
        await self._fire(HookEvent.SESSION_CREATED.value, session_id)

    async def on_session_deleted(self, session_id: str) -> None:
        logger.info(f"Session deleted: {session_id}")
        try:
            await self._fire(HookEvent.SESSION_DELETED.value, session_id)
        finally:
            self.store.forget(session_id)

    async def on_session_idle(self, session_id: str) -> None:
        event = HookEvent.SESSION_IDLE.value
        if not self.hooks_for(event):
            logger.debug(f"Session idle: {session_id}, no hooks defined")
            return

        files = self.store.take_files(session_id)
        logger.info(f"Session idle: {session_id}, {len(files)} modified files")
        await self._fire(event, session_id, files=files)

    # --- Tool interception ---

    async def before_tool(
        self,
        tool_name: str,
        session_id: str,
        call_id: str,
        args: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Run before-tool hooks.

        Raises:
            HookBlockedError: if a hook blocked the call. The host must not
                run the tool and should surface the message to the user.
        """
        args = dict(args or {})
        self.store.stage_args(call_id, session_id, args)

        result = await self._run_tool_phase(ToolPhase.BEFORE, tool_name, session_id, args)
        if result.blocked:
            self.store.discard_args(call_id)
            raise HookBlockedError(
                result.block_reason or DEFAULT_BLOCK_REASON,
                event=tool_event(ToolPhase.BEFORE, tool_name),
                tool_name=tool_name,
            )

        if tool_name in FILE_MODIFYING_TOOLS:
            file_path = extract_file_path(args)
            if file_path:
                logger.debug(f"File modified in {session_id}: {file_path} ({tool_name})")
                self.store.record_file(session_id, file_path)

    async def after_tool(self, tool_name: str, session_id: str, call_id: str) -> None:
        """Run after-tool hooks. These never block."""
        args = self.store.pop_args(call_id)
        await self._run_tool_phase(ToolPhase.AFTER, tool_name, session_id, args)

    async def _run_tool_phase(
        self,
        phase: ToolPhase,
        tool_name: str,
        session_id: str,
        args: dict[str, Any],
    ) -> DispatchResult:
        can_block = phase in BLOCKING_PHASES
        concrete_event = tool_event(phase, tool_name)
        files = self.store.peek_files(session_id)

        for group_event in (tool_event(phase, WILDCARD), concrete_event):
            result = await self._run_group(
                self.hooks_for(group_event),
                session_id,
                event=concrete_event,
                files=files,
                tool_name=tool_name,
                tool_args=args,
                can_block=can_block,
            )
            if result.blocked:
                return result
        return DispatchResult()

    # --- Hook execution ---

    async def _fire(
        self,
        event: str,
        session_id: str,
        files: Optional[list[str]] = None,
    ) -> None:
        if files is None:
            files = self.store.peek_files(session_id)
        await self._run_group(self.hooks_for(event), session_id, event=event, files=files)

    async def _run_group(
        self,
        hooks: tuple[HookDefinition, ...],
        session_id: str,
        *,
        event: str,
        files: Optional[list[str]] = None,
        tool_name: Optional[str] = None,
        tool_args: Optional[dict[str, Any]] = None,
        can_block: bool = False,
    ) -> DispatchResult:
        for hook in hooks:
            result = await self.dispatcher.run_hook(
                hook,
                session_id,
                event=event,
                files=files,
                tool_name=tool_name,
                tool_args=tool_args,
                can_block=can_block,
            )
            if result.blocked:
                return result
        return DispatchResult()

    # --- Host event adapter ---

    async def handle_event(self, event_type: str, properties: Optional[Mapping[str, Any]] = None) -> None:
        """Route a raw host event payload.

        ``session.created``/``session.deleted`` carry ``info.id`` (and
        ``info.parentID``); ``session.idle`` carries ``sessionID``. Other
        event types are ignored.
        """
        props = properties or {}
        info = props.get("info") if isinstance(props.get("info"), Mapping) else {}

        if event_type == HookEvent.SESSION_CREATED.value:
            session_id = info.get("id")
            if session_id:
                await self.on_session_created(session_id, parent_id=info.get("parentID"))
        elif event_type == HookEvent.SESSION_DELETED.value:
            session_id = info.get("id")
            if session_id:
                await self.on_session_deleted(session_id)
        elif event_type == HookEvent.SESSION_IDLE.value:
            session_id = props.get("sessionID")
            if session_id:
                await self.on_session_idle(session_id)

    async def shutdown(self) -> None:
        """Wait for outstanding feedback messages."""
        await self.dispatcher.flush_feedback()

    # --- Introspection ---

    def get_registered_hooks(self) -> list[dict]:
        return [hook.to_dict() for hooks in self._hooks.values() for hook in hooks]

    def get_recent_errors(self) -> list[dict]:
        return self.dispatcher.get_recent_errors()

    def health_info(self) -> dict:
        return {
            "hooks_count": sum(len(h) for h in self._hooks.values()),
            "events_registered": list(self._hooks.keys()),
            "recent_errors_count": len(self.dispatcher.get_recent_errors()),
            **self.store.stats(),
        }
