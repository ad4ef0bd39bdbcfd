"""
Hook action dispatch.

Runs one hook's actions strictly in order against a session. Only a bash
action exiting with code 2 in a phase that allows blocking stops the
sequence; every other failure is logged and the next action runs.

Feedback contract: after every bash action a status line is posted back
into the session as a non-reply message. Posting happens in a background
task and its failure is logged, never raised, so a broken feedback channel
can neither block a tool nor abort a hook.
"""

import asyncio
import json
import logging
import time
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

from sessionhooks.config import Settings, get_settings
from sessionhooks.core.hooks.bash_executor import BLOCKING_EXIT_CODE, execute_bash_action
from sessionhooks.core.hooks.conditions import ConditionEvaluator
from sessionhooks.core.hooks.events import HookEvent, is_tool_event
from sessionhooks.core.hooks.models import (
    BashAction,
    BashContext,
    BashResult,
    CommandAction,
    DispatchResult,
    HookAction,
    HookDefinition,
    HookError,
    SkillAction,
    ToolAction,
)
from sessionhooks.core.interfaces import CommandInfo, SessionClient

logger = logging.getLogger(__name__)

# Maximum recent errors to keep in memory
MAX_RECENT_ERRORS = 50

DEFAULT_BLOCK_REASON = "Blocked by hook"


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "…"


def format_bash_feedback(
    action: BashAction,
    result: BashResult,
    duration_ms: int,
    max_chars: int = 500,
) -> str:
    """Human-readable status line for a finished bash action."""
    icon = "✅" if result.exit_code == 0 else "❌"
    lines = [
        f"{icon} Hook bash `{action.command}` exited with code "
        f"{result.exit_code} ({duration_ms}ms)"
    ]
    stdout = result.stdout.strip()
    stderr = result.stderr.strip()
    if stdout:
        lines.append(f"stdout:\n{_truncate(stdout, max_chars)}")
    if stderr:
        lines.append(f"stderr:\n{_truncate(stderr, max_chars)}")
    return "\n".join(lines)


def tool_prompt_text(action: ToolAction) -> str:
    return f"Use the {action.name} tool with these arguments: {json.dumps(action.args)}"


def skill_prompt_text(action: SkillAction) -> str:
    return f'Use the skill tool to load the "{action.name}" skill and follow its instructions.'


class HookDispatcher:
    """Executes hook actions for a session."""

    def __init__(
        self,
        client: SessionClient,
        directory: Path,
        commands: Optional[Mapping[str, CommandInfo]] = None,
        evaluator: Optional[ConditionEvaluator] = None,
        settings: Optional[Settings] = None,
    ):
        self.client = client
        self.directory = Path(directory)
        self.commands: Mapping[str, CommandInfo] = commands or {}
        self.evaluator = evaluator or ConditionEvaluator(client)
        self.settings = settings or get_settings()
        self._feedback_tasks: set[asyncio.Task] = set()
        self._recent_errors: deque[HookError] = deque(maxlen=MAX_RECENT_ERRORS)

    async def run_hook(
        self,
        hook: HookDefinition,
        session_id: str,
        *,
        event: Optional[str] = None,
        files: Optional[list[str]] = None,
        tool_name: Optional[str] = None,
        tool_args: Optional[dict[str, Any]] = None,
        can_block: bool = False,
    ) -> DispatchResult:
        """Run a hook's actions if its conditions pass.

        Args:
            hook: The hook to run.
            session_id: Session the triggering event belongs to.
            event: Concrete triggering event (defaults to the hook's event).
            files: Modified files, used by hasCodeChange and idle bash context.
            tool_name: Tool being intercepted, for tool events.
            tool_args: Arguments of the intercepted tool call.
            can_block: Whether exit code 2 from a bash action blocks.
        """
        event = event or hook.event

        if not await self.evaluator.evaluate(hook, session_id, files):
            return DispatchResult()

        log_ctx = {"session_id": session_id, "hook_event": hook.event}
        logger.info(
            f"Running hook {hook.event} for session {session_id} "
            f"({len(hook.actions)} actions)",
            extra=log_ctx,
        )

        for action in hook.actions:
            try:
                if isinstance(action, BashAction):
                    result = await self._run_bash(
                        action, session_id, event, files, tool_name, tool_args
                    )
                    if result.exit_code == 0:
                        continue
                    if can_block and result.exit_code == BLOCKING_EXIT_CODE:
                        reason = result.stderr.strip() or DEFAULT_BLOCK_REASON
                        logger.info(f"Hook {hook.event} blocked {event}: {reason}", extra=log_ctx)
                        return DispatchResult(blocked=True, block_reason=reason)
                    logger.warning(
                        f"Bash action {action.command!r} exited {result.exit_code} "
                        f"in hook {hook.event}, continuing",
                        extra=log_ctx,
                    )
                else:
                    await self._run_session_action(action, session_id)
            except Exception as e:
                logger.error(
                    f"Hook {hook.event} action {type(action).__name__} failed, continuing: {e}",
                    extra=log_ctx,
                )
                self._record_error(hook.event, session_id, action, str(e))

        logger.info(f"Hook {hook.event} completed for session {session_id}", extra=log_ctx)
        return DispatchResult()

    async def _run_session_action(self, action: HookAction, session_id: str) -> None:
        if isinstance(action, CommandAction):
            info = self.commands.get(action.name)
            agent = info.agent if info else None
            model = info.model if info else None
            logger.info(f"Executing command {action.name!r} (agent={agent}, model={model})")
            await self.client.command(
                session_id, action.name, action.args, agent=agent, model=model
            )
        elif isinstance(action, ToolAction):
            logger.info(f"Prompting tool {action.name!r}")
            await self.client.prompt(session_id, tool_prompt_text(action))
        elif isinstance(action, SkillAction):
            logger.info(f"Prompting skill {action.name!r}")
            await self.client.prompt(session_id, skill_prompt_text(action))
        else:
            raise TypeError(f"Unsupported action type: {type(action).__name__}")

    async def _run_bash(
        self,
        action: BashAction,
        session_id: str,
        event: str,
        files: Optional[list[str]],
        tool_name: Optional[str],
        tool_args: Optional[dict[str, Any]],
    ) -> BashResult:
        context = BashContext(
            session_id=session_id,
            event=event,
            cwd=str(self.directory),
            files=list(files or []) if event == HookEvent.SESSION_IDLE.value else None,
            tool_name=tool_name if is_tool_event(event) else None,
            tool_args=(tool_args or {}) if is_tool_event(event) else None,
        )
        timeout_ms = action.timeout_ms or self.settings.bash_timeout_ms

        logger.info(f"Executing bash action {action.command!r} (timeout {timeout_ms}ms)")
        started = time.monotonic()
        result = await execute_bash_action(
            action.command,
            timeout_ms,
            context,
            self.directory,
            shell=self.settings.bash_shell,
        )
        duration_ms = int((time.monotonic() - started) * 1000)

        feedback = format_bash_feedback(
            action, result, duration_ms, self.settings.feedback_max_chars
        )
        self._send_feedback(session_id, feedback)
        return result

    # --- Fire-and-forget feedback ---

    def _send_feedback(self, session_id: str, text: str) -> None:
        task = asyncio.create_task(self._deliver_feedback(session_id, text))
        self._feedback_tasks.add(task)
        task.add_done_callback(self._feedback_tasks.discard)

    async def _deliver_feedback(self, session_id: str, text: str) -> None:
        try:
            await self.client.prompt(session_id, text, no_reply=True)
        except Exception as e:
            logger.warning(
                f"Failed to send hook feedback to session {session_id}: {e}",
                extra={"session_id": session_id},
            )

    async def flush_feedback(self) -> None:
        """Wait for all feedback messages that are still in flight."""
        if self._feedback_tasks:
            await asyncio.gather(*list(self._feedback_tasks))

    # --- Error records ---

    def _record_error(
        self, hook_event: str, session_id: str, action: HookAction, error: str
    ) -> None:
        self._recent_errors.append(
            HookError(
                hook_event=hook_event,
                session_id=session_id,
                action=type(action).__name__,
                error=error,
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
        )

    def get_recent_errors(self) -> list[dict]:
        return [e.to_dict() for e in self._recent_errors]
