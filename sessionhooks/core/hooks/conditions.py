"""
Hook gating conditions.
"""

import logging
from typing import Iterable, Optional

from sessionhooks.core.hooks.models import HookCondition, HookDefinition
from sessionhooks.core.interfaces import SessionClient
from sessionhooks.lib.code_files import has_code_extension

logger = logging.getLogger(__name__)


class ConditionEvaluator:
    """Evaluates a hook's conditions for one session."""

    def __init__(self, client: SessionClient):
        self.client = client

    async def is_main_session(self, session_id: str) -> bool:
        """True iff the host reports the session as having no parent.

        Main-session identity is looked up every time, never cached.
        """
        try:
            info = await self.client.get_session(session_id)
        except Exception as e:
            logger.warning(f"Session lookup failed for {session_id}: {e}")
            return False
        if info is None:
            logger.debug(f"Session {session_id} not found, treating as sub-session")
            return False
        return info.is_main

    @staticmethod
    def has_code_change(files: Optional[Iterable[str]]) -> bool:
        return any(has_code_extension(f) for f in files or ())

    async def evaluate(
        self,
        hook: HookDefinition,
        session_id: str,
        files: Optional[list[str]] = None,
    ) -> bool:
        """AND all conditions in order, stopping at the first failure."""
        for condition in hook.conditions or ():
            if condition == HookCondition.IS_MAIN_SESSION:
                passed = await self.is_main_session(session_id)
            elif condition == HookCondition.HAS_CODE_CHANGE:
                passed = self.has_code_change(files)
            else:
                passed = False

            if not passed:
                logger.debug(f"Hook {hook.event} skipped for {session_id}: {condition.value} failed")
                return False
        return True
