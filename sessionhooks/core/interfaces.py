"""
Host session interface.

The engine never talks to the host runtime directly. Everything it needs,
session metadata, command dispatch, prompting and the command table, goes
through a SessionClient supplied by the embedding application.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class SessionInfo(BaseModel):
    """Session metadata as reported by the host."""

    id: str
    parent_id: Optional[str] = Field(
        default=None,
        alias="parentID",
        description="Parent session id; None for a main session",
    )
    title: Optional[str] = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def is_main(self) -> bool:
        return not self.parent_id


class CommandInfo(BaseModel):
    """A command the host knows how to run, with its preferred agent/model."""

    name: str
    description: str = ""
    agent: Optional[str] = None
    model: Optional[str] = None

    model_config = {"extra": "ignore"}


@runtime_checkable
class SessionClient(Protocol):
    """Narrow view of the host session API used by the hook engine."""

    async def get_session(self, session_id: str) -> Optional[SessionInfo]:
        ...

    async def command(
        self,
        session_id: str,
        command: str,
        arguments: str = "",
        agent: Optional[str] = None,
        model: Optional[str] = None,
    ) -> Any:
        ...

    async def prompt(self, session_id: str, text: str, no_reply: bool = False) -> Any:
        ...

    async def list_commands(self) -> dict[str, CommandInfo]:
        ...
