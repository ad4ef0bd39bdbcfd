"""
Pytest configuration and fixtures.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import pytest

# Keep the user's real config dir out of tests
os.environ["XDG_CONFIG_HOME"] = tempfile.mkdtemp(prefix="sessionhooks-test-")
os.environ["SESSIONHOOKS_LOG_LEVEL"] = "WARNING"

from sessionhooks.config import Settings  # noqa: E402
from sessionhooks.core.interfaces import CommandInfo, SessionInfo  # noqa: E402


class FakeSessionClient:
    """Records every call the engine makes to the host."""

    def __init__(
        self,
        sessions: Optional[dict[str, SessionInfo]] = None,
        commands: Optional[dict[str, CommandInfo]] = None,
    ):
        self.sessions = sessions or {}
        self.commands = commands or {}
        self.command_calls: list[dict[str, Any]] = []
        self.prompts: list[dict[str, Any]] = []
        self.fail_commands = False
        self.fail_prompts = False

    def add_session(self, session_id: str, parent_id: Optional[str] = None) -> None:
        self.sessions[session_id] = SessionInfo(id=session_id, parent_id=parent_id)

    async def get_session(self, session_id: str) -> Optional[SessionInfo]:
        return self.sessions.get(session_id)

    async def command(self, session_id, command, arguments="", agent=None, model=None):
        if self.fail_commands:
            raise RuntimeError("command dispatch failed")
        self.command_calls.append({
            "session_id": session_id,
            "command": command,
            "arguments": arguments,
            "agent": agent,
            "model": model,
        })

    async def prompt(self, session_id, text, no_reply=False):
        if self.fail_prompts:
            raise RuntimeError("prompt failed")
        self.prompts.append({"session_id": session_id, "text": text, "no_reply": no_reply})

    async def list_commands(self) -> dict[str, CommandInfo]:
        return dict(self.commands)

    @property
    def feedback(self) -> list[str]:
        return [p["text"] for p in self.prompts if p["no_reply"]]

    @property
    def replies(self) -> list[str]:
        return [p["text"] for p in self.prompts if not p["no_reply"]]


def write_hooks_file(hook_dir: Path, content: str, file_name: str = "hooks.md") -> Path:
    """Write a hooks.md into hook_dir, creating it if needed."""
    hook_dir.mkdir(parents=True, exist_ok=True)
    path = hook_dir / file_name
    path.write_text(content)
    return path


@pytest.fixture
def client() -> FakeSessionClient:
    fake = FakeSessionClient()
    fake.add_session("main-session")
    fake.add_session("child-session", parent_id="main-session")
    return fake


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def global_hook_dir(tmp_path: Path) -> Path:
    return tmp_path / "global" / "hook"


@pytest.fixture
def project_hook_dir(project_dir: Path) -> Path:
    return project_dir / ".sessionhooks" / "hook"


@pytest.fixture
def test_settings(project_dir: Path, global_hook_dir: Path) -> Settings:
    """Settings pointing at temporary hook directories."""
    return Settings(
        project_dir=project_dir,
        global_hook_dir=global_hook_dir,
        bash_timeout_ms=10000,
        log_level="WARNING",
    )
