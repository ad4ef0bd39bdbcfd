"""
sessionhooks CLI.

Usage:
    sessionhooks hooks list                     # Merged hooks per event
    sessionhooks hooks list --json              # Same, as JSON
    sessionhooks fire session.idle --session S --file src/app.ts
    sessionhooks fire tool.before.write --session S --args '{"filePath": "x.ts"}'
    sessionhooks config show                    # Show current config
    sessionhooks config set KEY VALUE           # Set a config value
    sessionhooks config get KEY                 # Get a config value
"""

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path
from typing import Any, Optional

import yaml

from sessionhooks.config import (
    CONFIG_KEYS,
    LOG_LEVELS,
    _load_yaml_config,
    get_app_config_dir,
    get_config_path,
    get_settings,
    save_yaml_config,
)
from sessionhooks.core.hooks.errors import HookBlockedError
from sessionhooks.core.hooks.events import TOOL_EVENT_PREFIX, HookEvent, ToolPhase, is_valid_hook_event
from sessionhooks.core.hooks.loader import load_hook_layers
from sessionhooks.core.hooks.runner import HookRunner
from sessionhooks.core.interfaces import CommandInfo, SessionInfo
from sessionhooks.lib.logger import setup_logging


class ConsoleSessionClient:
    """Session client that prints what the engine asks the host to do."""

    def __init__(self, parent_id: Optional[str] = None, out=None):
        self.parent_id = parent_id
        self.out = out or sys.stdout

    async def get_session(self, session_id: str) -> Optional[SessionInfo]:
        return SessionInfo(id=session_id, parent_id=self.parent_id)

    async def command(self, session_id, command, arguments="", agent=None, model=None):
        extra = "".join(
            f" [{k}={v}]" for k, v in (("agent", agent), ("model", model)) if v
        )
        print(f"[{session_id}] /{command} {arguments}".rstrip() + extra, file=self.out)

    async def prompt(self, session_id, text, no_reply=False):
        label = "note" if no_reply else "prompt"
        print(f"[{session_id}] {label}: {text}", file=self.out)

    async def list_commands(self) -> dict[str, CommandInfo]:
        return {}


def _resolve_project(args: argparse.Namespace) -> Path:
    project = getattr(args, "project", None)
    return Path(project).resolve() if project else get_settings().resolved_project_dir


# --- hooks ---


def cmd_hooks_list(args: argparse.Namespace) -> None:
    hooks = load_hook_layers(_resolve_project(args), get_settings())

    if args.json:
        print(json.dumps(
            {event: [h.to_dict() for h in defs] for event, defs in hooks.items()},
            indent=2,
        ))
        return

    if not hooks:
        print("No hooks configured.")
        return

    for event, defs in hooks.items():
        print(f"{event}")
        for hook in defs:
            conditions = (
                ", ".join(c.value for c in hook.conditions) if hook.conditions else "-"
            )
            actions = ", ".join(
                f"{kind}:{value if isinstance(value, str) else json.dumps(value)}"
                for action in hook.actions
                for kind, value in action.to_dict().items()
            )
            print(f"  conditions: {conditions}")
            print(f"  actions:    {actions}")
            print(f"  source:     {hook.source}")


# --- fire ---


async def _fire(args: argparse.Namespace) -> int:
    project = _resolve_project(args)
    client = ConsoleSessionClient(parent_id=args.parent)
    runner = await HookRunner.create(client, project, get_settings())
    session_id = args.session
    event = args.event

    try:
        if event == HookEvent.SESSION_CREATED.value:
            await runner.on_session_created(session_id, parent_id=args.parent)
        elif event == HookEvent.SESSION_DELETED.value:
            await runner.on_session_deleted(session_id)
        elif event == HookEvent.SESSION_IDLE.value:
            for file_path in args.file or []:
                runner.store.record_file(session_id, file_path)
            await runner.on_session_idle(session_id)
        else:
            _, phase, tool_name = event.split(".", 2)
            tool_args = json.loads(args.args) if args.args else {}
            call_id = f"cli-{uuid.uuid4().hex[:8]}"
            if phase == ToolPhase.BEFORE.value:
                try:
                    await runner.before_tool(tool_name, session_id, call_id, tool_args)
                except HookBlockedError as e:
                    print(f"Blocked: {e}", file=sys.stderr)
                    return 2
                print(f"Allowed: {tool_name}")
            else:
                runner.store.stage_args(call_id, session_id, tool_args)
                await runner.after_tool(tool_name, session_id, call_id)
    finally:
        await runner.shutdown()

    return 0


def cmd_fire(args: argparse.Namespace) -> None:
    event = args.event
    if not is_valid_hook_event(event) or event.endswith(".*"):
        print(f"Error: not a concrete hook event: {event}", file=sys.stderr)
        sys.exit(1)
    if event.startswith(f"{TOOL_EVENT_PREFIX}.") and args.args:
        try:
            if not isinstance(json.loads(args.args), dict):
                raise ValueError("arguments must be a JSON object")
        except ValueError as e:
            print(f"Error: invalid --args: {e}", file=sys.stderr)
            sys.exit(1)

    sys.exit(asyncio.run(_fire(args)))


# --- config ---


def cmd_config(args: argparse.Namespace) -> None:
    if args.action == "show":
        _config_show()
    elif args.action == "set":
        _config_set(args.key, args.value)
    elif args.action == "get":
        _config_get(args.key)
    else:
        print("Usage: sessionhooks config {show|set|get}")


def _config_show() -> None:
    settings = get_settings()
    config_dir = get_app_config_dir()
    print(f"Config file: {get_config_path(config_dir)}")
    print()
    values: dict[str, Any] = {
        "project_dir": str(settings.resolved_project_dir),
        "global_hook_dir": str(settings.global_hooks_path),
        "project_hook_dir": str(settings.project_hooks_path()),
        "hooks_file_name": settings.hooks_file_name,
        "bash_shell": settings.bash_shell,
        "bash_timeout_ms": settings.bash_timeout_ms,
        "feedback_max_chars": settings.feedback_max_chars,
        "log_level": settings.log_level,
        "log_file": str(settings.log_file) if settings.log_file else None,
    }
    print(yaml.safe_dump(values, default_flow_style=False, sort_keys=False), end="")


def _config_set(key: str, value: str) -> None:
    if key not in CONFIG_KEYS:
        print(f"Unknown config key: {key}")
        print(f"Valid keys: {', '.join(sorted(CONFIG_KEYS))}")
        sys.exit(1)

    config_dir = get_app_config_dir()
    config = _load_yaml_config(config_dir)

    if key in ("bash_timeout_ms", "feedback_max_chars"):
        try:
            config[key] = int(value)
        except ValueError:
            print(f"Error: {key} must be an integer")
            sys.exit(1)
    elif key == "log_level":
        if value.upper() not in LOG_LEVELS:
            print(f"Error: log_level must be one of {', '.join(LOG_LEVELS)}")
            sys.exit(1)
        config[key] = value.upper()
    else:
        config[key] = value

    path = save_yaml_config(config_dir, config)
    print(f"Set {key} = {config[key]} in {path}")


def _config_get(key: str) -> None:
    config = _load_yaml_config(get_app_config_dir())
    if key in config:
        print(config[key])
        return
    settings = get_settings()
    if hasattr(settings, key):
        print(getattr(settings, key))
    else:
        print(f"Unknown config key: {key}")
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="sessionhooks",
        description="sessionhooks: lifecycle hooks for coding-assistant sessions",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the configured log level",
    )
    subparsers = parser.add_subparsers(dest="command")

    # hooks subcommand
    hooks_parser = subparsers.add_parser("hooks", help="Hook definitions")
    hooks_sub = hooks_parser.add_subparsers(dest="action")
    list_parser = hooks_sub.add_parser("list", help="List merged hooks per event")
    list_parser.add_argument("--project", help="Project directory (default: settings)")
    list_parser.add_argument("--json", action="store_true", help="Output JSON")

    # fire
    fire_parser = subparsers.add_parser("fire", help="Fire an event against a console session")
    fire_parser.add_argument("event", help="Event id, e.g. session.idle or tool.before.write")
    fire_parser.add_argument("--session", default="cli-session", help="Session id")
    fire_parser.add_argument("--parent", help="Parent session id (makes it a sub-session)")
    fire_parser.add_argument("--project", help="Project directory (default: settings)")
    fire_parser.add_argument(
        "--file", action="append",
        help="Modified file to track before session.idle (repeatable)",
    )
    fire_parser.add_argument("--args", help="Tool arguments as a JSON object")

    # config subcommand
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_sub = config_parser.add_subparsers(dest="action")
    config_sub.add_parser("show", help="Show current config")
    config_set_parser = config_sub.add_parser("set", help="Set a config value")
    config_set_parser.add_argument("key", help="Config key")
    config_set_parser.add_argument("value", help="Config value")
    config_get_parser = config_sub.add_parser("get", help="Get a config value")
    config_get_parser.add_argument("key", help="Config key")

    args = parser.parse_args()
    setup_logging(level=args.log_level)

    if args.command == "hooks":
        if args.action == "list":
            cmd_hooks_list(args)
        else:
            hooks_parser.print_help()
    elif args.command == "fire":
        cmd_fire(args)
    elif args.command == "config":
        cmd_config(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
