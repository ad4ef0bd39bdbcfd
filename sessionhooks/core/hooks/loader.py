"""
Hook definition loading and layer merging.

Each hook directory holds a single ``hooks.md`` whose YAML frontmatter
carries a ``hooks`` list:

    ---
    hooks:
      - event: tool.before.write
        actions:
          - bash:
              command: "$SESSIONHOOKS_PROJECT_DIR/scripts/guard.sh"
              timeout: 5000
      - event: session.idle
        conditions: [isMainSession, hasCodeChange]
        actions:
          - command: simplify-changes
    ---

Loading never raises. Anything malformed is dropped with a warning and the
rest of the file still loads.
"""

import logging
from pathlib import Path
from typing import Optional

from sessionhooks.config import HOOKS_FILE_NAME, Settings
from sessionhooks.core.hooks.events import is_valid_hook_event
from sessionhooks.core.hooks.models import HookDefinition, parse_action, parse_conditions
from sessionhooks.lib.frontmatter import parse_frontmatter

logger = logging.getLogger(__name__)

EventHookMap = dict[str, list[HookDefinition]]


def load_hooks(hook_dir: Path, file_name: str = HOOKS_FILE_NAME) -> EventHookMap:
    """Load one hook layer. Returns event -> hooks in declaration order."""
    hooks: EventHookMap = {}

    hooks_file = Path(hook_dir) / file_name
    if not hooks_file.is_file():
        logger.debug(f"No hooks file at {hooks_file}")
        return hooks

    try:
        content = hooks_file.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed to read hooks file {hooks_file}: {e}")
        return hooks

    data, _ = parse_frontmatter(content)
    raw_hooks = data.get("hooks")
    if not isinstance(raw_hooks, list):
        if raw_hooks is not None:
            logger.warning(f"'hooks' in {hooks_file} is not a list, ignoring")
        return hooks

    for index, raw in enumerate(raw_hooks):
        hook = _parse_hook(raw, hooks_file, index)
        if hook:
            hooks.setdefault(hook.event, []).append(hook)

    count = sum(len(v) for v in hooks.values())
    logger.info(f"Loaded {count} hooks from {hooks_file} (events: {', '.join(hooks)})")
    return hooks


def _parse_hook(raw: object, hooks_file: Path, index: int) -> Optional[HookDefinition]:
    """Decode one raw hook entry, or None if it must be dropped."""
    if not isinstance(raw, dict):
        logger.warning(f"Hook #{index} in {hooks_file} is not a mapping, skipping")
        return None

    event = raw.get("event")
    if not is_valid_hook_event(event):
        logger.warning(f"Hook #{index} in {hooks_file} has invalid event {event!r}, skipping")
        return None

    raw_actions = raw.get("actions")
    if not isinstance(raw_actions, list):
        logger.warning(f"Hook #{index} ({event}) in {hooks_file} has no actions list, skipping")
        return None

    try:
        actions = tuple(parse_action(a) for a in raw_actions)
        conditions = parse_conditions(raw.get("conditions"))
    except ValueError as e:
        logger.warning(f"Hook #{index} ({event}) in {hooks_file} rejected: {e}")
        return None

    return HookDefinition(
        event=event,
        actions=actions,
        conditions=conditions,
        source=hooks_file,
    )


def merge_hooks(*hook_maps: EventHookMap) -> EventHookMap:
    """Merge layers, lowest priority first.

    For every event, the result is each layer's list concatenated in the
    order the layers were given. Inputs are left untouched.
    """
    merged: EventHookMap = {}
    for hook_map in hook_maps:
        for event, configs in hook_map.items():
            merged[event] = [*merged.get(event, []), *configs]
    return merged


def load_hook_layers(directory: Path, settings: Settings) -> EventHookMap:
    """Load the global layer then the project layer and merge them."""
    global_hooks = load_hooks(settings.global_hooks_path, settings.hooks_file_name)
    project_hooks = load_hooks(settings.project_hooks_path(directory), settings.hooks_file_name)
    return merge_hooks(global_hooks, project_hooks)
