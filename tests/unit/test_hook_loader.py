"""
Tests for hook definition loading, event validation and layer merging.
"""

from pathlib import Path

import pytest

from conftest import write_hooks_file
from sessionhooks.core.hooks.events import (
    HookEvent,
    ToolPhase,
    is_valid_hook_event,
    tool_event,
)
from sessionhooks.core.hooks.loader import load_hook_layers, load_hooks, merge_hooks
from sessionhooks.core.hooks.models import (
    BashAction,
    CommandAction,
    HookCondition,
    HookDefinition,
    SkillAction,
    ToolAction,
)


@pytest.fixture
def hook_dir(tmp_path) -> Path:
    path = tmp_path / "hook"
    path.mkdir()
    return path


def hook(event: str, *actions) -> HookDefinition:
    return HookDefinition(event=event, actions=tuple(actions) or (CommandAction("noop"),))


# ---------------------------------------------------------------------------
# Event grammar
# ---------------------------------------------------------------------------


class TestHookEvent:
    def test_session_events(self):
        assert HookEvent.SESSION_IDLE == "session.idle"
        assert HookEvent.SESSION_CREATED == "session.created"
        assert HookEvent.SESSION_DELETED == "session.deleted"

    def test_tool_event_builder(self):
        assert tool_event(ToolPhase.BEFORE, "write") == "tool.before.write"
        assert tool_event("after", "*") == "tool.after.*"

    @pytest.mark.parametrize("event", [
        "session.idle", "session.created", "session.deleted",
        "tool.before.*", "tool.after.*", "tool.before.write", "tool.after.edit",
        "tool.before.mcp.server.tool",
    ])
    def test_valid_events(self, event):
        assert is_valid_hook_event(event)

    @pytest.mark.parametrize("event", [
        "tool.before", "tool.after", "tool.before.", "tool.during.write",
        "session.started", "tool", "", None, 3, ["session.idle"],
    ])
    def test_invalid_events(self, event):
        assert not is_valid_hook_event(event)


# ---------------------------------------------------------------------------
# load_hooks
# ---------------------------------------------------------------------------


class TestLoadHooks:
    def test_missing_directory(self, tmp_path):
        assert load_hooks(tmp_path / "nope") == {}

    def test_missing_file(self, hook_dir):
        assert load_hooks(hook_dir) == {}

    def test_command_action(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.idle\n"
            "    conditions: [isMainSession]\n"
            "    actions:\n"
            "      - command: simplify-changes\n"
            "---\n"
        ))
        hooks = load_hooks(hook_dir)["session.idle"]
        assert len(hooks) == 1
        assert hooks[0].event == "session.idle"
        assert hooks[0].conditions == (HookCondition.IS_MAIN_SESSION,)
        assert hooks[0].actions == (CommandAction(name="simplify-changes"),)
        assert hooks[0].source == hook_dir / "hooks.md"

    def test_dashes_in_bash_command_keep_all_hooks(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.idle\n"
            "    actions:\n"
            "      - bash: \"echo ---- done\"\n"
            "  - event: tool.after.write\n"
            "    actions:\n"
            "      - bash: \"sed -i '/^---$/d' CHANGELOG.md\"\n"
            "---\n"
        ))
        hooks = load_hooks(hook_dir)
        assert hooks["session.idle"][0].actions == (BashAction(command="echo ---- done"),)
        assert hooks["tool.after.write"][0].actions == (
            BashAction(command="sed -i '/^---$/d' CHANGELOG.md"),
        )

    def test_all_action_kinds(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.created\n"
            "    actions:\n"
            "      - command:\n"
            "          name: review\n"
            "          args: \"--strict\"\n"
            "      - skill: post-change-code-simplification\n"
            "      - tool:\n"
            "          name: bash\n"
            "          args: {command: \"echo done\"}\n"
            "      - bash: \"npm run lint\"\n"
            "      - bash:\n"
            "          command: \"$SESSIONHOOKS_PROJECT_DIR/init.sh\"\n"
            "          timeout: 30000\n"
            "---\n"
        ))
        actions = load_hooks(hook_dir)["session.created"][0].actions
        assert actions == (
            CommandAction(name="review", args="--strict"),
            SkillAction(name="post-change-code-simplification"),
            ToolAction(name="bash", args={"command": "echo done"}),
            BashAction(command="npm run lint"),
            BashAction(command="$SESSIONHOOKS_PROJECT_DIR/init.sh", timeout_ms=30000),
        )
        assert actions[2].args == {"command": "echo done"}

    def test_conditions_absent_vs_empty(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.idle\n"
            "    actions: [{command: a}]\n"
            "  - event: session.idle\n"
            "    conditions: []\n"
            "    actions: [{command: b}]\n"
            "---\n"
        ))
        first, second = load_hooks(hook_dir)["session.idle"]
        assert first.conditions is None
        assert second.conditions == ()

    def test_declaration_order_preserved(self, hook_dir):
        names = [f"cmd-{i}" for i in range(6)]
        entries = "".join(
            f"  - event: session.idle\n    actions: [{{command: {n}}}]\n" for n in names
        )
        write_hooks_file(hook_dir, f"---\nhooks:\n{entries}---\n")
        hooks = load_hooks(hook_dir)["session.idle"]
        assert [h.actions[0].name for h in hooks] == names

    def test_multiple_events(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.created\n"
            "    actions: [{command: a}]\n"
            "  - event: session.deleted\n"
            "    actions: [{command: b}]\n"
            "  - event: session.idle\n"
            "    actions: [{command: c}]\n"
            "---\n"
        ))
        assert list(load_hooks(hook_dir)) == ["session.created", "session.deleted", "session.idle"]

    def test_wildcard_and_specific_tool_events(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: tool.before.*\n"
            "    actions: [{bash: \"echo any\"}]\n"
            "  - event: tool.before.write\n"
            "    actions: [{bash: \"echo write\"}]\n"
            "  - event: tool.after.*\n"
            "    actions: [{bash: \"echo after\"}]\n"
            "  - event: tool.before\n"
            "    actions: [{bash: \"echo bare\"}]\n"
            "  - event: tool.after\n"
            "    actions: [{bash: \"echo bare\"}]\n"
            "---\n"
        ))
        hooks = load_hooks(hook_dir)
        assert set(hooks) == {"tool.before.*", "tool.before.write", "tool.after.*"}
        assert "tool.before" not in hooks
        assert "tool.after" not in hooks

    def test_invalid_event_skipped(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: invalid.event\n"
            "    actions: [{command: a}]\n"
            "  - actions: [{command: b}]\n"
            "  - event: session.idle\n"
            "    actions: [{command: c}]\n"
            "---\n"
        ))
        hooks = load_hooks(hook_dir)
        assert list(hooks) == ["session.idle"]

    def test_missing_actions_skipped(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.idle\n"
            "  - event: session.idle\n"
            "    actions: lint\n"
            "  - event: session.created\n"
            "    actions: [{command: ok}]\n"
            "---\n"
        ))
        assert list(load_hooks(hook_dir)) == ["session.created"]

    def test_unknown_action_variant_rejects_hook(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.idle\n"
            "    actions:\n"
            "      - command: fine\n"
            "      - notify: nope\n"
            "---\n"
        ))
        assert load_hooks(hook_dir) == {}

    def test_ambiguous_action_rejects_hook(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.idle\n"
            "    actions:\n"
            "      - {command: a, bash: \"echo b\"}\n"
            "---\n"
        ))
        assert load_hooks(hook_dir) == {}

    def test_unknown_condition_rejects_hook(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.idle\n"
            "    conditions: [isFriday]\n"
            "    actions: [{command: a}]\n"
            "---\n"
        ))
        assert load_hooks(hook_dir) == {}

    def test_invalid_bash_timeout_rejects_hook(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - event: session.idle\n"
            "    actions:\n"
            "      - bash: {command: \"sleep 1\", timeout: -5}\n"
            "---\n"
        ))
        assert load_hooks(hook_dir) == {}

    def test_invalid_yaml(self, hook_dir):
        write_hooks_file(hook_dir, "---\nhooks: [\n  - broken: {\n---\n")
        assert load_hooks(hook_dir) == {}

    def test_no_hooks_key(self, hook_dir):
        write_hooks_file(hook_dir, "---\ntitle: nothing here\n---\n")
        assert load_hooks(hook_dir) == {}

    def test_hooks_not_a_list(self, hook_dir):
        write_hooks_file(hook_dir, "---\nhooks: session.idle\n---\n")
        assert load_hooks(hook_dir) == {}

    def test_non_mapping_entry_skipped(self, hook_dir):
        write_hooks_file(hook_dir, (
            "---\n"
            "hooks:\n"
            "  - just a string\n"
            "  - event: session.idle\n"
            "    actions: [{command: a}]\n"
            "---\n"
        ))
        assert len(load_hooks(hook_dir)["session.idle"]) == 1

    def test_custom_file_name(self, hook_dir):
        write_hooks_file(
            hook_dir,
            "---\nhooks:\n  - event: session.idle\n    actions: [{command: a}]\n---\n",
            file_name="custom.md",
        )
        assert load_hooks(hook_dir) == {}
        assert "session.idle" in load_hooks(hook_dir, file_name="custom.md")


# ---------------------------------------------------------------------------
# merge_hooks
# ---------------------------------------------------------------------------


class TestMergeHooks:
    def test_empty(self):
        assert merge_hooks() == {}
        assert merge_hooks({}, {}) == {}

    def test_single_map(self):
        a = hook("session.idle")
        assert merge_hooks({"session.idle": [a]}) == {"session.idle": [a]}

    def test_non_overlapping_events(self):
        a, b = hook("session.idle"), hook("session.created")
        merged = merge_hooks({"session.idle": [a]}, {"session.created": [b]})
        assert merged == {"session.idle": [a], "session.created": [b]}

    def test_overlapping_events_concatenate_in_layer_order(self):
        g1 = hook("session.idle", CommandAction("g1"))
        g2 = hook("session.idle", CommandAction("g2"))
        p1 = hook("session.idle", CommandAction("p1"))
        p2 = hook("session.idle", CommandAction("p2"))
        merged = merge_hooks({"session.idle": [g1, g2]}, {"session.idle": [p1, p2]})
        assert merged["session.idle"] == [g1, g2, p1, p2]

    def test_three_layers(self):
        a = hook("tool.before.*", CommandAction("a"))
        b = hook("tool.before.*", CommandAction("b"))
        c = hook("tool.before.*", CommandAction("c"))
        merged = merge_hooks(
            {"tool.before.*": [a]}, {"tool.before.*": [b]}, {"tool.before.*": [c]}
        )
        assert merged["tool.before.*"] == [a, b, c]

    def test_inputs_not_mutated(self):
        a, b = hook("session.idle"), hook("session.idle")
        first = {"session.idle": [a]}
        second = {"session.idle": [b]}
        merge_hooks(first, second)
        assert first == {"session.idle": [a]}
        assert second == {"session.idle": [b]}


class TestLoadHookLayers:
    def test_global_precedes_project(
        self, test_settings, project_dir, global_hook_dir, project_hook_dir
    ):
        write_hooks_file(global_hook_dir, (
            "---\nhooks:\n  - event: session.idle\n    actions: [{command: global}]\n---\n"
        ))
        write_hooks_file(project_hook_dir, (
            "---\nhooks:\n  - event: session.idle\n    actions: [{command: project}]\n---\n"
        ))
        hooks = load_hook_layers(project_dir, test_settings)
        assert [h.actions[0].name for h in hooks["session.idle"]] == ["global", "project"]

    def test_missing_layers(self, test_settings, project_dir):
        assert load_hook_layers(project_dir, test_settings) == {}
