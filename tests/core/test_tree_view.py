# tests/core/test_tree_view.py
import asyncio

import pytest

from projecttree.config.schema import TreeConfig
from projecttree.core.models import TreeNode, TreeNodeSnapshot
from projecttree.core.plugins import ActionHandler, register_handler
from projecttree.core.tree_view import TreeView


def make_view(snapshot, name="Demo Project", **kwargs) -> TreeView:
    async def load_snapshot():
        if isinstance(snapshot, BaseException):
            raise snapshot
        return snapshot

    async def load_name():
        if isinstance(name, BaseException):
            raise name
        return name

    return TreeView(load_snapshot, load_name, **kwargs)


def record_handler(action: str):
    """Registers a handler for `action` and returns the list of node ids it receives."""
    calls = []

    @register_handler
    class Recorder(ActionHandler):
        action_id = action

        def handle(self, view, node):
            calls.append(node.id)

    return calls


# --- Loading ---

@pytest.mark.asyncio
async def test_initialize_applies_name_and_snapshot(sample_tree):
    view = make_view(sample_tree)
    assert await view.initialize()
    assert view.ready and not view.loading
    assert view.error is None
    assert view.project_name == "Demo Project"
    assert view.model.root.name == "Demo Project"
    assert view.model.root.dir_path == "/work/demo"
    assert [row.node_id for row in view.rows()] == ["root", "src", "assets", "README.md"]

@pytest.mark.asyncio
async def test_loaders_run_concurrently(sample_tree):
    snapshot_started = asyncio.Event()

    async def load_name():
        await snapshot_started.wait() # Deadlocks if the loads were sequential
        return "Parallel"

    async def load_snapshot():
        snapshot_started.set()
        return sample_tree

    view = TreeView(load_snapshot, load_name)
    assert await asyncio.wait_for(view.initialize(), timeout=1)
    assert view.project_name == "Parallel"

@pytest.mark.asyncio
async def test_name_failure_falls_back_to_default(sample_tree):
    view = make_view(sample_tree, name=RuntimeError("name service down"))
    assert await view.initialize()
    assert view.project_name == "Untitled Project"
    assert len(view.model) == 8
    assert "project name" in view.error

@pytest.mark.asyncio
async def test_snapshot_failure_falls_back_to_empty_tree():
    view = make_view(OSError("disk gone"))
    assert await view.initialize()
    assert view.project_name == "Demo Project"
    assert len(view.model) == 1
    assert [row.node_id for row in view.rows()] == ["root", "root__empty"]
    assert "project files" in view.error

@pytest.mark.asyncio
async def test_both_loads_failing_still_shows_a_tree():
    view = make_view(OSError("disk gone"), name=RuntimeError("nope"))
    assert await view.initialize()
    assert view.ready
    assert view.model.root.name == "Untitled Project"

@pytest.mark.asyncio
async def test_invalid_snapshot_is_replaced():
    view = make_view(TreeNode(id="top", name="top", is_directory=True))
    assert await view.initialize()
    assert view.model.root.id == "root"
    assert "invalid snapshot" in view.error

@pytest.mark.asyncio
async def test_empty_name_uses_configured_default(sample_tree):
    view = make_view(sample_tree, name="", tree_config=TreeConfig(default_project_name="Workspace"))
    await view.initialize()
    assert view.project_name == "Workspace"

@pytest.mark.asyncio
async def test_teardown_before_load_completes_discards_results(sample_tree):
    release = asyncio.Event()

    async def load_snapshot():
        await release.wait()
        return sample_tree

    async def load_name():
        return "Late"

    view = TreeView(load_snapshot, load_name)
    task = asyncio.create_task(view.initialize())
    await asyncio.sleep(0)
    view.teardown()
    release.set()
    assert await task is False
    assert not view.ready
    assert view.project_name == "Untitled Project"
    assert len(view.model) == 1
    assert await view.refresh() is False

@pytest.mark.asyncio
async def test_outdated_load_is_ignored(sample_tree):
    release_first = asyncio.Event()
    calls = []
    newer = TreeNode(id="root", name="demo", is_directory=True, children=[TreeNode(id="new.txt", name="new.txt")])

    async def load_snapshot():
        calls.append(1)
        if len(calls) == 1:
            await release_first.wait()
            return sample_tree
        return newer

    async def load_name():
        return "Demo"

    view = TreeView(load_snapshot, load_name)
    first = asyncio.create_task(view.initialize())
    await asyncio.sleep(0)
    assert await view.refresh()
    release_first.set()
    assert await first is False
    assert "new.txt" in view.model
    assert "src" not in view.model

@pytest.mark.asyncio
async def test_refresh_prunes_removed_selection(sample_tree):
    snapshots = [sample_tree, TreeNode(id="root", name="demo", is_directory=True, children=[
        TreeNode(id="src", name="src", is_directory=True, children=[TreeNode(id="src/app.py", name="app.py")]),
    ])]

    async def load_snapshot():
        return snapshots.pop(0)

    async def load_name():
        return "Demo"

    view = TreeView(load_snapshot, load_name)
    await view.initialize()
    view.toggle_expansion("src")
    assert view.select("src/old.js")
    assert view.selected_node().id == "src/old.js"

    await view.refresh()
    assert view.selection.selected_keys == frozenset()
    assert view.selected_node() is None
    assert view.selection.is_expanded("src")

@pytest.mark.asyncio
async def test_listeners_are_notified_on_load(sample_tree):
    view = make_view(sample_tree)
    states = []
    view.add_listener(lambda: states.append(view.loading))
    await view.initialize()
    assert states[0] is True
    assert states[-1] is False


# --- Interaction ---

@pytest.mark.asyncio
async def test_context_menu_open_and_escape(sample_tree):
    view = make_view(sample_tree)
    await view.initialize()
    assert view.open_context_menu("src", 120, 80)
    state = view.context_menu.state
    assert state.visible and (state.x, state.y) == (120, 80)
    assert state.target_node.id == "src"
    assert view.handle_key("Escape")
    assert not view.context_menu.state.visible
    assert view.context_menu.state.target_node is None
    assert view.open_context_menu("ghost", 0, 0) is False

@pytest.mark.asyncio
async def test_collapse_action(sample_tree):
    view = make_view(sample_tree)
    await view.initialize()
    for node_id in ("src", "src/utils", "assets"):
        view.toggle_expansion(node_id)

    view.open_context_menu("src", 0, 0)
    view.context_menu.select("collapse")
    assert view.selection.expanded_keys == {"root", "assets"}

    view.run_toolbar_action("collapse")
    assert view.selection.expanded_keys == {"root"}

@pytest.mark.asyncio
async def test_copy_then_paste(sample_tree):
    pasted = record_handler("paste")
    view = make_view(sample_tree)
    await view.initialize()
    paste_item = view.context_menu.find_item("paste")
    assert not view.context_menu.is_item_enabled(paste_item)

    view.open_context_menu("src/utils", 0, 0)
    view.context_menu.select("copy")
    assert view.clipboard.mode == "copy"
    assert view.clipboard.node.id == "src/utils"
    assert view.context_menu.is_item_enabled(paste_item)

    view.open_context_menu("assets", 0, 0)
    assert view.context_menu.select("paste")
    assert pasted == ["assets"]
    assert view.clipboard is not None # copies can be pasted again

@pytest.mark.asyncio
async def test_cut_is_consumed_by_paste(sample_tree):
    view = make_view(sample_tree)
    await view.initialize()
    view.dispatch_action("cut", view.model.get("assets").snapshot())
    view.dispatch_action("paste", view.model.get("src").snapshot())
    assert view.clipboard is None

@pytest.mark.asyncio
async def test_refresh_action_reloads(sample_tree):
    loads = []

    async def load_snapshot():
        loads.append(1)
        return sample_tree

    async def load_name():
        return "Demo"

    view = TreeView(load_snapshot, load_name)
    await view.initialize()
    task = view.request_refresh()
    assert await task is True
    assert len(loads) == 2

@pytest.mark.asyncio
async def test_delete_waits_for_confirmation(sample_tree):
    deleted = record_handler("delete")
    view = make_view(sample_tree)
    await view.initialize()

    task = view.dispatch_action("delete", view.model.get("src").snapshot())
    await asyncio.sleep(0)
    gate = view.confirm_dialog.state
    assert gate.is_open
    assert gate.title == "Delete"
    assert "'src'" in gate.message
    assert deleted == []

    gate.on_confirm()
    assert await task is True
    assert deleted == ["src"]

@pytest.mark.asyncio
async def test_cancelled_delete_runs_nothing(sample_tree):
    deleted = record_handler("delete")
    view = make_view(sample_tree)
    await view.initialize()
    task = view.dispatch_action("delete", view.model.get("src").snapshot())
    await asyncio.sleep(0)
    assert view.handle_key("Escape") # dismisses the confirmation
    assert await task is False
    assert deleted == []

@pytest.mark.asyncio
async def test_delete_without_handler_is_a_logged_noop(sample_tree):
    view = make_view(sample_tree)
    await view.initialize()
    task = view.dispatch_action("delete", view.model.get("assets").snapshot())
    await asyncio.sleep(0)
    view.confirm_dialog.confirm()
    assert await task is False

@pytest.mark.asyncio
async def test_delete_while_gate_busy_is_refused(sample_tree):
    view = make_view(sample_tree)
    await view.initialize()
    pending = view.confirm_dialog.show_confirm_dialog("Other", "question")
    task = view.dispatch_action("delete", view.model.get("src").snapshot())
    assert await task is False
    assert view.confirm_dialog.state.title == "Other"
    view.confirm_dialog.cancel()
    assert await pending is False

@pytest.mark.asyncio
async def test_teardown_dismisses_overlays(sample_tree):
    view = make_view(sample_tree)
    await view.initialize()
    view.open_context_menu("src", 1, 1)
    task = view.dispatch_action("delete", view.model.get("src").snapshot())
    await asyncio.sleep(0)
    view.teardown()
    assert await task is False
    assert not view.context_menu.is_open
    assert not view.confirm_dialog.is_open
    assert view.dispatch_action("copy", view.model.get("src").snapshot()) is None
    assert view.clipboard is None

@pytest.mark.asyncio
async def test_stale_target_is_ignored(sample_tree):
    view = make_view(sample_tree)
    await view.initialize()
    assert view.dispatch_action("copy", TreeNodeSnapshot(id="gone", name="gone")) is None
    assert view.dispatch_action("copy", None) is None
    assert view.clipboard is None

@pytest.mark.asyncio
async def test_failing_handler_is_contained(sample_tree):
    @register_handler
    class Broken(ActionHandler):
        action_id = "rename"

        def handle(self, view, node):
            raise OSError("read-only filesystem")

    view = make_view(sample_tree)
    await view.initialize()
    view.open_context_menu("src", 0, 0)
    assert view.context_menu.select("rename")
    assert not view.context_menu.is_open

@pytest.mark.asyncio
async def test_toolbar_actions_target_the_root(sample_tree):
    created = record_handler("new-folder")
    view = make_view(sample_tree)
    await view.initialize()
    assert [action for action, _, _ in view.toolbar_actions()] == ["new-file", "new-folder", "refresh", "collapse"]
    view.new_folder()
    assert created == ["root"]
    assert view.new_file() is None

@pytest.mark.asyncio
async def test_activate_and_describe(sample_tree):
    view = make_view(sample_tree)
    await view.initialize()
    view.activate("src")
    assert view.describe("src").is_expanded
    view.activate("src/app.py")
    assert view.describe("src/app.py").is_selected
    assert view.describe("assets__empty") is None
    view.collapse_all()
    assert view.selection.expanded_keys == {"root"}

def test_actions_without_event_loop_are_dropped(sample_tree):
    view = make_view(sample_tree)
    assert view.request_refresh() is None
