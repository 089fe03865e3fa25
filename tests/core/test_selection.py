# tests/core/test_selection.py
import pytest

from projecttree.core.models import TreeNode
from projecttree.core.selection import SelectionExpansionController
from projecttree.core.tree_model import TreeModel


@pytest.fixture
def controller(sample_tree):
    ctrl = SelectionExpansionController()
    ctrl.bind(TreeModel(sample_tree))
    return ctrl


def test_root_is_always_initially_expanded():
    assert SelectionExpansionController(initial_expanded=[]).expanded_keys == {"root"}
    assert SelectionExpansionController(["src"]).expanded_keys == {"root", "src"}

def test_collapse_all_leaves_only_root(sample_tree):
    ctrl = SelectionExpansionController(["root", "src", "assets"])
    ctrl.bind(TreeModel(sample_tree))
    ctrl.collapse_all()
    assert ctrl.expanded_keys == {"root"}

def test_toggle_expansion_of_directories(controller):
    assert controller.toggle_expansion("src") is True
    assert controller.is_expanded("src")
    assert controller.toggle_expansion("src") is False
    assert not controller.is_expanded("src")

def test_files_and_placeholders_never_expand(controller):
    assert controller.toggle_expansion("README.md") is False
    assert controller.toggle_expansion("assets__empty") is False
    assert controller.toggle_expansion("nope") is False
    assert controller.expanded_keys == {"root"}

def test_selection_is_single(controller):
    assert controller.set_selection("README.md")
    assert controller.set_selection("src/app.py")
    assert controller.selected_keys == {"src/app.py"}

def test_placeholder_and_unknown_ids_are_not_selectable(controller):
    controller.set_selection("README.md")
    assert controller.set_selection("assets__empty") is False
    assert controller.set_selection("ghost.txt") is False
    assert controller.selected_keys == {"README.md"}

def test_set_expanded_is_idempotent(controller):
    calls = []
    controller.add_listener(lambda: calls.append(1))
    assert controller.set_expanded("src", True) is True
    assert controller.set_expanded("src", True) is True
    assert len(calls) == 1
    assert controller.set_expanded("src", False) is False

def test_collapse_subtree(controller):
    for node_id in ("src", "src/utils", "assets"):
        controller.toggle_expansion(node_id)
    controller.collapse_subtree("src")
    assert controller.expanded_keys == {"root", "assets"}
    controller.collapse_subtree("root")
    assert controller.expanded_keys == {"root"}

def test_activate_file_selects_it(controller):
    assert controller.activate("src/app.py")
    assert controller.selected_keys == {"src/app.py"}

def test_activate_directory_toggles_and_keeps_last_file(controller):
    controller.set_selection("README.md")
    controller.set_selection("src")
    controller.activate("assets")
    assert controller.is_expanded("assets")
    assert controller.selected_keys == {"README.md"}
    controller.activate("assets")
    assert not controller.is_expanded("assets")

def test_activate_root_never_collapses(controller):
    controller.activate("root")
    assert controller.is_expanded("root")

def test_reconcile_drops_missing_ids(controller, sample_tree):
    controller.toggle_expansion("src")
    controller.toggle_expansion("src/utils")
    controller.set_selection("src/old.js")
    smaller = TreeNode(id="root", name="demo", is_directory=True, children=[
        TreeNode(id="src", name="src", is_directory=True, children=[TreeNode(id="src/app.py", name="app.py")]),
    ])
    controller.reconcile(TreeModel(smaller))
    assert controller.selected_keys == frozenset()
    assert controller.expanded_keys == {"root", "src"}

def test_unbound_controller_trusts_caller():
    ctrl = SelectionExpansionController()
    assert ctrl.toggle_expansion("anything")
    assert ctrl.toggle_expansion("folder__empty") is False
    assert ctrl.set_selection("whatever")

def test_listener_errors_do_not_break_mutations(controller):
    def broken():
        raise RuntimeError("listener failed")
    controller.add_listener(broken)
    assert controller.toggle_expansion("src") is True

def test_remove_listener(controller):
    calls = []
    remove = controller.add_listener(lambda: calls.append(1))
    remove()
    controller.toggle_expansion("src")
    assert calls == []

@pytest.mark.asyncio
async def test_refresh_prunes_selection_of_removed_file(controller):
    controller.set_selection("src/old.js")
    controller.toggle_expansion("src")

    async def load_snapshot():
        return TreeNode(id="root", name="demo", is_directory=True, children=[
            TreeNode(id="src", name="src", is_directory=True, children=[TreeNode(id="src/app.py", name="app.py")]),
        ])

    model = await controller.refresh(load_snapshot)
    assert model is controller.model
    assert controller.selected_keys == frozenset()
    assert controller.is_expanded("src")

@pytest.mark.asyncio
async def test_refresh_is_discarded_when_owner_went_away(controller):
    controller.set_selection("src/old.js")
    previous = controller.model

    async def load_snapshot():
        return TreeNode(id="root", name="demo", is_directory=True)

    assert await controller.refresh(load_snapshot, should_apply=lambda: False) is None
    assert controller.model is previous
    assert controller.selected_keys == {"src/old.js"}
