# tests/conftest.py
import os
import tempfile

# Must be set before projecttree is imported: no entry point handlers, no writes to the real profile
os.environ["PROJECTTREE_SKIP_PLUGINS"] = "1"
os.environ.setdefault("PROJECTTREE_HOME", tempfile.mkdtemp(prefix="projecttree-tests-"))

import pytest

from projecttree.config import loader as config_loader
from projecttree.core import plugins
from projecttree.core.models import TreeNode


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Each test gets its own config directory and an empty config cache."""
    home = tmp_path / "home"
    monkeypatch.setenv("PROJECTTREE_HOME", str(home))
    monkeypatch.setattr(config_loader, "_cached_config", None)
    return home


@pytest.fixture(autouse=True)
def empty_handler_registry(monkeypatch):
    monkeypatch.setattr(plugins, "_handler_registry", {})


@pytest.fixture
def sample_tree() -> TreeNode:
    """
    demo/
      src/
        utils/
          helpers.ts
        app.py
        old.js
      assets/        (empty)
      README.md
    """
    utils = TreeNode(id="src/utils", name="utils", is_directory=True, children=[
        TreeNode(id="src/utils/helpers.ts", name="helpers.ts"),
    ])
    src = TreeNode(id="src", name="src", is_directory=True, children=[
        utils,
        TreeNode(id="src/app.py", name="app.py"),
        TreeNode(id="src/old.js", name="old.js"),
    ])
    assets = TreeNode(id="assets", name="assets", is_directory=True, children=[])
    return TreeNode(id="root", name="demo", is_directory=True, dir_path="/work/demo", children=[
        src,
        assets,
        TreeNode(id="README.md", name="README.md"),
    ])
