# projecttree/core/tree_model.py
from dataclasses import replace
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from loguru import logger

from .models import ROOT_ID, TreeNode

PLACEHOLDER_SUFFIX = "__empty"
PLACEHOLDER_NAME = "empty"


class InvalidTreeError(ValueError):
    """Raised when a snapshot is not rooted at the 'root' id."""


class DuplicateNodeIdError(InvalidTreeError):
    """Raised when two nodes in one snapshot share an id."""


def make_placeholder(parent: TreeNode) -> TreeNode:
    """Builds the synthetic child shown inside an empty directory."""
    return TreeNode(
        id=parent.id + PLACEHOLDER_SUFFIX,
        name=PLACEHOLDER_NAME,
        is_directory=False,
        is_placeholder=True,
    )


def derive_display_children(node: TreeNode) -> Tuple[TreeNode, ...]:
    """
    Returns the children a renderer should show for `node`.

    An empty directory yields exactly one placeholder; anything else yields its
    stored children (files yield nothing). The node itself is never modified, so
    repeated calls return equal results.
    """
    if not node.is_directory:
        return ()
    if not node.children:
        return (make_placeholder(node),)
    return node.children


def with_project_name(root: TreeNode, name: Optional[str]) -> TreeNode:
    """Returns `root` with its display name replaced. Id and children are kept."""
    if not name or name == root.name:
        return root
    return replace(root, name=name)


def empty_tree(name: str, dir_path: Optional[str] = None) -> TreeNode:
    """Fallback snapshot: a root directory without children."""
    return TreeNode(id=ROOT_ID, name=name, is_directory=True, children=(), dir_path=dir_path, path=dir_path)


class TreeModel:
    """Read-only index over one loaded snapshot, nodes addressed by id."""

    def __init__(self, root: TreeNode):
        if root.id != ROOT_ID:
            raise InvalidTreeError(f"Snapshot root must have id '{ROOT_ID}', got '{root.id}'.")
        if not root.is_directory:
            raise InvalidTreeError("Snapshot root must be a directory.")
        self._root = root
        self._index: Dict[str, TreeNode] = {}
        self._parents: Dict[str, Optional[str]] = {}

        stack: List[Tuple[TreeNode, Optional[str]]] = [(root, None)]
        while stack:
            node, parent_id = stack.pop()
            if node.id in self._index:
                raise DuplicateNodeIdError(f"Duplicate node id in snapshot: '{node.id}'")
            self._index[node.id] = node
            self._parents[node.id] = parent_id
            for child in reversed(node.children or ()):
                stack.append((child, node.id))
        # Placeholder rows share the id space with stored nodes
        for node in self._index.values():
            if node.is_directory and not node.children and node.id + PLACEHOLDER_SUFFIX in self._index:
                raise DuplicateNodeIdError(
                    f"Node id '{node.id}{PLACEHOLDER_SUFFIX}' clashes with the placeholder of empty folder '{node.id}'")
        logger.trace(f"Indexed snapshot with {len(self._index)} nodes.")

    @property
    def root(self) -> TreeNode:
        return self._root

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __len__(self) -> int:
        return len(self._index)

    def get(self, node_id: str) -> Optional[TreeNode]:
        return self._index.get(node_id)

    def ids(self) -> FrozenSet[str]:
        return frozenset(self._index)

    def parent_of(self, node_id: str) -> Optional[str]:
        return self._parents.get(node_id)

    def is_placeholder_id(self, node_id: str) -> bool:
        """True when `node_id` names the placeholder of an empty directory in this tree."""
        if node_id in self._index or not node_id.endswith(PLACEHOLDER_SUFFIX):
            return False
        parent = self._index.get(node_id[: -len(PLACEHOLDER_SUFFIX)])
        return parent is not None and parent.is_directory and not parent.children

    def display_children(self, node_id: str) -> Tuple[TreeNode, ...]:
        node = self._index.get(node_id)
        return derive_display_children(node) if node else ()

    def descendant_ids(self, node_id: str) -> FrozenSet[str]:
        """Ids of every stored node below `node_id` (the node itself excluded)."""
        node = self._index.get(node_id)
        if node is None:
            return frozenset()
        found = set()
        stack = list(node.children or ())
        while stack:
            current = stack.pop()
            found.add(current.id)
            stack.extend(current.children or ())
        return frozenset(found)

    def iter_nodes(self) -> Iterator[TreeNode]:
        """Pre-order walk over stored nodes (placeholders are not included)."""
        stack = [self._root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children or ()))

    def with_project_name(self, name: Optional[str]) -> "TreeModel":
        renamed = with_project_name(self._root, name)
        return self if renamed is self._root else TreeModel(renamed)
