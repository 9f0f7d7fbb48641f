"""Snapshot codec: ConversationTree <-> plain JSON-ready structure.

The snapshot is the camelCase pydantic dump of the tree: dates become ISO-8601
strings, and `nodes` / `nodePositions` become string-keyed objects that keep
insertion order. Decoding validates the shape with pydantic and then checks
referential integrity, because snapshots may come from storage or an import
the app does not control.
"""

from typing import Any

from pydantic import ValidationError

from forkchat.models import ConversationTree


def to_snapshot(tree: ConversationTree) -> dict[str, Any]:
    return tree.model_dump(mode="json", by_alias=True)


def from_snapshot(plain: dict[str, Any]) -> ConversationTree:
    """Rebuild a tree from a snapshot.

    Raises:
        SnapshotDecodeError: On a malformed field (including dates), a dangling
            parentId/children reference, or a broken tree invariant.
    """
    try:
        tree = ConversationTree.model_validate(plain)
    except ValidationError as e:
        raise SnapshotDecodeError(f"Malformed snapshot: {e.error_count()} invalid field(s)") from e

    validate_tree(tree)
    return tree


def validate_tree(tree: ConversationTree) -> None:
    """Check the structural invariants of a tree. Raises SnapshotDecodeError."""
    nodes = tree.nodes

    for key, node in nodes.items():
        if key != node.id:
            raise SnapshotDecodeError(f"Node key {key!r} does not match node id {node.id!r}")
        if node.parent_id is not None:
            parent = nodes.get(node.parent_id)
            if parent is None:
                raise SnapshotDecodeError(
                    f"Node {node.id!r} references missing parent {node.parent_id!r}"
                )
            if parent.children.count(node.id) != 1:
                raise SnapshotDecodeError(
                    f"Node {node.id!r} is not listed exactly once in its parent's children"
                )
        for child_id in node.children:
            child = nodes.get(child_id)
            if child is None:
                raise SnapshotDecodeError(
                    f"Node {node.id!r} references missing child {child_id!r}"
                )
            if child.parent_id != node.id:
                raise SnapshotDecodeError(
                    f"Child {child_id!r} of {node.id!r} has parent {child.parent_id!r}"
                )

    if not tree.branches:
        raise SnapshotDecodeError("Tree has no branches")
    active = [b.id for b in tree.branches if b.is_active]
    if len(active) != 1:
        raise SnapshotDecodeError(f"Expected exactly one active branch, found {len(active)}")

    if not nodes:
        if tree.root_id or tree.current_node_id:
            raise SnapshotDecodeError("Empty tree must have empty rootId and currentNodeId")
        return

    roots = [node.id for node in nodes.values() if node.parent_id is None]
    if roots != [tree.root_id]:
        raise SnapshotDecodeError(f"Expected single root {tree.root_id!r}, found {roots}")
    if tree.current_node_id not in nodes:
        raise SnapshotDecodeError(f"currentNodeId {tree.current_node_id!r} is not a node")
    for branch in tree.branches:
        for pointer in (branch.root_node_id, branch.leaf_node_id):
            if pointer not in nodes:
                raise SnapshotDecodeError(
                    f"Branch {branch.id!r} points at missing node {pointer!r}"
                )

    # Every node must be reachable from the root, which also rules out cycles.
    reachable: set[str] = set()
    stack = [tree.root_id]
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            raise SnapshotDecodeError(f"Node {node_id!r} is reachable twice")
        reachable.add(node_id)
        stack.extend(nodes[node_id].children)
    if len(reachable) != len(nodes):
        unreachable = sorted(set(nodes) - reachable)
        raise SnapshotDecodeError(f"Nodes unreachable from root: {unreachable}")


class SnapshotDecodeError(Exception):
    pass
