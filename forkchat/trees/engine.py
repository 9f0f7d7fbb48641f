"""Tree mutation engine: pure, invariant-preserving tree transformations.

Every function takes a ConversationTree and returns a new one (sometimes with
an auxiliary result). Only the parts that change are copied: the node mapping,
the touched nodes, and the branch tuple. Previously returned trees stay valid
and are never modified.
"""

from collections.abc import Mapping
from datetime import datetime

from forkchat.ids import new_id
from forkchat.models import (
    DEFAULT_BRANCH_ID,
    DEFAULT_BRANCH_NAME,
    Branch,
    ConversationNode,
    ConversationTree,
    NodeMetadata,
    Position,
    Viewport,
    utcnow,
)


def create_tree(
    name: str,
    first_user_message: str = "",
    first_ai_response: str = "",
) -> ConversationTree:
    """Create a tree, optionally with its first exchange as the root node.

    With both messages empty the tree has no nodes, rootId and currentNodeId
    are "", and the default branch points at "".
    """
    now = utcnow()
    tree = ConversationTree(
        id=new_id("tree"),
        name=name,
        branches=(
            Branch(
                id=DEFAULT_BRANCH_ID,
                name=DEFAULT_BRANCH_NAME,
                is_active=True,
            ),
        ),
        created_at=now,
        updated_at=now,
    )
    if not first_user_message and not first_ai_response:
        return tree
    tree, _ = append_exchange(tree, first_user_message, first_ai_response)
    return tree


def append_exchange(
    tree: ConversationTree,
    user_message: str,
    ai_response: str,
    *,
    metadata: NodeMetadata | None = None,
    parent_id: str | None = None,
) -> tuple[ConversationTree, str]:
    """Append an exchange after the current node. Returns (tree, new_node_id).

    On an empty tree the exchange becomes the root and every branch is pointed
    at it. Otherwise the new node is a child of currentNodeId (or of parent_id
    when given) and becomes the active branch's leaf.

    Raises:
        NodeNotFoundError: If the parent to append under is not in the tree.
    """
    now = utcnow()
    active = tree.active_branch or tree.branches[0]
    node_id = new_id("node")
    meta = metadata or NodeMetadata(timestamp=now)
    target_id = tree.current_node_id if parent_id is None else parent_id

    if not tree.nodes:
        if target_id:
            raise NodeNotFoundError(target_id)
        root = ConversationNode(
            id=node_id,
            parent_id=None,
            user_message=user_message,
            ai_response=ai_response,
            timestamp=now,
            branch_id=active.id,
            metadata=meta,
        )
        updated = tree.model_copy(update={
            "root_id": node_id,
            "nodes": {node_id: root},
            "current_node_id": node_id,
            "branches": tuple(
                b.model_copy(update={"root_node_id": node_id, "leaf_node_id": node_id})
                for b in tree.branches
            ),
            "updated_at": now,
        })
        return updated, node_id

    parent = tree.nodes.get(target_id)
    if parent is None:
        raise NodeNotFoundError(target_id)

    node = ConversationNode(
        id=node_id,
        parent_id=parent.id,
        user_message=user_message,
        ai_response=ai_response,
        timestamp=now,
        branch_id=active.id,
        metadata=meta,
    )
    nodes = dict(tree.nodes)
    nodes[parent.id] = parent.model_copy(update={"children": (*parent.children, node_id)})
    nodes[node_id] = node

    updated = tree.model_copy(update={
        "nodes": nodes,
        "current_node_id": node_id,
        "branches": tuple(
            b.model_copy(update={"leaf_node_id": node_id}) if b.id == active.id else b
            for b in tree.branches
        ),
        "updated_at": now,
    })
    return updated, node_id


def create_branch(
    tree: ConversationTree,
    fork_node_id: str,
    branch_name: str,
) -> tuple[ConversationTree, Branch]:
    """Register a new active branch forking at fork_node_id.

    No nodes are copied or moved. The branch starts with its leaf at the fork
    point, and currentNodeId moves there so the next append forks.

    Raises:
        NodeNotFoundError: If fork_node_id is not in the tree.
    """
    if fork_node_id not in tree.nodes:
        raise NodeNotFoundError(fork_node_id)

    branch = Branch(
        id=new_id("branch"),
        name=branch_name,
        root_node_id=tree.root_id,
        leaf_node_id=fork_node_id,
        is_active=True,
    )
    updated = tree.model_copy(update={
        "branches": (*_with_active(tree.branches, None), branch),
        "current_node_id": fork_node_id,
        "updated_at": utcnow(),
    })
    return updated, branch


def select_branch(tree: ConversationTree, branch_id: str) -> ConversationTree:
    """Activate a branch and move the current node to its leaf."""
    branch = _require_branch(tree, branch_id)
    return tree.model_copy(update={
        "branches": _with_active(tree.branches, branch_id),
        "current_node_id": branch.leaf_node_id,
        "updated_at": utcnow(),
    })


def switch_active_branch_only(tree: ConversationTree, branch_id: str) -> ConversationTree:
    """Activate a branch without moving the current node."""
    _require_branch(tree, branch_id)
    return tree.model_copy(update={
        "branches": _with_active(tree.branches, branch_id),
        "updated_at": utcnow(),
    })


def navigate_to(tree: ConversationTree, node_id: str) -> ConversationTree:
    """Move the current node. Branch activation is left to the caller."""
    if node_id not in tree.nodes:
        raise NodeNotFoundError(node_id)
    return tree.model_copy(update={"current_node_id": node_id, "updated_at": utcnow()})


def focus_node(tree: ConversationTree, node_id: str) -> ConversationTree:
    """Navigate to a node, first activating the branch that authored it.

    The authoring branch is activated with switch_active_branch_only, so the
    branch's leaf pointer is left alone. Nodes whose branchId has no branch
    record are navigated to without a branch switch.
    """
    node = tree.nodes.get(node_id)
    if node is None:
        raise NodeNotFoundError(node_id)
    owner = tree.get_branch(node.branch_id)
    if owner is not None and not owner.is_active:
        tree = switch_active_branch_only(tree, owner.id)
    return navigate_to(tree, node_id)


def rename(tree: ConversationTree, name: str) -> ConversationTree:
    return tree.model_copy(update={"name": name, "updated_at": utcnow()})


def touch_updated_at(tree: ConversationTree, when: datetime | None = None) -> ConversationTree:
    return tree.model_copy(update={"updated_at": when or utcnow()})


def set_viewport(tree: ConversationTree, x: float, y: float, zoom: float) -> ConversationTree:
    return tree.model_copy(update={"viewport": Viewport(x=x, y=y, zoom=zoom)})


def record_node_positions(
    tree: ConversationTree,
    positions: Mapping[str, Position],
) -> ConversationTree:
    """Merge user-dragged positions into the sticky layout overrides."""
    for node_id in positions:
        if node_id not in tree.nodes:
            raise NodeNotFoundError(node_id)
    merged = dict(tree.node_positions or {})
    merged.update(positions)
    return tree.model_copy(update={"node_positions": merged, "updated_at": utcnow()})


def _with_active(branches: tuple[Branch, ...], branch_id: str | None) -> tuple[Branch, ...]:
    """Copy branches so that exactly branch_id is active (none if None)."""
    return tuple(
        b if b.is_active == (b.id == branch_id) else b.model_copy(update={"is_active": b.id == branch_id})
        for b in branches
    )


def _require_branch(tree: ConversationTree, branch_id: str) -> Branch:
    branch = tree.get_branch(branch_id)
    if branch is None:
        raise BranchNotFoundError(branch_id)
    return branch


class NodeNotFoundError(Exception):
    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class BranchNotFoundError(Exception):
    def __init__(self, branch_id: str) -> None:
        self.branch_id = branch_id
        super().__init__(f"Branch not found: {branch_id}")
