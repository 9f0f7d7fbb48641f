"""Shared test helpers: tree builders and structural checks."""

from httpx import AsyncClient

from forkchat.models import ConversationNode, ConversationTree
from forkchat.trees import engine


def make_two_node_tree(name: str = "Demo") -> ConversationTree:
    """Empty tree plus two appended exchanges: Hi -> Bye."""
    tree = engine.create_tree(name)
    tree, _ = engine.append_exchange(tree, "Hi", "Hello!")
    tree, _ = engine.append_exchange(tree, "Bye", "Goodbye!")
    return tree


def make_forked_tree() -> tuple[ConversationTree, str]:
    """Two-node main line plus an "Alt" branch forked at the root with one exchange.

    Returns (tree, alt_branch_id).
    """
    tree = make_two_node_tree()
    tree, branch = engine.create_branch(tree, tree.root_id, "Alt")
    tree, _ = engine.append_exchange(tree, "Another question", "Another answer")
    return tree, branch.id


def make_tree_from_nodes(
    nodes: list[ConversationNode],
    *,
    root_id: str = "",
    current_node_id: str = "",
) -> ConversationTree:
    """Assemble a tree directly, bypassing the engine (for malformed graphs)."""
    return ConversationTree(
        id="tree_test",
        name="Handmade",
        root_id=root_id,
        nodes={n.id: n for n in nodes},
        current_node_id=current_node_id,
        branches=(engine.create_tree("x").branches[0],),
    )


def node(node_id: str, parent_id: str | None = None, children: tuple[str, ...] = (),
         branch_id: str = "main") -> ConversationNode:
    return ConversationNode(
        id=node_id,
        parent_id=parent_id,
        user_message=f"q-{node_id}",
        ai_response=f"a-{node_id}",
        children=children,
        branch_id=branch_id,
    )


def assert_tree_invariants(tree: ConversationTree) -> None:
    """The structural invariants every engine-built tree must satisfy."""
    active = [b for b in tree.branches if b.is_active]
    assert len(active) == 1

    if not tree.nodes:
        assert tree.root_id == ""
        assert tree.current_node_id == ""
        return

    roots = [n for n in tree.nodes.values() if n.parent_id is None]
    assert [r.id for r in roots] == [tree.root_id]
    assert tree.current_node_id in tree.nodes
    for n in tree.nodes.values():
        if n.parent_id is not None:
            assert n.parent_id in tree.nodes
            assert tree.nodes[n.parent_id].children.count(n.id) == 1
        for child_id in n.children:
            assert tree.nodes[child_id].parent_id == n.id


async def create_test_tree(client: AsyncClient, name: str = "Test Tree", **extra) -> dict:
    """Create a tree via the API and return its snapshot."""
    resp = await client.post("/api/trees", json={"name": name, **extra})
    assert resp.status_code == 201
    return resp.json()


async def append(client: AsyncClient, tree_id: str, user: str, ai: str) -> dict:
    """Append an exchange via the API and return the response body."""
    resp = await client.post(f"/api/trees/{tree_id}/exchanges", json={
        "user_message": user,
        "ai_response": ai,
    })
    assert resp.status_code == 201
    return resp.json()
