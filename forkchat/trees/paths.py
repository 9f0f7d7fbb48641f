"""Path resolution over the id-indexed node graph."""

from typing import Literal, TypedDict

from forkchat.models import ConversationNode, ConversationTree


class ChatMessage(TypedDict):
    role: Literal["user", "assistant"]
    content: str


def path_to(tree: ConversationTree, node_id: str) -> list[ConversationNode]:
    """Return the nodes from the root down to node_id, inclusive.

    Follows parentId links upward. An id that does not resolve ends the walk,
    so an unknown node_id gives [] and a broken chain gives the part that was
    resolved. A repeated id also ends the walk.
    """
    chain: list[ConversationNode] = []
    visited: set[str] = set()
    current_id: str | None = node_id

    while current_id and current_id not in visited:
        node = tree.nodes.get(current_id)
        if node is None:
            break
        visited.add(current_id)
        chain.append(node)
        current_id = node.parent_id

    chain.reverse()
    return chain


def conversation_history(tree: ConversationTree, node_id: str) -> list[ChatMessage]:
    """Path to node_id as alternating user/assistant messages."""
    messages: list[ChatMessage] = []
    for node in path_to(tree, node_id):
        messages.append({"role": "user", "content": node.user_message})
        messages.append({"role": "assistant", "content": node.ai_response})
    return messages


def leaf_nodes(tree: ConversationTree) -> list[ConversationNode]:
    return [node for node in tree.nodes.values() if not node.children]


def depth(tree: ConversationTree) -> int:
    """Maximum root-to-node distance. 0 for an empty or single-node tree."""
    if tree.root_id not in tree.nodes:
        return 0

    max_depth = 0
    stack: list[tuple[str, int]] = [(tree.root_id, 0)]
    while stack:
        node_id, d = stack.pop()
        node = tree.nodes.get(node_id)
        if node is None:
            continue
        max_depth = max(max_depth, d)
        stack.extend((child_id, d + 1) for child_id in node.children)
    return max_depth


def root_to_leaf_paths(tree: ConversationTree) -> list[list[str]]:
    """Enumerate every root-to-leaf id path, in child creation order."""
    if tree.root_id not in tree.nodes:
        return []

    paths: list[list[str]] = []

    def _dfs(node_id: str, path: list[str]) -> None:
        node = tree.nodes.get(node_id)
        if node is None:
            return
        path.append(node_id)
        if not node.children:
            paths.append(list(path))
        for child_id in node.children:
            _dfs(child_id, path)
        path.pop()

    _dfs(tree.root_id, [])
    return paths
