"""Tree service: the single owner of tree mutation.

Every mutation is a read-compute-replace cycle: load the tree snapshot, run a
pure engine function over it, save the result. The cycles are serialized with
one asyncio.Lock, so concurrent requests never interleave on a tree.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from forkchat.db.connection import Database
from forkchat.models import Branch, ConversationNode, ConversationTree, NodeMetadata, Position
from forkchat.trees import engine
from forkchat.trees.demo import build_demo_tree
from forkchat.trees.layout import TreeLayout, compute_layout
from forkchat.trees.paths import ChatMessage, conversation_history, path_to
from forkchat.trees.schemas import TreeSummary
from forkchat.trees.snapshot import SnapshotDecodeError, from_snapshot, to_snapshot
from forkchat.trees.store import TreeStore

logger = logging.getLogger(__name__)


class TreeService:
    """Coordinates the engine and the snapshot store for tree operations."""

    def __init__(self, db: Database) -> None:
        self._store = TreeStore(db)
        self._lock = asyncio.Lock()

    # -- Collection --

    async def create_tree(
        self,
        name: str,
        first_user_message: str = "",
        first_ai_response: str = "",
    ) -> ConversationTree:
        """Create a tree, save it, and make it the current tree."""
        tree = engine.create_tree(name, first_user_message, first_ai_response)
        async with self._lock:
            await self._store.save(tree)
            await self._store.set_current_tree_id(tree.id)
        return tree

    async def list_trees(self) -> list[TreeSummary]:
        trees = await self._store.load_all()
        current_id = await self._store.get_current_tree_id()
        return [
            TreeSummary(
                tree_id=tree.id,
                name=tree.name,
                node_count=len(tree.nodes),
                branch_count=len(tree.branches),
                is_current=tree.id == current_id,
                created_at=tree.created_at.isoformat(),
                updated_at=tree.updated_at.isoformat(),
            )
            for tree in trees
        ]

    async def get_tree(self, tree_id: str) -> ConversationTree:
        tree = await self._store.get(tree_id)
        if tree is None:
            raise TreeNotFoundError(tree_id)
        return tree

    async def delete_tree(self, tree_id: str) -> None:
        async with self._lock:
            if not await self._store.delete(tree_id):
                raise TreeNotFoundError(tree_id)

    async def select_tree(self, tree_id: str) -> ConversationTree:
        async with self._lock:
            tree = await self.get_tree(tree_id)
            await self._store.set_current_tree_id(tree_id)
        return tree

    async def get_current_tree(self) -> ConversationTree | None:
        """The selected tree. None when nothing is selected or it cannot be read."""
        tree_id = await self._store.get_current_tree_id()
        if tree_id is None:
            return None
        try:
            return await self._store.get(tree_id)
        except SnapshotDecodeError as e:
            logger.warning("Selected tree %s is unreadable: %s", tree_id, e)
            return None

    async def seed_demo_if_empty(self) -> ConversationTree | None:
        """Save the demo tree when no trees exist yet. Returns it if seeded."""
        async with self._lock:
            if await self._store.count() > 0:
                return None
            tree = build_demo_tree()
            await self._store.save(tree)
            await self._store.set_current_tree_id(tree.id)
        logger.info("Seeded demo tree %s", tree.id)
        return tree

    # -- Snapshots --

    async def export_snapshot(self, tree_id: str) -> dict[str, Any]:
        return to_snapshot(await self.get_tree(tree_id))

    async def import_snapshot(self, plain: dict[str, Any]) -> ConversationTree:
        """Validate and store an external snapshot as a new tree.

        Raises:
            SnapshotDecodeError: If the snapshot is malformed or inconsistent.
            TreeAlreadyExistsError: If a tree with the same id is already stored.
        """
        tree = from_snapshot(plain)
        async with self._lock:
            if await self._store.exists(tree.id):
                raise TreeAlreadyExistsError(tree.id)
            await self._store.save(tree)
        return tree

    # -- Mutations --

    async def rename_tree(self, tree_id: str, name: str) -> ConversationTree:
        return await self._mutate(tree_id, lambda tree: engine.rename(tree, name))

    async def append_exchange(
        self,
        tree_id: str,
        user_message: str,
        ai_response: str,
        *,
        metadata: NodeMetadata | None = None,
        parent_id: str | None = None,
    ) -> tuple[ConversationTree, str]:
        """Append after the current node, or after parent_id when given."""
        return await self._mutate_with(
            tree_id,
            lambda tree: engine.append_exchange(
                tree, user_message, ai_response, metadata=metadata, parent_id=parent_id
            ),
        )

    async def create_branch(
        self, tree_id: str, fork_node_id: str, name: str
    ) -> tuple[ConversationTree, Branch]:
        return await self._mutate_with(
            tree_id, lambda tree: engine.create_branch(tree, fork_node_id, name)
        )

    async def select_branch(self, tree_id: str, branch_id: str) -> ConversationTree:
        return await self._mutate(tree_id, lambda tree: engine.select_branch(tree, branch_id))

    async def switch_branch_only(self, tree_id: str, branch_id: str) -> ConversationTree:
        return await self._mutate(
            tree_id, lambda tree: engine.switch_active_branch_only(tree, branch_id)
        )

    async def navigate(self, tree_id: str, node_id: str, *, focus: bool = False) -> ConversationTree:
        """Move the current node, activating its authoring branch when focus is set."""
        op = engine.focus_node if focus else engine.navigate_to
        return await self._mutate(tree_id, lambda tree: op(tree, node_id))

    async def save_node_positions(
        self, tree_id: str, positions: Mapping[str, Position]
    ) -> ConversationTree:
        return await self._mutate(
            tree_id, lambda tree: engine.record_node_positions(tree, positions)
        )

    async def set_viewport(
        self, tree_id: str, x: float, y: float, zoom: float
    ) -> ConversationTree:
        return await self._mutate(tree_id, lambda tree: engine.set_viewport(tree, x, y, zoom))

    # -- Derived views --

    async def get_path(self, tree_id: str, node_id: str | None = None) -> list[ConversationNode]:
        """Root-to-node path. Defaults to the current node."""
        tree = await self.get_tree(tree_id)
        return path_to(tree, node_id or tree.current_node_id)

    async def get_history(self, tree_id: str, node_id: str | None = None) -> list[ChatMessage]:
        tree = await self.get_tree(tree_id)
        return conversation_history(tree, node_id or tree.current_node_id)

    async def get_layout(self, tree_id: str) -> TreeLayout:
        return compute_layout(await self.get_tree(tree_id))

    # -- Internals --

    async def _mutate(
        self, tree_id: str, op: Callable[[ConversationTree], ConversationTree]
    ) -> ConversationTree:
        tree, _ = await self._mutate_with(tree_id, lambda t: (op(t), None))
        return tree

    async def _mutate_with(
        self, tree_id: str, op: Callable[[ConversationTree], tuple[ConversationTree, Any]]
    ) -> tuple[ConversationTree, Any]:
        """Run op over the stored tree and save the result, under the write lock."""
        async with self._lock:
            tree = await self.get_tree(tree_id)
            updated, extra = op(tree)
            await self._store.save(updated)
        return updated, extra


class TreeNotFoundError(Exception):
    def __init__(self, tree_id: str) -> None:
        self.tree_id = tree_id
        super().__init__(f"Tree not found: {tree_id}")


class TreeAlreadyExistsError(Exception):
    def __init__(self, tree_id: str) -> None:
        self.tree_id = tree_id
        super().__init__(f"Tree already exists: {tree_id}")
