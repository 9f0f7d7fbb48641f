"""Snapshot persistence: the explicit load/save boundary for trees.

Each tree is stored as one snapshot JSON document. Small bits of app state
(the selected tree, the completion settings) live in the app_state table,
read through AppStateStore.
"""

import json
import logging

from forkchat.db.app_state import AppStateStore
from forkchat.db.connection import Database
from forkchat.models import ConversationTree
from forkchat.trees.snapshot import SnapshotDecodeError, from_snapshot, to_snapshot

logger = logging.getLogger(__name__)

CURRENT_TREE_KEY = "current_tree_id"


class TreeStore:
    def __init__(self, db: Database) -> None:
        self._db = db
        self._state = AppStateStore(db)

    async def save(self, tree: ConversationTree) -> None:
        """Insert or replace the snapshot for tree.id."""
        await self._db.execute(
            """
            INSERT INTO trees (tree_id, name, snapshot, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(tree_id) DO UPDATE SET
                name = excluded.name,
                snapshot = excluded.snapshot,
                updated_at = excluded.updated_at
            """,
            (
                tree.id,
                tree.name,
                json.dumps(to_snapshot(tree)),
                tree.created_at.isoformat(),
                tree.updated_at.isoformat(),
            ),
        )

    async def get(self, tree_id: str) -> ConversationTree | None:
        """Load one tree. Returns None if absent.

        Raises:
            SnapshotDecodeError: If the stored snapshot is corrupt.
        """
        row = await self._db.fetchone(
            "SELECT snapshot FROM trees WHERE tree_id = ?", (tree_id,)
        )
        if row is None:
            return None
        return _decode(row["snapshot"])

    async def load_all(self) -> list[ConversationTree]:
        """Load every tree, oldest first. Corrupt snapshots are logged and skipped."""
        rows = await self._db.fetchall(
            "SELECT tree_id, snapshot FROM trees ORDER BY created_at"
        )
        trees: list[ConversationTree] = []
        for row in rows:
            try:
                trees.append(_decode(row["snapshot"]))
            except SnapshotDecodeError as e:
                logger.warning("Skipping unreadable tree %s: %s", row["tree_id"], e)
        return trees

    async def count(self) -> int:
        row = await self._db.fetchone("SELECT COUNT(*) AS cnt FROM trees")
        return row["cnt"] if row else 0

    async def exists(self, tree_id: str) -> bool:
        row = await self._db.fetchone("SELECT 1 FROM trees WHERE tree_id = ?", (tree_id,))
        return row is not None

    async def delete(self, tree_id: str) -> bool:
        """Delete a tree, clearing the selection if it pointed there."""
        async with self._db.transaction() as conn:
            cursor = await conn.execute("DELETE FROM trees WHERE tree_id = ?", (tree_id,))
            await conn.execute(
                "DELETE FROM app_state WHERE key = ? AND value = ?",
                (CURRENT_TREE_KEY, tree_id),
            )
        return cursor.rowcount > 0

    async def get_current_tree_id(self) -> str | None:
        return await self._state.get(CURRENT_TREE_KEY)

    async def set_current_tree_id(self, tree_id: str | None) -> None:
        if tree_id is None:
            await self._state.delete(CURRENT_TREE_KEY)
        else:
            await self._state.set(CURRENT_TREE_KEY, tree_id)


def _decode(raw: str) -> ConversationTree:
    try:
        plain = json.loads(raw)
    except ValueError as e:
        raise SnapshotDecodeError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(plain, dict):
        raise SnapshotDecodeError("Snapshot is not a JSON object")
    return from_snapshot(plain)
