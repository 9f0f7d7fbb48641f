"""Deterministic 2-D layout of a conversation tree for graph display.

Nodes are grouped by the branch that authored them and each group is laid out
in its own column band:
- y is depth * vertical_spacing
- nodes sharing a depth inside a group sit side by side, centered on the
  group's x offset
- the next group starts after this group's width plus a gap

Nodes with a recorded position (a user drag persisted in nodePositions, or an
earlier layout pass) keep it verbatim.
"""

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass

from forkchat.models import ConversationTree, Position
from forkchat.trees.paths import path_to


@dataclass(frozen=True)
class LayoutConfig:
    # Distance between depth rows.
    vertical_spacing: float = 180

    # Sibling spacing inside a depth bucket is half of this, and so is
    # the gap between branch groups.
    horizontal_spacing: float = 120

    # Minimum width reserved for one branch group.
    node_width: float = 280


DEFAULT_LAYOUT = LayoutConfig()


@dataclass(frozen=True)
class LayoutEdge:
    id: str
    source: str
    target: str
    on_active_path: bool


@dataclass
class TreeLayout:
    positions: dict[str, Position]
    edges: list[LayoutEdge]


def compute_layout(
    tree: ConversationTree,
    *,
    previous: Mapping[str, Position] | None = None,
    config: LayoutConfig = DEFAULT_LAYOUT,
) -> TreeLayout:
    """Position every node and list the parent -> child edges.

    Recorded positions win in this order: tree.node_positions, then previous.
    """
    recorded: dict[str, Position] = dict(previous or {})
    recorded.update(tree.node_positions or {})

    groups: dict[str, list[str]] = defaultdict(list)
    depths: dict[str, int] = {}
    for node_id, node in tree.nodes.items():
        groups[node.branch_id].append(node_id)
        depths[node_id] = _node_depth(tree, node_id)

    positions: dict[str, Position] = {}
    offset_x = 0.0
    for branch_id in _group_order(tree, groups):
        buckets: dict[int, list[str]] = defaultdict(list)
        for node_id in sorted(groups[branch_id], key=lambda n: depths[n]):
            buckets[depths[node_id]].append(node_id)

        for d in sorted(buckets):
            bucket = buckets[d]
            spacing = config.horizontal_spacing / 2 if len(bucket) > 1 else 0.0
            start_x = offset_x - spacing * (len(bucket) - 1) / 2
            for index, node_id in enumerate(bucket):
                if node_id in recorded:
                    positions[node_id] = recorded[node_id]
                else:
                    positions[node_id] = Position(
                        x=start_x + index * spacing,
                        y=d * config.vertical_spacing,
                    )

        widest = max(len(bucket) for bucket in buckets.values())
        group_width = max(config.node_width, config.horizontal_spacing * max(1, widest))
        offset_x += group_width + config.horizontal_spacing / 2

    return TreeLayout(positions=positions, edges=_edges(tree))


def _node_depth(tree: ConversationTree, node_id: str) -> int:
    """Ancestor hops from node_id up to the root."""
    hops = 0
    seen = {node_id}
    parent_id = tree.nodes[node_id].parent_id
    while parent_id and parent_id in tree.nodes and parent_id not in seen:
        seen.add(parent_id)
        hops += 1
        parent_id = tree.nodes[parent_id].parent_id
    return hops


def _group_order(tree: ConversationTree, groups: Mapping[str, list[str]]) -> list[str]:
    """Default (first-created) branch first, the rest by id."""
    first = tree.branches[0].id if tree.branches else None
    return sorted(groups, key=lambda branch_id: (branch_id != first, branch_id))


def _edges(tree: ConversationTree) -> list[LayoutEdge]:
    on_path = {node.id for node in path_to(tree, tree.current_node_id)}
    edges: list[LayoutEdge] = []
    for node_id, node in tree.nodes.items():
        for child_id in node.children:
            if child_id not in tree.nodes:
                continue
            edges.append(LayoutEdge(
                id=f"{node_id}-{child_id}",
                source=node_id,
                target=child_id,
                on_active_path=node_id in on_path and child_id in on_path,
            ))
    return edges
