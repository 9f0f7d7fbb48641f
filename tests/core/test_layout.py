"""Tests for the deterministic tree layout."""

from forkchat.models import Position
from forkchat.trees import engine
from forkchat.trees.layout import LayoutConfig, compute_layout
from tests.fixtures import make_forked_tree, make_two_node_tree


def _main_with_siblings(count: int):
    """Root on the main branch with `count` main-branch children."""
    tree = engine.create_tree("Siblings", "Root", "R")
    children = []
    for i in range(count):
        tree = engine.navigate_to(tree, tree.root_id)
        tree, child = engine.append_exchange(tree, f"c{i}", f"a{i}")
        children.append(child)
    return tree, children


class TestPositions:
    def test_empty_tree(self):
        layout = compute_layout(engine.create_tree("Empty"))
        assert layout.positions == {}
        assert layout.edges == []

    def test_single_chain_is_a_vertical_column(self):
        tree = make_two_node_tree()
        tree, third = engine.append_exchange(tree, "Third", "3")
        layout = compute_layout(tree)
        assert layout.positions[tree.root_id] == Position(x=0, y=0)
        second = tree.nodes[tree.root_id].children[0]
        assert layout.positions[second] == Position(x=0, y=180)
        assert layout.positions[third] == Position(x=0, y=360)

    def test_siblings_in_one_branch_are_centered(self):
        tree, (left, right) = _main_with_siblings(2)
        layout = compute_layout(tree)
        assert layout.positions[left] == Position(x=-30, y=180)
        assert layout.positions[right] == Position(x=30, y=180)

    def test_second_branch_group_is_offset(self):
        tree, alt_id = make_forked_tree()
        alt_leaf = tree.get_branch(alt_id).leaf_node_id
        layout = compute_layout(tree)
        # Node width 280 plus a 60 gap.
        assert layout.positions[alt_leaf] == Position(x=340, y=180)

    def test_wide_group_pushes_next_group_further(self):
        tree, _ = _main_with_siblings(3)
        tree, branch = engine.create_branch(tree, tree.root_id, "Alt")
        tree, alt_node = engine.append_exchange(tree, "Alt", "A")
        layout = compute_layout(tree)
        # Three siblings need 3 * 120, then the 60 gap.
        assert layout.positions[alt_node] == Position(x=420, y=180)

    def test_default_branch_group_comes_first(self):
        tree, alt_id = make_forked_tree()
        layout = compute_layout(tree)
        assert layout.positions[tree.root_id].x == 0

    def test_layout_is_deterministic(self):
        tree, _ = make_forked_tree()
        assert compute_layout(tree) == compute_layout(tree)

    def test_custom_spacing(self):
        tree = make_two_node_tree()
        config = LayoutConfig(vertical_spacing=100, horizontal_spacing=50, node_width=200)
        layout = compute_layout(tree, config=config)
        assert layout.positions[tree.current_node_id] == Position(x=0, y=100)


class TestRecordedPositions:
    def test_recorded_positions_are_kept(self):
        tree = make_two_node_tree()
        dragged = Position(x=999, y=-5)
        tree = engine.record_node_positions(tree, {tree.current_node_id: dragged})
        layout = compute_layout(tree)
        assert layout.positions[tree.current_node_id] == dragged
        assert layout.positions[tree.root_id] == Position(x=0, y=0)

    def test_previous_positions_are_kept(self):
        tree = make_two_node_tree()
        previous = {tree.root_id: Position(x=10, y=20)}
        layout = compute_layout(tree, previous=previous)
        assert layout.positions[tree.root_id] == Position(x=10, y=20)

    def test_node_positions_win_over_previous(self):
        tree = make_two_node_tree()
        tree = engine.record_node_positions(tree, {tree.root_id: Position(x=1, y=1)})
        layout = compute_layout(tree, previous={tree.root_id: Position(x=2, y=2)})
        assert layout.positions[tree.root_id] == Position(x=1, y=1)

    def test_new_nodes_still_get_computed_positions(self):
        tree = make_two_node_tree()
        previous = compute_layout(tree).positions
        tree, third = engine.append_exchange(tree, "Third", "3")
        layout = compute_layout(tree, previous=previous)
        assert layout.positions[third] == Position(x=0, y=360)


class TestEdges:
    def test_one_edge_per_parent_child_pair(self):
        tree, alt_id = make_forked_tree()
        layout = compute_layout(tree)
        pairs = {(e.source, e.target) for e in layout.edges}
        expected = {
            (n.parent_id, n.id) for n in tree.nodes.values() if n.parent_id is not None
        }
        assert pairs == expected
        for edge in layout.edges:
            assert edge.id == f"{edge.source}-{edge.target}"

    def test_edges_on_current_path_are_flagged(self):
        tree, alt_id = make_forked_tree()
        alt_leaf = tree.get_branch(alt_id).leaf_node_id
        main_leaf = tree.get_branch("main").leaf_node_id
        layout = compute_layout(tree)
        flags = {e.target: e.on_active_path for e in layout.edges}
        assert flags[alt_leaf] is True
        assert flags[main_leaf] is False

    def test_flags_follow_navigation(self):
        tree, alt_id = make_forked_tree()
        tree = engine.select_branch(tree, "main")
        layout = compute_layout(tree)
        flags = {e.target: e.on_active_path for e in layout.edges}
        assert flags[tree.get_branch("main").leaf_node_id] is True
        assert flags[tree.get_branch(alt_id).leaf_node_id] is False
