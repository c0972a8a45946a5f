# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the curriculum tree and its status cascade."""

from types import SimpleNamespace

import pytest

from src.domains.curriculum import CurriculumNode, CurriculumTree
from src.models.common import CurriculumStatus


def _row(item_id, title, parent=None, position=0, status="Locked", templates=None):
    """Build a stand-in for a progress row."""
    return SimpleNamespace(
        item_id=item_id,
        parent_item_id=parent,
        position=position,
        title=title,
        item_type="Topic" if parent else "Chapter",
        status=status,
        assignment_templates=templates or [],
    )


@pytest.fixture
def tree() -> CurriculumTree:
    """Chapter A (A1, A2) and Chapter B (B1), rows given out of order."""
    return CurriculumTree.from_progress(
        [
            _row("b1", "B1", parent="b", position=0),
            _row("a2", "A2", parent="a", position=1),
            _row("b", "Chapter B", position=1),
            _row("a1", "A1", parent="a", position=0),
            _row("a", "Chapter A", position=0),
        ]
    )


class TestTreeAssembly:
    """Tests for building trees from flat rows."""

    def test_orders_siblings_by_position(self, tree):
        """Test roots and children follow their positions."""
        assert [root.id for root in tree.roots] == ["a", "b"]
        assert [child.id for child in tree.roots[0].children] == ["a1", "a2"]

    def test_flatten_is_depth_first(self, tree):
        """Test flatten visits each parent before its children."""
        assert [node.id for node in tree.flatten()] == ["a", "a1", "a2", "b", "b1"]

    def test_orphan_becomes_root(self):
        """Test a row whose parent is missing is kept as a root."""
        tree = CurriculumTree.from_progress([_row("x", "X", parent="missing")])

        assert [root.id for root in tree.roots] == ["x"]

    def test_from_template_starts_locked(self):
        """Test template trees start with every node Locked."""
        rows = [
            SimpleNamespace(
                id="c1",
                parent_id=None,
                position=0,
                title="Chapter",
                item_type="Chapter",
                assignment_templates=[{"id": "t", "title": "HW"}],
            )
        ]

        tree = CurriculumTree.from_template(rows)

        assert tree.roots[0].status == CurriculumStatus.LOCKED
        assert tree.roots[0].assignment_templates == [{"id": "t", "title": "HW"}]

    def test_path_to(self, tree):
        """Test path_to returns ancestors then the node."""
        assert [node.id for node in tree.path_to("b1")] == ["b", "b1"]
        assert tree.path_to("nope") == []


class TestStatusCascade:
    """Tests for set_status cascade rules."""

    def test_completing_child_marks_parent_in_progress(self, tree):
        """Test one completed child moves the parent to In Progress."""
        assert tree.set_status("a1", CurriculumStatus.COMPLETED) is True

        assert tree.find("a").status == CurriculumStatus.IN_PROGRESS
        assert tree.find("a2").status == CurriculumStatus.LOCKED

    def test_completing_all_children_completes_parent(self, tree):
        """Test the parent completes when its last child completes."""
        tree.set_status("a1", CurriculumStatus.COMPLETED)
        tree.set_status("a2", CurriculumStatus.COMPLETED)

        assert tree.find("a").status == CurriculumStatus.COMPLETED

    def test_completing_parent_completes_descendants(self, tree):
        """Test completing a chapter completes everything below it."""
        tree.set_status("a", CurriculumStatus.COMPLETED)

        assert tree.find("a1").status == CurriculumStatus.COMPLETED
        assert tree.find("a2").status == CurriculumStatus.COMPLETED
        assert tree.find("b").status == CurriculumStatus.LOCKED

    def test_in_progress_child_marks_parent_in_progress(self, tree):
        """Test an In Progress child is enough for the parent."""
        tree.set_status("b1", CurriculumStatus.IN_PROGRESS)

        assert tree.find("b").status == CurriculumStatus.IN_PROGRESS

    def test_reopening_child_rederives_parent(self, tree):
        """Test locking a child of a completed chapter reopens it."""
        tree.set_status("a", CurriculumStatus.COMPLETED)
        tree.set_status("a2", CurriculumStatus.LOCKED)

        assert tree.find("a").status == CurriculumStatus.IN_PROGRESS

    def test_unknown_item_is_noop(self, tree):
        """Test a missing id leaves every status untouched."""
        before = tree.statuses()

        assert tree.set_status("ghost", CurriculumStatus.COMPLETED) is False
        assert tree.statuses() == before

    def test_leaf_status_is_set_directly(self):
        """Test a leaf takes whatever status it is given."""
        tree = CurriculumTree([CurriculumNode(id="leaf", title="Leaf", item_type="Topic")])

        tree.set_status("leaf", CurriculumStatus.IN_PROGRESS)

        assert tree.find("leaf").status == CurriculumStatus.IN_PROGRESS


class TestProgress:
    """Tests for progress and completion queries."""

    def test_progress_percent_rounds(self, tree):
        """Test three of five completed nodes is 60 percent."""
        tree.set_status("a1", CurriculumStatus.COMPLETED)
        tree.set_status("b1", CurriculumStatus.COMPLETED)

        # b completes with its only child
        assert tree.progress_percent() == 60

    def test_progress_of_empty_tree(self):
        """Test an empty tree reports zero and is not complete."""
        tree = CurriculumTree()

        assert tree.progress_percent() == 0
        assert tree.is_complete() is False

    def test_is_complete(self, tree):
        """Test completion requires every node Completed."""
        tree.set_status("a", CurriculumStatus.COMPLETED)
        assert tree.is_complete() is False

        tree.set_status("b", CurriculumStatus.COMPLETED)
        assert tree.is_complete() is True
        assert tree.progress_percent() == 100

    def test_next_item_follows_flattened_order(self, tree):
        """Test the next item crosses chapter boundaries."""
        assert tree.next_item("a1").id == "a2"
        assert tree.next_item("a2").id == "b"
        assert tree.next_item("b1") is None
        assert tree.next_item("ghost") is None
