# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory curriculum tree with status cascade.

The tree is rebuilt from flat rows (parent id + sibling position). A tree
built from progress rows is owned by exactly one enrollment; nodes are
addressed by id and nothing is shared with the program template or with
other enrollments.

Cascade rules:
1. Completing a node completes every descendant.
2. Each ancestor is re-derived bottom-up from its children:
   - Completed if all children are Completed
   - In Progress if any child is Completed or In Progress
   - Locked otherwise

Example:
    >>> tree = CurriculumTree.from_progress(rows)
    >>> tree.set_status("chapter-1", CurriculumStatus.COMPLETED)
    True
    >>> tree.progress_percent()
    40
"""

from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from src.infrastructure.database.models import CurriculumProgressItem, ProgramCurriculumItem
from src.models.common import CurriculumStatus


@dataclass
class CurriculumNode:
    """A node in a curriculum tree.

    Attributes:
        id: Item identifier, shared with the program template node.
        title: Display title.
        item_type: Chapter, Topic or Sub-Topic.
        status: Current progression status.
        children: Ordered child nodes.
        assignment_templates: Templates materialized when this item unlocks.
    """

    id: str
    title: str
    item_type: str
    status: CurriculumStatus = CurriculumStatus.LOCKED
    children: list["CurriculumNode"] = field(default_factory=list)
    assignment_templates: list[dict[str, Any]] = field(default_factory=list)

    def walk(self) -> Iterator["CurriculumNode"]:
        """Yield this node and its descendants depth-first, parents first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def derive_status(self) -> CurriculumStatus:
        """Compute this node's status from its children."""
        statuses = [child.status for child in self.children]
        if all(s == CurriculumStatus.COMPLETED for s in statuses):
            return CurriculumStatus.COMPLETED
        if any(s != CurriculumStatus.LOCKED for s in statuses):
            return CurriculumStatus.IN_PROGRESS
        return CurriculumStatus.LOCKED


class CurriculumTree:
    """Ordered forest of curriculum nodes."""

    def __init__(self, roots: list[CurriculumNode] | None = None) -> None:
        self.roots = roots or []

    @classmethod
    def from_progress(cls, items: Iterable[CurriculumProgressItem]) -> "CurriculumTree":
        """Build an enrollment's tree from its progress rows."""
        return cls._assemble(
            (
                item.position,
                item.parent_item_id,
                CurriculumNode(
                    id=item.item_id,
                    title=item.title,
                    item_type=item.item_type,
                    status=CurriculumStatus(item.status),
                    assignment_templates=list(item.assignment_templates or []),
                ),
            )
            for item in items
        )

    @classmethod
    def from_template(cls, items: Iterable[ProgramCurriculumItem]) -> "CurriculumTree":
        """Build a program's template tree. Every node starts Locked."""
        return cls._assemble(
            (
                item.position,
                item.parent_id,
                CurriculumNode(
                    id=item.id,
                    title=item.title,
                    item_type=item.item_type,
                    assignment_templates=list(item.assignment_templates or []),
                ),
            )
            for item in items
        )

    @classmethod
    def _assemble(
        cls,
        entries: Iterable[tuple[int, str | None, CurriculumNode]],
    ) -> "CurriculumTree":
        # Entries whose parent is missing become roots so a damaged row never
        # drops a subtree.
        ordered = sorted(entries, key=lambda entry: entry[0])
        nodes = {node.id: node for _, _, node in ordered}

        children: dict[str | None, list[CurriculumNode]] = defaultdict(list)
        for _, parent_id, node in ordered:
            children[parent_id if parent_id in nodes else None].append(node)

        for node_id, node in nodes.items():
            node.children = children.get(node_id, [])

        return cls(children.get(None, []))

    def flatten(self) -> list[CurriculumNode]:
        """Get every node in depth-first order."""
        return [node for root in self.roots for node in root.walk()]

    def find(self, item_id: str) -> CurriculumNode | None:
        """Find a node by id, depth-first."""
        return next((node for node in self.flatten() if node.id == item_id), None)

    def path_to(self, item_id: str) -> list[CurriculumNode]:
        """Get the nodes from a root down to the given item.

        Returns:
            Ancestors followed by the node itself, or an empty list if the
            item is not in the tree.
        """

        def search(nodes: list[CurriculumNode], trail: list[CurriculumNode]) -> list[CurriculumNode]:
            for node in nodes:
                if node.id == item_id:
                    return trail + [node]
                found = search(node.children, trail + [node])
                if found:
                    return found
            return []

        return search(self.roots, [])

    def set_status(self, item_id: str, status: CurriculumStatus) -> bool:
        """Set an item's status and cascade it through the tree.

        Args:
            item_id: Item to update.
            status: New status.

        Returns:
            False if the item does not exist, True otherwise.
        """
        path = self.path_to(item_id)
        if not path:
            return False

        node = path[-1]
        node.status = status
        if status == CurriculumStatus.COMPLETED:
            for descendant in node.walk():
                descendant.status = CurriculumStatus.COMPLETED

        for ancestor in reversed(path[:-1]):
            ancestor.status = ancestor.derive_status()

        return True

    def progress_percent(self) -> int:
        """Get the share of Completed nodes as a whole percentage."""
        nodes = self.flatten()
        if not nodes:
            return 0
        completed = sum(1 for node in nodes if node.status == CurriculumStatus.COMPLETED)
        return round(completed * 100 / len(nodes))

    def is_complete(self) -> bool:
        """Check whether every node is Completed.

        An empty tree is never complete.
        """
        nodes = self.flatten()
        return bool(nodes) and all(node.status == CurriculumStatus.COMPLETED for node in nodes)

    def next_item(self, item_id: str) -> CurriculumNode | None:
        """Get the item that follows the given one in depth-first order."""
        nodes = self.flatten()
        for index, node in enumerate(nodes):
            if node.id == item_id:
                return nodes[index + 1] if index + 1 < len(nodes) else None
        return None

    def statuses(self) -> dict[str, CurriculumStatus]:
        """Get a snapshot of every node's status keyed by id."""
        return {node.id: node.status for node in self.flatten()}
