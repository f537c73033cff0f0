"""Read-only category tree used for spending rollups"""

import uuid
from collections import deque
from typing import Dict, Iterable, List, Optional, Set

from abudget.domain.models import Category
from abudget.domain.exceptions import CategoryCycleError


class CategoryTree:
    """
    Parent -> children index over a flat list of categories.

    Built once per request at the data-access boundary. Construction rejects
    parent cycles, so traversal never needs its own cycle guard. Parents that
    are not part of the list are treated as roots.
    """

    def __init__(self, categories: Iterable[Category]):
        self._by_id: Dict[uuid.UUID, Category] = {c.id: c for c in categories}
        self._children: Dict[uuid.UUID, List[uuid.UUID]] = {}

        for category in sorted(self._by_id.values(), key=lambda c: (c.sort_order, c.name)):
            if category.parent_id is not None and category.parent_id in self._by_id:
                self._children.setdefault(category.parent_id, []).append(category.id)

        self._check_acyclic()

    def _check_acyclic(self) -> None:
        # Walk each node's ancestor chain; a chain longer than the tree means a cycle
        limit = len(self._by_id)
        for category_id in self._by_id:
            steps = 0
            current = self._by_id[category_id].parent_id
            while current is not None and current in self._by_id:
                steps += 1
                if current == category_id or steps > limit:
                    raise CategoryCycleError(category_id)
                current = self._by_id[current].parent_id

    def __contains__(self, category_id: uuid.UUID) -> bool:
        return category_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, category_id: uuid.UUID) -> Optional[Category]:
        return self._by_id.get(category_id)

    def parent_of(self, category_id: uuid.UUID) -> Optional[uuid.UUID]:
        category = self._by_id.get(category_id)
        return category.parent_id if category else None

    def children(self, category_id: uuid.UUID) -> List[uuid.UUID]:
        """Direct children ordered by sort_order"""
        return list(self._children.get(category_id, []))

    def roots(self) -> List[Category]:
        return sorted(
            (c for c in self._by_id.values() if c.parent_id is None or c.parent_id not in self._by_id),
            key=lambda c: (c.sort_order, c.name),
        )

    def descendants(self, category_id: uuid.UUID) -> List[uuid.UUID]:
        """All descendants at any depth, breadth-first"""
        result: List[uuid.UUID] = []
        queue = deque(self._children.get(category_id, []))
        while queue:
            current = queue.popleft()
            result.append(current)
            queue.extend(self._children.get(current, []))
        return result

    def subtree_ids(self, category_id: uuid.UUID) -> Set[uuid.UUID]:
        """The category itself plus every descendant"""
        return {category_id, *self.descendants(category_id)}
