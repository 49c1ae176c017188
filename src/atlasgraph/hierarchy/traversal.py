from __future__ import annotations

from collections import deque
from typing import Any, Callable, Iterable, Iterator, List

from atlasgraph.hierarchy.index import EntityIndex


def guarded_walk(start: Any, step: Callable[[Any], Iterable[Any]]) -> Iterator[Any]:
    """
    Breadth-first walk from `start`, bounded by a visited set.

    Yields every id reachable through `step` exactly once, never `start`
    itself. Revisits end the branch instead of looping, so corrupt cyclic
    data terminates.
    """
    visited = {start}
    frontier = deque([start])

    while frontier:
        current = frontier.popleft()
        for nxt in step(current):
            if nxt is None or nxt in visited:
                continue
            visited.add(nxt)
            yield nxt
            frontier.append(nxt)


class CycleGuard:
    """
    Ancestor-chain checks over one index snapshot.
    """

    def __init__(self, index: EntityIndex) -> None:
        self.index = index

    def _parent_step(self, entity_id: Any) -> List[Any]:
        parent_id = self.index.parent_id(entity_id)
        if parent_id is None or parent_id not in self.index:
            return []
        return [parent_id]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_ancestors(self, entity_id: Any) -> List[Any]:
        """
        Ancestor ids ordered nearest to farthest.
        """
        return list(guarded_walk(entity_id, self._parent_step))

    def would_create_cycle(self, parent_id: Any, child_id: Any) -> bool:
        if parent_id == child_id:
            return True
        for ancestor in guarded_walk(parent_id, self._parent_step):
            if ancestor == child_id:
                return True
        return False

    def is_on_cycle(self, entity_id: Any) -> bool:
        """
        True when following parents from the entity leads back to it.
        """
        parent_id = self.index.parent_id(entity_id)
        if parent_id is None or parent_id not in self.index:
            return False
        return self.would_create_cycle(parent_id, entity_id)
