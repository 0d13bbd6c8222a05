"""
Generic traversal helpers for "node -> parent nodes" graphs.

Both the role hierarchy and the permission hierarchy are DAGs keyed by
identifier. The graph services describe their graph through a
``parents_of`` lookup that returns the parent ids of a node, or ``None`` when
the node is unknown. Unknown nodes are dead ends, never errors.

All traversals are iterative and guarded by visited sets, so they terminate
on malformed (cyclic) input and do not grow the Python call stack.
"""
from collections import deque
from typing import Callable, Hashable, Iterable, Mapping, Optional, TypeVar

NodeT = TypeVar("NodeT", bound=Hashable)

ParentLookup = Callable[[NodeT], Optional[Iterable[NodeT]]]


def parent_lookup(parents: Mapping[NodeT, Iterable[NodeT]]) -> ParentLookup:
    """Build a ``parents_of`` function from a plain mapping."""
    return parents.get


def has_cycle(start: NodeT, parents_of: ParentLookup) -> bool:
    """
    Depth-first search for a back edge reachable from ``start``.

    Keeps a "visited" set and an "on stack" set; revisiting a node that is
    still on the current DFS path means a cycle.

    Returns:
        True if a cycle is reachable from ``start``
    """
    visited: set = set()
    on_stack: set = set()

    visited.add(start)
    on_stack.add(start)
    stack = [(start, iter(parents_of(start) or ()))]

    while stack:
        node, pending = stack[-1]
        advanced = False
        for parent in pending:
            if parent in on_stack:
                return True
            if parent not in visited:
                visited.add(parent)
                on_stack.add(parent)
                stack.append((parent, iter(parents_of(parent) or ())))
                advanced = True
                break
        if not advanced:
            stack.pop()
            on_stack.discard(node)

    return False


def collect_ancestors_bfs(start: NodeT, parents_of: ParentLookup) -> set:
    """
    Breadth-first collection of every node reachable over parent edges.

    Starts from the direct parents of ``start``; ``start`` itself is never
    part of the result, even if the graph loops back to it.
    """
    ancestors: set = set()
    visited = {start}
    queue = deque(parents_of(start) or ())

    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        ancestors.add(current)
        for parent in parents_of(current) or ():
            if parent not in visited:
                queue.append(parent)

    return ancestors


def collect_ancestors_dfs(start: NodeT, parents_of: ParentLookup) -> set:
    """
    Depth-first collection of every node reachable over parent edges.

    Same result set as ``collect_ancestors_bfs`` on a DAG; ``start`` is
    excluded.
    """
    collected: set = set()
    visited = {start}
    stack = list(parents_of(start) or ())

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        collected.add(current)
        stack.extend(p for p in (parents_of(current) or ()) if p not in visited)

    return collected


def with_extra_parent(
    parents: Mapping[NodeT, Iterable[NodeT]],
    child: NodeT,
    extra_parent: NodeT,
) -> dict:
    """
    Copy ``parents`` with ``extra_parent`` added to ``child``'s parent set.

    The input mapping and its parent collections are left untouched.
    """
    hypothetical = {node: frozenset(ids) for node, ids in parents.items()}
    hypothetical[child] = frozenset(parents.get(child, ())) | {extra_parent}
    return hypothetical
