"""
Deliverable dependency checks
"""
from typing import Dict, Iterable, List, Optional

from aligned_execution.services.planning import is_complete


class DependencyError(ValueError):
    pass


def find_cycle(graph: Dict[int, Iterable[int]], start: int) -> Optional[List[int]]:
    """Return a dependency path that leads back to ``start``, or None"""
    visiting = set()
    done = set()
    path: List[int] = []

    def visit(node: int) -> Optional[List[int]]:
        if node in visiting:
            return path[path.index(node):] + [node]
        if node in done:
            return None
        visiting.add(node)
        path.append(node)
        for dep in graph.get(node, ()):
            cycle = visit(dep)
            if cycle:
                return cycle
        path.pop()
        visiting.discard(node)
        done.add(node)
        return None

    return visit(start)


def validate_dependencies(item_id: Optional[int], dependency_ids: Iterable[int], graph: Dict[int, Iterable[int]]) -> List[int]:
    """Normalize a dependency list for ``item_id``.

    ``graph`` maps every deliverable id in the project to its current
    dependencies. Duplicates are dropped; self references, unknown ids and
    anything that would close a cycle raise DependencyError.
    """
    normalized: List[int] = []
    for dep in dependency_ids:
        if dep not in normalized:
            normalized.append(dep)

    if item_id is not None and item_id in normalized:
        raise DependencyError("A deliverable cannot depend on itself")

    unknown = [d for d in normalized if d not in graph]
    if unknown:
        raise DependencyError(f"Unknown deliverable ids: {unknown}")

    # A brand-new item has no dependents yet, so it cannot close a cycle
    if item_id is not None:
        candidate = dict(graph)
        candidate[item_id] = normalized
        cycle = find_cycle(candidate, item_id)
        if cycle:
            raise DependencyError(
                "Dependency cycle: " + " -> ".join(str(n) for n in cycle)
            )

    return normalized


def unmet_dependencies(item, items_by_id: Dict[int, object]) -> List[int]:
    """Dependencies that are not complete yet (ids no longer present are ignored)"""
    return [
        dep for dep in (item.dependencies or [])
        if dep in items_by_id and not is_complete(items_by_id[dep])
    ]
