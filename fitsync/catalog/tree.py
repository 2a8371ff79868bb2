"""Category tree: ancestor closure, forests and mutation guards.

The category table is a self-referential adjacency list. Every walk up
the parent chain is bounded by a visited set and a maximum depth, so a
corrupted cycle raises ``CorruptHierarchyError`` instead of looping.

Example:
    Exhaust (exhaust)
      └── Downpipes (downpipes)

    await tree.ancestor_slugs(downpipes.id)  # {"downpipes", "exhaust"}
"""

from collections.abc import Callable, Hashable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from fitsync.catalog.store import CatalogStore
from fitsync.domain.entities import Category
from fitsync.domain.exceptions import CorruptHierarchyError

T = TypeVar("T")

DEFAULT_MAX_DEPTH = 64


@dataclass
class TreeNode(Generic[T]):
    """A node of a presentation forest."""

    item: T
    children: list["TreeNode[T]"] = field(default_factory=list)


def walk_ancestors(
    index: Mapping[str, Any],
    start_id: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    entity_type: str = "Category",
) -> Iterator[Any]:
    """Yield a node and each of its ancestors, nearest first.

    Args:
        index: Nodes by ID; each node has ``id`` and ``parent_id``.
        start_id: Node to start from. Unknown IDs yield nothing.
        max_depth: Maximum number of nodes to visit.
        entity_type: Name used in error messages.

    Yields:
        The start node, its parent, and so on up to the root.

    Raises:
        CorruptHierarchyError: On a revisited node or an over-long chain.
    """
    visited: set[str] = set()
    current = index.get(start_id)
    while current is not None:
        if current.id in visited:
            raise CorruptHierarchyError(entity_type, start_id, f"cycle through {current.id}")
        if len(visited) >= max_depth:
            raise CorruptHierarchyError(
                entity_type, start_id, f"parent chain deeper than {max_depth}"
            )
        visited.add(current.id)
        yield current
        if current.parent_id is None:
            return
        # A dangling parent pointer ends the chain
        current = index.get(current.parent_id)


def build_forest(
    rows: Iterable[T],
    sort_key: Callable[[T], Any],
    id_of: Callable[[T], Hashable] = lambda r: r.id,  # type: ignore[attr-defined]
    parent_of: Callable[[T], Hashable | None] = lambda r: r.parent_id,  # type: ignore[attr-defined]
) -> list[TreeNode[T]]:
    """Group flat rows by parent into an ordered forest.

    Rows whose parent is not among ``rows`` become roots, which lets callers
    build a forest from a filtered subset. Nodes caught in a parent cycle
    have no root and are left out.

    Args:
        rows: Flat rows.
        sort_key: Sibling ordering key.
        id_of: Returns a row's ID.
        parent_of: Returns a row's parent ID.

    Returns:
        Root nodes, each with nested children.
    """
    rows = list(rows)
    ids = {id_of(r) for r in rows}
    by_parent: dict[Hashable | None, list[T]] = {}
    for row in rows:
        parent = parent_of(row)
        by_parent.setdefault(parent if parent in ids else None, []).append(row)
    for siblings in by_parent.values():
        siblings.sort(key=sort_key)

    def build(parent: Hashable | None, seen: frozenset) -> list[TreeNode[T]]:
        nodes = []
        for row in by_parent.get(parent, []):
            row_id = id_of(row)
            if row_id in seen:
                continue
            nodes.append(TreeNode(item=row, children=build(row_id, seen | {row_id})))
        return nodes

    return build(None, frozenset())


def flatten(forest: list[TreeNode[T]]) -> list[T]:
    """Pre-order list of the items in a forest."""
    out: list[T] = []
    for node in forest:
        out.append(node.item)
        out.extend(flatten(node.children))
    return out


class CategoryTree:
    """Ancestor queries and guards over the category hierarchy.

    Example usage:
        tree = CategoryTree(store)
        slugs = await tree.ancestor_slugs_for(["cat-1", "cat-2"])
        if not await tree.can_delete("cat-1"):
            ...
    """

    def __init__(self, store: CatalogStore, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize tree over a catalog store.

        Args:
            store: Catalog store.
            max_depth: Bound on parent walks.
        """
        self.store = store
        self.max_depth = max_depth

    async def _index(self) -> dict[str, Category]:
        return {c.id: c for c in await self.store.list_categories()}

    async def ancestor_slugs(self, category_id: str) -> set[str]:
        """Slug closure of one category (its own slug plus every ancestor's)."""
        return self._closure(await self._index(), [category_id])

    async def ancestor_slugs_for(self, category_ids: Iterable[str]) -> set[str]:
        """Union of the slug closures of several categories."""
        return self._closure(await self._index(), category_ids)

    def _closure(self, index: dict[str, Category], category_ids: Iterable[str]) -> set[str]:
        slugs: set[str] = set()
        for category_id in category_ids:
            for node in walk_ancestors(index, category_id, self.max_depth):
                if node.slug:
                    slugs.add(node.slug)
        return slugs

    async def forest(self) -> list[TreeNode[Category]]:
        """All categories as a forest, siblings ordered by title."""
        return build_forest(await self.store.list_categories(), sort_key=lambda c: c.title)

    async def can_delete(self, category_id: str) -> bool:
        """A category can be deleted only when it has no children."""
        return await self.store.count_category_children(category_id) == 0

    async def can_reparent(self, category_id: str, new_parent_id: str | None) -> bool:
        """Check that moving a category under ``new_parent_id`` keeps the graph acyclic."""
        if new_parent_id is None:
            return True
        if new_parent_id == category_id:
            return False
        index = await self._index()
        return all(
            node.id != category_id
            for node in walk_ancestors(index, new_parent_id, self.max_depth)
        )
