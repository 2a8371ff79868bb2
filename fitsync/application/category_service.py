"""Category application service.

Creates, edits and deletes categories while keeping the tree acyclic.
Edits that change a slug closure (slug change or reparent) rebuild the
projections of every product linked to the moved subtree.
"""

from dataclasses import dataclass, field, replace

import structlog

from fitsync.application.projection_service import ProjectionSynchronizer, SyncOutcome
from fitsync.catalog.store import CatalogStore
from fitsync.catalog.tree import CategoryTree, TreeNode, flatten
from fitsync.domain.entities import Category
from fitsync.domain.exceptions import (
    CycleError,
    HasChildrenError,
    InUseError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger()


@dataclass
class CategoryUpdateResult:
    """Result of editing a category."""

    category: Category
    syncs: list[SyncOutcome] = field(default_factory=list)


class CategoryService:
    """Application service for the category tree.

    Example usage:
        service = CategoryService(store, synchronizer)
        exhaust = await service.create("Exhaust", "exhaust")
        await service.create("Downpipes", "downpipes", parent_id=exhaust.id)
    """

    def __init__(
        self,
        store: CatalogStore,
        synchronizer: ProjectionSynchronizer | None = None,
        max_depth: int = 64,
    ) -> None:
        """Initialize service.

        Args:
            store: Catalog store.
            synchronizer: Used to rebuild projections after closure changes.
            max_depth: Bound on parent walks.
        """
        self.store = store
        self.synchronizer = synchronizer
        self.tree = CategoryTree(store, max_depth)

    async def get(self, category_id: str) -> Category:
        category = await self.store.get_category(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    async def forest(self) -> list[TreeNode[Category]]:
        return await self.tree.forest()

    async def flat(self) -> list[Category]:
        """All categories in pre-order over the title-sorted forest."""
        return flatten(await self.tree.forest())

    @staticmethod
    def _require(title: str | None, slug: str | None) -> tuple[str, str]:
        title = (title or "").strip()
        slug = (slug or "").strip()
        if not title or not slug:
            raise ValidationError("Title and slug are required")
        return title, slug

    async def create(
        self,
        title: str,
        slug: str,
        parent_id: str | None = None,
        image: str | None = None,
        description: str | None = None,
    ) -> Category:
        """Create a category.

        Raises:
            ValidationError: If title or slug is blank.
            NotFoundError: If the parent does not exist.
            DuplicateError: If the slug is taken.
        """
        title, slug = self._require(title, slug)
        parent_id = parent_id or None
        if parent_id is not None:
            await self.get(parent_id)

        category = await self.store.add_category(
            Category(
                id="",
                title=title,
                slug=slug,
                parent_id=parent_id,
                image=image,
                description=description,
            )
        )
        await self.store.commit()

        logger.info("category_created", category_id=category.id, slug=slug, parent_id=parent_id)
        return category

    async def update(
        self,
        category_id: str,
        title: str | None = None,
        slug: str | None = None,
        parent_id: str | None = None,
        clear_parent: bool = False,
        image: str | None = None,
        description: str | None = None,
    ) -> CategoryUpdateResult:
        """Edit a category; fields left as None stay unchanged.

        Args:
            category_id: Category to edit.
            title: New title.
            slug: New slug.
            parent_id: New parent.
            clear_parent: Make the category a root.
            image: New image URL.
            description: New description.

        Returns:
            The updated category and the outcome of any projection rebuilds.

        Raises:
            NotFoundError: If the category or new parent does not exist.
            CycleError: If the move would make the category its own ancestor.
            DuplicateError: If the new slug is taken.
        """
        current = await self.get(category_id)
        new_title, new_slug = self._require(
            current.title if title is None else title,
            current.slug if slug is None else slug,
        )

        new_parent = current.parent_id
        if clear_parent:
            new_parent = None
        elif parent_id and parent_id != current.parent_id:
            await self.get(parent_id)
            if not await self.tree.can_reparent(category_id, parent_id):
                raise CycleError(category_id, parent_id)
            new_parent = parent_id

        updated = await self.store.update_category(
            replace(
                current,
                title=new_title,
                slug=new_slug,
                parent_id=new_parent,
                image=current.image if image is None else image,
                description=current.description if description is None else description,
            )
        )
        await self.store.commit()

        logger.info("category_updated", category_id=category_id, slug=new_slug, parent_id=new_parent)

        closure_changed = (
            updated.slug != current.slug or updated.parent_id != current.parent_id
        )
        syncs = await self._resync_subtree(category_id) if closure_changed else []
        return CategoryUpdateResult(category=updated, syncs=syncs)

    async def _resync_subtree(self, category_id: str) -> list[SyncOutcome]:
        if self.synchronizer is None:
            return []
        children: dict[str | None, list[str]] = {}
        for row in await self.store.list_categories():
            children.setdefault(row.parent_id, []).append(row.id)

        # Breadth-first over the moved subtree
        subtree, queue, seen = [], [category_id], set()
        while queue:
            node = queue.pop(0)
            if node in seen:
                continue
            seen.add(node)
            subtree.append(node)
            queue.extend(children.get(node, []))

        gids: list[str] = []
        for cid in subtree:
            gids.extend(await self.store.product_gids_for_category(cid))
        outcomes = []
        for gid in dict.fromkeys(gids):
            outcomes.append(await self.synchronizer.try_rebuild(gid))
        return outcomes

    async def delete(self, category_id: str) -> bool:
        """Delete a leaf category with no product links.

        Returns:
            True if deleted, False if the category did not exist.

        Raises:
            HasChildrenError: If the category has children.
            InUseError: If products are still linked to it.
        """
        if await self.store.get_category(category_id) is None:
            return False

        child_count = await self.store.count_category_children(category_id)
        if child_count:
            raise HasChildrenError("Category", category_id, child_count)
        link_count = await self.store.count_category_links(category_id)
        if link_count:
            raise InUseError(category_id, link_count)

        deleted = await self.store.delete_category(category_id)
        await self.store.commit()

        logger.info("category_deleted", category_id=category_id)
        return deleted
