"""Linkage application service.

Owns the product ↔ category and product → fitment link tables:

- Linking products to categories (append or replace)
- Unlinking by all / many / one, always idempotent
- Upserting, editing and deleting fitment rows

Every mutation is committed locally first and then the affected product's
projection is rebuilt synchronously (write-through). A push failure is
reported in the result and leaves the local change in place.
"""

from dataclasses import asdict, dataclass, field, replace
from typing import Any

import structlog

from fitsync.application.projection_service import ProjectionSynchronizer, SyncOutcome
from fitsync.catalog.store import CatalogStore
from fitsync.domain.entities import FitmentKey, ProductFitment
from fitsync.domain.exceptions import DuplicateError, NotFoundError, ValidationError
from fitsync.domain.value_objects import normalize_product_gid

logger = structlog.get_logger()


# ============================================================================
# Requests
# ============================================================================


@dataclass
class LinkRequest:
    """Link a product to categories given by ID and/or slug."""

    product_gid: str
    category_ids: list[str] = field(default_factory=list)
    slugs: list[str] = field(default_factory=list)
    replace: bool = False


@dataclass(frozen=True)
class UnlinkAll:
    """Remove every category link of a product."""


@dataclass(frozen=True)
class UnlinkMany:
    """Remove the links to the given categories (IDs or slugs)."""

    refs: tuple[str, ...]


@dataclass(frozen=True)
class UnlinkOne:
    """Remove the link to one category (ID or slug)."""

    ref: str


UnlinkRequest = UnlinkAll | UnlinkMany | UnlinkOne


@dataclass
class FitmentInput:
    """Raw fitment fields as received from a caller."""

    product_gid: str
    make: str
    model: str
    year_from: int | None = None
    year_to: int | None = None
    trim: str | None = None
    chassis: str | None = None

    def to_key(self) -> FitmentKey:
        """Normalize into a validated unique key.

        Raises:
            ValidationError: On missing fields or an inverted year range.
        """
        return FitmentKey(
            product_gid=normalize_product_gid(self.product_gid),
            make=self.make,
            model=self.model,
            year_from=self.year_from,
            year_to=self.year_to,
            trim=self.trim,
            chassis=self.chassis,
        ).validate()


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class LinkResult:
    """Result of linking a product to categories."""

    product_gid: str
    category_ids: list[str]
    replace: bool
    added: int
    removed: int
    sync: SyncOutcome

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "productGid": self.product_gid,
            "categoryIds": self.category_ids,
            "replaceExisting": self.replace,
            "added": self.added,
            "removed": self.removed,
            "sync": self.sync.to_dict(),
        }


@dataclass
class UnlinkResult:
    """Result of unlinking categories (``removed`` may be 0)."""

    product_gid: str
    removed: int
    sync: SyncOutcome

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "productGid": self.product_gid,
            "removed": self.removed,
            "sync": self.sync.to_dict(),
        }


@dataclass
class FitmentResult:
    """Result of a fitment mutation."""

    fitment: ProductFitment | None
    created: bool = False
    removed: int = 0
    syncs: list[SyncOutcome] = field(default_factory=list)

    @property
    def sync_ok(self) -> bool:
        return all(s.ok for s in self.syncs)


# ============================================================================
# Linkage Service
# ============================================================================


class LinkageService:
    """Application service for product linkage mutations.

    Example usage:
        service = LinkageService(store, synchronizer)
        result = await service.link("123", ["cat-1"], replace=True)
        result.sync.ok  # False if the Shopify push failed
    """

    def __init__(self, store: CatalogStore, synchronizer: ProjectionSynchronizer) -> None:
        """Initialize service.

        Args:
            store: Catalog store.
            synchronizer: Projection synchronizer for write-through pushes.
        """
        self.store = store
        self.synchronizer = synchronizer

    async def _commit_and_sync(self, *product_gids: str) -> list[SyncOutcome]:
        await self.store.commit()
        outcomes = []
        for gid in dict.fromkeys(product_gids):
            outcomes.append(await self.synchronizer.try_rebuild(gid))
        return outcomes

    @staticmethod
    def _require_gid(product_gid: str) -> str:
        gid = normalize_product_gid(product_gid)
        if not gid:
            raise ValidationError("Missing productGid/productId")
        return gid

    # ------------------------------------------------------------------
    # Category links
    # ------------------------------------------------------------------

    async def link(
        self, product_gid: str, category_ids: list[str], replace: bool = False
    ) -> LinkResult:
        """Link a product to categories.

        With ``replace`` the product ends up linked to exactly
        ``category_ids``; otherwise only missing links are added and
        ``removed`` is 0. Duplicate input IDs count once.

        Args:
            product_gid: Product GID or numeric ID.
            category_ids: Categories to link.
            replace: Replace the existing link set.

        Returns:
            Link result.

        Raises:
            ValidationError: If the product or the category list is empty.
            NotFoundError: If a category does not exist (nothing is written).
        """
        gid = self._require_gid(product_gid)
        unique_ids = list(dict.fromkeys(category_ids))
        if not unique_ids:
            raise ValidationError("Missing categoryId/categoryIds or slugs")

        for category_id in unique_ids:
            if await self.store.get_category(category_id) is None:
                raise NotFoundError("Category", category_id)

        removed = 0
        if replace:
            # Drop only links outside the new set
            wanted = set(unique_ids)
            stale = [c for c in await self.store.linked_category_ids(gid) if c not in wanted]
            if stale:
                removed = await self.store.remove_links(gid, stale)
        added = await self.store.add_links(gid, unique_ids)
        (sync,) = await self._commit_and_sync(gid)

        logger.info(
            "product_categories_linked",
            product_gid=gid,
            category_ids=unique_ids,
            replace=replace,
            added=added,
            removed=removed,
        )
        return LinkResult(
            product_gid=gid,
            category_ids=unique_ids,
            replace=replace,
            added=added,
            removed=removed,
            sync=sync,
        )

    async def link_request(self, request: LinkRequest) -> LinkResult:
        """Link using IDs and slugs; unknown slugs are ignored."""
        category_ids = list(request.category_ids)
        if request.slugs:
            found = await self.store.get_categories_by_slugs(request.slugs)
            category_ids.extend(c.id for c in found)
        return await self.link(request.product_gid, category_ids, request.replace)

    async def _resolve_ref(self, ref: str) -> str | None:
        category = await self.store.get_category(ref)
        if category is None:
            category = await self.store.get_category_by_slug(ref)
        return category.id if category else None

    async def unlink(self, product_gid: str, request: UnlinkRequest) -> UnlinkResult:
        """Remove category links.

        Unlinking something that is not linked, or a reference that does not
        resolve, succeeds with ``removed`` 0.

        Args:
            product_gid: Product GID or numeric ID.
            request: Which links to remove.

        Returns:
            Unlink result.
        """
        gid = self._require_gid(product_gid)

        if isinstance(request, UnlinkAll):
            removed = await self.store.remove_links(gid)
        else:
            refs = request.refs if isinstance(request, UnlinkMany) else (request.ref,)
            category_ids = []
            for ref in refs:
                category_id = await self._resolve_ref(ref)
                if category_id is not None:
                    category_ids.append(category_id)
            removed = await self.store.remove_links(gid, category_ids) if category_ids else 0

        (sync,) = await self._commit_and_sync(gid)

        logger.info(
            "product_categories_unlinked",
            product_gid=gid,
            mode=type(request).__name__,
            removed=removed,
        )
        return UnlinkResult(product_gid=gid, removed=removed, sync=sync)

    # ------------------------------------------------------------------
    # Fitments
    # ------------------------------------------------------------------

    async def upsert_fitment(self, data: FitmentInput) -> FitmentResult:
        """Create a fitment row unless the identical row already exists.

        Returns:
            Result with ``created`` False when the row already existed.

        Raises:
            ValidationError: On missing fields or an inverted year range.
        """
        key = data.to_key()
        existing = await self.store.find_fitment(key)
        if existing is not None:
            syncs = await self._commit_and_sync(key.product_gid)
            return FitmentResult(fitment=existing, created=False, syncs=syncs)

        fitment = await self.store.add_fitment(key)
        syncs = await self._commit_and_sync(key.product_gid)

        logger.info(
            "fitment_created",
            fitment_id=fitment.id,
            product_gid=key.product_gid,
            make=key.make,
            model=key.model,
        )
        return FitmentResult(fitment=fitment, created=True, syncs=syncs)

    async def update_fitment(self, fitment_id: str, changes: dict[str, Any]) -> FitmentResult:
        """Edit fields of a fitment row.

        Both the old and the new product are rebuilt when the product changes.

        Raises:
            NotFoundError: If the row does not exist.
            ValidationError: If the edited row is invalid.
            DuplicateError: If the edited row equals another existing row.
        """
        current = await self.store.get_fitment(fitment_id)
        if current is None:
            raise NotFoundError("ProductFitment", fitment_id)

        allowed = {"product_gid", "make", "model", "year_from", "year_to", "trim", "chassis"}
        merged = {k: v for k, v in changes.items() if k in allowed}
        key = FitmentInput(**{**asdict(current.key), **merged}).to_key()

        other = await self.store.find_fitment(key)
        if other is not None and other.id != fitment_id:
            raise DuplicateError(
                "An identical fitment already exists",
                details={"fitment_id": other.id},
            )

        updated = await self.store.update_fitment(
            replace(
                current,
                product_gid=key.product_gid,
                make=key.make,
                model=key.model,
                year_from=key.year_from,
                year_to=key.year_to,
                trim=key.trim,
                chassis=key.chassis,
            )
        )
        syncs = await self._commit_and_sync(current.product_gid, key.product_gid)

        logger.info("fitment_updated", fitment_id=fitment_id, product_gid=key.product_gid)
        return FitmentResult(fitment=updated, syncs=syncs)

    async def delete_fitment(self, fitment_id: str) -> FitmentResult:
        """Delete a fitment row by ID; an unknown ID removes nothing."""
        current = await self.store.get_fitment(fitment_id)
        if current is None:
            return FitmentResult(fitment=None, removed=0)

        await self.store.delete_fitment(fitment_id)
        syncs = await self._commit_and_sync(current.product_gid)

        logger.info("fitment_deleted", fitment_id=fitment_id, product_gid=current.product_gid)
        return FitmentResult(fitment=current, removed=1, syncs=syncs)

    async def delete_fitment_by_key(self, data: FitmentInput) -> FitmentResult:
        """Delete the fitment row matching the full key; no match removes nothing."""
        key = data.to_key()
        current = await self.store.find_fitment(key)
        if current is None:
            syncs = await self._commit_and_sync(key.product_gid)
            return FitmentResult(fitment=None, removed=0, syncs=syncs)

        await self.store.delete_fitment(current.id)
        syncs = await self._commit_and_sync(key.product_gid)

        logger.info("fitment_deleted", fitment_id=current.id, product_gid=key.product_gid)
        return FitmentResult(fitment=current, removed=1, syncs=syncs)
