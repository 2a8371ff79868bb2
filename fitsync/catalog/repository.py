"""Catalog repository for database operations.

Implements ``CatalogStore`` on an async SQLAlchemy session. ORM rows are
converted to domain dataclasses before they leave this module.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitsync.catalog.models import (
    CategoryMappingModel,
    CategoryModel,
    FitTermModel,
    ProductCategoryModel,
    ProductFitmentModel,
    ProductSkuModel,
)
from fitsync.catalog.store import CatalogStore
from fitsync.domain.entities import (
    Category,
    FitmentKey,
    FitTerm,
    FitTermType,
    ProductFitment,
    StoreStats,
)
from fitsync.domain.exceptions import DuplicateError


def _as_uuid(value: str | None) -> str | None:
    """Return ``value`` if it is a UUID string, else None.

    Primary keys are Postgres UUIDs and asyncpg rejects anything else at bind
    time, so slugs and other free-form refs must not reach those columns.
    """
    if not value:
        return None
    try:
        UUID(str(value))
    except ValueError:
        return None
    return str(value)


def _to_category(row: CategoryModel) -> Category:
    return Category(
        id=row.id,
        title=row.title,
        slug=row.slug,
        parent_id=row.parent_id,
        image=row.image,
        description=row.description,
        shopify_page_id=row.shopify_page_id,
        last_synced_at=row.last_synced_at,
    )


def _to_fit_term(row: FitTermModel) -> FitTerm:
    return FitTerm(
        id=row.id,
        type=FitTermType(row.type),
        name=row.name,
        parent_id=row.parent_id,
    )


def _to_fitment(row: ProductFitmentModel) -> ProductFitment:
    return ProductFitment(
        id=row.id,
        product_gid=row.product_gid,
        make=row.make,
        model=row.model,
        year_from=row.year_from,
        year_to=row.year_to,
        trim=row.trim,
        chassis=row.chassis,
    )


class SqlCatalogStore(CatalogStore):
    """Repository for catalog database operations.

    Example usage:
        async with async_session_factory() as session:
            store = SqlCatalogStore(session)
            category = await store.get_category_by_slug("downpipes")
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _flush_unique(self, message: str, **details: object) -> None:
        """Flush, translating a unique violation into ``DuplicateError``."""
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateError(message, details=dict(details)) from e

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_category(self, category_id: str) -> Category | None:
        if _as_uuid(category_id) is None:
            return None
        row = await self.session.get(CategoryModel, category_id)
        return _to_category(row) if row else None

    async def get_category_by_slug(self, slug: str) -> Category | None:
        result = await self.session.execute(
            select(CategoryModel).where(CategoryModel.slug == slug)
        )
        row = result.scalar_one_or_none()
        return _to_category(row) if row else None

    async def get_categories_by_slugs(self, slugs: Sequence[str]) -> list[Category]:
        if not slugs:
            return []
        result = await self.session.execute(
            select(CategoryModel).where(CategoryModel.slug.in_(list(slugs)))
        )
        return [_to_category(r) for r in result.scalars().all()]

    async def list_categories(self) -> list[Category]:
        result = await self.session.execute(
            select(CategoryModel).order_by(CategoryModel.title.asc())
        )
        return [_to_category(r) for r in result.scalars().all()]

    async def count_category_children(self, category_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).where(CategoryModel.parent_id == category_id)
        )
        return result.scalar() or 0

    async def add_category(self, category: Category) -> Category:
        row = CategoryModel(
            title=category.title,
            slug=category.slug,
            parent_id=category.parent_id,
            image=category.image,
            description=category.description,
        )
        if category.id:
            row.id = category.id
        self.session.add(row)
        await self._flush_unique("Slug must be unique", slug=category.slug)
        return _to_category(row)

    async def update_category(self, category: Category) -> Category:
        await self.session.execute(
            update(CategoryModel)
            .where(CategoryModel.id == category.id)
            .values(
                title=category.title,
                slug=category.slug,
                parent_id=category.parent_id,
                image=category.image,
                description=category.description,
            )
        )
        await self._flush_unique("Slug must be unique", slug=category.slug)
        return category

    async def delete_category(self, category_id: str) -> bool:
        if _as_uuid(category_id) is None:
            return False
        result = await self.session.execute(
            delete(CategoryModel).where(CategoryModel.id == category_id)
        )
        return result.rowcount > 0

    async def mark_category_synced(
        self, category_id: str, page_id: str, synced_at: datetime
    ) -> None:
        await self.session.execute(
            update(CategoryModel)
            .where(CategoryModel.id == category_id)
            .values(shopify_page_id=page_id, last_synced_at=synced_at)
        )

    # ------------------------------------------------------------------
    # Fit terms
    # ------------------------------------------------------------------

    async def get_fit_term(self, term_id: str) -> FitTerm | None:
        if _as_uuid(term_id) is None:
            return None
        row = await self.session.get(FitTermModel, term_id)
        return _to_fit_term(row) if row else None

    async def find_fit_term(
        self, term_type: FitTermType, name: str, parent_id: str | None
    ) -> FitTerm | None:
        result = await self.session.execute(
            select(FitTermModel).where(
                and_(
                    FitTermModel.type == term_type.value,
                    FitTermModel.name == name,
                    FitTermModel.parent_id.is_not_distinct_from(parent_id),
                )
            )
        )
        row = result.scalars().first()
        return _to_fit_term(row) if row else None

    async def list_fit_terms(self, term_type: FitTermType | None = None) -> list[FitTerm]:
        query = select(FitTermModel)
        if term_type is not None:
            query = query.where(FitTermModel.type == term_type.value)
        query = query.order_by(FitTermModel.type.asc(), FitTermModel.name.asc())
        result = await self.session.execute(query)
        return [_to_fit_term(r) for r in result.scalars().all()]

    async def count_fit_term_children(self, term_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).where(FitTermModel.parent_id == term_id)
        )
        return result.scalar() or 0

    async def add_fit_term(self, term: FitTerm) -> FitTerm:
        row = FitTermModel(type=term.type.value, name=term.name, parent_id=term.parent_id)
        if term.id:
            row.id = term.id
        self.session.add(row)
        await self._flush_unique(
            "Fit term already exists under this parent",
            type=term.type.value,
            name=term.name,
        )
        return _to_fit_term(row)

    async def update_fit_term(self, term: FitTerm) -> FitTerm:
        await self.session.execute(
            update(FitTermModel)
            .where(FitTermModel.id == term.id)
            .values(name=term.name, parent_id=term.parent_id)
        )
        await self._flush_unique(
            "Fit term already exists under this parent",
            type=term.type.value,
            name=term.name,
        )
        return term

    async def delete_fit_term(self, term_id: str) -> bool:
        if _as_uuid(term_id) is None:
            return False
        result = await self.session.execute(
            delete(FitTermModel).where(FitTermModel.id == term_id)
        )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Product ↔ category links
    # ------------------------------------------------------------------

    async def linked_category_ids(self, product_gid: str) -> list[str]:
        result = await self.session.execute(
            select(ProductCategoryModel.category_id)
            .where(ProductCategoryModel.product_gid == product_gid)
            .order_by(ProductCategoryModel.id.asc())
        )
        return list(result.scalars().all())

    async def add_links(self, product_gid: str, category_ids: Sequence[str]) -> int:
        existing = set(await self.linked_category_ids(product_gid))
        new_ids = [c for c in dict.fromkeys(category_ids) if c not in existing]
        if not new_ids:
            return 0
        self.session.add_all(
            [ProductCategoryModel(product_gid=product_gid, category_id=c) for c in new_ids]
        )
        await self._flush_unique("Product is already linked", product_gid=product_gid)
        return len(new_ids)

    async def remove_links(
        self, product_gid: str, category_ids: Sequence[str] | None = None
    ) -> int:
        stmt = delete(ProductCategoryModel).where(
            ProductCategoryModel.product_gid == product_gid
        )
        if category_ids is not None:
            if not category_ids:
                return 0
            stmt = stmt.where(ProductCategoryModel.category_id.in_(list(category_ids)))
        result = await self.session.execute(stmt)
        return result.rowcount

    async def product_gids_for_category(
        self, category_id: str, limit: int | None = None
    ) -> list[str]:
        query = (
            select(ProductCategoryModel.product_gid)
            .where(ProductCategoryModel.category_id == category_id)
            .order_by(ProductCategoryModel.id.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_category_links(self, category_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).where(ProductCategoryModel.category_id == category_id)
        )
        return result.scalar() or 0

    async def linked_product_gids(self) -> list[str]:
        result = await self.session.execute(
            select(ProductCategoryModel.product_gid)
            .distinct()
            .order_by(ProductCategoryModel.product_gid.asc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Product fitments
    # ------------------------------------------------------------------

    async def get_fitment(self, fitment_id: str) -> ProductFitment | None:
        if _as_uuid(fitment_id) is None:
            return None
        row = await self.session.get(ProductFitmentModel, fitment_id)
        return _to_fitment(row) if row else None

    async def find_fitment(self, key: FitmentKey) -> ProductFitment | None:
        m = ProductFitmentModel
        result = await self.session.execute(
            select(m).where(
                and_(
                    m.product_gid == key.product_gid,
                    m.make == key.make,
                    m.model == key.model,
                    m.year_from.is_not_distinct_from(key.year_from),
                    m.year_to.is_not_distinct_from(key.year_to),
                    m.trim.is_not_distinct_from(key.trim),
                    m.chassis.is_not_distinct_from(key.chassis),
                )
            )
        )
        row = result.scalars().first()
        return _to_fitment(row) if row else None

    @staticmethod
    def _fitment_order():
        m = ProductFitmentModel
        return (m.make.asc(), m.model.asc(), m.year_from.asc().nulls_last())

    async def fitments_for_products(
        self, product_gids: Sequence[str]
    ) -> list[ProductFitment]:
        if not product_gids:
            return []
        result = await self.session.execute(
            select(ProductFitmentModel)
            .where(ProductFitmentModel.product_gid.in_(list(product_gids)))
            .order_by(*self._fitment_order())
        )
        return [_to_fitment(r) for r in result.scalars().all()]

    async def list_fitments(
        self,
        product_gid: str | None = None,
        make: str | None = None,
        model: str | None = None,
    ) -> list[ProductFitment]:
        conditions = []
        if product_gid is not None:
            conditions.append(ProductFitmentModel.product_gid == product_gid)
        if make is not None:
            conditions.append(ProductFitmentModel.make == make)
        if model is not None:
            conditions.append(ProductFitmentModel.model == model)

        query = select(ProductFitmentModel)
        if conditions:
            query = query.where(and_(*conditions))
        result = await self.session.execute(query.order_by(*self._fitment_order()))
        return [_to_fitment(r) for r in result.scalars().all()]

    async def add_fitment(self, key: FitmentKey) -> ProductFitment:
        if await self.find_fitment(key) is not None:
            raise DuplicateError(
                "Fitment already exists", details={"product_gid": key.product_gid}
            )
        row = ProductFitmentModel(
            product_gid=key.product_gid,
            make=key.make,
            model=key.model,
            year_from=key.year_from,
            year_to=key.year_to,
            trim=key.trim,
            chassis=key.chassis,
        )
        self.session.add(row)
        await self._flush_unique(
            "Fitment already exists", product_gid=key.product_gid
        )
        return _to_fitment(row)

    async def update_fitment(self, fitment: ProductFitment) -> ProductFitment:
        await self.session.execute(
            update(ProductFitmentModel)
            .where(ProductFitmentModel.id == fitment.id)
            .values(
                product_gid=fitment.product_gid,
                make=fitment.make,
                model=fitment.model,
                year_from=fitment.year_from,
                year_to=fitment.year_to,
                trim=fitment.trim,
                chassis=fitment.chassis,
            )
        )
        return fitment

    async def delete_fitment(self, fitment_id: str) -> bool:
        if _as_uuid(fitment_id) is None:
            return False
        result = await self.session.execute(
            delete(ProductFitmentModel).where(ProductFitmentModel.id == fitment_id)
        )
        return result.rowcount > 0

    async def fitment_product_gids(self) -> list[str]:
        result = await self.session.execute(
            select(ProductFitmentModel.product_gid)
            .distinct()
            .order_by(ProductFitmentModel.product_gid.asc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Ingestion lookups
    # ------------------------------------------------------------------

    async def get_product_gid_for_sku(self, sku: str) -> str | None:
        row = await self.session.get(ProductSkuModel, sku)
        return row.product_gid if row else None

    async def save_sku(self, sku: str, product_gid: str, title: str) -> None:
        row = await self.session.get(ProductSkuModel, sku)
        if row is None:
            self.session.add(ProductSkuModel(sku=sku, product_gid=product_gid, title=title))
        else:
            row.product_gid = product_gid
            row.title = title
        await self.session.flush()

    async def get_category_mapping(self, source_path: str) -> str | None:
        row = await self.session.get(CategoryMappingModel, source_path)
        return row.category_id if row else None

    async def save_category_mapping(
        self, source_path: str, category_id: str | None
    ) -> None:
        row = await self.session.get(CategoryMappingModel, source_path)
        if row is None:
            self.session.add(
                CategoryMappingModel(source_path=source_path, category_id=category_id)
            )
        else:
            row.category_id = category_id
        await self.session.flush()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def _count(self, model) -> int:
        result = await self.session.execute(select(func.count()).select_from(model))
        return result.scalar() or 0

    async def stats(self) -> StoreStats:
        top = await self.session.execute(
            select(CategoryModel)
            .where(CategoryModel.parent_id.is_(None))
            .order_by(CategoryModel.title.asc())
            .limit(10)
        )
        return StoreStats(
            categories=await self._count(CategoryModel),
            product_category_links=await self._count(ProductCategoryModel),
            fitments=await self._count(ProductFitmentModel),
            fit_terms=await self._count(FitTermModel),
            top_level=[_to_category(r) for r in top.scalars().all()],
        )
