"""SQLAlchemy models for the taxonomy and fitment catalog.

Defines the category and fit-term trees, the two product link tables and
the ingestion lookup tables.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from fitsync.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CategoryModel(Base):
    """Category tree node.

    Attributes:
        id: Unique category identifier (UUID).
        title: Display title.
        slug: Unique handle, also the storefront page handle.
        parent_id: Parent category (None for roots).
        image: Optional image URL.
        description: Optional description.
        shopify_page_id: Admin ID of the synced storefront page.
        last_synced_at: When the page was last synced.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    parent_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    shopify_page_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class FitTermModel(Base):
    """Make / Model / Trim / Chassis tree node."""

    __tablename__ = "fit_terms"
    __table_args__ = (
        UniqueConstraint(
            "type",
            "name",
            "parent_id",
            name="uq_fit_terms_type_name_parent",
            postgresql_nulls_not_distinct=True,
        ),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("fit_terms.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class ProductCategoryModel(Base):
    """Product ↔ category link."""

    __tablename__ = "product_categories"
    __table_args__ = (
        UniqueConstraint("product_gid", "category_id", name="uq_product_categories_pair"),
    )

    # Serial key keeps link insertion order for category listings
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_gid: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class ProductFitmentModel(Base):
    """Vehicle fitment of a product.

    Make and model are stored as plain strings, not fit-term foreign keys.
    The full tuple is unique, with NULLs comparing equal.
    """

    __tablename__ = "product_fitments"
    __table_args__ = (
        UniqueConstraint(
            "product_gid",
            "make",
            "model",
            "year_from",
            "year_to",
            "trim",
            "chassis",
            name="uq_product_fitments_tuple",
            postgresql_nulls_not_distinct=True,
        ),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    product_gid: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    make: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    year_from: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year_to: Mapped[int | None] = mapped_column(Integer, nullable=True)
    trim: Mapped[str | None] = mapped_column(String(255), nullable=True)
    chassis: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class ProductSkuModel(Base):
    """Distributor SKU → Shopify product index used by ingestion."""

    __tablename__ = "product_skus"

    sku: Mapped[str] = mapped_column(String(100), primary_key=True)
    product_gid: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class CategoryMappingModel(Base):
    """Distributor category path → local category."""

    __tablename__ = "category_mappings"

    source_path: Mapped[str] = mapped_column(String(500), primary_key=True)
    category_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
