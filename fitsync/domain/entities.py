"""Domain entities for the taxonomy and fitment catalog.

These are plain dataclasses passed between the store, the catalog
algorithms and the application services. ORM models never leave the
repository layer.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from fitsync.domain.exceptions import ValidationError


# ============================================================================
# Categories
# ============================================================================


@dataclass
class Category:
    """A node in the product category tree.

    Attributes:
        id: Category identifier.
        title: Display title.
        slug: Unique URL-safe handle.
        parent_id: Parent category ID (None for roots).
        image: Optional image URL.
        description: Optional description.
        shopify_page_id: Admin ID of the synced storefront page, if any.
        last_synced_at: When the page was last synced.
    """

    id: str
    title: str
    slug: str
    parent_id: str | None = None
    image: str | None = None
    description: str | None = None
    shopify_page_id: str | None = None
    last_synced_at: datetime | None = None


# ============================================================================
# Fit Terms
# ============================================================================


class FitTermType(str, Enum):
    """Vehicle attribute levels."""

    MAKE = "MAKE"
    MODEL = "MODEL"
    TRIM = "TRIM"
    CHASSIS = "CHASSIS"

    @classmethod
    def parse(cls, value: Any) -> "FitTermType":
        """Parse a type name case-insensitively.

        Raises:
            ValidationError: If the value is not a known type.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValidationError(
            f"Invalid fit term type: {value!r}",
            details={"allowed": [t.value for t in cls]},
        )


@dataclass
class FitTerm:
    """A node in the vehicle-attribute hierarchy."""

    id: str
    type: FitTermType
    name: str
    parent_id: str | None = None


@dataclass
class YmmSelection:
    """Fit-term IDs currently selected in a YMM picker."""

    make_id: str | None = None
    model_id: str | None = None
    trim_id: str | None = None
    chassis_id: str | None = None


# ============================================================================
# Fitments
# ============================================================================


@dataclass(frozen=True)
class FitmentKey:
    """The full unique tuple of a product fitment row."""

    product_gid: str
    make: str
    model: str
    year_from: int | None = None
    year_to: int | None = None
    trim: str | None = None
    chassis: str | None = None

    def validate(self) -> "FitmentKey":
        """Normalize blanks and check required fields and the year range.

        Returns:
            A normalized copy.

        Raises:
            ValidationError: If a required field is missing or years are inverted.
        """
        make = (self.make or "").strip()
        model = (self.model or "").strip()
        if not self.product_gid or not make or not model:
            raise ValidationError(
                "productGid, make, and model are required",
                details={"product_gid": self.product_gid, "make": make, "model": model},
            )
        if (
            self.year_from is not None
            and self.year_to is not None
            and self.year_from > self.year_to
        ):
            raise ValidationError(
                f"yearFrom ({self.year_from}) must not be after yearTo ({self.year_to})",
                details={"year_from": self.year_from, "year_to": self.year_to},
            )
        return replace(
            self,
            make=make,
            model=model,
            trim=(self.trim or "").strip() or None,
            chassis=(self.chassis or "").strip() or None,
        )


@dataclass
class ProductFitment:
    """An assertion that a product fits a (range of) vehicle(s)."""

    id: str
    product_gid: str
    make: str
    model: str
    year_from: int | None = None
    year_to: int | None = None
    trim: str | None = None
    chassis: str | None = None

    @property
    def key(self) -> FitmentKey:
        """Unique tuple identifying this row."""
        return FitmentKey(
            product_gid=self.product_gid,
            make=self.make,
            model=self.model,
            year_from=self.year_from,
            year_to=self.year_to,
            trim=self.trim,
            chassis=self.chassis,
        )

    def to_projection(self) -> dict[str, Any]:
        """Serialize as one entry of the ``fitment.ymm`` metafield."""
        return {
            "yearFrom": self.year_from,
            "yearTo": self.year_to,
            "make": self.make,
            "model": self.model,
            "trim": self.trim,
            "chassis": self.chassis,
        }


# ============================================================================
# Ingestion
# ============================================================================


@dataclass
class SourceRecord:
    """A normalized distributor product record."""

    sku: str
    title: str
    description: str | None = None
    price: str | None = None
    image_url: str | None = None
    category_path: str | None = None
    make: str | None = None
    model: str | None = None
    year_from: int | None = None
    year_to: int | None = None
    vendor: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class StoreStats:
    """Row counts used by the diagnostics endpoint."""

    categories: int
    product_category_links: int
    fitments: int
    fit_terms: int
    top_level: list[Category] = field(default_factory=list)
