"""Domain layer - entities, value helpers and domain errors.

Example usage:
    from fitsync.domain import FitmentKey

    key = FitmentKey(
        product_gid="gid://shopify/Product/1",
        make="Honda",
        model="Civic",
        year_from=2016,
        year_to=2021,
    ).validate()
"""

from fitsync.domain.entities import (
    Category,
    FitmentKey,
    FitTerm,
    FitTermType,
    ProductFitment,
    SourceRecord,
    StoreStats,
    YmmSelection,
)
from fitsync.domain.exceptions import (
    CorruptHierarchyError,
    CycleError,
    DomainError,
    DuplicateError,
    ExternalWriteError,
    HasChildrenError,
    InUseError,
    InvalidParentError,
    NotFoundError,
    ValidationError,
)
from fitsync.domain.value_objects import PRODUCT_GID_PREFIX, normalize_product_gid

__all__ = [
    # Entities
    "Category",
    "FitmentKey",
    "FitTerm",
    "FitTermType",
    "ProductFitment",
    "SourceRecord",
    "StoreStats",
    "YmmSelection",
    # Value helpers
    "PRODUCT_GID_PREFIX",
    "normalize_product_gid",
    # Exceptions
    "CorruptHierarchyError",
    "CycleError",
    "DomainError",
    "DuplicateError",
    "ExternalWriteError",
    "HasChildrenError",
    "InUseError",
    "InvalidParentError",
    "NotFoundError",
    "ValidationError",
]
