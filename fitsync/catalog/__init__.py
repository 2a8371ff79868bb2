"""Catalog taxonomy and fitment core.

Category and fit-term hierarchies, the fitment matcher and the store
backends (SQL and in-memory).
"""

from fitsync.catalog.fit_terms import FitTermHierarchy
from fitsync.catalog.matcher import FitmentQuery, matches, matching_product_gids
from fitsync.catalog.memory import InMemoryCatalogStore
from fitsync.catalog.store import CatalogStore
from fitsync.catalog.tree import CategoryTree, TreeNode, build_forest, flatten

__all__ = [
    # Hierarchies
    "CategoryTree",
    "FitTermHierarchy",
    "TreeNode",
    "build_forest",
    "flatten",
    # Matching
    "FitmentQuery",
    "matches",
    "matching_product_gids",
    # Stores
    "CatalogStore",
    "InMemoryCatalogStore",
]
