"""Vehicle fit-term hierarchy.

Fit terms form a typed adjacency list:

    MAKE (root)
      ├── MODEL
      │     ├── TRIM
      │     └── CHASSIS
      └── CHASSIS

A CHASSIS may also stand alone as an orphan root. Parent/type rules are
checked before any write, so a rejected request never leaves a partial row.
"""

from dataclasses import dataclass, replace

import structlog

from fitsync.catalog.store import CatalogStore
from fitsync.catalog.tree import DEFAULT_MAX_DEPTH, TreeNode, build_forest, walk_ancestors
from fitsync.domain.entities import FitTerm, FitTermType, YmmSelection
from fitsync.domain.exceptions import (
    CycleError,
    DuplicateError,
    HasChildrenError,
    InvalidParentError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger()


# Allowed parent types per node type. None in the set means "may be a root".
PARENT_RULES: dict[FitTermType, frozenset[FitTermType | None]] = {
    FitTermType.MAKE: frozenset({None}),
    FitTermType.MODEL: frozenset({FitTermType.MAKE}),
    FitTermType.TRIM: frozenset({FitTermType.MODEL}),
    FitTermType.CHASSIS: frozenset({None, FitTermType.MAKE, FitTermType.MODEL}),
}

_RULE_TEXT: dict[FitTermType, str] = {
    FitTermType.MAKE: "MAKE must not have a parent",
    FitTermType.MODEL: "MODEL requires a MAKE parent",
    FitTermType.TRIM: "TRIM requires a MODEL parent",
    FitTermType.CHASSIS: "CHASSIS parent must be a MAKE or MODEL",
}


@dataclass
class ResolvedNames:
    """Fit-term names resolved from picker selections."""

    make: str | None = None
    model: str | None = None
    trim: str | None = None
    chassis: str | None = None


class FitTermHierarchy:
    """Create, edit and query the Make/Model/Trim/Chassis hierarchy.

    Example usage:
        hierarchy = FitTermHierarchy(store)
        honda = await hierarchy.create(FitTermType.MAKE, "Honda")
        civic = await hierarchy.create(FitTermType.MODEL, "Civic", honda.id)
        await hierarchy.is_descendant_of(civic.id, honda.id)  # True
    """

    def __init__(self, store: CatalogStore, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize hierarchy over a catalog store.

        Args:
            store: Catalog store.
            max_depth: Bound on parent walks.
        """
        self.store = store
        self.max_depth = max_depth

    async def _index(self) -> dict[str, FitTerm]:
        return {t.id: t for t in await self.store.list_fit_terms()}

    async def _check_parent(self, term_type: FitTermType, parent_id: str | None) -> None:
        """Validate ``parent_id`` against the parent-type table.

        Raises:
            InvalidParentError: If the parent is missing or of the wrong type.
        """
        allowed = PARENT_RULES[term_type]
        if parent_id is None:
            if None not in allowed:
                raise InvalidParentError(term_type.value, _RULE_TEXT[term_type], None)
            return

        parent = await self.store.get_fit_term(parent_id)
        if parent is None or parent.type not in allowed:
            raise InvalidParentError(term_type.value, _RULE_TEXT[term_type], parent_id)

    async def _check_unique(
        self,
        term_type: FitTermType,
        name: str,
        parent_id: str | None,
        term_id: str | None = None,
    ) -> None:
        existing = await self.store.find_fit_term(term_type, name, parent_id)
        if existing is not None and existing.id != term_id:
            raise DuplicateError(
                f"{term_type.value} '{name}' already exists under this parent",
                details={"type": term_type.value, "name": name, "parent_id": parent_id},
            )

    @staticmethod
    def _clean_name(name: str | None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Name is required")
        return cleaned

    async def create(
        self,
        term_type: FitTermType | str,
        name: str,
        parent_id: str | None = None,
    ) -> FitTerm:
        """Create a fit term.

        Args:
            term_type: MAKE, MODEL, TRIM or CHASSIS.
            name: Display name.
            parent_id: Parent term ID.

        Returns:
            Created term.

        Raises:
            ValidationError: If the type or name is invalid.
            InvalidParentError: If the parent violates the type table.
            DuplicateError: If ``(type, name, parent_id)`` already exists.
        """
        term_type = FitTermType.parse(term_type)
        name = self._clean_name(name)
        parent_id = parent_id or None

        await self._check_parent(term_type, parent_id)
        await self._check_unique(term_type, name, parent_id)

        term = await self.store.add_fit_term(
            FitTerm(id="", type=term_type, name=name, parent_id=parent_id)
        )
        await self.store.commit()

        logger.info(
            "fit_term_created",
            term_id=term.id,
            type=term_type.value,
            name=name,
            parent_id=parent_id,
        )
        return term

    async def update(
        self,
        term_id: str,
        name: str | None = None,
        parent_id: str | None = None,
        clear_parent: bool = False,
    ) -> FitTerm:
        """Rename and/or reparent a fit term.

        Args:
            term_id: Term to update.
            name: New name (unchanged if None).
            parent_id: New parent (unchanged if None).
            clear_parent: Detach the term from its parent.

        Returns:
            Updated term.

        Raises:
            NotFoundError: If the term does not exist.
            InvalidParentError: If the new parent violates the type table.
            CycleError: If the move would make the term its own ancestor.
            DuplicateError: If the new ``(type, name, parent_id)`` is taken.
        """
        term = await self.store.get_fit_term(term_id)
        if term is None:
            raise NotFoundError("FitTerm", term_id)

        new_name = self._clean_name(name) if name is not None else term.name
        new_parent = None if clear_parent else (parent_id or term.parent_id)

        if new_parent != term.parent_id:
            await self._check_parent(term.type, new_parent)
            if new_parent is not None and (
                new_parent == term_id or await self.is_descendant_of(new_parent, term_id)
            ):
                raise CycleError(term_id, new_parent)

        await self._check_unique(term.type, new_name, new_parent, term_id)

        updated = await self.store.update_fit_term(
            replace(term, name=new_name, parent_id=new_parent)
        )
        await self.store.commit()

        logger.info(
            "fit_term_updated",
            term_id=term_id,
            name=new_name,
            parent_id=new_parent,
        )
        return updated

    async def delete(self, term_id: str) -> bool:
        """Delete a childless fit term.

        Returns:
            True if deleted, False if the term did not exist.

        Raises:
            HasChildrenError: If the term has children.
        """
        term = await self.store.get_fit_term(term_id)
        if term is None:
            return False

        child_count = await self.store.count_fit_term_children(term_id)
        if child_count:
            raise HasChildrenError("FitTerm", term_id, child_count)

        deleted = await self.store.delete_fit_term(term_id)
        await self.store.commit()

        logger.info("fit_term_deleted", term_id=term_id, type=term.type.value)
        return deleted

    async def tree(self, term_type: FitTermType | str | None = None) -> list[TreeNode[FitTerm]]:
        """Fit terms as a forest, siblings ordered by name.

        With ``term_type`` only terms of that type are included, each a root.
        Without it, every root (MAKE and orphan CHASSIS) is listed with its
        descendants, types ordered MAKE, MODEL, TRIM, CHASSIS among siblings.
        """
        order = {t: i for i, t in enumerate(FitTermType)}
        if term_type is not None:
            term_type = FitTermType.parse(term_type)
            rows = await self.store.list_fit_terms(term_type)
        else:
            rows = await self.store.list_fit_terms()
        return build_forest(
            rows,
            sort_key=lambda t: (order[t.type], t.name.casefold(), t.name),
            parent_of=lambda t: (t.parent_id if term_type is None else None),
        )

    async def is_descendant_of(self, node_id: str, ancestor_id: str) -> bool:
        """Check whether ``ancestor_id`` is a strict ancestor of ``node_id``.

        Raises:
            CorruptHierarchyError: If the parent chain is cyclic or too deep.
        """
        if node_id == ancestor_id:
            return False
        index = await self._index()
        walk = walk_ancestors(index, node_id, self.max_depth, entity_type="FitTerm")
        next(walk, None)  # skip the node itself
        return any(node.id == ancestor_id for node in walk)

    async def reset_dependents(
        self, selection: YmmSelection, make_id: str | None
    ) -> YmmSelection:
        """Apply a new MAKE selection, clearing dependents that no longer fit.

        Any selected MODEL, TRIM or CHASSIS that is not a descendant of the
        new MAKE is cleared. A TRIM is also cleared when its MODEL is.

        Args:
            selection: Current picker state.
            make_id: Newly selected MAKE (None clears everything).

        Returns:
            New picker state.
        """
        if make_id is None:
            return YmmSelection()

        async def keep(term_id: str | None) -> str | None:
            if term_id and await self.is_descendant_of(term_id, make_id):
                return term_id
            return None

        model_id = await keep(selection.model_id)
        trim_id = await keep(selection.trim_id) if model_id else None
        chassis_id = await keep(selection.chassis_id)
        return YmmSelection(
            make_id=make_id,
            model_id=model_id,
            trim_id=trim_id,
            chassis_id=chassis_id,
        )

    async def resolve_names(
        self,
        make: str | None = None,
        model: str | None = None,
        trim: str | None = None,
        chassis: str | None = None,
    ) -> ResolvedNames:
        """Translate fit-term IDs into the names stored on fitment rows.

        Values that are not IDs of a term of the matching type pass through
        unchanged, so callers can mix names and IDs.
        """
        index = await self._index()

        def name_for(value: str | None, term_type: FitTermType) -> str | None:
            if not value:
                return value
            term = index.get(value)
            if term is not None and term.type == term_type:
                return term.name
            return value

        return ResolvedNames(
            make=name_for(make, FitTermType.MAKE),
            model=name_for(model, FitTermType.MODEL),
            trim=name_for(trim, FitTermType.TRIM),
            chassis=name_for(chassis, FitTermType.CHASSIS),
        )
