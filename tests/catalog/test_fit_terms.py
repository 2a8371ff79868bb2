"""Tests for the fit-term hierarchy."""

import pytest

from fitsync.catalog.fit_terms import FitTermHierarchy
from fitsync.domain.entities import FitTerm, FitTermType, YmmSelection
from fitsync.domain.exceptions import (
    CorruptHierarchyError,
    CycleError,
    DuplicateError,
    HasChildrenError,
    InvalidParentError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def hierarchy(store) -> FitTermHierarchy:
    return FitTermHierarchy(store)


class TestCreate:
    """Tests for parent/type rules on create."""

    @pytest.mark.asyncio
    async def test_make_model_trim_chain(self, hierarchy) -> None:
        honda = await hierarchy.create("make", "Honda")
        civic = await hierarchy.create(FitTermType.MODEL, "Civic", honda.id)
        si = await hierarchy.create("TRIM", " Si ", civic.id)

        assert honda.type == FitTermType.MAKE
        assert civic.parent_id == honda.id
        assert si.name == "Si"

    @pytest.mark.asyncio
    async def test_model_without_make_rejected(self, hierarchy, store) -> None:
        with pytest.raises(InvalidParentError) as exc_info:
            await hierarchy.create("MODEL", "Civic")
        assert exc_info.value.error_code == "INVALID_PARENT"
        assert await store.list_fit_terms() == []

    @pytest.mark.asyncio
    async def test_make_with_parent_rejected(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        with pytest.raises(InvalidParentError):
            await hierarchy.create("MAKE", "Acura", honda.id)

    @pytest.mark.asyncio
    async def test_trim_under_make_rejected(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        with pytest.raises(InvalidParentError):
            await hierarchy.create("TRIM", "Si", honda.id)

    @pytest.mark.asyncio
    async def test_model_under_trim_rejected(self, hierarchy, store) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)
        si = await hierarchy.create("TRIM", "Si", civic.id)
        before = await store.list_fit_terms()

        with pytest.raises(ValidationError) as exc_info:
            await hierarchy.create("MODEL", "X", si.id)

        assert isinstance(exc_info.value, InvalidParentError)
        assert await store.list_fit_terms() == before

    @pytest.mark.asyncio
    async def test_chassis_parents(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)
        si = await hierarchy.create("TRIM", "Si", civic.id)

        assert (await hierarchy.create("CHASSIS", "FK8", civic.id)).parent_id == civic.id
        assert (await hierarchy.create("CHASSIS", "K20", honda.id)).parent_id == honda.id
        assert (await hierarchy.create("CHASSIS", "Universal")).parent_id is None
        with pytest.raises(InvalidParentError):
            await hierarchy.create("CHASSIS", "X", si.id)

    @pytest.mark.asyncio
    async def test_unknown_parent_rejected(self, hierarchy) -> None:
        with pytest.raises(InvalidParentError):
            await hierarchy.create("MODEL", "Civic", "nope")

    @pytest.mark.asyncio
    async def test_bad_type_and_blank_name(self, hierarchy) -> None:
        with pytest.raises(ValidationError):
            await hierarchy.create("ENGINE", "K20")
        with pytest.raises(ValidationError):
            await hierarchy.create("MAKE", "   ")

    @pytest.mark.asyncio
    async def test_duplicate_under_same_parent(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        toyota = await hierarchy.create("MAKE", "Toyota")
        await hierarchy.create("MODEL", "Civic", honda.id)

        with pytest.raises(DuplicateError):
            await hierarchy.create("MODEL", "Civic", honda.id)
        # Same name under another parent is fine
        await hierarchy.create("MODEL", "Civic", toyota.id)


class TestUpdateDelete:
    """Tests for rename, move and delete."""

    @pytest.mark.asyncio
    async def test_rename(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        updated = await hierarchy.update(honda.id, name="Honda Motor")
        assert updated.name == "Honda Motor"

    @pytest.mark.asyncio
    async def test_unknown_term(self, hierarchy) -> None:
        with pytest.raises(NotFoundError):
            await hierarchy.update("missing", name="x")

    @pytest.mark.asyncio
    async def test_move_under_own_descendant_is_rejected(self, hierarchy, store) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)
        chassis = await hierarchy.create("CHASSIS", "FK8", civic.id)
        # A MODEL under a CHASSIS can only come from imported data
        await store.add_fit_term(
            FitTerm(id="model-under-chassis", type=FitTermType.MODEL, name="X", parent_id=chassis.id)
        )

        with pytest.raises(CycleError):
            await hierarchy.update(chassis.id, parent_id="model-under-chassis")

    @pytest.mark.asyncio
    async def test_move_model_to_other_make(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        acura = await hierarchy.create("MAKE", "Acura")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)

        moved = await hierarchy.update(civic.id, parent_id=acura.id)
        assert moved.parent_id == acura.id

    @pytest.mark.asyncio
    async def test_clear_parent_of_model_rejected(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)
        with pytest.raises(InvalidParentError):
            await hierarchy.update(civic.id, clear_parent=True)

    @pytest.mark.asyncio
    async def test_delete_requires_no_children(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)

        with pytest.raises(HasChildrenError):
            await hierarchy.delete(honda.id)
        assert await hierarchy.delete(civic.id) is True
        assert await hierarchy.delete(honda.id) is True
        assert await hierarchy.delete(honda.id) is False


class TestQueries:
    """Tests for tree listing, ancestry and picker resets."""

    @pytest.mark.asyncio
    async def test_tree_orders_by_name(self, hierarchy) -> None:
        toyota = await hierarchy.create("MAKE", "Toyota")
        honda = await hierarchy.create("MAKE", "Honda")
        await hierarchy.create("MODEL", "Civic", honda.id)
        await hierarchy.create("MODEL", "Accord", honda.id)
        await hierarchy.create("CHASSIS", "Universal")

        forest = await hierarchy.tree()
        assert [n.item.name for n in forest] == ["Honda", "Toyota", "Universal"]
        assert [n.item.name for n in forest[0].children] == ["Accord", "Civic"]
        assert forest[1].item.id == toyota.id

    @pytest.mark.asyncio
    async def test_tree_by_type_is_flat(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        await hierarchy.create("MODEL", "Civic", honda.id)

        forest = await hierarchy.tree("model")
        assert [n.item.name for n in forest] == ["Civic"]
        assert forest[0].children == []

    @pytest.mark.asyncio
    async def test_is_descendant_of(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)
        si = await hierarchy.create("TRIM", "Si", civic.id)
        toyota = await hierarchy.create("MAKE", "Toyota")

        assert await hierarchy.is_descendant_of(si.id, honda.id) is True
        assert await hierarchy.is_descendant_of(si.id, civic.id) is True
        assert await hierarchy.is_descendant_of(si.id, toyota.id) is False
        assert await hierarchy.is_descendant_of(honda.id, honda.id) is False
        assert await hierarchy.is_descendant_of(honda.id, si.id) is False

    @pytest.mark.asyncio
    async def test_is_descendant_of_cycle_raises(self, hierarchy, store) -> None:
        await store.add_fit_term(FitTerm(id="a", type=FitTermType.MODEL, name="A", parent_id="b"))
        await store.add_fit_term(FitTerm(id="b", type=FitTermType.MODEL, name="B", parent_id="a"))
        with pytest.raises(CorruptHierarchyError):
            await hierarchy.is_descendant_of("a", "root")

    @pytest.mark.asyncio
    async def test_reset_dependents(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)
        si = await hierarchy.create("TRIM", "Si", civic.id)
        fk8 = await hierarchy.create("CHASSIS", "FK8", civic.id)
        toyota = await hierarchy.create("MAKE", "Toyota")
        selection = YmmSelection(
            make_id=honda.id, model_id=civic.id, trim_id=si.id, chassis_id=fk8.id
        )

        kept = await hierarchy.reset_dependents(selection, honda.id)
        assert kept == selection

        cleared = await hierarchy.reset_dependents(selection, toyota.id)
        assert cleared == YmmSelection(make_id=toyota.id)

        assert await hierarchy.reset_dependents(selection, None) == YmmSelection()

    @pytest.mark.asyncio
    async def test_resolve_names_mixes_ids_and_names(self, hierarchy) -> None:
        honda = await hierarchy.create("MAKE", "Honda")
        civic = await hierarchy.create("MODEL", "Civic", honda.id)

        names = await hierarchy.resolve_names(make=honda.id, model=civic.id, trim="Si")
        assert (names.make, names.model, names.trim, names.chassis) == ("Honda", "Civic", "Si", None)

        # An ID of the wrong type is treated as a plain name
        names = await hierarchy.resolve_names(make=civic.id)
        assert names.make == civic.id
