"""Tests for fitment matching."""

from fitsync.catalog.matcher import FitmentQuery, matches, matching_product_gids, year_in_range
from fitsync.domain.entities import ProductFitment


def _fitment(
    gid: str = "gid://shopify/Product/1",
    make: str = "Honda",
    model: str = "Civic",
    year_from: int | None = None,
    year_to: int | None = None,
    trim: str | None = None,
    chassis: str | None = None,
) -> ProductFitment:
    return ProductFitment(
        id=f"{gid}-{make}-{model}",
        product_gid=gid,
        make=make,
        model=model,
        year_from=year_from,
        year_to=year_to,
        trim=trim,
        chassis=chassis,
    )


class TestYearRange:
    """Tests for open-interval year bounds."""

    def test_closed_range(self) -> None:
        assert year_in_range(2018, 2016, 2021)
        assert year_in_range(2016, 2016, 2021)
        assert year_in_range(2021, 2016, 2021)
        assert not year_in_range(2015, 2016, 2021)
        assert not year_in_range(2022, 2016, 2021)

    def test_open_ends(self) -> None:
        assert year_in_range(1950, None, 2021)
        assert year_in_range(2099, 2016, None)
        assert year_in_range(2000, None, None)
        assert not year_in_range(2015, 2016, None)


class TestQuery:
    """Tests for query construction."""

    def test_blank_strings_are_unset(self) -> None:
        query = FitmentQuery.build(make="  ", model="", trim=None)
        assert query.is_empty
        assert query == FitmentQuery()

    def test_year_alone_is_not_empty(self) -> None:
        assert not FitmentQuery.build(year=2018).is_empty


class TestMatches:
    """Tests for single-row matching."""

    def test_text_is_case_and_space_insensitive(self) -> None:
        fitment = _fitment(make="Honda", model="Civic")
        assert matches(fitment, FitmentQuery.build(make=" honda ", model="CIVIC"))

    def test_no_partial_text_match(self) -> None:
        fitment = _fitment(model="Civic Type R")
        assert not matches(fitment, FitmentQuery.build(model="Civic"))

    def test_trim_set_on_query_but_not_row(self) -> None:
        assert not matches(_fitment(trim=None), FitmentQuery.build(trim="Si"))
        assert matches(_fitment(trim="Si"), FitmentQuery.build(trim="si"))

    def test_unset_query_dimensions_do_not_constrain(self) -> None:
        fitment = _fitment(year_from=2016, year_to=2021, trim="Si", chassis="FK8")
        assert matches(fitment, FitmentQuery.build(make="Honda"))
        assert matches(fitment, FitmentQuery())

    def test_year_outside_range(self) -> None:
        fitment = _fitment(year_from=2016, year_to=2021)
        assert not matches(fitment, FitmentQuery.build(year=2015, make="Honda"))


class TestMatchingProducts:
    """Tests for OR semantics across a product's rows."""

    def test_any_row_matching_is_enough(self) -> None:
        rows = [
            _fitment(gid="p1", make="Toyota", model="Camry"),
            _fitment(gid="p1", make="Honda", model="Civic", year_from=2016, year_to=2021),
            _fitment(gid="p2", make="Honda", model="Accord"),
        ]
        query = FitmentQuery.build(year=2018, make="Honda", model="Civic")
        assert matching_product_gids(rows, query) == {"p1"}

    def test_product_without_rows_never_matches(self) -> None:
        assert matching_product_gids([], FitmentQuery.build(make="Honda")) == set()
