"""Fitment matching.

Pure predicates deciding whether stored fitment rows satisfy a vehicle
query. No I/O happens here.

Year bounds are an open interval: a missing ``year_from`` or ``year_to``
is unbounded on that side. Text dimensions match exactly, ignoring case
and surrounding whitespace. A query with no fields set matches every row;
callers should skip fitment filtering entirely in that case.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from fitsync.domain.entities import ProductFitment


@dataclass(frozen=True)
class FitmentQuery:
    """A vehicle to match fitments against. Unset fields impose no constraint."""

    year: int | None = None
    make: str | None = None
    model: str | None = None
    trim: str | None = None
    chassis: str | None = None

    @classmethod
    def build(
        cls,
        year: int | None = None,
        make: str | None = None,
        model: str | None = None,
        trim: str | None = None,
        chassis: str | None = None,
    ) -> "FitmentQuery":
        """Build a query, treating blank strings as unset."""
        return cls(
            year=year,
            make=_clean(make),
            model=_clean(model),
            trim=_clean(trim),
            chassis=_clean(chassis),
        )

    @property
    def is_empty(self) -> bool:
        """True when no dimension is set."""
        return (
            self.year is None
            and not self.make
            and not self.model
            and not self.trim
            and not self.chassis
        )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _text_matches(stored: str | None, wanted: str | None) -> bool:
    if not wanted:
        return True
    if stored is None:
        return False
    return stored.strip().casefold() == wanted.strip().casefold()


def year_in_range(year: int, year_from: int | None, year_to: int | None) -> bool:
    """Open-interval year check."""
    return (year_from is None or year_from <= year) and (year_to is None or year_to >= year)


def matches(fitment: ProductFitment, query: FitmentQuery) -> bool:
    """Check whether one fitment row satisfies a query.

    Args:
        fitment: Stored fitment row.
        query: Vehicle query.

    Returns:
        True if every set query dimension is satisfied.
    """
    if query.year is not None and not year_in_range(
        query.year, fitment.year_from, fitment.year_to
    ):
        return False
    return (
        _text_matches(fitment.make, query.make)
        and _text_matches(fitment.model, query.model)
        and _text_matches(fitment.trim, query.trim)
        and _text_matches(fitment.chassis, query.chassis)
    )


def matching_product_gids(
    fitments: Iterable[ProductFitment], query: FitmentQuery
) -> set[str]:
    """Products with at least one fitment row satisfying ``query``.

    A product fits when any one of its rows matches.
    """
    return {f.product_gid for f in fitments if matches(f, query)}
