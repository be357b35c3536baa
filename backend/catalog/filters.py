"""Merging and filtering of the working problem set."""
from typing import Iterable, Optional

from .models import Category, Division, Problem

MATCH_ALL = "All"


def merge_problems(bank: Iterable[Problem], catalog: Iterable[Problem]) -> list[Problem]:
    """Custom bank problems first, then the catalog."""
    return [*bank, *catalog]


def _matches(value, wanted) -> bool:
    if wanted is None or wanted == MATCH_ALL:
        return True
    return value == wanted


def filter_problems(
    problems: Iterable[Problem],
    category: Optional[Category | str] = None,
    division: Optional[Division | str] = None,
    year: Optional[str] = None,
) -> list[Problem]:
    """Keep problems matching every given filter; None or "All" matches everything."""
    result = []
    for p in problems:
        cat_match = _matches(p.category, category)
        div_match = _matches(p.division, division)
        year_match = _matches(p.year, year)
        if cat_match and div_match and year_match:
            result.append(p)
    return result
