import itertools

from backend.catalog import (
    CATALOG,
    CUSTOM_YEAR,
    MATCH_ALL,
    Category,
    Division,
    Problem,
    catalog_years,
    filter_problems,
    merge_problems,
)

CUSTOM = [
    Problem(
        id="ai-batch-1-0",
        title="Custom Counting",
        category=Category.COUNTING,
        division=Division.E,
        year=CUSTOM_YEAR,
        description="How many ways?",
        solution=["Count them."],
        answer="6",
    ),
    Problem(
        id="ai-batch-1-1",
        title="Custom Geometry",
        category=Category.GEOMETRY,
        division=Division.M,
        year=CUSTOM_YEAR,
        description="Find the area.",
        solution=["Multiply."],
        answer="12",
    ),
]


def test_merge_puts_bank_first():
    merged = merge_problems(CUSTOM, CATALOG)
    assert merged[: len(CUSTOM)] == CUSTOM
    assert merged[len(CUSTOM):] == list(CATALOG)


def test_no_filters_returns_everything():
    merged = merge_problems(CUSTOM, CATALOG)
    assert filter_problems(merged) == merged
    assert filter_problems(merged, MATCH_ALL, MATCH_ALL, MATCH_ALL) == merged


def test_every_filter_combination_is_a_matching_subset():
    merged = merge_problems(CUSTOM, CATALOG)
    categories = [None, *Category]
    divisions = [None, *Division]
    years = [None, CUSTOM_YEAR, *catalog_years()]

    for category, division, year in itertools.product(categories, divisions, years):
        result = filter_problems(merged, category, division, year)
        for p in result:
            assert p in merged
            assert category is None or p.category == category
            assert division is None or p.division == division
            assert year is None or p.year == year
        expected = [
            p for p in merged
            if (category is None or p.category == category)
            and (division is None or p.division == division)
            and (year is None or p.year == year)
        ]
        assert result == expected


def test_filters_accept_plain_strings():
    merged = merge_problems(CUSTOM, CATALOG)
    result = filter_problems(merged, "Geometry", "Division M", CUSTOM_YEAR)
    assert [p.id for p in result] == ["ai-batch-1-1"]


def test_unknown_filter_value_matches_nothing():
    assert filter_problems(CATALOG, year="1999-2000") == []
