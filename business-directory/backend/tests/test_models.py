from __future__ import annotations

import pytest

from models import FilterCriteria, SortKey


def test_criteria_normalize_categories_and_sort_key() -> None:
    criteria = FilterCriteria(categories=["Restaurant", "Services", "Restaurant"], sort_key="newest")
    assert criteria.categories == frozenset({"Restaurant", "Services"})
    assert criteria.sort_key is SortKey.BY_RECENCY
    assert hash(criteria) == hash(FilterCriteria(categories={"Services", "Restaurant"}, sort_key=SortKey.BY_RECENCY))


def test_single_category_string_is_rejected() -> None:
    with pytest.raises(ValueError):
        FilterCriteria(categories="Restaurant")


@pytest.mark.parametrize("level", [0, 5, -1])
def test_price_level_out_of_range_is_rejected(level) -> None:
    with pytest.raises(ValueError):
        FilterCriteria(max_price_level=level)


@pytest.mark.parametrize("rating", [-0.5, 5.1])
def test_min_rating_out_of_range_is_rejected(rating) -> None:
    with pytest.raises(ValueError):
        FilterCriteria(min_rating=rating)


def test_range_bounds_are_accepted() -> None:
    assert FilterCriteria(max_price_level=1, min_rating=5.0).max_price_level == 1
    assert FilterCriteria(min_rating=0).min_rating == 0
