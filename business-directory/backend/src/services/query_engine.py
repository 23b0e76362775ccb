"""Filter, sort and paginate business records in memory.

These functions are pure: they never mutate their inputs and always return
new lists. The only supported composition is filter -> sort -> paginate,
wrapped up in ``run_pipeline``.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Sequence

from models import BusinessRecord, FilterCriteria, PageResult, SortKey


class InvalidArgument(ValueError):
    pass


_SORT_FIELDS: Dict[SortKey, Callable[[BusinessRecord], object]] = {
    SortKey.BY_RATING: lambda b: b.rating,
    SortKey.BY_REVIEW_COUNT: lambda b: b.review_count,
    SortKey.BY_RECENCY: lambda b: b.created_at,
}


def _matches(record: BusinessRecord, criteria: FilterCriteria, needle: str) -> bool:
    if criteria.verified_only and not record.is_verified:
        return False
    if criteria.howard_affiliated_only and not record.is_howard_affiliated:
        return False
    if criteria.minority_owned_only and not record.is_minority_owned:
        return False
    if criteria.categories and record.category not in criteria.categories:
        return False
    if record.price_level > criteria.max_price_level:
        return False
    if criteria.min_rating > 0 and record.rating < criteria.min_rating:
        return False
    if needle and needle not in record.search_text().casefold():
        return False
    return True


def filter_records(
    records: Iterable[BusinessRecord],
    criteria: FilterCriteria,
    query: str = "",
) -> List[BusinessRecord]:
    """Keep the records that satisfy every active criterion, in input order.

    The free-text query is trimmed and case-folded; an empty or whitespace-only
    query applies no text filter. Categories match by exact name.
    """
    needle = (query or "").strip().casefold()
    return [b for b in records if _matches(b, criteria, needle)]


def sort_records(records: Iterable[BusinessRecord], sort_key: SortKey | str) -> List[BusinessRecord]:
    """Return a new list sorted descending by the chosen key.

    ``sorted`` is stable, so tied records keep their relative order, which in
    turn keeps pagination deterministic across pages.
    """
    key_fn = _SORT_FIELDS[SortKey.parse(sort_key)]
    return sorted(records, key=key_fn, reverse=True)


def validate_page(page_number: int, page_size: int) -> None:
    if isinstance(page_number, bool) or not isinstance(page_number, int):
        raise InvalidArgument(f"page number must be an integer, got {page_number!r}")
    if isinstance(page_size, bool) or not isinstance(page_size, int):
        raise InvalidArgument(f"page size must be an integer, got {page_size!r}")
    if page_number < 1:
        raise InvalidArgument(f"page number must be >= 1, got {page_number}")
    if page_size <= 0:
        raise InvalidArgument(f"page size must be > 0, got {page_size}")


def paginate_records(records: Sequence[BusinessRecord], page_number: int, page_size: int) -> PageResult:
    validate_page(page_number, page_size)
    start = (page_number - 1) * page_size
    return PageResult(items=list(records[start : start + page_size]), total_match_count=len(records))


def run_pipeline(
    records: Iterable[BusinessRecord],
    criteria: FilterCriteria,
    query: str,
    page_number: int,
    page_size: int,
) -> PageResult:
    validate_page(page_number, page_size)
    filtered = filter_records(records, criteria, query)
    ordered = sort_records(filtered, criteria.sort_key)
    return paginate_records(ordered, page_number, page_size)
