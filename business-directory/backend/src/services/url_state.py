"""Browse-page state <-> shareable query parameters.

Keys follow the browse page URL: ``q``, ``verified``, ``howardAffiliated``,
``minorityOwned`` (present as ``true`` when on), repeated ``category``,
``maxPrice``, ``minRating``, ``sort`` and ``page``. Identity values are left
out of generated URLs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from models import (
    CATEGORIES,
    FilterCriteria,
    PRICE_LEVEL_MAX,
    PRICE_LEVEL_MIN,
    RATING_MAX,
    SortKey,
)
from services.query_engine import InvalidArgument

BOOL_PARAMS = {
    "verified": "verified_only",
    "howardAffiliated": "howard_affiliated_only",
    "minorityOwned": "minority_owned_only",
}


@dataclass(frozen=True)
class BrowseState:
    query: str = ""
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    page: int = 1


def _get_all(params: Any, key: str) -> List[str]:
    if hasattr(params, "getlist"):
        return [str(v) for v in params.getlist(key)]
    value = params.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _get_one(params: Any, key: str) -> Optional[str]:
    values = _get_all(params, key)
    if not values:
        return None
    value = values[-1].strip()
    return value or None


def _parse_int(key: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgument(f"{key} must be an integer, got {raw!r}")


def _parse_float(key: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise InvalidArgument(f"{key} must be a number, got {raw!r}")


def state_from_params(params: Any) -> BrowseState:
    """Parse query parameters; unknown keys are ignored, bad values rejected."""
    flags = {attr: _get_one(params, key) == "true" for key, attr in BOOL_PARAMS.items()}

    categories = frozenset(c.strip() for c in _get_all(params, "category") if c.strip())

    max_price = PRICE_LEVEL_MAX
    raw = _get_one(params, "maxPrice")
    if raw is not None:
        max_price = _parse_int("maxPrice", raw)
        if not PRICE_LEVEL_MIN <= max_price <= PRICE_LEVEL_MAX:
            raise InvalidArgument(f"maxPrice must be between {PRICE_LEVEL_MIN} and {PRICE_LEVEL_MAX}")

    min_rating = 0.0
    raw = _get_one(params, "minRating")
    if raw is not None:
        min_rating = _parse_float("minRating", raw)
        if not 0 <= min_rating <= RATING_MAX:
            raise InvalidArgument(f"minRating must be between 0 and {RATING_MAX}")

    page = 1
    raw = _get_one(params, "page")
    if raw is not None:
        page = _parse_int("page", raw)
        if page < 1:
            raise InvalidArgument("page must be >= 1")

    criteria = FilterCriteria(
        categories=categories,
        max_price_level=max_price,
        min_rating=min_rating,
        sort_key=SortKey.parse(_get_one(params, "sort")),
        **flags,
    )
    return BrowseState(query=(_get_one(params, "q") or ""), criteria=criteria, page=page)


def page_size_from_params(params: Any, default: int, maximum: int) -> int:
    """Read ``pageSize``, falling back to ``default`` when it is absent."""
    raw = _get_one(params, "pageSize")
    if raw is None:
        return default
    size = _parse_int("pageSize", raw)
    if not 1 <= size <= maximum:
        raise InvalidArgument(f"pageSize must be between 1 and {maximum}")
    return size


def state_to_params(state: BrowseState) -> List[Tuple[str, str]]:
    c = state.criteria
    params: list[tuple[str, str]] = []
    for key, attr in BOOL_PARAMS.items():
        if getattr(c, attr):
            params.append((key, "true"))
    # known categories first in display order, then any extras
    known = [cat for cat in CATEGORIES if cat in c.categories]
    extra = sorted(c.categories - set(known))
    params.extend(("category", cat) for cat in known + extra)
    if c.max_price_level < PRICE_LEVEL_MAX:
        params.append(("maxPrice", str(c.max_price_level)))
    if c.min_rating > 0:
        params.append(("minRating", f"{c.min_rating:g}"))
    if c.sort_key is not SortKey.BY_RATING:
        params.append(("sort", c.sort_key.value))
    if state.query.strip():
        params.append(("q", state.query.strip()))
    if state.page > 1:
        params.append(("page", str(state.page)))
    return params
