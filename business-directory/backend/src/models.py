"""Data models for the business directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

CATEGORIES: list[str] = [
    "Restaurant",
    "Coffee & Tea",
    "Fashion & Retail",
    "Beauty & Wellness",
    "Services",
]

PRICE_LEVEL_MIN = 1
PRICE_LEVEL_MAX = 4
RATING_MAX = 5.0


class SortKey(str, Enum):
    BY_RATING = "rating"
    BY_RECENCY = "newest"
    BY_REVIEW_COUNT = "mostReviewed"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortKey":
        """Unknown or empty values sort by rating."""
        if isinstance(value, SortKey):
            return value
        for key in cls:
            if key.value == value or key.name == value:
                return key
        return cls.BY_RATING


@dataclass(frozen=True)
class BusinessRecord:
    id: str
    name: str
    category: str
    image: str
    rating: float
    review_count: int
    price_level: int
    location: str
    description: str
    created_at: datetime
    languages: list[str] = field(default_factory=list)
    is_verified: bool = False
    is_howard_affiliated: bool = False
    is_minority_owned: bool = False

    def search_text(self) -> str:
        return f"{self.name} {self.category} {self.location} {self.description}"


@dataclass(frozen=True)
class FilterCriteria:
    verified_only: bool = False
    howard_affiliated_only: bool = False
    minority_owned_only: bool = False
    categories: frozenset[str] = field(default_factory=frozenset)
    max_price_level: int = PRICE_LEVEL_MAX
    min_rating: float = 0.0
    sort_key: SortKey = SortKey.BY_RATING

    def __post_init__(self) -> None:
        # accept any iterable of category names, store a hashable set
        if isinstance(self.categories, str):
            raise ValueError(f"categories must be a collection of names, not the string {self.categories!r}")
        if not isinstance(self.categories, frozenset):
            object.__setattr__(self, "categories", frozenset(self.categories))
        if not isinstance(self.sort_key, SortKey):
            object.__setattr__(self, "sort_key", SortKey.parse(self.sort_key))
        if not PRICE_LEVEL_MIN <= self.max_price_level <= PRICE_LEVEL_MAX:
            raise ValueError(f"max_price_level must be between {PRICE_LEVEL_MIN} and {PRICE_LEVEL_MAX}")
        if not 0 <= self.min_rating <= RATING_MAX:
            raise ValueError(f"min_rating must be between 0 and {RATING_MAX}")


@dataclass
class PageResult:
    items: list[BusinessRecord]
    total_match_count: int
