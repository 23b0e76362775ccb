from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from config import Configuration
from models import BusinessRecord
from utils import parse_timestamp, to_str_list


STATIC_BUSINESSES: List[BusinessRecord] = [
    BusinessRecord(
        id="1",
        name="Elevation Coffee House",
        category="Coffee & Tea",
        image="/images/coffee.jpg",
        rating=4.8,
        review_count=124,
        price_level=2,
        languages=["EN", "ES"],
        location="Washington, DC",
        is_verified=True,
        is_howard_affiliated=True,
        is_minority_owned=True,
        description=(
            "Premium coffee roasted daily with a mission to uplift the community. "
            "Howard alumni-owned since 2020."
        ),
        created_at=parse_timestamp("2024-03-01T00:00:00Z"),
    ),
    BusinessRecord(
        id="2",
        name="Soul & Flavor Bistro",
        category="Restaurant",
        image="/images/restaurant.jpg",
        rating=4.9,
        review_count=286,
        price_level=3,
        languages=["EN"],
        location="Washington, DC",
        is_verified=True,
        is_howard_affiliated=False,
        is_minority_owned=True,
        description=(
            "Contemporary soul food restaurant celebrating Black culinary excellence "
            "with locally-sourced ingredients."
        ),
        created_at=parse_timestamp("2024-01-15T00:00:00Z"),
    ),
    BusinessRecord(
        id="3",
        name="Heritage Boutique",
        category="Fashion & Retail",
        image="/images/boutique.jpg",
        rating=4.7,
        review_count=92,
        price_level=3,
        languages=["EN", "FR"],
        location="Washington, DC",
        is_verified=True,
        is_howard_affiliated=True,
        is_minority_owned=True,
        description=(
            "Curated fashion celebrating African diaspora designers. "
            "Founded by Howard University fashion alumna."
        ),
        created_at=parse_timestamp("2024-02-10T00:00:00Z"),
    ),
    BusinessRecord(
        id="4",
        name="Crown & Glory Salon",
        category="Beauty & Wellness",
        image="/images/salon.jpg",
        rating=5.0,
        review_count=156,
        price_level=2,
        languages=["EN"],
        location="Washington, DC",
        is_verified=True,
        is_howard_affiliated=True,
        is_minority_owned=True,
        description=(
            "Full-service salon specializing in natural hair care and protective styling. "
            "Howard student-owned."
        ),
        created_at=parse_timestamp("2024-04-20T00:00:00Z"),
    ),
]


def record_from_dict(item: Dict[str, Any], placeholder_image: str) -> BusinessRecord:
    """Build a record from a camelCase or snake_case JSON object."""

    def pick(*names: str, default: Any = None) -> Any:
        for name in names:
            if item.get(name) is not None:
                return item[name]
        return default

    return BusinessRecord(
        id=str(item["id"]),
        name=str(pick("name", "business_name", default="")),
        category=str(pick("category", default="")),
        image=str(pick("image", "image_url", default=placeholder_image)),
        rating=float(pick("rating", default=0.0)),
        review_count=int(pick("reviewCount", "review_count", default=0)),
        price_level=int(pick("priceLevel", "price_level", default=1)),
        languages=to_str_list(pick("languages")),
        location=str(pick("location", "address", default="")),
        is_verified=bool(pick("isVerified", "is_verified", default=False))
        or pick("verification_status") == "verified",
        is_howard_affiliated=bool(pick("isHowardAffiliated", "is_howard_affiliated", default=False)),
        is_minority_owned=bool(pick("isMinorityOwned", "is_minority_owned", default=False)),
        description=str(pick("description", default="")),
        created_at=parse_timestamp(pick("createdAt", "created_at", default="1970-01-01T00:00:00Z")),
    )


def _by_id(records: Iterable[BusinessRecord]) -> List[BusinessRecord]:
    # the remote query breaks sort ties by id ascending
    return sorted(records, key=lambda r: r.id)


class SnapshotProvider:
    """In-memory business snapshot used when the remote store is unusable."""

    def __init__(
        self,
        records: Optional[List[BusinessRecord]] = None,
        *,
        path: Optional[str] = None,
        placeholder_image: str = "/images/placeholder.jpg",
    ) -> None:
        self.path = path
        self.placeholder_image = placeholder_image
        self._records: Optional[List[BusinessRecord]] = _by_id(records) if records is not None else None

    @classmethod
    def from_config(cls, cfg: Configuration) -> "SnapshotProvider":
        return cls(path=cfg.snapshot_path, placeholder_image=cfg.placeholder_image)

    def records(self) -> List[BusinessRecord]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def get(self, business_id: str) -> Optional[BusinessRecord]:
        for record in self.records():
            if record.id == business_id:
                return record
        return None

    def _load(self) -> List[BusinessRecord]:
        if not self.path:
            return _by_id(STATIC_BUSINESSES)
        payload = json.loads(Path(self.path).read_text(encoding="utf-8"))
        if isinstance(payload, dict):
            payload = payload.get("businesses") or []
        if not isinstance(payload, list):
            raise ValueError(f"snapshot {self.path} must hold a list of businesses")
        records = [record_from_dict(item, self.placeholder_image) for item in payload]
        ids = [r.id for r in records]
        if len(ids) != len(set(ids)):
            raise ValueError(f"snapshot {self.path} contains duplicate business ids")
        logger.info("loaded {} businesses from snapshot {}", len(records), self.path)
        return _by_id(records)
