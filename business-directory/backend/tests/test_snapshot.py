from __future__ import annotations

import json

import pytest

from config import Configuration
from services.snapshot import STATIC_BUSINESSES, SnapshotProvider


def test_builtin_seed_by_default() -> None:
    provider = SnapshotProvider.from_config(Configuration())
    assert [b.id for b in provider.records()] == ["1", "2", "3", "4"]
    assert provider.get("3").name == "Heritage Boutique"
    assert provider.get("nope") is None


def test_seed_ids_are_unique_and_in_range() -> None:
    assert len({b.id for b in STATIC_BUSINESSES}) == len(STATIC_BUSINESSES)
    for b in STATIC_BUSINESSES:
        assert 1 <= b.price_level <= 4
        assert 0 <= b.rating <= 5


def test_loads_json_snapshot_once(tmp_path) -> None:
    path = tmp_path / "businesses.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": 10,
                    "business_name": "Kente Threads",
                    "category": "Fashion & Retail",
                    "rating": 4.2,
                    "review_count": 8,
                    "price_level": 2,
                    "address": "Silver Spring, MD",
                    "verification_status": "verified",
                    "created_at": "2024-05-01T12:00:00Z",
                },
                {
                    "id": "11",
                    "name": "Jollof House",
                    "category": "Restaurant",
                    "rating": 4.6,
                    "reviewCount": 31,
                    "priceLevel": 1,
                    "languages": "EN, FR",
                    "location": "Washington, DC",
                    "isHowardAffiliated": True,
                    "createdAt": "2024-06-01",
                },
            ]
        ),
        encoding="utf-8",
    )
    provider = SnapshotProvider(path=str(path), placeholder_image="/img/none.jpg")
    records = provider.records()
    assert provider.records() is records
    kente, jollof = records
    assert kente.id == "10" and kente.is_verified and kente.location == "Silver Spring, MD"
    assert kente.image == "/img/none.jpg"
    assert jollof.languages == ["EN", "FR"]
    assert jollof.is_howard_affiliated and not jollof.is_verified
    assert jollof.created_at.tzinfo is not None


def test_duplicate_ids_are_rejected(tmp_path) -> None:
    path = tmp_path / "dupes.json"
    path.write_text(json.dumps({"businesses": [{"id": "1"}, {"id": "1"}]}), encoding="utf-8")
    with pytest.raises(ValueError):
        SnapshotProvider(path=str(path)).records()


def test_snapshot_is_kept_in_id_order(tmp_path) -> None:
    injected = SnapshotProvider([STATIC_BUSINESSES[2], STATIC_BUSINESSES[0], STATIC_BUSINESSES[1]])
    assert [b.id for b in injected.records()] == ["1", "2", "3"]

    path = tmp_path / "unordered.json"
    path.write_text(json.dumps([{"id": "b", "name": "B"}, {"id": "a", "name": "A"}]), encoding="utf-8")
    assert [b.id for b in SnapshotProvider(path=str(path)).records()] == ["a", "b"]
