import re
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError


# Ensure backend/src is on sys.path for tests so that imports like `services.*` and `models` work.
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


_ILIKE = re.compile(r'(\w+)\.ilike\.("(?:[^"\\]|\\.)*")')


def _ilike_needle(quoted: str) -> str:
    # undo PostgREST quoting, then LIKE escaping, then drop the outer wildcards
    body = quoted[1:-1]
    body = re.sub(r"\\(.)", r"\1", body)
    body = body[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


class FakeQuery:
    """In-memory stand-in for a supabase-py table query builder."""

    def __init__(self, owner: "FakeSupabase") -> None:
        self.owner = owner
        self.preds = []
        self.orders = []
        self.count_mode = None
        self.rng = None
        self.lim = None

    def _log(self, *call):
        self.owner.calls.append(call)
        return self

    def select(self, *columns, count=None):
        self.count_mode = count
        return self._log("select", columns, count)

    def or_(self, expr):
        terms = [(col, _ilike_needle(val).lower()) for col, val in _ILIKE.findall(expr)]
        self.preds.append(lambda r: any(n in str(r.get(c) or "").lower() for c, n in terms))
        return self._log("or_", expr)

    def eq(self, col, value):
        self.preds.append(lambda r: r.get(col) == value)
        return self._log("eq", col, value)

    def in_(self, col, values):
        self.preds.append(lambda r: r.get(col) in values)
        return self._log("in_", col, list(values))

    def lte(self, col, value):
        self.preds.append(lambda r: r.get(col) is not None and r[col] <= value)
        return self._log("lte", col, value)

    def gte(self, col, value):
        self.preds.append(lambda r: r.get(col) is not None and r[col] >= value)
        return self._log("gte", col, value)

    def order(self, col, desc=False):
        self.orders.append((col, desc))
        return self._log("order", col, desc)

    def range(self, start, end):
        self.rng = (start, end)
        return self._log("range", start, end)

    def limit(self, n):
        self.lim = n
        return self._log("limit", n)

    def execute(self):
        if self.owner.error is not None:
            raise self.owner.error
        rows = [r for r in self.owner.rows if all(p(r) for p in self.preds)]
        for col, desc in reversed(self.orders):
            rows = sorted(rows, key=lambda r: r[col], reverse=desc)
        total = len(rows)
        if self.rng is not None:
            if self.count_mode is not None and self.rng[0] > total:
                # what PostgREST answers with HTTP 416 for an offset past the last row
                raise APIError(
                    {
                        "code": "PGRST103",
                        "message": "Requested range not satisfiable",
                        "details": f"An offset of {self.rng[0]} was requested, but there are only {total} rows.",
                        "hint": None,
                    }
                )
            rows = rows[self.rng[0] : self.rng[1] + 1]
        if self.lim is not None:
            rows = rows[: self.lim]
        count = None if (self.owner.count_missing or self.count_mode is None) else total
        return SimpleNamespace(data=[dict(r) for r in rows], count=count)


class FakeSupabase:
    def __init__(self, rows=(), error=None, count_missing=False) -> None:
        self.rows = [dict(r) for r in rows]
        self.error = error
        self.count_missing = count_missing
        self.calls = []
        self.tables = []

    def table(self, name):
        self.tables.append(name)
        return FakeQuery(self)


def record_to_row(b):
    return {
        "id": b.id,
        "business_name": b.name,
        "category": b.category,
        "image_url": b.image,
        "rating": b.rating,
        "review_count": b.review_count,
        "price_level": b.price_level,
        "languages": list(b.languages),
        "address": b.location,
        "verification_status": "verified" if b.is_verified else "pending",
        "is_howard_affiliated": b.is_howard_affiliated,
        "is_minority_owned": b.is_minority_owned,
        "description": b.description,
        "created_at": b.created_at.isoformat(),
    }


@pytest.fixture
def fake_supabase():
    return FakeSupabase


@pytest.fixture
def to_row():
    return record_to_row
