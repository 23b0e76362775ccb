"""Utility helpers for the business directory backend."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    if not value:
        return "unset"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


_DATETIME = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 string (or datetime) into an aware UTC datetime.

    Postgres trims trailing zeros off fractional seconds, so short fractions
    such as ``.12345`` parse on every supported Python. Naive values are taken to be UTC so that
    every timestamp stays comparable.
    """
    if not isinstance(value, (str, datetime)):
        raise TypeError(f"unsupported timestamp: {value!r}")
    dt = _DATETIME.validate_python(value.strip() if isinstance(value, str) else value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_str_list(value: Any) -> list[str]:
    """Normalize list | comma separated str | None into a clean list[str]."""
    if value is None:
        return []
    if isinstance(value, str):
        return [s.strip() for s in value.split(",") if s.strip()]
    if isinstance(value, (list, tuple)):
        out: list[str] = []
        for item in value:
            if item is None:
                continue
            s = str(item).strip()
            if s:
                out.append(s)
        return out
    raise TypeError(f"expected a list of strings, got {type(value).__name__}")
