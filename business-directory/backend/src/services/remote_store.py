from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests
from loguru import logger
from postgrest.exceptions import APIError
from supabase import Client, create_client

from config import Configuration
from models import BusinessRecord, FilterCriteria, PageResult, PRICE_LEVEL_MAX, SortKey
from utils import mask_secret, parse_timestamp, to_str_list, utcnow


class RemoteUnavailable(RuntimeError):
    pass


# business_profiles column for each sort key
SORT_COLUMNS: Dict[SortKey, str] = {
    SortKey.BY_RATING: "rating",
    SortKey.BY_REVIEW_COUNT: "review_count",
    SortKey.BY_RECENCY: "created_at",
}

SEARCH_COLUMNS = ("business_name", "category", "address", "description")

# PostgREST error code for a range that starts past the last row
RANGE_NOT_SATISFIABLE = "PGRST103"


def _ilike_value(text: str) -> str:
    """Quote user text as a PostgREST ``ilike`` operand matching it anywhere."""
    like = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    quoted = like.replace("\\", "\\\\").replace('"', '\\"')
    return f'"%{quoted}%"'


def text_search_filter(text: str) -> Optional[str]:
    """Build the PostgREST ``or`` expression for a free-text query.

    Each searchable column gets its own ``ilike``, so a query only matches when
    it fits inside a single column. The local engine matches against the
    space-joined fields instead, so text that spans two of them (e.g.
    "house coffee" against name "... House" and category "Coffee & Tea")
    matches locally but not here.
    """
    needle = (text or "").strip()
    if not needle:
        return None
    value = _ilike_value(needle)
    return ",".join(f"{col}.ilike.{value}" for col in SEARCH_COLUMNS)


def row_to_record(row: Dict[str, Any], placeholder_image: str) -> BusinessRecord:
    """Map a snake_case ``business_profiles`` row onto a BusinessRecord."""
    created_at = row.get("created_at")
    return BusinessRecord(
        id=str(row["id"]),
        name=row.get("business_name") or "",
        category=row.get("category") or "",
        image=row.get("image_url") or placeholder_image,
        rating=float(row.get("rating") or 0.0),
        review_count=int(row.get("review_count") or 0),
        price_level=int(row.get("price_level") or 1),
        languages=to_str_list(row.get("languages")),
        location=row.get("address") or "",
        is_verified=row.get("verification_status") == "verified",
        is_howard_affiliated=bool(row.get("is_howard_affiliated") or False),
        is_minority_owned=bool(row.get("is_minority_owned") or False),
        description=row.get("description") or "",
        created_at=parse_timestamp(created_at) if created_at else utcnow(),
    )


class SupabaseBusinessStore:
    """Query the ``business_profiles`` table through a supabase-py client.

    The client is injected so tests can hand in a fake query builder. All
    failures are raised as ``RemoteUnavailable``.
    """

    def __init__(self, client: Any, *, table: str = "business_profiles", placeholder_image: str = "") -> None:
        self.client = client
        self.table = table
        self.placeholder_image = placeholder_image

    def _apply_filters(self, q, text: str, criteria: FilterCriteria):
        search = text_search_filter(text)
        if search:
            q = q.or_(search)

        if criteria.verified_only:
            q = q.eq("verification_status", "verified")
        if criteria.howard_affiliated_only:
            q = q.eq("is_howard_affiliated", True)
        if criteria.minority_owned_only:
            q = q.eq("is_minority_owned", True)
        if criteria.categories:
            q = q.in_("category", sorted(criteria.categories))
        if criteria.max_price_level < PRICE_LEVEL_MAX:
            q = q.lte("price_level", criteria.max_price_level)
        if criteria.min_rating > 0:
            q = q.gte("rating", criteria.min_rating)
        return q

    def build_query(
        self,
        text: str,
        criteria: FilterCriteria,
        page_number: int,
        page_size: int,
    ):
        q = self.client.table(self.table).select("*", count="exact")
        q = self._apply_filters(q, text, criteria)
        q = q.order(SORT_COLUMNS[criteria.sort_key], desc=True).order("id")

        offset = (page_number - 1) * page_size
        return q.range(offset, offset + page_size - 1)

    def count_matches(self, text: str, criteria: FilterCriteria) -> int:
        """Exact match count for the filters, without fetching any rows."""
        q = self.client.table(self.table).select("id", count="exact")
        resp = self._apply_filters(q, text, criteria).limit(0).execute()
        if resp.count is None:
            raise ValueError("count response is missing the exact count")
        return int(resp.count)

    def query_page(self, text: str, criteria: FilterCriteria, page_number: int, page_size: int) -> PageResult:
        try:
            try:
                resp = self.build_query(text, criteria, page_number, page_size).execute()
            except APIError as exc:
                if exc.code != RANGE_NOT_SATISFIABLE:
                    raise
                # offset lies past the last match: PostgREST answers 416 instead of an empty page
                total = self.count_matches(text, criteria)
                logger.debug("page {} is past the end of {} matches", page_number, total)
                return PageResult(items=[], total_match_count=total)
            rows: List[Dict[str, Any]] = resp.data or []
            if resp.count is None:
                raise ValueError("response is missing the exact count")
            items = [row_to_record(row, self.placeholder_image) for row in rows]
        except Exception as exc:
            raise RemoteUnavailable(f"{self.table} query failed: {exc}") from exc
        return PageResult(items=items, total_match_count=int(resp.count))

    def fetch_one(self, business_id: str) -> Optional[BusinessRecord]:
        try:
            resp = self.client.table(self.table).select("*").eq("id", business_id).limit(1).execute()
            rows = resp.data or []
            return row_to_record(rows[0], self.placeholder_image) if rows else None
        except Exception as exc:
            raise RemoteUnavailable(f"{self.table} lookup failed: {exc}") from exc


def create_supabase_client(cfg: Configuration) -> Client:
    cfg.require_supabase()
    client = create_client(cfg.supabase_url, cfg.supabase_key)
    logger.info("Supabase client created url={} key={}", cfg.supabase_url, mask_secret(cfg.supabase_key))
    return client


def check_remote_health(cfg: Configuration) -> bool:
    """Probe the PostgREST root; any transport error counts as unhealthy."""
    if not cfg.remote_configured:
        return False
    headers = {
        "apikey": cfg.supabase_key or "",
        "Authorization": f"Bearer {cfg.supabase_key}",
        "Accept": "application/json",
    }
    try:
        r = requests.get(cfg.rest_url(), headers=headers, timeout=cfg.remote_timeout)
    except requests.RequestException as exc:
        logger.warning("remote health probe failed: {}", exc)
        return False
    return r.ok
