"""Dual-source business search.

A ``SearchCoordinator`` asks its primary producer (the Supabase table) for a
page of results and, on any failure, recomputes the same page from the local
snapshot. Both producers return the same ``PageResult`` shape, so callers
cannot tell which one served them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from loguru import logger

from config import Configuration
from models import BusinessRecord, FilterCriteria, PageResult
from services.query_engine import run_pipeline, validate_page
from services.remote_store import RemoteUnavailable, SupabaseBusinessStore, create_supabase_client
from services.snapshot import SnapshotProvider


@dataclass(frozen=True)
class SearchQuery:
    text: str
    criteria: FilterCriteria
    page_number: int
    page_size: int

    def __post_init__(self) -> None:
        validate_page(self.page_number, self.page_size)
        object.__setattr__(self, "text", (self.text or "").strip())


class ResultProducer(Protocol):
    name: str

    async def produce(self, query: SearchQuery) -> PageResult:
        ...

    async def fetch_one(self, business_id: str) -> Optional[BusinessRecord]:
        ...


class RemoteProducer:
    name = "remote"

    def __init__(self, store: SupabaseBusinessStore, *, timeout: float = 8.0) -> None:
        self.store = store
        self.timeout = timeout

    async def _call(self, fn, *args):
        # supabase-py is blocking; keep it off the event loop
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise RemoteUnavailable(f"remote call timed out after {self.timeout}s") from exc

    async def produce(self, query: SearchQuery) -> PageResult:
        return await self._call(
            self.store.query_page, query.text, query.criteria, query.page_number, query.page_size
        )

    async def fetch_one(self, business_id: str) -> Optional[BusinessRecord]:
        return await self._call(self.store.fetch_one, business_id)


class LocalProducer:
    name = "local"

    def __init__(self, snapshot: SnapshotProvider) -> None:
        self.snapshot = snapshot

    async def produce(self, query: SearchQuery) -> PageResult:
        return run_pipeline(
            self.snapshot.records(), query.criteria, query.text, query.page_number, query.page_size
        )

    async def fetch_one(self, business_id: str) -> Optional[BusinessRecord]:
        return self.snapshot.get(business_id)


class SearchCoordinator:
    """Try the primary producer, fall back to the local one on any error.

    Identical queries issued while one is still in flight share its result
    instead of starting a second remote call.
    """

    def __init__(self, primary: ResultProducer, fallback: Optional[ResultProducer] = None) -> None:
        self.primary = primary
        self.fallback = fallback
        self._inflight: Dict[SearchQuery, asyncio.Task] = {}

    async def search(
        self,
        text: str,
        criteria: FilterCriteria,
        page_number: int = 1,
        page_size: int = 6,
    ) -> PageResult:
        query = SearchQuery(text=text, criteria=criteria, page_number=page_number, page_size=page_size)
        return await self.execute(query)

    async def execute(self, query: SearchQuery) -> PageResult:
        task = self._inflight.get(query)
        if task is None:
            task = asyncio.ensure_future(self._resolve(query))
            self._inflight[query] = task
            task.add_done_callback(lambda t, q=query: self._forget(q, t))
        result = await asyncio.shield(task)
        return PageResult(items=list(result.items), total_match_count=result.total_match_count)

    def _forget(self, query: SearchQuery, task: asyncio.Task) -> None:
        if self._inflight.get(query) is task:
            del self._inflight[query]

    async def _resolve(self, query: SearchQuery) -> PageResult:
        if self.fallback is None:
            return await self.primary.produce(query)
        try:
            result = await self.primary.produce(query)
        except Exception as exc:
            logger.warning(
                "{} search failed, serving {} snapshot: {}", self.primary.name, self.fallback.name, exc
            )
            return await self.fallback.produce(query)
        logger.debug(
            "{} served q={!r} page={} total={}",
            self.primary.name,
            query.text,
            query.page_number,
            result.total_match_count,
        )
        return result

    async def get_business(self, business_id: str) -> Optional[BusinessRecord]:
        if self.fallback is None:
            return await self.primary.fetch_one(business_id)
        try:
            return await self.primary.fetch_one(business_id)
        except Exception as exc:
            logger.warning(
                "{} lookup of {} failed, serving {} snapshot: {}",
                self.primary.name,
                business_id,
                self.fallback.name,
                exc,
            )
            return await self.fallback.fetch_one(business_id)


class SearchSession:
    """Holds the newest search result for one interactive caller.

    A result that resolves after a newer submission started is stale: it is
    discarded (``submit`` returns None) and never replaces ``latest``.
    """

    def __init__(self, coordinator: SearchCoordinator) -> None:
        self.coordinator = coordinator
        self.latest: Optional[PageResult] = None
        self.latest_query: Optional[SearchQuery] = None
        self._generation = 0

    async def submit(
        self,
        text: str,
        criteria: FilterCriteria,
        page_number: int = 1,
        page_size: int = 6,
    ) -> Optional[PageResult]:
        query = SearchQuery(text=text, criteria=criteria, page_number=page_number, page_size=page_size)
        self._generation += 1
        ticket = self._generation
        result = await self.coordinator.execute(query)
        if ticket != self._generation:
            logger.debug("discarding stale result for q={!r} page={}", query.text, query.page_number)
            return None
        self.latest = result
        self.latest_query = query
        return result


def build_coordinator(cfg: Configuration, client=None) -> SearchCoordinator:
    local = LocalProducer(SnapshotProvider.from_config(cfg))
    if not cfg.remote_configured and client is None:
        logger.info("remote store not configured, serving the local snapshot only")
        return SearchCoordinator(local)
    if client is None:
        try:
            client = create_supabase_client(cfg)
        except Exception as exc:
            logger.warning("Supabase client unavailable, serving the local snapshot only: {}", exc)
            return SearchCoordinator(local)
    store = SupabaseBusinessStore(client, table=cfg.supabase_table, placeholder_image=cfg.placeholder_image)
    return SearchCoordinator(RemoteProducer(store, timeout=cfg.remote_timeout), local)
