from __future__ import annotations

import math
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel

from config import Configuration
from models import CATEGORIES, BusinessRecord
from services.remote_store import check_remote_health
from services.retrieval import SearchCoordinator, build_coordinator
from services.url_state import page_size_from_params, state_from_params

load_dotenv()


app = FastAPI(title="Business Directory")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_coordinator: Optional[SearchCoordinator] = None


def get_config() -> Configuration:
    return Configuration.from_env()


def get_coordinator() -> SearchCoordinator:
    global _coordinator
    if _coordinator is None:
        cfg = get_config()
        logger.info("cfg: {}", cfg.log_summary())
        _coordinator = build_coordinator(cfg)
    return _coordinator


@app.get("/favicon.ico")
def favicon() -> Response:
    return Response(status_code=204)


class BusinessPayload(BaseModel):
    id: str
    name: str
    category: str
    image: str
    rating: float
    review_count: int
    price_level: int
    languages: List[str] = []
    location: str
    is_verified: bool
    is_howard_affiliated: bool
    is_minority_owned: bool
    description: str
    created_at: str


class SearchResponse(BaseModel):
    items: List[BusinessPayload]
    total_count: int
    page: int
    page_size: int
    total_pages: int


def to_payload(b: BusinessRecord) -> BusinessPayload:
    return BusinessPayload(
        id=b.id,
        name=b.name,
        category=b.category,
        image=b.image,
        rating=b.rating,
        review_count=b.review_count,
        price_level=b.price_level,
        languages=list(b.languages),
        location=b.location,
        is_verified=b.is_verified,
        is_howard_affiliated=b.is_howard_affiliated,
        is_minority_owned=b.is_minority_owned,
        description=b.description,
        created_at=b.created_at.isoformat(),
    )


@app.get("/healthz")
def healthz() -> dict:
    cfg = get_config()
    logger.info("cfg: {}", cfg.log_summary())
    return {"status": "ok"}


@app.get("/health/remote")
def health_remote() -> dict:
    return {"ok": check_remote_health(get_config())}


@app.get("/categories")
def categories() -> dict:
    return {"categories": list(CATEGORIES)}


@app.get("/businesses", response_model=SearchResponse)
async def search_businesses(
    request: Request,
    coordinator: SearchCoordinator = Depends(get_coordinator),
    cfg: Configuration = Depends(get_config),
) -> SearchResponse:
    try:
        state = state_from_params(request.query_params)
        size = page_size_from_params(request.query_params, cfg.default_page_size, cfg.max_page_size)
        result = await coordinator.search(state.query, state.criteria, state.page, size)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.exception("search failed: {}", exc)
        raise HTTPException(status_code=500, detail="internal error")

    return SearchResponse(
        items=[to_payload(b) for b in result.items],
        total_count=result.total_match_count,
        page=state.page,
        page_size=size,
        total_pages=math.ceil(result.total_match_count / size),
    )


@app.get("/businesses/{business_id}", response_model=BusinessPayload)
async def get_business(
    business_id: str,
    coordinator: SearchCoordinator = Depends(get_coordinator),
) -> BusinessPayload:
    try:
        business = await coordinator.get_business(business_id)
    except Exception as exc:
        logger.exception("lookup of {} failed: {}", business_id, exc)
        raise HTTPException(status_code=500, detail="internal error")
    if business is None:
        raise HTTPException(status_code=404, detail="business not found")
    return to_payload(business)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8010, reload=True, log_level=get_config().log_level.lower())
