import logging
import sqlite3
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from cardpick.config import settings
from cardpick.domain.models import CardOffer
from cardpick.repository.catalog_store import CatalogError
from cardpick.schemas.requests import SearchRequest
from cardpick.schemas.responses import SearchResponse
from cardpick.service.search import CardSearchService, build_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


@lru_cache
def _default_service() -> CardSearchService:
    return CardSearchService(build_store(settings), best_for_limit=settings.best_for_limit)


def get_service() -> CardSearchService:
    try:
        return _default_service()
    except (CatalogError, sqlite3.Error) as exc:
        logger.error("Catalog unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("/search", response_model=SearchResponse, response_model_exclude_none=True)
def search(request: SearchRequest, service: CardSearchService = Depends(get_service)) -> SearchResponse:
    try:
        return service.search(request)
    except sqlite3.Error as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/categories", response_model=list[str])
def categories(service: CardSearchService = Depends(get_service)) -> list[str]:
    try:
        return service.categories()
    except sqlite3.Error as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/best-for/{category}", response_model=list[CardOffer])
def best_for(category: str, service: CardSearchService = Depends(get_service)) -> list[CardOffer]:
    try:
        return service.best_for_category(category)
    except sqlite3.Error as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
