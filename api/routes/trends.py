"""Trend keyword routes: public leaderboard and admin data entry."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_product_repo, get_ranking_service, get_trend_repo
from api.models import ProductMatchModel, TrendKeywordModel, TrendMetricModel
from api.schemas.requests import ProductMatchRequest, TrendKeywordCreateRequest, TrendMetricCreateRequest
from api.schemas.responses import (
    PopularKeywordsData,
    PopularKeywordsResponse,
    ProductMatchResponse,
    RankedKeywordData,
    TrendKeywordResponse,
    TrendMetricResponse,
)
from collector.ranking import RankingService
from database.repositories.product_repo import ProductRepository
from database.repositories.trend_repo import TrendKeywordExists, TrendRepository
from shared.config import settings


router = APIRouter(tags=["trends"])


@router.get("/trends/popular", response_model=PopularKeywordsResponse)
async def popular_keywords(
    limit: int = Query(settings.ranking_default_limit),
    category: Optional[str] = None,
    ranking: RankingService = Depends(get_ranking_service)
):
    """Trending keywords ranked by their latest search volume."""
    ranked = await ranking.rank_keywords(limit=limit, category=category)
    keywords = [RankedKeywordData(**row.to_dict()) for row in ranked]
    return PopularKeywordsResponse(data=PopularKeywordsData(keywords=keywords, total=len(keywords)))


@router.post(
    "/admin/trends",
    response_model=TrendKeywordResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_keyword(
    request: TrendKeywordCreateRequest,
    trend_repo: TrendRepository = Depends(get_trend_repo)
):
    """Register a trend keyword."""
    try:
        keyword = await trend_repo.create_keyword(
            keyword=request.keyword,
            source=request.source,
            category=request.category
        )
    except TrendKeywordExists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Keyword '{request.keyword}' already exists for this category and source"
        )
    return TrendKeywordResponse(data=TrendKeywordModel.model_validate(keyword))


async def _require_keyword(trend_repo: TrendRepository, keyword_id: str):
    keyword = await trend_repo.get_keyword(keyword_id)
    if not keyword:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Keyword {keyword_id} not found"
        )
    return keyword


@router.post(
    "/admin/trends/{keyword_id}/metrics",
    response_model=TrendMetricResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_metric(
    keyword_id: str,
    request: TrendMetricCreateRequest,
    trend_repo: TrendRepository = Depends(get_trend_repo)
):
    """Append a search-volume measurement to a keyword."""
    await _require_keyword(trend_repo, keyword_id)
    metric = await trend_repo.add_metric(keyword_id, request.search_volume, request.collected_at)
    return TrendMetricResponse(data=TrendMetricModel.model_validate(metric))


@router.post("/admin/trends/{keyword_id}/matches", response_model=ProductMatchResponse)
async def add_match(
    keyword_id: str,
    request: ProductMatchRequest,
    trend_repo: TrendRepository = Depends(get_trend_repo),
    product_repo: ProductRepository = Depends(get_product_repo)
):
    """Link a keyword to a product, or rescore an existing link."""
    await _require_keyword(trend_repo, keyword_id)
    if not await product_repo.get_product(request.product_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product {request.product_id} not found"
        )

    match = await trend_repo.upsert_match(keyword_id, request.product_id, request.match_score)
    return ProductMatchResponse(data=ProductMatchModel.model_validate(match))
