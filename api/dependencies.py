"""Dependency providers for the routers."""
from typing import AsyncIterator

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
import redis.asyncio as redis

from collector.enrichment import EnrichmentService
from collector.orchestrator import CollectionOrchestrator
from collector.products import ProductImporter
from collector.ranking import RankingService
from collector.services import (
    build_enrichment_service,
    build_orchestrator,
    build_product_importer,
    build_ranking_service,
)
from database.connection import get_db, get_redis
from database.repositories.article_repo import ArticleRepository
from database.repositories.job_repo import CollectionJobRepository
from database.repositories.product_repo import ProductRepository
from database.repositories.trend_repo import TrendRepository


async def get_orchestrator(
    db: AsyncIOMotorDatabase = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis)
) -> AsyncIterator[CollectionOrchestrator]:
    orchestrator = build_orchestrator(db, redis_client)
    try:
        yield orchestrator
    finally:
        await orchestrator.aclose()


async def get_enrichment_service(
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> AsyncIterator[EnrichmentService]:
    service = build_enrichment_service(db)
    try:
        yield service
    finally:
        await service.aclose()


async def get_ranking_service(db: AsyncIOMotorDatabase = Depends(get_db)) -> RankingService:
    return build_ranking_service(db)


async def get_product_importer(db: AsyncIOMotorDatabase = Depends(get_db)) -> ProductImporter:
    return build_product_importer(db)


async def get_job_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> CollectionJobRepository:
    return CollectionJobRepository(db)


async def get_article_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> ArticleRepository:
    return ArticleRepository(db)


async def get_trend_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> TrendRepository:
    return TrendRepository(db)


async def get_product_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> ProductRepository:
    return ProductRepository(db)
