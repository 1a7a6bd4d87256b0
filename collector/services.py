"""Wiring of the collector services from a database handle."""
from typing import Optional

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorDatabase

from collector.enrichment import EnrichmentService
from collector.linking import ArticleProductLinker
from collector.matcher import KeywordMatcher
from collector.orchestrator import CollectionOrchestrator
from collector.products import ProductImporter
from collector.publisher import PublisherService
from collector.ranking import RankingService
from collector.sources import default_sources
from collector.summarizer import SummarizerClient
from database.repositories.article_repo import ArticleRepository
from database.repositories.job_repo import CollectionJobRepository
from database.repositories.product_repo import ProductRepository
from database.repositories.trend_repo import TrendRepository


def build_enrichment_service(db: AsyncIOMotorDatabase) -> EnrichmentService:
    """The service owns one summarizer client; close it with `aclose()`."""
    return EnrichmentService(ArticleRepository(db), SummarizerClient())


def build_orchestrator(
    db: AsyncIOMotorDatabase,
    redis_client: Optional[redis.Redis] = None
) -> CollectionOrchestrator:
    article_repo = ArticleRepository(db)
    product_repo = ProductRepository(db)
    trend_repo = TrendRepository(db)
    return CollectionOrchestrator(
        job_repo=CollectionJobRepository(db),
        article_repo=article_repo,
        product_importer=ProductImporter(product_repo),
        sources=default_sources(),
        trend_repo=trend_repo,
        matcher=KeywordMatcher(trend_repo, product_repo),
        article_linker=ArticleProductLinker(article_repo, product_repo),
        enrichment=build_enrichment_service(db),
        publisher=PublisherService(redis_client) if redis_client is not None else None
    )


def build_ranking_service(db: AsyncIOMotorDatabase) -> RankingService:
    return RankingService(TrendRepository(db), ProductRepository(db))


def build_product_importer(db: AsyncIOMotorDatabase) -> ProductImporter:
    return ProductImporter(ProductRepository(db))
