"""Database connection setup for MongoDB and Redis."""
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
import redis.asyncio as redis
from shared.config import settings


class DatabaseConnection:
    """Manages MongoDB and Redis connections."""

    _mongo_client: Optional[AsyncIOMotorClient] = None
    _redis_client: Optional[redis.Redis] = None
    _db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def init_mongo(cls) -> AsyncIOMotorDatabase:
        """Initialize MongoDB connection."""
        if cls._mongo_client is None:
            cls._mongo_client = AsyncIOMotorClient(settings.mongo_url)
            cls._db = cls._mongo_client[settings.mongo_db_name]
            await cls._setup_indexes()
        return cls._db

    @classmethod
    async def _setup_indexes(cls):
        """Set up MongoDB indexes, including the uniqueness constraints used for dedup."""
        if cls._db is None:
            return

        # Articles: natural keys and the unsummarized-article scan
        await cls._db.articles.create_index("original_url", unique=True)
        await cls._db.articles.create_index([("title", ASCENDING), ("source", ASCENDING)])
        await cls._db.articles.create_index(
            [("is_active", ASCENDING), ("summary", ASCENDING), ("created_at", DESCENDING)]
        )

        # Collection jobs: at most one document may hold status RUNNING
        await cls._db.collection_jobs.create_index("created_at")
        await cls._db.collection_jobs.create_index("source")
        await cls._db.collection_jobs.create_index(
            "status",
            name="single_running_job",
            unique=True,
            partialFilterExpression={"status": "RUNNING"},
        )

        # Products
        await cls._db.products.create_index("source_url", unique=True)
        await cls._db.products.create_index("is_active")
        await cls._db.products.create_index(
            [("category", ASCENDING), ("is_active", ASCENDING), ("created_at", DESCENDING)]
        )

        # Trend keywords, metrics and matches
        await cls._db.trend_keywords.create_index(
            [("keyword", ASCENDING), ("category", ASCENDING), ("source", ASCENDING)],
            unique=True,
        )
        await cls._db.trend_keywords.create_index([("is_active", ASCENDING), ("category", ASCENDING)])
        await cls._db.trend_metrics.create_index(
            [("keyword_id", ASCENDING), ("collected_at", DESCENDING)]
        )
        await cls._db.product_matches.create_index(
            [("keyword_id", ASCENDING), ("match_score", DESCENDING)]
        )
        await cls._db.product_matches.create_index(
            [("keyword_id", ASCENDING), ("product_id", ASCENDING)], unique=True
        )

    @classmethod
    async def get_mongo_db(cls) -> AsyncIOMotorDatabase:
        """Get MongoDB database instance."""
        if cls._db is None:
            await cls.init_mongo()
        return cls._db

    @classmethod
    async def init_redis(cls) -> redis.Redis:
        """Initialize Redis connection."""
        if cls._redis_client is None:
            cls._redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True
            )
        return cls._redis_client

    @classmethod
    async def get_redis(cls) -> redis.Redis:
        """Get Redis client instance."""
        if cls._redis_client is None:
            await cls.init_redis()
        return cls._redis_client

    @classmethod
    async def close_connections(cls):
        """Close all database connections."""
        if cls._mongo_client:
            cls._mongo_client.close()
            cls._mongo_client = None
            cls._db = None
        if cls._redis_client:
            await cls._redis_client.aclose()
            cls._redis_client = None


# Convenience functions
async def get_db() -> AsyncIOMotorDatabase:
    """Dependency for getting MongoDB database."""
    return await DatabaseConnection.get_mongo_db()


async def get_redis() -> redis.Redis:
    """Dependency for getting Redis client."""
    return await DatabaseConnection.get_redis()
