"""Publisher service for collection job notifications over Redis pub/sub."""
import json
from typing import Optional
import redis.asyncio as redis
from shared.config import settings


class PublisherService:
    """Publishes collection job state changes for dashboards to follow."""

    def __init__(self, redis_client: redis.Redis, channel: Optional[str] = None):
        self.redis = redis_client
        self.channel = channel or settings.redis_job_channel

    async def publish_job_update(
        self,
        job_id: str,
        source: str,
        status: str,
        new_articles: int = 0,
        new_products: int = 0,
        new_keywords: int = 0,
        duplicates: int = 0,
        matched_products: int = 0,
        linked_products: int = 0,
        summarized: int = 0
    ) -> int:
        """Publish a job update. Returns the number of subscribers that received it."""
        update = {
            "type": "collection_job",
            "job_id": job_id,
            "source": source,
            "status": status,
            "new_articles": new_articles,
            "new_products": new_products,
            "new_keywords": new_keywords,
            "duplicates": duplicates,
            "matched_products": matched_products,
            "linked_products": linked_products,
            "summarized": summarized
        }
        return await self.redis.publish(self.channel, json.dumps(update))
