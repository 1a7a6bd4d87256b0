"""Article repository for CRUD operations on the articles collection."""
from datetime import datetime
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from shared.utils import generate_id, get_utc_now, normalize_url


class ArticleSource:
    """Origin sites of collected articles."""
    GOOGLE = "GOOGLE"
    NAVER = "NAVER"


class ArticleRepository:
    """Repository for Article CRUD operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.articles

    async def create_article(
        self,
        title: str,
        original_url: str,
        source: str,
        description: str = "",
        category: Optional[str] = None,
        published_at: Optional[datetime] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Insert a new article.

        Returns None when the unique index on original_url rejects the insert,
        which happens when another run stored the same article first.
        """
        now = get_utc_now()
        article = {
            "_id": generate_id("art"),
            "title": title,
            "description": description,
            "summary": None,
            "original_url": normalize_url(original_url),
            "source": source,
            "category": category,
            "published_at": published_at,
            "product_ids": [],
            "is_active": True,
            "created_at": now,
            "updated_at": now
        }

        try:
            await self.collection.insert_one(article)
        except DuplicateKeyError:
            return None
        return article

    async def get_article(self, article_id: str) -> Optional[Dict[str, Any]]:
        """Get an article by ID."""
        return await self.collection.find_one({"_id": article_id})

    async def find_existing(
        self,
        original_url: str,
        title: str,
        source: str
    ) -> Optional[Dict[str, Any]]:
        """Find an article matching either natural key: source URL, or title + source."""
        return await self.collection.find_one({
            "$or": [
                {"original_url": normalize_url(original_url)},
                {"title": title, "source": source}
            ]
        })

    async def list_unsummarized(self, limit: int) -> List[Dict[str, Any]]:
        """Active articles without a summary, newest first."""
        cursor = (
            self.collection.find(
                {"is_active": True, "summary": None},
                {"_id": 1, "title": 1, "description": 1}
            )
            .sort([("created_at", -1), ("_id", 1)])
            .limit(limit)
        )
        return await cursor.to_list(length=limit)

    async def set_summary(self, article_id: str, summary: str) -> bool:
        """Attach a summary. An article that already has one is left untouched."""
        result = await self.collection.update_one(
            {"_id": article_id, "summary": None},
            {"$set": {"summary": summary, "updated_at": get_utc_now()}}
        )
        return result.modified_count > 0

    async def count_summary_stats(self) -> Dict[str, int]:
        """Count active articles with and without a summary."""
        without_summary = await self.collection.count_documents(
            {"is_active": True, "summary": None}
        )
        with_summary = await self.collection.count_documents(
            {"is_active": True, "summary": {"$ne": None}}
        )
        return {
            "with_summary": with_summary,
            "without_summary": without_summary,
            "total": with_summary + without_summary
        }

    async def deactivate_article(self, article_id: str) -> bool:
        """Deactivate an article. Articles are never deleted."""
        result = await self.collection.update_one(
            {"_id": article_id},
            {"$set": {"is_active": False, "updated_at": get_utc_now()}}
        )
        return result.matched_count > 0

    async def list_unlinked(self) -> List[Dict[str, Any]]:
        """Active articles with a category and no related products yet."""
        cursor = self.collection.find(
            {
                "is_active": True,
                "category": {"$ne": None},
                "$or": [{"product_ids": {"$exists": False}}, {"product_ids": []}]
            },
            {"_id": 1, "category": 1}
        ).sort("_id", 1)
        return await cursor.to_list(length=None)

    async def link_products(self, article_id: str, product_ids: List[str]) -> bool:
        """Relate products to an article. Existing links are kept."""
        result = await self.collection.update_one(
            {"_id": article_id},
            {
                "$addToSet": {"product_ids": {"$each": product_ids}},
                "$set": {"updated_at": get_utc_now()}
            }
        )
        return result.modified_count > 0
