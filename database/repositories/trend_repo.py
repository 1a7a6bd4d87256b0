"""Trend repository for keywords, their metric time series and product matches."""
from datetime import datetime
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from shared.utils import generate_id, get_utc_now


class TrendKeywordExists(Exception):
    """A keyword with the same (keyword, category, source) already exists."""


class TrendRepository:
    """Repository over trend_keywords, trend_metrics and product_matches."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.keywords = db.trend_keywords
        self.metrics = db.trend_metrics
        self.matches = db.product_matches

    async def create_keyword(
        self,
        keyword: str,
        source: str,
        category: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a trend keyword, unique within category + source."""
        document = {
            "_id": generate_id("kw"),
            "keyword": keyword,
            "category": category,
            "source": source,
            "is_active": True,
            "created_at": get_utc_now()
        }
        try:
            await self.keywords.insert_one(document)
        except DuplicateKeyError as e:
            raise TrendKeywordExists(keyword) from e
        return document

    async def get_keyword(self, keyword_id: str) -> Optional[Dict[str, Any]]:
        """Get a keyword by ID."""
        return await self.keywords.find_one({"_id": keyword_id})

    async def find_keyword(
        self,
        keyword: str,
        category: Optional[str],
        source: str
    ) -> Optional[Dict[str, Any]]:
        """Get a keyword by its natural key."""
        return await self.keywords.find_one({"keyword": keyword, "category": category, "source": source})

    async def list_active_keywords(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """All active keywords, optionally within one category, in ID order."""
        query: Dict[str, Any] = {"is_active": True}
        if category:
            query["category"] = category
        cursor = self.keywords.find(query).sort("_id", 1)
        return await cursor.to_list(length=None)

    async def add_metric(
        self,
        keyword_id: str,
        search_volume: int,
        collected_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Append a point to the keyword's search-volume series."""
        metric = {
            "_id": generate_id("met"),
            "keyword_id": keyword_id,
            "search_volume": search_volume,
            "collected_at": collected_at or get_utc_now()
        }
        await self.metrics.insert_one(metric)
        return metric

    async def latest_metric(self, keyword_id: str) -> Optional[Dict[str, Any]]:
        """The most recent metric by collected_at, if any."""
        cursor = self.metrics.find({"keyword_id": keyword_id}).sort("collected_at", -1).limit(1)
        metrics = await cursor.to_list(length=1)
        return metrics[0] if metrics else None

    async def upsert_match(
        self,
        keyword_id: str,
        product_id: str,
        match_score: float,
        manual: bool = True
    ) -> Optional[Dict[str, Any]]:
        """
        Create or rescore the match between a keyword and a product.

        Automatic matches (manual=False) never overwrite a manual one; None is
        returned in that case.
        """
        query: Dict[str, Any] = {"keyword_id": keyword_id, "product_id": product_id}
        if not manual:
            query["is_manual"] = {"$ne": True}
        try:
            return await self.matches.find_one_and_update(
                query,
                {
                    "$set": {"match_score": match_score, "is_manual": manual, "updated_at": get_utc_now()},
                    "$setOnInsert": {"_id": generate_id("mat")}
                },
                upsert=True,
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            # The unique (keyword_id, product_id) index hit a manual match
            return None

    async def list_matches(self, keyword_id: str) -> List[Dict[str, Any]]:
        """All matches for a keyword, best score first."""
        cursor = self.matches.find({"keyword_id": keyword_id}).sort(
            [("match_score", -1), ("product_id", 1)]
        )
        return await cursor.to_list(length=None)
