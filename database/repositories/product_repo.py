"""Product repository for the products collection."""
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from shared.utils import generate_id, get_utc_now, normalize_url


class ProductRepository:
    """Repository for Product CRUD operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.products

    async def create_product(
        self,
        name: str,
        source_url: str,
        thumbnail_url: str = "",
        price: Optional[int] = None,
        original_price: Optional[int] = None,
        discount_rate: Optional[int] = None,
        affiliate_url: Optional[str] = None,
        category: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Insert a product. Returns None if the source URL is already stored."""
        now = get_utc_now()
        product = {
            "_id": generate_id("prd"),
            "name": name,
            "thumbnail_url": thumbnail_url,
            "price": price,
            "original_price": original_price,
            "discount_rate": discount_rate,
            "source_url": normalize_url(source_url),
            "affiliate_url": affiliate_url or source_url,
            "category": category,
            "is_active": True,
            "created_at": now,
            "updated_at": now
        }

        try:
            await self.collection.insert_one(product)
        except DuplicateKeyError:
            return None
        return product

    async def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        """Get a product by ID."""
        return await self.collection.find_one({"_id": product_id})

    async def get_product_by_source_url(self, source_url: str) -> Optional[Dict[str, Any]]:
        """Get a product by its natural key."""
        return await self.collection.find_one({"source_url": normalize_url(source_url)})

    async def get_active_products(self, product_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Active products among the given IDs, keyed by ID."""
        if not product_ids:
            return {}
        cursor = self.collection.find(
            {"_id": {"$in": product_ids}, "is_active": True},
            {"_id": 1, "name": 1, "thumbnail_url": 1, "price": 1}
        )
        products = await cursor.to_list(length=len(product_ids))
        return {product["_id"]: product for product in products}

    async def list_active_products(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """Active products, optionally within one category, for keyword matching."""
        query: Dict[str, Any] = {"is_active": True}
        if category:
            query["category"] = category
        cursor = self.collection.find(query, {"_id": 1, "name": 1, "category": 1}).sort("_id", 1)
        return await cursor.to_list(length=None)

    async def list_recent_by_category(self, category: str, limit: int) -> List[Dict[str, Any]]:
        """Newest active products of a category."""
        cursor = (
            self.collection.find({"category": category, "is_active": True}, {"_id": 1})
            .sort([("created_at", -1), ("_id", 1)])
            .limit(limit)
        )
        return await cursor.to_list(length=limit)
