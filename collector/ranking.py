"""Ranking aggregator for popular trend keywords."""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from database.repositories.product_repo import ProductRepository
from database.repositories.trend_repo import TrendRepository
from shared.config import settings
from shared.utils import clamp


@dataclass
class RankedKeyword:
    """One leaderboard row."""
    rank: int
    id: str
    keyword: str
    category: Optional[str]
    source: str
    search_volume: int
    product_count: int
    top_product: Optional[Dict[str, Any]]
    collected_at: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RankingService:
    """
    Read-only view over keywords, their latest metric and their best match.

    Ordering is search volume descending, ties broken by keyword id ascending.
    """

    def __init__(
        self,
        trend_repo: TrendRepository,
        product_repo: ProductRepository,
        max_limit: int = None
    ):
        self.trend_repo = trend_repo
        self.product_repo = product_repo
        self.max_limit = max_limit or settings.ranking_max_limit

    async def rank_keywords(self, limit: int = None, category: Optional[str] = None) -> List[RankedKeyword]:
        limit = clamp(limit or settings.ranking_default_limit, 1, self.max_limit)
        keywords = await self.trend_repo.list_active_keywords(category)

        rows = []
        for keyword in keywords:
            rows.append(await self._aggregate(keyword))

        rows.sort(key=lambda row: (-row["search_volume"], row["id"]))

        return [
            RankedKeyword(rank=position, **row)
            for position, row in enumerate(rows[:limit], start=1)
        ]

    async def _aggregate(self, keyword: Dict[str, Any]) -> Dict[str, Any]:
        keyword_id = keyword["_id"]
        metric = await self.trend_repo.latest_metric(keyword_id)
        matches = await self.trend_repo.list_matches(keyword_id)

        top_product = None
        if matches:
            active = await self.product_repo.get_active_products(
                [match["product_id"] for match in matches]
            )
            for match in matches:
                product = active.get(match["product_id"])
                if product:
                    top_product = {
                        "id": product["_id"],
                        "name": product["name"],
                        "thumbnail_url": product.get("thumbnail_url"),
                        "price": product.get("price"),
                        "match_score": match["match_score"],
                    }
                    break

        return {
            "id": keyword_id,
            "keyword": keyword["keyword"],
            "category": keyword.get("category"),
            "source": keyword["source"],
            "search_volume": metric["search_volume"] if metric else 0,
            "product_count": len(matches),
            "top_product": top_product,
            "collected_at": metric["collected_at"] if metric else keyword.get("created_at"),
        }
