"""Relates categorized articles to the newest products of the same category."""
import logging
from typing import Dict, List

from database.repositories.article_repo import ArticleRepository
from database.repositories.product_repo import ProductRepository
from shared.config import settings

logger = logging.getLogger(__name__)


class ArticleProductLinker:
    """Links articles that have a category but no related products yet."""

    def __init__(
        self,
        article_repo: ArticleRepository,
        product_repo: ProductRepository,
        per_article: int = None
    ):
        self.article_repo = article_repo
        self.product_repo = product_repo
        self.per_article = per_article or settings.article_product_links

    async def link(self) -> int:
        """Returns the number of article-product links created."""
        articles = await self.article_repo.list_unlinked()
        recent: Dict[str, List[str]] = {}
        linked = 0

        for article in articles:
            category = article["category"]
            if category not in recent:
                products = await self.product_repo.list_recent_by_category(category, self.per_article)
                recent[category] = [product["_id"] for product in products]

            product_ids = recent[category]
            if product_ids and await self.article_repo.link_products(article["_id"], product_ids):
                linked += len(product_ids)

        if linked:
            logger.info(f"Linked {linked} products to {len(articles)} articles")
        return linked
