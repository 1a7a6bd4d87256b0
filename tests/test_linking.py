"""Article to product linking tests."""
import pytest

from collector.linking import ArticleProductLinker


class TestArticleProductLinker:
    """Tests for ArticleProductLinker class."""

    @pytest.mark.asyncio
    async def test_links_newest_products_of_the_category(self, article_repo, product_repo):
        product_repo.add("Old Phone", product_id="prd_old", category="electronics", age_minutes=60)
        product_repo.add("New Phone", product_id="prd_new", category="electronics")
        product_repo.add("Mid Phone", product_id="prd_mid", category="electronics", age_minutes=30)
        product_repo.add("Lipstick", product_id="prd_lip", category="beauty")
        phone_news = article_repo.add("Phone launch news", category="electronics")
        other_news = article_repo.add("Uncategorized news")
        linked_news = article_repo.add("Already linked news", category="electronics")
        linked_news["product_ids"] = ["prd_old"]

        linked = await ArticleProductLinker(article_repo, product_repo, per_article=2).link()

        assert linked == 2
        assert phone_news["product_ids"] == ["prd_new", "prd_mid"]
        assert other_news["product_ids"] == []
        assert linked_news["product_ids"] == ["prd_old"]

    @pytest.mark.asyncio
    async def test_category_without_products(self, article_repo, product_repo):
        article = article_repo.add("Lipstick trend news", category="beauty")

        linked = await ArticleProductLinker(article_repo, product_repo).link()

        assert linked == 0
        assert article["product_ids"] == []

    @pytest.mark.asyncio
    async def test_inactive_articles_are_skipped(self, article_repo, product_repo):
        product_repo.add("New Phone", product_id="prd_new", category="electronics")
        article = article_repo.add("Hidden phone news", category="electronics", is_active=False)

        assert await ArticleProductLinker(article_repo, product_repo).link() == 0
        assert article["product_ids"] == []
