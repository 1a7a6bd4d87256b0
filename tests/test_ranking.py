"""Popular keyword ranking tests."""
from datetime import timedelta

import pytest

from collector.ranking import RankingService
from conftest import BASE_TIME


@pytest.fixture
def ranking(trend_repo, product_repo):
    return RankingService(trend_repo, product_repo, max_limit=50)


class TestRankingService:
    """Tests for RankingService class."""

    @pytest.mark.asyncio
    async def test_orders_by_latest_search_volume(self, ranking, trend_repo):
        trend_repo.add_keyword("kw_a", "air fryer")
        trend_repo.add_keyword("kw_b", "robot vacuum")
        await trend_repo.add_metric("kw_a", 300, BASE_TIME)
        await trend_repo.add_metric("kw_b", 900, BASE_TIME - timedelta(days=1))
        await trend_repo.add_metric("kw_b", 500, BASE_TIME)

        rows = await ranking.rank_keywords(limit=10)

        assert [(row.rank, row.keyword, row.search_volume) for row in rows] == [
            (1, "robot vacuum", 500),
            (2, "air fryer", 300),
        ]
        assert rows[0].collected_at == BASE_TIME

    @pytest.mark.asyncio
    async def test_limit_one(self, ranking, trend_repo):
        trend_repo.add_keyword("kw_a", "air fryer")
        trend_repo.add_keyword("kw_b", "robot vacuum")
        await trend_repo.add_metric("kw_a", 300)
        await trend_repo.add_metric("kw_b", 500)

        rows = await ranking.rank_keywords(limit=1)

        assert len(rows) == 1
        assert rows[0].id == "kw_b"
        assert rows[0].rank == 1

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, ranking, trend_repo):
        for i in range(60):
            trend_repo.add_keyword(f"kw_{i:02d}", f"keyword {i}")

        assert len(await ranking.rank_keywords(limit=500)) == 50
        assert len(await ranking.rank_keywords(limit=-3)) == 1

    @pytest.mark.asyncio
    async def test_ties_broken_by_id(self, ranking, trend_repo):
        trend_repo.add_keyword("kw_c", "tie c")
        trend_repo.add_keyword("kw_a", "tie a")
        trend_repo.add_keyword("kw_b", "tie b")
        for keyword_id in ("kw_a", "kw_b", "kw_c"):
            await trend_repo.add_metric(keyword_id, 100)

        first = await ranking.rank_keywords(limit=10)
        second = await ranking.rank_keywords(limit=10)

        assert [row.id for row in first] == ["kw_a", "kw_b", "kw_c"]
        assert [row.id for row in second] == [row.id for row in first]

    @pytest.mark.asyncio
    async def test_keyword_without_metric_has_zero_volume(self, ranking, trend_repo):
        trend_repo.add_keyword("kw_a", "no data yet")

        rows = await ranking.rank_keywords()

        assert rows[0].search_volume == 0
        assert rows[0].collected_at == BASE_TIME
        assert rows[0].top_product is None
        assert rows[0].product_count == 0

    @pytest.mark.asyncio
    async def test_top_product_skips_inactive(self, ranking, trend_repo, product_repo):
        trend_repo.add_keyword("kw_a", "air fryer")
        product_repo.add("Retired Fryer", product_id="prd_old", is_active=False)
        product_repo.add("Basket Fryer", product_id="prd_new", price=89000)
        await trend_repo.upsert_match("kw_a", "prd_old", 0.95)
        await trend_repo.upsert_match("kw_a", "prd_new", 0.80)

        rows = await ranking.rank_keywords()

        assert rows[0].product_count == 2
        assert rows[0].top_product["id"] == "prd_new"
        assert rows[0].top_product["name"] == "Basket Fryer"
        assert rows[0].top_product["price"] == 89000
        assert rows[0].top_product["match_score"] == 0.80

    @pytest.mark.asyncio
    async def test_category_filter_and_inactive_keywords(self, ranking, trend_repo):
        trend_repo.add_keyword("kw_a", "air fryer", category="kitchen")
        trend_repo.add_keyword("kw_b", "laptop", category="electronics")
        trend_repo.add_keyword("kw_c", "old trend", category="kitchen", is_active=False)

        rows = await ranking.rank_keywords(category="kitchen")

        assert [row.id for row in rows] == ["kw_a"]
