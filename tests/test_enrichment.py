"""Enrichment step tests."""
import pytest

from collector.enrichment import EnrichmentService
from collector.rate_limit import FixedIntervalGate
from conftest import FakeSummarizer


TITLE = "Holiday gadget demand climbs again"


def make_service(article_repo, summarizer, gate=None):
    return EnrichmentService(
        article_repo,
        summarizer,
        gate=gate or FixedIntervalGate(0),
        max_limit=50,
        error_cap=10
    )


class TestEnrichmentService:
    """Tests for EnrichmentService class."""

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, article_repo):
        service = make_service(article_repo, FakeSummarizer())

        report = await service.enrich(20)

        assert report.processed == 0
        assert report.succeeded == 0
        assert report.errors == []

    @pytest.mark.asyncio
    async def test_summaries_are_attached(self, article_repo):
        for i in range(3):
            article_repo.add(f"{TITLE} {i}", age_minutes=i)
        service = make_service(article_repo, FakeSummarizer())

        report = await service.enrich(20)

        assert (report.processed, report.succeeded, report.failed) == (3, 3, 0)
        assert all(a["summary"] == "A short summary." for a in article_repo.articles.values())

    @pytest.mark.asyncio
    async def test_second_batch_selects_nothing(self, article_repo):
        """Test already-summarized articles are never selected again."""
        article_repo.add(TITLE)
        summarizer = FakeSummarizer()
        service = make_service(article_repo, summarizer)

        await service.enrich(20)
        report = await service.enrich(20)

        assert report.processed == 0
        assert len(summarizer.calls) == 1

    @pytest.mark.asyncio
    async def test_newest_first_and_limit(self, article_repo):
        article_repo.add("Oldest article about trends", age_minutes=30)
        article_repo.add("Newest article about trends", age_minutes=0)
        article_repo.add("Middle article about trends", age_minutes=10)
        summarizer = FakeSummarizer()
        service = make_service(article_repo, summarizer)

        report = await service.enrich(2)

        assert report.processed == 2
        assert summarizer.calls == ["Newest article about trends", "Middle article about trends"]

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, article_repo):
        for i in range(60):
            article_repo.add(f"{TITLE} {i}")
        service = make_service(article_repo, FakeSummarizer())

        report = await service.enrich(500)

        assert report.processed == 50

    @pytest.mark.asyncio
    async def test_inactive_and_summarized_are_skipped(self, article_repo):
        article_repo.add("Inactive article about trends", is_active=False)
        article_repo.add("Summarized article about trends", summary="Existing summary")
        pending = article_repo.add("Pending article about trends")
        summarizer = FakeSummarizer()
        service = make_service(article_repo, summarizer)

        await service.enrich(20)

        assert summarizer.calls == ["Pending article about trends"]
        assert article_repo.articles[pending["_id"]]["summary"] == "A short summary."

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, article_repo):
        """Test one failing item does not stop the batch or touch other items."""
        failing = article_repo.add("Failing article about trends", age_minutes=0)
        empty = article_repo.add("Empty answer article title", age_minutes=1)
        ok = article_repo.add("Working article about trends", age_minutes=2)
        summarizer = FakeSummarizer({
            "Failing article about trends": RuntimeError("upstream 500"),
            "Empty answer article title": None,
        })
        service = make_service(article_repo, summarizer)

        report = await service.enrich(20)

        assert (report.processed, report.succeeded, report.failed) == (3, 1, 2)
        assert report.errors == [
            f"{failing['_id']}: upstream 500",
            f"{empty['_id']}: summary generation returned nothing",
        ]
        assert article_repo.articles[failing["_id"]]["summary"] is None
        assert article_repo.articles[ok["_id"]]["summary"] == "A short summary."

    @pytest.mark.asyncio
    async def test_error_list_is_capped(self, article_repo):
        for i in range(50):
            article_repo.add(f"{TITLE} {i}")
        service = make_service(article_repo, FakeSummarizer(default=None))

        report = await service.enrich(50)

        assert report.failed == 50
        assert len(report.errors) == 10

    @pytest.mark.asyncio
    async def test_gate_pauses_after_every_call(self, article_repo):
        """Test pacing applies to failed calls as well as successful ones."""
        for i in range(4):
            article_repo.add(f"{TITLE} {i}", age_minutes=i)
        gate = FixedIntervalGate(0)
        summarizer = FakeSummarizer({f"{TITLE} 1": RuntimeError("boom")})
        service = make_service(article_repo, summarizer, gate=gate)

        await service.enrich(20)

        assert gate.pauses == 4

    @pytest.mark.asyncio
    async def test_stats(self, article_repo):
        article_repo.add("First article about trends", summary="done")
        article_repo.add("Second article about trends")
        article_repo.add("Hidden article about trends", is_active=False)
        service = make_service(article_repo, FakeSummarizer())

        assert await service.stats() == {"with_summary": 1, "without_summary": 1, "total": 2}

    @pytest.mark.asyncio
    async def test_summary_written_elsewhere_is_a_failure(self, article_repo):
        """Test an article summarized by a concurrent batch is not counted as succeeded."""
        article = article_repo.add(TITLE)

        class ConcurrentBatchSummarizer(FakeSummarizer):
            async def summarize(self, title, description=""):
                article["summary"] = "Written by another batch."
                return await super().summarize(title, description)

        service = make_service(article_repo, ConcurrentBatchSummarizer())

        report = await service.enrich(20)

        assert (report.processed, report.succeeded, report.failed) == (1, 0, 1)
        assert report.errors == [f"{article['_id']}: already summarized"]
        assert article["summary"] == "Written by another batch."

    @pytest.mark.asyncio
    async def test_aclose_closes_summarizer(self, article_repo):
        summarizer = FakeSummarizer()
        service = make_service(article_repo, summarizer)

        await service.aclose()

        assert summarizer.closed is True
