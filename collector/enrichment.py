"""Enrichment step: attach generated summaries to collected articles."""
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List

from collector.rate_limit import FixedIntervalGate
from collector.summarizer import SummarizerClient
from database.repositories.article_repo import ArticleRepository
from shared.config import settings
from shared.utils import clamp

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentReport:
    """Outcome of one enrichment batch. `errors` is capped, `failed` is not."""
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EnrichmentService:
    """
    Summarizes unsummarized articles one at a time.

    Calls are strictly sequential and the gate pauses after every call.
    Articles that already carry a summary are never selected again, so
    repeated batches converge.
    """

    def __init__(
        self,
        article_repo: ArticleRepository,
        summarizer: SummarizerClient,
        gate: FixedIntervalGate = None,
        max_limit: int = None,
        error_cap: int = None
    ):
        self.article_repo = article_repo
        self.summarizer = summarizer
        self.gate = gate or FixedIntervalGate(settings.enrich_interval)
        self.max_limit = max_limit or settings.enrich_max_limit
        self.error_cap = error_cap or settings.error_list_cap

    async def enrich(self, limit: int = None) -> EnrichmentReport:
        """Summarize up to `limit` active articles without a summary, newest first."""
        limit = clamp(limit or settings.enrich_default_limit, 1, self.max_limit)
        articles = await self.article_repo.list_unsummarized(limit)

        report = EnrichmentReport(processed=len(articles))
        if not articles:
            return report

        logger.info(f"Summarizing {len(articles)} articles")

        for article in articles:
            article_id = article["_id"]
            try:
                summary = await self.summarizer.summarize(
                    article["title"],
                    article.get("description") or ""
                )
                if not summary:
                    self._record_failure(report, article_id, "summary generation returned nothing")
                elif await self.article_repo.set_summary(article_id, summary):
                    report.succeeded += 1
                else:
                    self._record_failure(report, article_id, "already summarized")
            except Exception as e:
                self._record_failure(report, article_id, str(e) or type(e).__name__)

            await self.gate.pause()

        logger.info(
            f"Enrichment done: {report.succeeded} succeeded, {report.failed} failed "
            f"of {report.processed}"
        )
        return report

    def _record_failure(self, report: EnrichmentReport, article_id: str, reason: str) -> None:
        report.failed += 1
        logger.warning(f"Summarization failed for {article_id}: {reason}")
        if len(report.errors) < self.error_cap:
            report.errors.append(f"{article_id}: {reason}")

    async def stats(self) -> Dict[str, int]:
        """Counts of active articles with and without a summary."""
        return await self.article_repo.count_summary_stats()

    async def aclose(self) -> None:
        """Close the summarizer's HTTP client."""
        await self.summarizer.aclose()
