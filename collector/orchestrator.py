"""
Collection orchestrator.

Drives one collection run: rejects the run when another job is RUNNING,
fetches every page of the selected sources, deduplicates candidates against
the store, persists the new ones, matches keywords to products, links
articles to products, delegates to the enrichment step and closes the job
as COMPLETED or FAILED.
"""
import asyncio
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

import redis.asyncio as redis

from collector.enrichment import EnrichmentService
from collector.fetcher import PageFetcher
from collector.linking import ArticleProductLinker
from collector.matcher import KeywordMatcher
from collector.products import ProductImporter
from collector.publisher import PublisherService
from collector.rate_limit import FixedIntervalGate
from collector.sources import (
    ArticleCandidate,
    Candidate,
    KeywordCandidate,
    ProductCandidate,
    SourceAdapter,
    SourceName,
)
from database.repositories.article_repo import ArticleRepository
from database.repositories.job_repo import CollectionJobRepository, JobAlreadyRunning, JobStatus
from database.repositories.trend_repo import TrendKeywordExists, TrendRepository
from shared.config import settings

logger = logging.getLogger(__name__)


class CollectionConflictError(Exception):
    """Another collection job is RUNNING; the new run was not started."""

    def __init__(self, running_jobs: List[Dict[str, Any]]):
        self.running_jobs = running_jobs
        job_ids = ", ".join(job["_id"] for job in running_jobs) or "unknown"
        super().__init__(f"A collection job is already running: {job_ids}")


class UnknownSourceError(ValueError):
    """The source selector names no configured source."""


@dataclass
class CollectionResult:
    """Outcome of one collection run."""
    job_id: str
    source: str
    status: str
    total: int = 0
    new_articles: int = 0
    new_products: int = 0
    new_keywords: int = 0
    duplicates: int = 0
    matched_products: int = 0
    linked_products: int = 0
    summarized: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def new_records(self) -> int:
        return self.new_articles + self.new_products + self.new_keywords

    def counts(self) -> Dict[str, int]:
        return {
            "new_articles": self.new_articles,
            "new_products": self.new_products,
            "new_keywords": self.new_keywords,
            "duplicates": self.duplicates,
            "matched_products": self.matched_products,
            "linked_products": self.linked_products,
            "summarized": self.summarized
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CollectionOrchestrator:
    """Runs collection jobs against the configured sources."""

    def __init__(
        self,
        job_repo: CollectionJobRepository,
        article_repo: ArticleRepository,
        product_importer: ProductImporter,
        sources: Dict[str, SourceAdapter],
        trend_repo: Optional[TrendRepository] = None,
        fetcher: PageFetcher = None,
        matcher: Optional[KeywordMatcher] = None,
        article_linker: Optional[ArticleProductLinker] = None,
        enrichment: Optional[EnrichmentService] = None,
        publisher: Optional[PublisherService] = None,
        page_gate: FixedIntervalGate = None,
        enrich_limit: int = None,
        error_cap: int = None
    ):
        self.job_repo = job_repo
        self.article_repo = article_repo
        self.product_importer = product_importer
        self.sources = sources
        self.trend_repo = trend_repo
        self.fetcher = fetcher or PageFetcher()
        self.matcher = matcher
        self.article_linker = article_linker
        self.enrichment = enrichment
        self.publisher = publisher
        self.page_gate = page_gate or FixedIntervalGate(settings.fetch_interval)
        self.enrich_limit = enrich_limit or settings.collect_enrich_limit
        self.error_cap = error_cap or settings.error_list_cap

    def select_sources(self, source: str) -> List[SourceAdapter]:
        """Resolve a source selector to adapters. ALL keeps configuration order."""
        if source == SourceName.ALL:
            return list(self.sources.values())
        if source not in self.sources:
            raise UnknownSourceError(f"Unknown source: {source}")
        return [self.sources[source]]

    async def run_collection(self, source: str = SourceName.ALL) -> CollectionResult:
        """
        Run one collection job.

        Raises CollectionConflictError when a job is already RUNNING; no job
        record is created or touched in that case. Store failures end the run
        as FAILED and are reported in the result, keeping what was already
        written. A run cancelled by its caller, e.g. on a timeout, is marked
        FAILED before the cancellation propagates.
        """
        adapters = self.select_sources(source)

        running = await self.job_repo.find_running()
        if running:
            raise CollectionConflictError(running)

        try:
            job = await self.job_repo.start_job(source)
        except JobAlreadyRunning:
            raise CollectionConflictError(await self.job_repo.find_running())

        result = CollectionResult(job_id=job["_id"], source=source, status=JobStatus.RUNNING)
        logger.info(f"Collection job {result.job_id} started for {source}")
        await self._notify(result)

        try:
            for adapter in adapters:
                await self._collect_source(adapter, result)

            await self._match_products(result)
            await self._link_articles(result)
            await self._enrich(result)

            await self.job_repo.complete_job(result.job_id, result.counts(), result.errors)
            result.status = JobStatus.COMPLETED
            logger.info(
                f"Collection job {result.job_id} completed: {result.new_articles} new articles, "
                f"{result.new_products} new products, {result.new_keywords} new keywords, "
                f"{result.duplicates} duplicates, {result.summarized} summarized"
            )
        except asyncio.CancelledError:
            logger.warning(f"Collection job {result.job_id} cancelled")
            result.status = JobStatus.FAILED
            self._add_error(result, "Collection cancelled")
            await asyncio.shield(self._close_cancelled(result))
            raise
        except Exception as e:
            logger.exception(f"Collection job {result.job_id} failed")
            result.status = JobStatus.FAILED
            self._add_error(result, f"Collection aborted: {e}")
            await self._mark_failed(result)

        await self._notify(result)
        return result

    async def _collect_source(self, adapter: SourceAdapter, result: CollectionResult) -> None:
        pages = adapter.pages()
        logger.info(f"{adapter.name}: fetching {len(pages)} pages")

        for index, page in enumerate(pages):
            if index:
                await self.page_gate.pause()

            fetched = await self.fetcher.fetch(page.url)
            if not fetched.success:
                logger.warning(f"{adapter.name}: fetch failed for {page.url}: {fetched.error}")
                self._add_error(result, f"{adapter.name}: {page.url}: {fetched.error}")
                continue

            candidates = adapter.parse(fetched.body, page)
            result.total += len(candidates)
            for candidate in candidates:
                await self._store_candidate(candidate, result)

    async def _store_candidate(self, candidate: Candidate, result: CollectionResult) -> None:
        if isinstance(candidate, ArticleCandidate):
            if await self._store_article(candidate):
                result.new_articles += 1
            else:
                result.duplicates += 1
        elif isinstance(candidate, ProductCandidate):
            stored = await self.product_importer.store(
                candidate.record,
                category=candidate.category,
                affiliate_url=candidate.affiliate_url
            )
            if stored:
                result.new_products += 1
            else:
                result.duplicates += 1
        elif isinstance(candidate, KeywordCandidate):
            if await self._store_keyword(candidate):
                result.new_keywords += 1
            else:
                result.duplicates += 1
        else:
            raise TypeError(f"Unsupported candidate type: {type(candidate).__name__}")

    async def _store_keyword(self, candidate: KeywordCandidate) -> bool:
        """
        Insert the keyword unless (keyword, category, source) is already stored.

        The reported search volume is appended to the keyword's metric series
        either way.
        """
        if self.trend_repo is None:
            raise RuntimeError("Keyword candidates need a trend repository")

        try:
            keyword = await self.trend_repo.create_keyword(
                candidate.keyword, candidate.source, candidate.category
            )
            created = True
        except TrendKeywordExists:
            keyword = await self.trend_repo.find_keyword(
                candidate.keyword, candidate.category, candidate.source
            )
            created = False

        if keyword is not None and candidate.search_volume is not None:
            await self.trend_repo.add_metric(keyword["_id"], candidate.search_volume)
        return created

    async def _store_article(self, candidate: ArticleCandidate) -> bool:
        """Insert the article unless its URL or title+source is already stored."""
        existing = await self.article_repo.find_existing(
            candidate.original_url, candidate.title, candidate.source
        )
        if existing:
            return False

        created = await self.article_repo.create_article(
            title=candidate.title,
            original_url=candidate.original_url,
            source=candidate.source,
            description=candidate.description,
            category=candidate.category,
            published_at=candidate.published_at
        )
        return created is not None

    async def _match_products(self, result: CollectionResult) -> None:
        """Rematch keywords and products when either side gained records."""
        if self.matcher is None or not (result.new_keywords or result.new_products):
            return

        try:
            report = await self.matcher.match_all()
        except Exception as e:
            logger.exception(f"Product matching after collection job {result.job_id} failed")
            self._add_error(result, f"Product matching failed: {e}")
            return
        result.matched_products = report.matched

    async def _link_articles(self, result: CollectionResult) -> None:
        if self.article_linker is None:
            return

        try:
            result.linked_products = await self.article_linker.link()
        except Exception as e:
            logger.exception(f"Article linking after collection job {result.job_id} failed")
            self._add_error(result, f"Article linking failed: {e}")

    async def _enrich(self, result: CollectionResult) -> None:
        """Summarize after persistence. Enrichment trouble never fails the collection."""
        if self.enrichment is None or result.new_articles == 0:
            return

        try:
            report = await self.enrichment.enrich(min(result.new_articles, self.enrich_limit))
        except Exception as e:
            logger.exception(f"Enrichment after collection job {result.job_id} failed")
            self._add_error(result, f"Enrichment failed: {e}")
            return

        result.summarized = report.succeeded
        for error in report.errors:
            self._add_error(result, f"Summary failed ({error})")

    async def _mark_failed(self, result: CollectionResult) -> None:
        try:
            await self.job_repo.fail_job(result.job_id, result.counts(), result.errors)
        except Exception:
            # The job stays RUNNING in the store until an operator closes it
            logger.exception(f"Could not mark collection job {result.job_id} as FAILED")

    async def _close_cancelled(self, result: CollectionResult) -> None:
        await self._mark_failed(result)
        await self._notify(result)

    def _add_error(self, result: CollectionResult, message: str) -> None:
        if len(result.errors) < self.error_cap:
            result.errors.append(message)

    async def _notify(self, result: CollectionResult) -> None:
        if self.publisher is None:
            return
        try:
            await self.publisher.publish_job_update(
                job_id=result.job_id,
                source=result.source,
                status=result.status,
                **result.counts()
            )
        except redis.RedisError as e:
            logger.warning(f"Could not publish update for job {result.job_id}: {e}")

    async def aclose(self) -> None:
        """Release the enrichment step's HTTP client."""
        if self.enrichment is not None:
            await self.enrichment.aclose()
