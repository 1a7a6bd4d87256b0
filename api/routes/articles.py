"""Article collection and enrichment routes."""
import math
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from api.dependencies import (
    get_article_repo,
    get_enrichment_service,
    get_job_repo,
    get_orchestrator,
)
from api.models import ArticleModel, CollectionJobModel, JobStatusEnum
from api.schemas.requests import CollectRequest, EnrichRequest
from api.schemas.responses import (
    ArticleResponse,
    CollectResponse,
    CollectionHistoryData,
    CollectionHistoryResponse,
    CollectionResultData,
    ConflictResponse,
    EnrichmentReportData,
    EnrichmentStatsData,
    EnrichmentStatsResponse,
    EnrichResponse,
    Pagination,
    RunningJob,
)
from collector.enrichment import EnrichmentService
from collector.orchestrator import CollectionConflictError, CollectionOrchestrator
from database.repositories.article_repo import ArticleRepository
from database.repositories.job_repo import CollectionJobRepository
from shared.config import settings
from shared.utils import clamp


router = APIRouter(prefix="/admin/articles", tags=["articles"])


@router.post(
    "/collect",
    response_model=CollectResponse,
    responses={409: {"model": ConflictResponse}, 500: {"model": CollectResponse}}
)
async def collect_articles(
    request: CollectRequest,
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator)
):
    """
    Trigger a collection run.

    - Rejects the run with 409 while another job is RUNNING
    - Fetches, extracts and deduplicates candidates, matches keywords to products,
      links articles to products, then summarizes new articles
    - Answers 500 when the run reported errors and stored nothing
    """
    try:
        result = await orchestrator.run_collection(request.source)
    except CollectionConflictError as e:
        conflict = ConflictResponse(
            error=str(e),
            running_jobs=[
                RunningJob(id=job["_id"], source=job["source"], started_at=job.get("started_at"))
                for job in e.running_jobs
            ]
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=jsonable_encoder(conflict))

    failed = bool(result.errors) and result.new_records == 0
    message = (
        f"Collection {result.status.lower()}: {result.new_articles} new articles, "
        f"{result.new_products} new products, {result.new_keywords} new keywords, "
        f"{result.duplicates} duplicates, {result.linked_products} linked products, "
        f"{result.summarized} summarized"
    )
    if result.errors:
        message += f", {len(result.errors)} errors"

    response = CollectResponse(
        success=not failed,
        message=message,
        data=CollectionResultData(**result.to_dict())
    )
    if failed:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=jsonable_encoder(response)
        )
    return response


@router.get("/collect", response_model=CollectionHistoryResponse)
async def collection_history(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.history_default_limit, ge=1),
    source: Optional[str] = None,
    status_filter: Optional[JobStatusEnum] = Query(None, alias="status"),
    job_repo: CollectionJobRepository = Depends(get_job_repo)
):
    """List collection jobs, newest first."""
    limit = clamp(limit, 1, settings.history_max_limit)
    job_status = status_filter.value if status_filter else None

    jobs = await job_repo.list_jobs(
        source=source,
        status=job_status,
        limit=limit,
        skip=(page - 1) * limit
    )
    total = await job_repo.count_jobs(source=source, status=job_status)

    return CollectionHistoryResponse(
        data=CollectionHistoryData(
            jobs=[CollectionJobModel.model_validate(job) for job in jobs],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit)
            )
        )
    )


@router.post("/batch-summarize", response_model=EnrichResponse)
async def batch_summarize(
    request: EnrichRequest,
    enrichment: EnrichmentService = Depends(get_enrichment_service)
):
    """Summarize a batch of active articles that have no summary yet."""
    report = await enrichment.enrich(request.limit)

    if report.processed == 0:
        message = "No articles need summarization"
    else:
        message = f"Summarized {report.succeeded} of {report.processed} articles"

    return EnrichResponse(message=message, data=EnrichmentReportData(**report.to_dict()))


@router.get("/batch-summarize", response_model=EnrichmentStatsResponse)
async def summary_stats(enrichment: EnrichmentService = Depends(get_enrichment_service)):
    """Counts of summarized and unsummarized active articles."""
    stats = await enrichment.stats()
    return EnrichmentStatsResponse(data=EnrichmentStatsData(**stats))


@router.patch("/{article_id}/deactivate", response_model=ArticleResponse)
async def deactivate_article(
    article_id: str,
    article_repo: ArticleRepository = Depends(get_article_repo)
):
    """Hide an article. Articles are never deleted."""
    if not await article_repo.deactivate_article(article_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Article {article_id} not found"
        )

    article = await article_repo.get_article(article_id)
    return ArticleResponse(data=ArticleModel.model_validate(article))
