"""Response schemas for API endpoints."""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field
from api.models import ArticleModel, CollectionJobModel, TrendKeywordModel, TrendMetricModel, ProductMatchModel


class CollectionResultData(BaseModel):
    """Outcome of a collection run."""
    job_id: str = Field(..., description="Collection job identifier")
    source: str = Field(..., description="Source selector of the run")
    status: str = Field(..., description="Final job status")
    total: int = Field(0, description="Candidates seen across all fetched pages")
    new_articles: int = Field(0, description="Articles stored by this run")
    new_products: int = Field(0, description="Products stored by this run")
    new_keywords: int = Field(0, description="Trend keywords stored by this run")
    duplicates: int = Field(0, description="Candidates that were already stored")
    matched_products: int = Field(0, description="Keyword-product matches created or rescored")
    linked_products: int = Field(0, description="Products related to articles by category")
    summarized: int = Field(0, description="Articles summarized after collection")
    errors: List[str] = Field(default_factory=list, description="First errors of the run")


class CollectResponse(BaseModel):
    """Response schema for a collection run."""
    success: bool
    message: str
    data: CollectionResultData


class RunningJob(BaseModel):
    """Summary of an in-flight job."""
    id: str
    source: str
    started_at: Optional[datetime] = None


class ConflictResponse(BaseModel):
    """Response schema when a collection job is already running."""
    success: bool = False
    error: str
    running_jobs: List[RunningJob] = Field(default_factory=list)


class Pagination(BaseModel):
    """Page metadata."""
    page: int
    limit: int
    total: int
    total_pages: int


class CollectionHistoryData(BaseModel):
    jobs: List[CollectionJobModel]
    pagination: Pagination


class CollectionHistoryResponse(BaseModel):
    """Response schema for collection history."""
    success: bool = True
    data: CollectionHistoryData


class EnrichmentReportData(BaseModel):
    """Outcome of a summarization batch."""
    processed: int = Field(..., description="Articles selected for the batch")
    succeeded: int = Field(..., description="Articles that received a summary")
    failed: int = Field(..., description="Articles that could not be summarized")
    errors: List[str] = Field(default_factory=list, description="First failures, capped")


class EnrichResponse(BaseModel):
    """Response schema for a summarization batch."""
    success: bool = True
    message: str
    data: EnrichmentReportData


class EnrichmentStatsData(BaseModel):
    with_summary: int
    without_summary: int
    total: int


class EnrichmentStatsResponse(BaseModel):
    """Response schema for summary coverage."""
    success: bool = True
    data: EnrichmentStatsData


class TopProduct(BaseModel):
    """Best-matching active product of a keyword."""
    id: str
    name: str
    thumbnail_url: Optional[str] = None
    price: Optional[int] = None
    match_score: float


class RankedKeywordData(BaseModel):
    """One leaderboard row."""
    rank: int
    id: str
    keyword: str
    category: Optional[str] = None
    source: str
    search_volume: int
    product_count: int
    top_product: Optional[TopProduct] = None
    collected_at: Optional[datetime] = None


class PopularKeywordsData(BaseModel):
    keywords: List[RankedKeywordData]
    total: int


class PopularKeywordsResponse(BaseModel):
    """Response schema for the popular keyword leaderboard."""
    success: bool = True
    data: PopularKeywordsData


class ProductImportData(BaseModel):
    page_type: str
    total: int
    imported: int
    duplicates: int
    warning: Optional[str] = None


class ProductImportResponse(BaseModel):
    """Response schema for a markup import."""
    success: bool = True
    message: str
    data: ProductImportData


class ArticleResponse(BaseModel):
    success: bool = True
    data: ArticleModel


class TrendKeywordResponse(BaseModel):
    success: bool = True
    data: TrendKeywordModel


class TrendMetricResponse(BaseModel):
    success: bool = True
    data: TrendMetricModel


class ProductMatchResponse(BaseModel):
    success: bool = True
    data: ProductMatchModel


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    success: bool = False
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
