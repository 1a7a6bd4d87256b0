"""Request schemas for API endpoints."""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
from shared.config import settings


SourceSelector = Literal["ALL", "GOOGLE", "NAVER", "COUPANG", "GOOGLE_TRENDS"]


class CollectRequest(BaseModel):
    """Request schema for triggering a collection run."""
    source: SourceSelector = Field(default="ALL", description="Source to collect, or ALL")


class EnrichRequest(BaseModel):
    """Request schema for a summarization batch."""
    limit: int = Field(
        default=settings.enrich_default_limit,
        ge=1,
        description="Number of articles to summarize (capped at the configured maximum)"
    )

    @field_validator('limit')
    @classmethod
    def cap_limit(cls, v: int) -> int:
        """Large batches are capped rather than rejected."""
        return min(v, settings.enrich_max_limit)


class TrendKeywordCreateRequest(BaseModel):
    """Request schema for registering a trend keyword."""
    keyword: str = Field(..., min_length=1, description="Keyword text")
    source: str = Field(..., min_length=1, description="Trend source (e.g., NAVER_DATALAB)")
    category: Optional[str] = Field(default=None, description="Category slug (e.g., electronics)")

    @field_validator('keyword')
    @classmethod
    def strip_keyword(cls, v: str) -> str:
        """Keywords are stored without surrounding whitespace."""
        v = v.strip()
        if not v:
            raise ValueError('Keyword must not be blank')
        return v


class TrendMetricCreateRequest(BaseModel):
    """Request schema for appending a search-volume metric."""
    search_volume: int = Field(..., ge=0, description="Search volume at collection time")
    collected_at: Optional[datetime] = Field(default=None, description="Defaults to now")


class ProductMatchRequest(BaseModel):
    """Request schema for linking a keyword to a product."""
    product_id: str = Field(..., min_length=1, description="Product identifier")
    match_score: float = Field(..., description="Higher is a better match")


class ProductImportRequest(BaseModel):
    """Request schema for importing products from pasted listing markup."""
    markup: str = Field(..., min_length=1, description="Listing page HTML or console-script JSON")
    category: Optional[str] = Field(default=None, description="Category for imported products")
