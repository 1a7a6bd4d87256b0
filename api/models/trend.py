"""Trend keyword, metric and match model definitions."""
from typing import Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field


class TrendKeywordModel(BaseModel):
    """Trend keyword model for database representation."""
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    keyword: str
    category: Optional[str] = None
    source: str
    is_active: bool = True
    created_at: datetime


class TrendMetricModel(BaseModel):
    """One point of a keyword's search-volume series."""
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    keyword_id: str
    search_volume: int
    collected_at: datetime


class ProductMatchModel(BaseModel):
    """Scored link between a keyword and a product."""
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    keyword_id: str
    product_id: str
    match_score: float
    is_manual: bool = True
