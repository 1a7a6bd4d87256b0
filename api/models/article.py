"""Article model definitions."""
from typing import List, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field


class ArticleModel(BaseModel):
    """Article model for database representation."""
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    title: str
    description: str = ""
    summary: Optional[str] = None
    original_url: str
    source: str
    category: Optional[str] = None
    published_at: Optional[datetime] = None
    product_ids: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime
