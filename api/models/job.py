"""Collection job model definitions."""
from enum import Enum
from typing import List, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field


class JobStatusEnum(str, Enum):
    """Collection job status enumeration."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class CollectionJobModel(BaseModel):
    """Collection job model for database representation."""
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    source: str
    status: JobStatusEnum
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    new_articles: int = 0
    new_products: int = 0
    new_keywords: int = 0
    duplicates: int = 0
    matched_products: int = 0
    linked_products: int = 0
    summarized: int = 0
    errors: List[str] = Field(default_factory=list)
    created_at: datetime
