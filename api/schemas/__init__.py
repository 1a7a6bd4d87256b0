# Schemas module
from .requests import (
    CollectRequest,
    EnrichRequest,
    TrendKeywordCreateRequest,
    TrendMetricCreateRequest,
    ProductMatchRequest,
    ProductImportRequest
)
from .responses import (
    CollectResponse,
    ConflictResponse,
    CollectionHistoryResponse,
    EnrichResponse,
    EnrichmentStatsResponse,
    PopularKeywordsResponse,
    ProductImportResponse,
    ErrorResponse
)

__all__ = [
    "CollectRequest",
    "EnrichRequest",
    "TrendKeywordCreateRequest",
    "TrendMetricCreateRequest",
    "ProductMatchRequest",
    "ProductImportRequest",
    "CollectResponse",
    "ConflictResponse",
    "CollectionHistoryResponse",
    "EnrichResponse",
    "EnrichmentStatsResponse",
    "PopularKeywordsResponse",
    "ProductImportResponse",
    "ErrorResponse"
]
