# Models module
from .job import CollectionJobModel, JobStatusEnum
from .article import ArticleModel
from .trend import TrendKeywordModel, TrendMetricModel, ProductMatchModel

__all__ = [
    "CollectionJobModel",
    "JobStatusEnum",
    "ArticleModel",
    "TrendKeywordModel",
    "TrendMetricModel",
    "ProductMatchModel"
]
