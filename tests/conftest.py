"""Pytest configuration and fixtures."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from unittest.mock import MagicMock, AsyncMock

from collector.fetcher import FetchedPage
from collector.rate_limit import FixedIntervalGate
from collector.sources import PageRequest, SourceAdapter
from database.repositories.job_repo import JobAlreadyRunning, JobStatus
from database.repositories.trend_repo import TrendKeywordExists
from shared.utils import generate_id, get_utc_now, normalize_url


BASE_TIME = datetime(2024, 2, 4, 10, 30, tzinfo=timezone.utc)


def make_cursor(documents: List[Dict[str, Any]]) -> MagicMock:
    """Mock a motor cursor: chained modifiers, async to_list."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=documents)
    return cursor


class FakeArticleRepo:
    """In-memory stand-in for ArticleRepository."""

    def __init__(self):
        self.articles: Dict[str, Dict[str, Any]] = {}
        self.fail_on_create = False

    def add(self, title: str, summary: Optional[str] = None, is_active: bool = True,
            age_minutes: int = 0, article_id: Optional[str] = None, description: str = "",
            category: Optional[str] = None) -> Dict[str, Any]:
        article = {
            "_id": article_id or generate_id("art"),
            "title": title,
            "description": description,
            "summary": summary,
            "original_url": f"https://news.example.com/{len(self.articles)}",
            "source": "GOOGLE",
            "category": category,
            "published_at": None,
            "product_ids": [],
            "is_active": is_active,
            "created_at": BASE_TIME - timedelta(minutes=age_minutes),
        }
        self.articles[article["_id"]] = article
        return article

    async def create_article(self, title, original_url, source, description="", category=None, published_at=None):
        if self.fail_on_create:
            raise RuntimeError("store unavailable")
        url = normalize_url(original_url)
        if any(a["original_url"] == url for a in self.articles.values()):
            return None
        article = {
            "_id": generate_id("art"),
            "title": title,
            "description": description,
            "summary": None,
            "original_url": url,
            "source": source,
            "category": category,
            "published_at": published_at,
            "product_ids": [],
            "is_active": True,
            "created_at": get_utc_now(),
        }
        self.articles[article["_id"]] = article
        return article

    async def get_article(self, article_id):
        return self.articles.get(article_id)

    async def find_existing(self, original_url, title, source):
        url = normalize_url(original_url)
        for article in self.articles.values():
            if article["original_url"] == url:
                return article
            if article["title"] == title and article["source"] == source:
                return article
        return None

    async def list_unsummarized(self, limit):
        pending = [a for a in self.articles.values() if a["is_active"] and a["summary"] is None]
        pending.sort(key=lambda a: a["_id"])
        pending.sort(key=lambda a: a["created_at"], reverse=True)
        return pending[:limit]

    async def set_summary(self, article_id, summary):
        article = self.articles.get(article_id)
        if article is None or article["summary"] is not None:
            return False
        article["summary"] = summary
        return True

    async def count_summary_stats(self):
        active = [a for a in self.articles.values() if a["is_active"]]
        with_summary = sum(1 for a in active if a["summary"] is not None)
        return {
            "with_summary": with_summary,
            "without_summary": len(active) - with_summary,
            "total": len(active)
        }

    async def deactivate_article(self, article_id):
        article = self.articles.get(article_id)
        if article is None:
            return False
        article["is_active"] = False
        return True

    async def list_unlinked(self):
        articles = [
            a for a in self.articles.values()
            if a["is_active"] and a["category"] is not None and not a["product_ids"]
        ]
        return sorted(articles, key=lambda a: a["_id"])

    async def link_products(self, article_id, product_ids):
        article = self.articles.get(article_id)
        if article is None:
            return False
        added = [pid for pid in product_ids if pid not in article["product_ids"]]
        article["product_ids"].extend(added)
        return bool(added)


class FakeJobRepo:
    """In-memory stand-in for CollectionJobRepository."""

    def __init__(self):
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.lose_start_race = False

    def add_running(self, source="ALL") -> Dict[str, Any]:
        job = {
            "_id": generate_id("cjob"),
            "source": source,
            "status": JobStatus.RUNNING,
            "started_at": BASE_TIME,
            "finished_at": None,
            "new_articles": 0,
            "new_products": 0,
            "new_keywords": 0,
            "duplicates": 0,
            "matched_products": 0,
            "linked_products": 0,
            "summarized": 0,
            "errors": [],
            "created_at": BASE_TIME,
        }
        self.jobs[job["_id"]] = job
        return job

    async def find_running(self):
        return [job for job in self.jobs.values() if job["status"] == JobStatus.RUNNING]

    async def start_job(self, source):
        if self.lose_start_race:
            # Another trigger inserted its RUNNING job between check and insert
            self.add_running("ALL")
            raise JobAlreadyRunning("single_running_job")
        if await self.find_running():
            raise JobAlreadyRunning("single_running_job")
        job = self.add_running(source)
        job["created_at"] = get_utc_now()
        return job

    async def get_job(self, job_id):
        return self.jobs.get(job_id)

    async def _finish(self, job_id, status, counts, errors):
        job = self.jobs.get(job_id)
        if job is None or job["status"] != JobStatus.RUNNING:
            return False
        job.update(counts)
        job.update(status=status, errors=list(errors), finished_at=get_utc_now())
        return True

    async def complete_job(self, job_id, counts, errors):
        return await self._finish(job_id, JobStatus.COMPLETED, counts, errors)

    async def fail_job(self, job_id, counts, errors):
        return await self._finish(job_id, JobStatus.FAILED, counts, errors)

    async def list_jobs(self, source=None, status=None, limit=20, skip=0):
        jobs = [
            job for job in self.jobs.values()
            if (not source or job["source"] == source) and (not status or job["status"] == status)
        ]
        jobs.sort(key=lambda job: job["created_at"], reverse=True)
        return jobs[skip:skip + limit]

    async def count_jobs(self, source=None, status=None):
        return len(await self.list_jobs(source, status, limit=len(self.jobs)))


class FakeProductRepo:
    """In-memory stand-in for ProductRepository."""

    def __init__(self):
        self.products: Dict[str, Dict[str, Any]] = {}

    def add(self, name, product_id=None, is_active=True, price=None, category=None, age_minutes=0):
        product = {
            "_id": product_id or generate_id("prd"),
            "name": name,
            "category": category,
            "thumbnail_url": f"https://thumbnail.coupangcdn.com/{name}.jpg",
            "price": price,
            "source_url": f"https://www.coupang.com/vp/products/{len(self.products) + 1}",
            "is_active": is_active,
            "created_at": BASE_TIME - timedelta(minutes=age_minutes),
        }
        self.products[product["_id"]] = product
        return product

    async def create_product(self, name, source_url, thumbnail_url="", price=None, original_price=None,
                             discount_rate=None, affiliate_url=None, category=None):
        url = normalize_url(source_url)
        if any(p["source_url"] == url for p in self.products.values()):
            return None
        product = {
            "_id": generate_id("prd"),
            "name": name,
            "thumbnail_url": thumbnail_url,
            "price": price,
            "original_price": original_price,
            "discount_rate": discount_rate,
            "source_url": url,
            "affiliate_url": affiliate_url or source_url,
            "category": category,
            "is_active": True,
            "created_at": get_utc_now(),
        }
        self.products[product["_id"]] = product
        return product

    async def get_product(self, product_id):
        return self.products.get(product_id)

    async def get_product_by_source_url(self, source_url):
        url = normalize_url(source_url)
        for product in self.products.values():
            if product["source_url"] == url:
                return product
        return None

    async def get_active_products(self, product_ids):
        return {
            pid: self.products[pid]
            for pid in product_ids
            if pid in self.products and self.products[pid]["is_active"]
        }

    async def list_active_products(self, category=None):
        products = [
            p for p in self.products.values()
            if p["is_active"] and (not category or p["category"] == category)
        ]
        return sorted(products, key=lambda p: p["_id"])

    async def list_recent_by_category(self, category, limit):
        products = [p for p in self.products.values() if p["is_active"] and p["category"] == category]
        products.sort(key=lambda p: p["_id"])
        products.sort(key=lambda p: p["created_at"], reverse=True)
        return products[:limit]


class FakeTrendRepo:
    """In-memory stand-in for TrendRepository."""

    def __init__(self):
        self.keywords: Dict[str, Dict[str, Any]] = {}
        self.metrics: List[Dict[str, Any]] = []
        self.matches: List[Dict[str, Any]] = []

    async def create_keyword(self, keyword, source, category=None):
        for existing in self.keywords.values():
            if (existing["keyword"], existing["category"], existing["source"]) == (keyword, category, source):
                raise TrendKeywordExists(keyword)
        document = {
            "_id": generate_id("kw"),
            "keyword": keyword,
            "category": category,
            "source": source,
            "is_active": True,
            "created_at": BASE_TIME,
        }
        self.keywords[document["_id"]] = document
        return document

    def add_keyword(self, keyword_id, keyword, category="electronics", is_active=True):
        self.keywords[keyword_id] = {
            "_id": keyword_id,
            "keyword": keyword,
            "category": category,
            "source": "NAVER_DATALAB",
            "is_active": is_active,
            "created_at": BASE_TIME,
        }

    async def get_keyword(self, keyword_id):
        return self.keywords.get(keyword_id)

    async def find_keyword(self, keyword, category, source):
        for existing in self.keywords.values():
            if (existing["keyword"], existing["category"], existing["source"]) == (keyword, category, source):
                return existing
        return None

    async def list_active_keywords(self, category=None):
        keywords = [
            k for k in self.keywords.values()
            if k["is_active"] and (not category or k["category"] == category)
        ]
        return sorted(keywords, key=lambda k: k["_id"])

    async def add_metric(self, keyword_id, search_volume, collected_at=None):
        metric = {
            "_id": generate_id("met"),
            "keyword_id": keyword_id,
            "search_volume": search_volume,
            "collected_at": collected_at or get_utc_now(),
        }
        self.metrics.append(metric)
        return metric

    async def latest_metric(self, keyword_id):
        metrics = [m for m in self.metrics if m["keyword_id"] == keyword_id]
        return max(metrics, key=lambda m: m["collected_at"]) if metrics else None

    async def upsert_match(self, keyword_id, product_id, match_score, manual=True):
        for match in self.matches:
            if match["keyword_id"] == keyword_id and match["product_id"] == product_id:
                if match["is_manual"] and not manual:
                    return None
                match.update(match_score=match_score, is_manual=manual)
                return match
        match = {
            "_id": generate_id("mat"),
            "keyword_id": keyword_id,
            "product_id": product_id,
            "match_score": match_score,
            "is_manual": manual,
        }
        self.matches.append(match)
        return match

    async def list_matches(self, keyword_id):
        matches = [m for m in self.matches if m["keyword_id"] == keyword_id]
        return sorted(matches, key=lambda m: (-m["match_score"], m["product_id"]))


class FakeFetcher:
    """Serves page bodies from a dict; unknown URLs fail like a 404."""

    def __init__(self, bodies: Dict[str, str] = None, errors: Dict[str, str] = None):
        self.bodies = bodies or {}
        self.errors = errors or {}
        self.fetched: List[str] = []

    async def fetch(self, url):
        self.fetched.append(url)
        if url in self.errors:
            return FetchedPage(url=url, body="", success=False, error=self.errors[url])
        if url not in self.bodies:
            return FetchedPage(url=url, body="", success=False, error="HTTP Error 404")
        return FetchedPage(url=url, body=self.bodies[url], success=True)


class StaticSource(SourceAdapter):
    """Adapter whose pages parse to fixed candidate lists."""

    def __init__(self, name, candidates_by_url: Dict[str, list]):
        self.name = name
        self.candidates_by_url = candidates_by_url

    def pages(self):
        return [PageRequest(url=url) for url in self.candidates_by_url]

    def parse(self, body, page):
        return list(self.candidates_by_url[page.url])


class FakeSummarizer:
    """Summarizer whose answers are scripted per title."""

    def __init__(self, answers: Dict[str, Any] = None, default="A short summary."):
        self.answers = answers or {}
        self.default = default
        self.calls: List[str] = []
        self.closed = False

    async def summarize(self, title, description=""):
        self.calls.append(title)
        answer = self.answers.get(title, self.default)
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def aclose(self):
        self.closed = True


@pytest.fixture
def article_repo():
    return FakeArticleRepo()


@pytest.fixture
def job_repo():
    return FakeJobRepo()


@pytest.fixture
def product_repo():
    return FakeProductRepo()


@pytest.fixture
def trend_repo():
    return FakeTrendRepo()


@pytest.fixture
def no_wait_gate():
    """Gate that counts pauses without sleeping."""
    return FixedIntervalGate(0)


@pytest.fixture
def mock_mongo_db():
    """Create mock MongoDB database."""
    db = MagicMock()

    for name in ("articles", "collection_jobs", "products", "trend_keywords", "trend_metrics", "product_matches"):
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=None)
        collection.insert_one = AsyncMock()
        collection.update_one = AsyncMock()
        collection.count_documents = AsyncMock(return_value=0)
        collection.find_one_and_update = AsyncMock()
        collection.find = MagicMock(return_value=make_cursor([]))
        setattr(db, name, collection)

    return db


@pytest.fixture
def mock_redis_client():
    """Create mock Redis client."""
    redis = AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    return redis
