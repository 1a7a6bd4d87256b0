"""
Source adapters.

Each adapter lists the pages to fetch for one source and turns a fetched
page body into candidate records. News sources yield ArticleCandidates from
RSS feeds, the marketplace source yields ProductCandidates from listing pages
and the trend feed yields KeywordCandidates.
"""
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union
from urllib.parse import quote

import feedparser
from bs4 import BeautifulSoup

from collector.affiliate import AffiliateLinker, to_affiliate_url
from collector.extractor import ProductRecord, parse_page
from database.repositories.article_repo import ArticleSource
from shared.config import settings

logger = logging.getLogger(__name__)


class SourceName:
    """Collection source selectors."""
    GOOGLE = ArticleSource.GOOGLE
    NAVER = ArticleSource.NAVER
    COUPANG = "COUPANG"
    GOOGLE_TRENDS = "GOOGLE_TRENDS"
    ALL = "ALL"


@dataclass
class PageRequest:
    """A page to fetch, with the category its records belong to."""
    url: str
    category: Optional[str] = None


@dataclass
class ArticleCandidate:
    """A news item that may become an Article."""
    title: str
    original_url: str
    description: str
    source: str
    category: Optional[str] = None
    published_at: Optional[datetime] = None


@dataclass
class ProductCandidate:
    """An extracted product unit that may become a Product."""
    record: ProductRecord
    affiliate_url: str
    category: Optional[str] = None


@dataclass
class KeywordCandidate:
    """A trending search term that may become a TrendKeyword."""
    keyword: str
    source: str
    category: Optional[str] = None
    search_volume: Optional[int] = None


Candidate = Union[ArticleCandidate, ProductCandidate, KeywordCandidate]


class SourceAdapter(ABC):
    """One collection source."""

    name: str

    @abstractmethod
    def pages(self) -> List[PageRequest]:
        """Pages to fetch for one run, in fetch order."""

    @abstractmethod
    def parse(self, body: str, page: PageRequest) -> List[Candidate]:
        """Candidates found in a fetched page. Must not raise on bad input."""


def _strip_markup(text: str) -> str:
    if not text:
        return ""
    return " ".join(BeautifulSoup(text, "html.parser").get_text().split())


def _published_at(entry) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


class RssNewsSource(SourceAdapter):
    """News source backed by RSS feeds, one or more per category."""

    def __init__(self, name: str, feeds: Dict[str, List[str]]):
        self.name = name
        self.feeds = feeds

    def pages(self) -> List[PageRequest]:
        return [
            PageRequest(url=url, category=category)
            for category, urls in self.feeds.items()
            for url in urls
        ]

    def parse(self, body: str, page: PageRequest) -> List[Candidate]:
        feed = feedparser.parse(body)
        if feed.bozo and not feed.entries:
            logger.warning(f"{self.name}: unreadable feed {page.url}: {feed.get('bozo_exception')}")
            return []

        candidates: List[Candidate] = []
        for entry in feed.entries:
            title, description = self._title_and_description(entry)
            link = (entry.get("link") or "").strip()
            if not title or not link:
                continue
            candidates.append(ArticleCandidate(
                title=title,
                original_url=link,
                description=description,
                source=self.name,
                category=page.category,
                published_at=_published_at(entry),
            ))

        logger.info(f"{self.name}: {len(candidates)} items in {page.url}")
        return candidates

    def _title_and_description(self, entry):
        return (
            _strip_markup(entry.get("title", "")),
            _strip_markup(entry.get("summary", "")),
        )


class GoogleNewsSource(RssNewsSource):
    """
    Google News search feeds.

    Titles come as "Headline - Publisher"; the publisher is split off and
    used as the description since the feed carries no usable summary.
    """

    def __init__(
        self,
        queries: Dict[str, List[str]] = None,
        url_template: str = None
    ):
        queries = queries if queries is not None else settings.google_news_queries
        url_template = url_template or settings.google_news_url_template
        feeds = {
            category: [url_template.format(query=quote(query)) for query in query_list]
            for category, query_list in queries.items()
        }
        super().__init__(SourceName.GOOGLE, feeds)

    def _title_and_description(self, entry):
        title = _strip_markup(entry.get("title", ""))
        publisher = ""
        if " - " in title:
            title, publisher = [part.strip() for part in title.rsplit(" - ", 1)]
        publisher = publisher or _strip_markup((entry.get("source") or {}).get("title", ""))
        return title, f"Source: {publisher}" if publisher else ""


class MarketplaceSource(SourceAdapter):
    """Marketplace listing pages run through the extractor."""

    name = SourceName.COUPANG

    def __init__(
        self,
        page_urls: List[str] = None,
        category: Optional[str] = None,
        partner_id: Optional[str] = None,
        linker: AffiliateLinker = to_affiliate_url
    ):
        self.page_urls = page_urls if page_urls is not None else settings.marketplace_page_urls
        self.category = category if category is not None else settings.marketplace_category
        self.partner_id = partner_id if partner_id is not None else settings.affiliate_partner_id
        self.linker = linker

    def pages(self) -> List[PageRequest]:
        return [PageRequest(url=url, category=self.category) for url in self.page_urls]

    def parse(self, body: str, page: PageRequest) -> List[Candidate]:
        result = parse_page(body)
        logger.info(
            f"{self.name}: {len(result.products)} products on {result.page_type.value} page {page.url}"
        )
        return [
            ProductCandidate(
                record=record,
                affiliate_url=self.linker(record.source_url, self.partner_id),
                category=page.category,
            )
            for record in result.products
        ]


TRAFFIC_PATTERN = re.compile(r"([\d,.]+)\s*([KkMm만천]?)")
TRAFFIC_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "천": 1_000, "만": 10_000}


def parse_traffic(text: Optional[str]) -> Optional[int]:
    """Approximate traffic such as "20,000+" or "50K+" as an integer, else None."""
    if not text:
        return None
    match = TRAFFIC_PATTERN.search(text)
    if not match:
        return None
    try:
        value = float(match.group(1).replace(",", ""))
    except ValueError:
        return None
    return int(value * TRAFFIC_MULTIPLIERS.get(match.group(2).lower(), 1))


class TrendFeedSource(SourceAdapter):
    """
    Google Trends daily RSS.

    Each item title is a trending search term; `ht:approx_traffic` carries
    its approximate search volume.
    """

    name = SourceName.GOOGLE_TRENDS

    def __init__(self, feed_urls: List[str] = None, category: Optional[str] = None):
        self.feed_urls = feed_urls if feed_urls is not None else settings.trend_feed_urls
        self.category = category if category is not None else settings.trend_feed_category

    def pages(self) -> List[PageRequest]:
        return [PageRequest(url=url, category=self.category) for url in self.feed_urls]

    def parse(self, body: str, page: PageRequest) -> List[Candidate]:
        feed = feedparser.parse(body)
        if feed.bozo and not feed.entries:
            logger.warning(f"{self.name}: unreadable feed {page.url}: {feed.get('bozo_exception')}")
            return []

        candidates: List[Candidate] = []
        seen = set()
        for entry in feed.entries:
            keyword = _strip_markup(entry.get("title", ""))
            if not keyword or keyword in seen:
                continue
            seen.add(keyword)
            candidates.append(KeywordCandidate(
                keyword=keyword,
                source=self.name,
                category=page.category,
                search_volume=parse_traffic(entry.get("ht_approx_traffic")),
            ))

        logger.info(f"{self.name}: {len(candidates)} keywords in {page.url}")
        return candidates


def default_sources() -> Dict[str, SourceAdapter]:
    """Configured adapters keyed by source name, in the order ALL runs them."""
    return {
        SourceName.GOOGLE: GoogleNewsSource(),
        SourceName.NAVER: RssNewsSource(SourceName.NAVER, settings.naver_rss_feeds),
        SourceName.COUPANG: MarketplaceSource(),
        SourceName.GOOGLE_TRENDS: TrendFeedSource(),
    }
