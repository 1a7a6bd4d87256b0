"""Shared configuration for the API and the collector."""
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "trend_ranker"

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_job_channel: str = "collection_job_updates"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    # Page fetching
    fetch_timeout: int = 15
    fetch_interval: float = 1.0  # seconds between pages of one source
    user_agent: str = "Mozilla/5.0 (compatible; PickRanky/1.0)"

    # Sources
    google_news_url_template: str = (
        "https://news.google.com/rss/search?q={query}+when:1d&hl=ko&gl=KR&ceid=KR:ko"
    )
    google_news_queries: Dict[str, List[str]] = {
        "electronics": ["스마트폰 추천", "노트북 추천", "IT 기기 리뷰"],
        "beauty": ["화장품 추천", "뷰티 트렌드", "스킨케어 추천"],
        "appliances": ["가전제품 추천", "생활가전 리뷰"],
        "food": ["건강식품 추천", "음식 트렌드"],
    }
    naver_rss_feeds: Dict[str, List[str]] = {}
    marketplace_page_urls: List[str] = ["https://www.coupang.com/np/goldbox"]
    marketplace_category: Optional[str] = None
    trend_feed_urls: List[str] = ["https://trends.google.com/trending/rss?geo=KR"]
    trend_feed_category: Optional[str] = None

    # Affiliate links
    affiliate_partner_id: Optional[str] = None

    # Summarizer (OpenAI-compatible chat completions endpoint)
    summarizer_base_url: str = "https://api.openai.com/v1"
    summarizer_api_key: Optional[str] = None
    summarizer_model: str = "gpt-3.5-turbo"
    summarizer_timeout: float = 30.0
    summary_max_length: int = 200
    summary_language: str = "ko"

    # Enrichment
    enrich_default_limit: int = 20
    enrich_max_limit: int = 50
    enrich_interval: float = 0.3  # seconds after every summarizer call
    collect_enrich_limit: int = 20
    error_list_cap: int = 10

    # Keyword matching / article linking
    match_min_score: float = 0.3
    match_limit_per_keyword: int = 20
    article_product_links: int = 5

    # Ranking / history
    ranking_default_limit: int = 10
    ranking_max_limit: int = 50
    history_default_limit: int = 20
    history_max_limit: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
