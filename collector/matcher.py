"""
Keyword to product matching.

Scores every active product against every active trend keyword and stores
the best matches, which the ranking reads for `top_product` and
`product_count`. Scores are in 0..1; the cascade below stops at the first
rule that applies.

    exact name                      1.0
    near-identical name             0.60 - 0.95
    name contains keyword           0.50 - 0.80
    keyword contains name           0.45 - 0.70
    same brand                      0.30 - 0.50
    shared words                    0.20 - 0.40
"""
import logging
import re
from dataclasses import dataclass, asdict
from difflib import SequenceMatcher
from typing import Any, Dict, List, Optional, Set

from database.repositories.product_repo import ProductRepository
from database.repositories.trend_repo import TrendRepository
from shared.config import settings

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.85
MIN_TOKEN_OVERLAP = 0.2

BRANDS = {
    "electronics": [
        "삼성", "samsung", "애플", "apple", "아이폰", "iphone", "갤럭시", "galaxy",
        "lg", "소니", "sony", "샤오미", "xiaomi", "레노버", "lenovo", "에이수스", "asus",
        "구글", "google", "픽셀", "pixel", "다이슨", "dyson", "보스", "bose",
    ],
    "beauty": [
        "설화수", "라네즈", "이니스프리", "에뛰드", "미샤", "더페이스샵",
        "에스티로더", "랑콤", "샤넬", "디올", "로레알", "클리오", "롬앤",
    ],
    "appliances": [
        "다이슨", "dyson", "삼성", "samsung", "lg", "필립스", "philips",
        "보쉬", "bosch", "밀레", "miele", "쿠첸", "쿠쿠", "cuckoo", "위니아",
    ],
    "food": [
        "농심", "오뚜기", "삼양", "cj", "풀무원", "동원", "해태",
        "롯데", "오리온", "빙그레", "남양", "매일",
    ],
}


def normalize_name(text: str) -> str:
    """Lowercase with whitespace and punctuation removed."""
    return re.sub(r"[\W_]+", "", text.lower())


def tokenize(text: str) -> Set[str]:
    return {token for token in re.split(r"[\s\-_]+", text.lower()) if len(token) > 1}


def token_overlap(first: str, second: str) -> float:
    """Jaccard similarity of the word sets."""
    a, b = tokenize(first), tokenize(second)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def find_brand(text: str, category: Optional[str] = None) -> Optional[str]:
    """First known brand named in the text, the item's own category first."""
    text = text.lower()
    groups = [BRANDS[category]] if category in BRANDS else []
    groups.extend(BRANDS.values())
    for brands in groups:
        for brand in brands:
            if brand in text:
                return brand
    return None


def score_match(keyword: str, product_name: str, category: Optional[str] = None) -> Optional[float]:
    """Match score of a product name for a keyword, or None when unrelated."""
    normalized_keyword = normalize_name(keyword)
    normalized_name = normalize_name(product_name)
    if not normalized_keyword or not normalized_name:
        return None

    if normalized_keyword == normalized_name:
        return 1.0

    similarity = SequenceMatcher(None, normalized_keyword, normalized_name).ratio()
    if similarity >= SIMILARITY_THRESHOLD:
        return round(min(0.95, 0.60 + (similarity - SIMILARITY_THRESHOLD) * 2.3333), 4)

    keyword_lower = keyword.strip().lower()
    name_lower = product_name.strip().lower()
    if keyword_lower in name_lower:
        return round(0.50 + len(keyword_lower) / len(name_lower) * 0.30, 4)
    if name_lower in keyword_lower:
        return round(0.45 + len(name_lower) / len(keyword_lower) * 0.25, 4)

    overlap = token_overlap(keyword, product_name)

    keyword_brand = find_brand(keyword, category)
    if keyword_brand and keyword_brand == find_brand(product_name, category):
        return round(0.30 + overlap * 0.20, 4)

    if overlap >= MIN_TOKEN_OVERLAP:
        return round(0.20 + overlap * 0.20, 4)

    return None


@dataclass
class MatchReport:
    """Outcome of one matching pass."""
    keywords_processed: int = 0
    matched: int = 0
    skipped_manual: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class KeywordMatcher:
    """Creates automatic ProductMatches for active keywords."""

    def __init__(
        self,
        trend_repo: TrendRepository,
        product_repo: ProductRepository,
        min_score: float = None,
        limit: int = None
    ):
        self.trend_repo = trend_repo
        self.product_repo = product_repo
        self.min_score = min_score if min_score is not None else settings.match_min_score
        self.limit = limit or settings.match_limit_per_keyword

    def best_matches(self, keyword: Dict[str, Any], products: List[Dict[str, Any]]) -> List[tuple]:
        """(product_id, score) pairs at or above the minimum, best first."""
        scored = []
        for product in products:
            score = score_match(keyword["keyword"], product["name"], product.get("category"))
            if score is not None and score >= self.min_score:
                scored.append((product["_id"], score))
        scored.sort(key=lambda pair: (-pair[1], pair[0]))
        return scored[:self.limit]

    async def match_all(self) -> MatchReport:
        """Match every active keyword against the active products of its category."""
        keywords = await self.trend_repo.list_active_keywords()
        report = MatchReport(keywords_processed=len(keywords))
        products_by_category: Dict[Optional[str], List[Dict[str, Any]]] = {}

        for keyword in keywords:
            category = keyword.get("category")
            if category not in products_by_category:
                products_by_category[category] = await self.product_repo.list_active_products(category)

            for product_id, score in self.best_matches(keyword, products_by_category[category]):
                match = await self.trend_repo.upsert_match(keyword["_id"], product_id, score, manual=False)
                if match is None:
                    report.skipped_manual += 1
                else:
                    report.matched += 1

        logger.info(
            f"Matched {report.matched} keyword-product pairs across "
            f"{report.keywords_processed} keywords"
        )
        return report
