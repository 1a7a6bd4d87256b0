"""
Product extraction from marketplace listing pages.

Listing markup is third-party and changes without notice, so extraction is
best-effort: each page template gets its own rule, every field is looked up
independently, and nothing in here raises on malformed input.
"""
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment, Tag

logger = logging.getLogger(__name__)

MARKETPLACE_HOST = "https://www.coupang.com"

# Product detail paths, absolute or relative to the marketplace host
_PRODUCT_PATH = re.compile(r"^(?:https?://www\.coupang\.com)?/[vn]p/products/\d+")
_CDN_HOST = re.compile(r"coupangcdn\.com", re.IGNORECASE)
_NUMBER = re.compile(r"[0-9][0-9,]*")
_LAZY_CONTAINER = re.compile(r'class="[^"]*lazy-container[^"]*"')
_LAZY_HIDDEN = re.compile(r'class="[^"]*lazy-container\s+lazy-hidden[^"]*"')
_IMAGE_ATTRS = ("src", "data-src", "data-img-src")


class PageType(str, Enum):
    """Known listing page templates."""
    GOLDBOX = "goldbox"
    BEST = "best"
    UNKNOWN = "unknown"


@dataclass
class ProductRecord:
    """A product unit pulled out of a listing page."""
    name: str
    image_url: str
    source_url: str
    price: Optional[int] = None
    original_price: Optional[int] = None
    discount_rate: Optional[int] = None


@dataclass
class ParseResult:
    """Extraction output with lazy-loading diagnostics."""
    page_type: PageType
    products: List[ProductRecord]
    total_containers: int = 0
    hidden_containers: int = 0
    warning: Optional[str] = None


@dataclass(frozen=True)
class ExtractionRule:
    """CSS selectors for one page template."""
    page_type: PageType
    markers: Tuple[str, ...]
    unit: str
    name: str
    price: str
    original_price: str
    discount: str
    image_host: re.Pattern = _CDN_HOST


# Registration order is also the fallback order for unrecognized pages
RULES: Dict[PageType, ExtractionRule] = {
    PageType.GOLDBOX: ExtractionRule(
        page_type=PageType.GOLDBOX,
        markers=("discount-products", "discount-product-unit"),
        unit='[class*="discount-product-unit"]',
        name='span[class*="info_section__title"]',
        price='span[class*="price_info__discount"]',
        original_price='span[class*="price_info__base"]',
        discount='span[class*="sale_point_badge__content"]',
    ),
    PageType.BEST: ExtractionRule(
        page_type=PageType.BEST,
        markers=("baby-product",),
        unit='[class*="baby-product-wrap"]',
        name="div.name",
        price="strong.price-value",
        original_price="del.base-price",
        discount="span.instant-discount-rate",
    ),
}


def parse_price(value: str) -> Optional[int]:
    """Parse a price string ("11,900" -> 11900). No digits means no price."""
    digits = re.sub(r"[^0-9]", "", value or "")
    return int(digits) if digits else None


def normalize_image_url(url: str) -> str:
    """Give protocol-relative URLs an explicit https scheme."""
    if url.startswith("//"):
        return f"https:{url}"
    return url


def classify(markup: str) -> PageType:
    """Detect the page template from its structural markers."""
    for rule in RULES.values():
        if any(marker in markup for marker in rule.markers):
            return rule.page_type
    return PageType.UNKNOWN


def extract(markup: str) -> Tuple[PageType, List[ProductRecord]]:
    """Classify the markup and extract its product records."""
    result = parse_page(markup)
    return result.page_type, result.products


def parse_page(markup: str) -> ParseResult:
    """
    Extract products from listing markup.

    JSON exported by the browser console script is accepted as well as raw
    HTML. Unrecognized HTML is run through every known rule in registration
    order and the first non-empty result wins.
    """
    markup = markup or ""

    if _is_json_input(markup):
        products = _parse_json_input(markup)
        if products:
            # The console export script runs on the goldbox page
            return ParseResult(
                page_type=PageType.GOLDBOX,
                products=products,
                total_containers=len(products),
            )

    page_type = classify(markup)
    total, hidden = _count_lazy_containers(markup)

    try:
        soup = BeautifulSoup(markup, "html.parser")
    except Exception as e:
        logger.warning(f"Could not parse listing markup: {e}")
        return ParseResult(page_type=page_type, products=[], total_containers=total, hidden_containers=hidden)

    if page_type is PageType.UNKNOWN:
        products = []
        for rule in RULES.values():
            products = _apply_rule(soup, rule, require_unit=False)
            if products:
                logger.info(f"Unknown page type, fell back to {rule.page_type.value} rule")
                break
    else:
        products = _apply_rule(soup, RULES[page_type])

    warning = None
    if hidden > 0:
        warning = (
            "The listing uses virtual scrolling and only rendered units could be read; "
            "export the page with the console script instead "
            f"(loaded: {total - hidden} / total: {total})"
        )
        logger.warning(warning)

    return ParseResult(
        page_type=page_type,
        products=products,
        total_containers=total,
        hidden_containers=hidden,
        warning=warning,
    )


def _apply_rule(
    soup: BeautifulSoup,
    rule: ExtractionRule,
    require_unit: bool = True
) -> List[ProductRecord]:
    """
    Run one rule over every anchor that links to a product detail page.

    Without require_unit the unit container marker is not checked, so a
    template whose unit class changed still yields its fields.
    """
    products: List[ProductRecord] = []
    seen = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href", "").strip()
        if not _PRODUCT_PATH.match(href):
            continue
        if require_unit and not _is_unit(anchor, rule):
            continue

        source_url = urljoin(MARKETPLACE_HOST, href)
        if source_url in seen:
            continue

        try:
            record = _extract_unit(anchor, source_url, rule)
        except Exception as e:
            logger.warning(f"Skipping malformed product unit {source_url}: {e}")
            continue

        if record.name and record.source_url:
            seen.add(source_url)
            products.append(record)

    return products


def _is_unit(anchor: Tag, rule: ExtractionRule) -> bool:
    """Anchors count as product units when they carry or contain the unit marker."""
    return anchor.select_one(rule.unit) is not None or any(
        marker in " ".join(anchor.get("class", [])) for marker in rule.markers
    )


def _extract_unit(anchor: Tag, source_url: str, rule: ExtractionRule) -> ProductRecord:
    return ProductRecord(
        name=_extract_name(anchor, rule.name),
        image_url=_extract_image(anchor, rule.image_host),
        source_url=source_url,
        price=_extract_number(anchor, rule.price),
        original_price=_extract_number(anchor, rule.original_price),
        discount_rate=_extract_discount(anchor, rule.discount),
    )


def _extract_name(unit: Tag, selector: str) -> str:
    """Title text without comment nodes, whitespace collapsed."""
    tag = unit.select_one(selector)
    if tag is None:
        return ""
    parts = [text for text in tag.find_all(string=True) if not isinstance(text, Comment)]
    return " ".join("".join(parts).split())


def _extract_image(unit: Tag, host: re.Pattern) -> str:
    """First image whose source points at the CDN host."""
    for img in unit.find_all("img"):
        for attr in _IMAGE_ATTRS:
            src = img.get(attr)
            if src and host.search(src):
                return normalize_image_url(src.strip())
    return ""


def _extract_number(unit: Tag, selector: str) -> Optional[int]:
    tag = unit.select_one(selector)
    if tag is None:
        return None
    match = _NUMBER.search(tag.get_text())
    return parse_price(match.group(0)) if match else None


def _extract_discount(unit: Tag, selector: str) -> Optional[int]:
    rate = _extract_number(unit, selector)
    if rate is None or rate > 100:
        return None
    return rate


def _count_lazy_containers(markup: str) -> Tuple[int, int]:
    """Count lazy-loading containers and the ones that were never rendered."""
    return len(_LAZY_CONTAINER.findall(markup)), len(_LAZY_HIDDEN.findall(markup))


def _is_json_input(markup: str) -> bool:
    stripped = markup.strip()
    return stripped.startswith("[") and stripped.endswith("]")


def _parse_json_input(markup: str) -> List[ProductRecord]:
    """Records from the console export format: [{name, url, image, price, originalPrice, discount}]."""
    try:
        data = json.loads(markup)
    except ValueError:
        return []
    if not isinstance(data, list):
        return []

    products: List[ProductRecord] = []
    seen = set()
    for item in data:
        if not isinstance(item, dict):
            continue
        name = " ".join(str(item.get("name") or "").split())
        url = str(item.get("url") or "").strip()
        if not name or not url:
            continue
        source_url = urljoin(MARKETPLACE_HOST, url)
        if source_url in seen:
            continue
        seen.add(source_url)

        discount = parse_price(str(item.get("discount") or ""))
        products.append(ProductRecord(
            name=name,
            image_url=normalize_image_url(str(item.get("image") or "")),
            source_url=source_url,
            price=parse_price(str(item.get("price") or "")),
            original_price=parse_price(str(item.get("originalPrice") or "")),
            discount_rate=discount if discount is not None and discount <= 100 else None,
        ))
    return products
