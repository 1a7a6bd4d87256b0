"""Affiliate link generation, kept apart from extraction."""
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

# (product_url, partner_id) -> url
AffiliateLinker = Callable[[str, Optional[str]], str]

PARTNER_PARAM = "lptag"


def to_affiliate_url(url: str, partner_id: Optional[str] = None) -> str:
    """Tag a product URL with the partner ID. Without a partner ID the URL is returned as-is."""
    if not url or not partner_id:
        return url

    parsed = urlparse(url)
    query = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key != PARTNER_PARAM
    ]
    query.append((PARTNER_PARAM, partner_id))
    return urlunparse(parsed._replace(query=urlencode(query)))
