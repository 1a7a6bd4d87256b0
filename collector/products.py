"""Persisting extracted product records."""
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from collector.affiliate import AffiliateLinker, to_affiliate_url
from collector.extractor import ProductRecord, parse_page
from database.repositories.product_repo import ProductRepository
from shared.config import settings

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of importing one listing page."""
    page_type: str
    total: int = 0
    imported: int = 0
    duplicates: int = 0
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProductImporter:
    """Stores product records, deduplicated by source URL."""

    def __init__(
        self,
        product_repo: ProductRepository,
        linker: AffiliateLinker = to_affiliate_url,
        partner_id: Optional[str] = None
    ):
        self.product_repo = product_repo
        self.linker = linker
        self.partner_id = partner_id if partner_id is not None else settings.affiliate_partner_id

    async def store(
        self,
        record: ProductRecord,
        category: Optional[str] = None,
        affiliate_url: Optional[str] = None
    ) -> bool:
        """
        Insert the record unless a product with the same source URL exists.

        Returns True for a new product. Existing products are not overwritten.
        """
        existing = await self.product_repo.get_product_by_source_url(record.source_url)
        if existing:
            return False

        created = await self.product_repo.create_product(
            name=record.name,
            source_url=record.source_url,
            thumbnail_url=record.image_url,
            price=record.price,
            original_price=record.original_price,
            discount_rate=record.discount_rate,
            affiliate_url=affiliate_url or self.linker(record.source_url, self.partner_id),
            category=category
        )
        return created is not None

    async def import_markup(self, markup: str, category: Optional[str] = None) -> ImportResult:
        """Extract products from pasted listing markup and store the new ones."""
        parsed = parse_page(markup)
        result = ImportResult(
            page_type=parsed.page_type.value,
            total=len(parsed.products),
            warning=parsed.warning
        )

        for record in parsed.products:
            if await self.store(record, category):
                result.imported += 1
            else:
                result.duplicates += 1

        logger.info(
            f"Imported {result.imported} products from {result.page_type} markup "
            f"({result.duplicates} duplicates)"
        )
        return result
