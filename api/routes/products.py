"""Product import routes."""
from fastapi import APIRouter, Depends

from api.dependencies import get_product_importer
from api.schemas.requests import ProductImportRequest
from api.schemas.responses import ProductImportData, ProductImportResponse
from collector.products import ProductImporter


router = APIRouter(prefix="/admin/products", tags=["products"])


@router.post("/import", response_model=ProductImportResponse)
async def import_products(
    request: ProductImportRequest,
    importer: ProductImporter = Depends(get_product_importer)
):
    """
    Import products from pasted listing markup.

    Accepts raw listing HTML or the JSON produced by the console export
    script. Products already stored under the same source URL are skipped.
    """
    result = await importer.import_markup(request.markup, request.category)
    message = (
        f"Imported {result.imported} products from {result.page_type} page, "
        f"{result.duplicates} duplicates"
    )
    return ProductImportResponse(message=message, data=ProductImportData(**result.to_dict()))
