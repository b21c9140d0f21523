"""Catalog API endpoints."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from salesnote.core.dependencies import get_catalog_repository
from salesnote.services.catalog.base import InventoryItem, Vendor
from salesnote.services.catalog.repository import CatalogRepository

router = APIRouter(prefix="/api/organizations")
logger = logging.getLogger(__name__)


class CatalogResponse(BaseModel):
    """Catalog response model."""
    organization_id: str
    vendors: List[Vendor]
    inventory: List[InventoryItem]


class PromptCatalogResponse(BaseModel):
    """The catalog blocks as they appear in the extraction prompt."""
    organization_id: str
    inventory_block: str
    vendor_block: str


@router.get("/{organization_id}/catalog", response_model=CatalogResponse)
async def get_catalog(
    organization_id: str,
    request: Request,
    catalog_repository: CatalogRepository = Depends(get_catalog_repository),
):
    """Get the full vendor and inventory lists of an organization."""
    logger.info(
        f"[CATALOG API] Request received - organization: {organization_id}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    try:
        snapshot = await catalog_repository.get_snapshot(organization_id)
    except Exception as e:
        logger.error(
            f"[CATALOG API] Error loading catalog - Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Error loading catalog: {str(e)}")
    return CatalogResponse(
        organization_id=organization_id,
        vendors=snapshot.vendors,
        inventory=snapshot.inventory,
    )


@router.get("/{organization_id}/catalog/prompt", response_model=PromptCatalogResponse)
async def get_prompt_catalog(
    organization_id: str,
    catalog_repository: CatalogRepository = Depends(get_catalog_repository),
):
    """Get the size-bounded catalog text sent to the model."""
    try:
        catalog = await catalog_repository.get_prompt_catalog(organization_id)
    except Exception as e:
        logger.error(
            f"[CATALOG API] Error building prompt catalog - Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Error loading catalog: {str(e)}")
    return PromptCatalogResponse(
        organization_id=organization_id,
        inventory_block=catalog.inventory_block,
        vendor_block=catalog.vendor_block,
    )
