"""Ledger history API endpoints."""
import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from salesnote.core.dependencies import get_ledger
from salesnote.services.persistence.ledger import LedgerService

router = APIRouter(prefix="/api/organizations")
logger = logging.getLogger(__name__)


class OrderResponse(BaseModel):
    """Order response model."""
    id: int
    organization_id: str
    vendor_id: Optional[str] = None
    items: List[Dict[str, Any]] = []
    notes: Optional[str] = None
    created_at: str


class TaskResponse(BaseModel):
    """Task response model."""
    id: int
    organization_id: str
    vendor_id: Optional[str] = None
    description: str
    created_at: str


@router.get("/{organization_id}/orders", response_model=List[OrderResponse])
async def get_order_history(
    organization_id: str,
    request: Request,
    limit: int = 50,
    ledger: LedgerService = Depends(get_ledger),
):
    """Get confirmed orders, most recent first."""
    logger.info(
        f"[LEDGER API] Orders requested - organization: {organization_id}, limit: {limit}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    try:
        orders = await ledger.list_orders(organization_id, limit=limit)
    except Exception as e:
        logger.error(
            f"[LEDGER API] Error fetching orders - organization: {organization_id}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")

    logger.info(f"[LEDGER API] Found {len(orders)} orders")
    return [
        OrderResponse(
            id=order.id,
            organization_id=order.organization_id,
            vendor_id=order.vendor_id,
            items=order.items or [],
            notes=order.notes,
            created_at=order.created_at.isoformat() if order.created_at else "",
        )
        for order in orders
    ]


@router.get("/{organization_id}/tasks", response_model=List[TaskResponse])
async def get_task_history(
    organization_id: str,
    limit: int = 50,
    ledger: LedgerService = Depends(get_ledger),
):
    """Get follow-up tasks, most recent first."""
    try:
        tasks = await ledger.list_tasks(organization_id, limit=limit)
    except Exception as e:
        logger.error(
            f"[LEDGER API] Error fetching tasks - organization: {organization_id}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Error fetching tasks: {str(e)}")

    return [
        TaskResponse(
            id=task.id,
            organization_id=task.organization_id,
            vendor_id=task.vendor_id,
            description=task.description,
            created_at=task.created_at.isoformat() if task.created_at else "",
        )
        for task in tasks
    ]
