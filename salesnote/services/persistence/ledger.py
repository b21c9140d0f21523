"""Ledger persistence service: confirmed orders and follow-up tasks."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from salesnote.db.models import Order, Task

logger = logging.getLogger(__name__)


class LedgerWriteError(Exception):
    """The ledger store rejected a write."""


class LedgerService:
    """Service for writing and reading ledger records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, record):
        try:
            self.db.add(record)
            await self.db.commit()
            await self.db.refresh(record)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[LEDGER] Write to {record.__tablename__} failed: {e}", exc_info=True)
            raise LedgerWriteError(f"Could not save {record.__tablename__[:-1]}: {e}") from e
        return record

    async def create_order(
        self,
        vendor_id: Optional[str],
        organization_id: str,
        line_items: List[Dict[str, Any]],
        notes: str = "",
        timestamp: Optional[datetime] = None,
    ) -> Order:
        """Create an order record."""
        order = Order(
            vendor_id=vendor_id,
            organization_id=organization_id,
            items=line_items,
            notes=notes,
            created_at=timestamp or datetime.utcnow(),
        )
        order = await self._save(order)
        logger.info(f"[LEDGER] Order {order.id} saved with {len(line_items)} items")
        return order

    async def create_task(
        self,
        description: str,
        organization_id: str,
        vendor_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Task:
        """Create a follow-up task record."""
        task = Task(
            description=description,
            organization_id=organization_id,
            vendor_id=vendor_id,
            created_at=timestamp or datetime.utcnow(),
        )
        task = await self._save(task)
        logger.info(f"[LEDGER] Task {task.id} saved")
        return task

    async def list_orders(self, organization_id: str, limit: int = 50) -> List[Order]:
        """Most recent orders first."""
        result = await self.db.execute(
            select(Order)
            .where(Order.organization_id == organization_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_tasks(self, organization_id: str, limit: int = 50) -> List[Task]:
        """Most recent tasks first."""
        result = await self.db.execute(
            select(Task)
            .where(Task.organization_id == organization_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
