"""Requisitions and supplier material purchase orders (MPO).

An MPO is the hand-off point where outstanding shortages (requisitions)
become goods ordered from a supplier:

- create: insert MPO and lines, open a zero-amount transaction, delete the
  requisitions it covers
- receive: credit stock with every line
- cancel: zero the total and the linked transaction; requisitions are not
  restored, the next reconciliation pass re-detects real shortages
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderflow.core.database import transaction
from orderflow.core.errors import InvalidStateError, NotFoundError, ValidationError
from orderflow.core.timeutil import utcnow
from orderflow.models.procurement import (
    MaterialPurchaseOrder,
    MaterialRequisition,
    MPOOrderLine,
    MPOStatus,
    Transaction,
)
from orderflow.repositories.requisition_repository import RequisitionRepository
from orderflow.repositories.stock_ledger import StockLedger
from orderflow.services.requisition_reconciler import RequisitionReconciler

logger = logging.getLogger(__name__)


@dataclass
class MPOItemInput:
    requisition_id: int
    material_id: int
    quantity: float


@dataclass
class LinePriceInput:
    line_id: int
    price: float


class ProcurementService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.ledger = StockLedger(session)
        self.requisitions = RequisitionRepository(session)
        self.reconciler = RequisitionReconciler(session)

    # ==================== Requisitions ====================

    async def create_requisition(self, material_id: int, quantity: float) -> MaterialRequisition:
        """Raise a requisition by hand, merging into the material's open one."""
        if quantity <= 0:
            raise ValidationError(f"Requisition quantity must be positive, got {quantity}")
        async with transaction(self.session):
            requisition = await self.reconciler.create_requisition(material_id, quantity)
        return requisition

    async def list_requisitions(self) -> List[dict]:
        rows = await self.requisitions.list_with_materials()
        return [
            {
                "id": requisition.id,
                "material_id": material.id,
                "material_name": material.name,
                "unit": material.unit,
                "quantity": requisition.quantity,
                "create_date_time": requisition.create_date_time,
            }
            for requisition, material in rows
        ]

    # ==================== Material purchase orders ====================

    async def create_mpo(self, supplier: str, items: Sequence[MPOItemInput]) -> MaterialPurchaseOrder:
        """Order the given requisitions from a supplier.

        Raises:
            ValidationError: No items, blank supplier, non-positive quantity, or a
                requisition that belongs to a different material
            NotFoundError: Unknown material or requisition
        """
        if not supplier or not supplier.strip():
            raise ValidationError("supplier is required")
        if not items:
            raise ValidationError("A material purchase order needs at least one material")
        for item in items:
            if item.quantity <= 0:
                raise ValidationError(
                    f"Quantity for material {item.material_id} must be positive, got {item.quantity}"
                )

        async with transaction(self.session):
            materials = await self.ledger.get_many([i.material_id for i in items])
            missing = sorted({i.material_id for i in items} - materials.keys())
            if missing:
                raise NotFoundError(f"Material(s) {missing} not found")

            requisition_ids = sorted({i.requisition_id for i in items})
            result = await self.session.execute(
                select(MaterialRequisition.id, MaterialRequisition.material_id).where(
                    MaterialRequisition.id.in_(requisition_ids)
                )
            )
            requisition_material = dict(result.all())
            missing = sorted(set(requisition_ids) - requisition_material.keys())
            if missing:
                raise NotFoundError(f"Requisition(s) {missing} not found")
            for item in items:
                if requisition_material[item.requisition_id] != item.material_id:
                    raise ValidationError(
                        f"Requisition {item.requisition_id} is for material "
                        f"{requisition_material[item.requisition_id]}, not {item.material_id}"
                    )

            now = utcnow()
            mpo = MaterialPurchaseOrder(
                supplier=supplier,
                status=MPOStatus.NEW,
                total_price=0.0,
                create_date_time=now,
                lines=[
                    MPOOrderLine(material_id=item.material_id, quantity=item.quantity, price=0.0)
                    for item in items
                ],
            )
            self.session.add(mpo)
            await self.session.flush()

            self.session.add(Transaction(mpo_id=mpo.id, amount=0.0, create_date_time=now))
            deleted = await self.requisitions.delete_many(requisition_ids)

        logger.info(
            f"Created MPO {mpo.id} for supplier '{supplier}' with {len(items)} line(s); "
            f"consumed {deleted} requisition(s)"
        )
        return mpo

    async def receive_mpo(self, mpo_id: int) -> MaterialPurchaseOrder:
        """Mark an MPO received and credit every line to stock."""
        async with transaction(self.session):
            mpo = await self._get_for_update(mpo_id)
            if mpo.status != MPOStatus.NEW:
                raise InvalidStateError(
                    f"Material purchase order {mpo_id} is {mpo.status.value}; only NEW orders can be received"
                )

            mpo.status = MPOStatus.RECEIVED
            mpo.receive_date_time = utcnow()
            for line in mpo.lines:
                await self.ledger.credit(line.material_id, line.quantity)

        logger.info(f"Received MPO {mpo_id}; credited {len(mpo.lines)} material line(s)")
        return mpo

    async def cancel_mpo(self, mpo_id: int) -> MaterialPurchaseOrder:
        async with transaction(self.session):
            mpo = await self._get_for_update(mpo_id)
            if mpo.status != MPOStatus.NEW:
                raise InvalidStateError(
                    f"Material purchase order {mpo_id} is {mpo.status.value}; only NEW orders can be cancelled"
                )

            mpo.status = MPOStatus.CANCELLED
            mpo.total_price = 0.0
            mpo.cancel_date_time = utcnow()
            money = await self._transaction_of(mpo.id)
            money.amount = 0.0

        logger.info(f"Cancelled MPO {mpo_id}")
        return mpo

    async def set_line_prices(
        self,
        mpo_id: int,
        lines: Sequence[LinePriceInput],
        payment_method: Optional[str] = None,
    ) -> MaterialPurchaseOrder:
        """Price MPO lines and recompute the total.

        The total is always the sum of all line prices; the linked
        transaction amount and payment method follow it.
        """
        if not lines:
            raise ValidationError("At least one line price is required")
        for line in lines:
            if line.price < 0:
                raise ValidationError(f"Price for line {line.line_id} must not be negative")

        async with transaction(self.session):
            mpo = await self._get_for_update(mpo_id)
            if mpo.status == MPOStatus.CANCELLED:
                raise InvalidStateError(f"Material purchase order {mpo_id} is cancelled")

            by_id = {line.id: line for line in mpo.lines}
            for change in lines:
                line = by_id.get(change.line_id)
                if line is None:
                    raise NotFoundError(
                        f"Line {change.line_id} not found on material purchase order {mpo_id}"
                    )
                line.price = change.price

            mpo.total_price = sum(line.price for line in mpo.lines)
            money = await self._transaction_of(mpo.id)
            money.amount = mpo.total_price
            if payment_method is not None:
                money.payment_method = payment_method

        logger.info(f"Priced MPO {mpo_id}, total {mpo.total_price}")
        return mpo

    async def list_mpos(self) -> List[MaterialPurchaseOrder]:
        result = await self.session.execute(
            select(MaterialPurchaseOrder)
            .options(selectinload(MaterialPurchaseOrder.lines))
            .order_by(MaterialPurchaseOrder.create_date_time.desc(), MaterialPurchaseOrder.id.desc())
        )
        return list(result.scalars().all())

    async def get_mpo(self, mpo_id: int) -> MaterialPurchaseOrder:
        result = await self.session.execute(
            select(MaterialPurchaseOrder)
            .options(selectinload(MaterialPurchaseOrder.lines).selectinload(MPOOrderLine.material))
            .where(MaterialPurchaseOrder.id == mpo_id)
            .execution_options(populate_existing=True)
        )
        mpo = result.scalar_one_or_none()
        if mpo is None:
            raise NotFoundError(f"Material purchase order {mpo_id} not found")
        return mpo

    async def get_transaction(self, mpo_id: int) -> Transaction:
        return await self._transaction_of(mpo_id)

    async def _get_for_update(self, mpo_id: int) -> MaterialPurchaseOrder:
        result = await self.session.execute(
            select(MaterialPurchaseOrder)
            .options(selectinload(MaterialPurchaseOrder.lines))
            .where(MaterialPurchaseOrder.id == mpo_id)
            .with_for_update()
        )
        mpo = result.scalar_one_or_none()
        if mpo is None:
            raise NotFoundError(f"Material purchase order {mpo_id} not found")
        return mpo

    async def _transaction_of(self, mpo_id: int) -> Transaction:
        result = await self.session.execute(select(Transaction).where(Transaction.mpo_id == mpo_id))
        money = result.scalar_one_or_none()
        if money is None:
            raise NotFoundError(f"Transaction for material purchase order {mpo_id} not found")
        return money
