"""Customer purchase order lifecycle.

States::

    NEW -> PAID -> PROCESSING -> FINISHED_PROCESS -> ON_DELIVERY -> COMPLETED
     |
     +--(expiry sweep)--> CANCELLED

Every transition updates the order row and appends a history row in the
same transaction, so the current status always equals the most recent
history entry.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, List, Optional, Sequence
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderflow.core.config import settings
from orderflow.core.database import transaction
from orderflow.core.errors import InvalidStateError, NotFoundError, ValidationError
from orderflow.core.timeutil import delivery_estimate, utcnow
from orderflow.models.catalog import CartItem, Product
from orderflow.models.order import CustomerPurchaseOrder, OrderLine, OrderStatus
from orderflow.models.procurement import Transaction
from orderflow.repositories.history_repository import HistoryRepository
from orderflow.services.requisition_reconciler import (
    Deduction,
    ReconcileResult,
    RequisitionReconciler,
)

logger = logging.getLogger(__name__)

ADVANCE_TARGETS = (
    OrderStatus.FINISHED_PROCESS,
    OrderStatus.ON_DELIVERY,
    OrderStatus.COMPLETED,
)


def check_advance(order: CustomerPurchaseOrder, next_status: OrderStatus) -> None:
    """Precondition of the later-stage transitions.

    Any non-terminal order may move to any of the advance targets; stage
    ordering is not enforced.
    """
    if next_status not in ADVANCE_TARGETS:
        raise ValidationError(
            f"Cannot advance order {order.id} to {next_status.value}; "
            f"allowed targets are {', '.join(s.value for s in ADVANCE_TARGETS)}"
        )
    if order.status.is_terminal:
        raise InvalidStateError(f"Order {order.id} is {order.status.value} and can no longer change")


@dataclass
class OrderLineInput:
    product_id: int
    quantity: int


@dataclass
class SweepResult:
    cancelled_count: int = 0
    cancelled_ids: List[int] = field(default_factory=list)


class OrderFulfillmentService:
    """Entry points of the order state machine.

    Each write method is one transaction: it commits on success and rolls
    back every change, including deductions and requisition merges, on
    failure.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.history = HistoryRepository(session)
        self.reconciler = RequisitionReconciler(session)

    # ==================== Transitions ====================

    async def create_order(
        self,
        customer_id: str,
        lines: Sequence[OrderLineInput],
        delivery_price: float = 0.0,
        address: Optional[str] = None,
        phone_number: Optional[str] = None,
        payment_method: Optional[str] = None,
        total_price: Optional[float] = None,
    ) -> CustomerPurchaseOrder:
        """Check out: create a NEW order from line items.

        The customer's cart is emptied in the same transaction. When
        ``total_price`` is omitted it is computed from product prices plus
        the delivery price.

        Raises:
            ValidationError: Empty order, or non-positive quantity
            NotFoundError: A line references a product that does not exist
        """
        if not customer_id:
            raise ValidationError("customer_id is required")
        if not lines:
            raise ValidationError("An order needs at least one line item")
        for line in lines:
            if line.quantity <= 0:
                raise ValidationError(
                    f"Quantity for product {line.product_id} must be positive, got {line.quantity}"
                )

        async with transaction(self.session):
            product_ids = {line.product_id for line in lines}
            result = await self.session.execute(select(Product).where(Product.id.in_(product_ids)))
            products = {p.id: p for p in result.scalars().all()}
            missing = sorted(product_ids - products.keys())
            if missing:
                raise NotFoundError(f"Product(s) {missing} not found")

            if total_price is None:
                total_price = delivery_price + sum(
                    products[line.product_id].price * line.quantity for line in lines
                )

            now = utcnow()
            order = CustomerPurchaseOrder(
                customer_id=customer_id,
                status=OrderStatus.NEW,
                delivery_price=delivery_price,
                address=address,
                phone_number=phone_number,
                payment_method=payment_method,
                total_price=total_price,
                est_delivery_date=delivery_estimate(
                    now, settings.DELIVERY_ESTIMATE_MIN_DAYS, settings.DELIVERY_ESTIMATE_MAX_DAYS
                ),
                created_at=now,
                lines=[
                    OrderLine(product_id=line.product_id, quantity=line.quantity)
                    for line in lines
                ],
            )
            self.session.add(order)

            await self.session.execute(delete(CartItem).where(CartItem.customer_id == customer_id))
            await self.session.flush()
            await self.history.append(order.id, OrderStatus.NEW, now)

        logger.info(f"Created order {order.id} for customer {customer_id} with {len(lines)} line(s)")
        return order

    async def mark_paid(
        self, cpo_id: int, amount: Optional[float] = None, payment_method: str = "qr"
    ) -> ReconcileResult:
        """Record a confirmed payment and reconcile material requisitions.

        Called by the payment verification collaborator once the payment has
        been checked out-of-band. Only NEW orders can be paid, so a repeated
        confirmation neither appends a second PAID row nor reconciles twice.
        """
        async with transaction(self.session):
            order = await self._get_for_update(cpo_id)
            if order.status != OrderStatus.NEW:
                logger.warning(f"Rejected payment for order {cpo_id} in status {order.status.value}")
                raise InvalidStateError(
                    f"Order {cpo_id} is {order.status.value}; only NEW orders can be marked paid"
                )

            now = utcnow()
            order.status = OrderStatus.PAID
            order.paid_date_time = now
            self.session.add(
                Transaction(
                    cpo_id=order.id,
                    amount=order.total_price if amount is None else amount,
                    payment_method=payment_method,
                    create_date_time=now,
                )
            )
            await self.session.flush()
            await self.history.append(order.id, OrderStatus.PAID, now)

            reconcile_result = await self.reconciler.reconcile()

        logger.info(
            f"Order {cpo_id} marked PAID; {reconcile_result.created} requisition(s) created, "
            f"{reconcile_result.merged} merged"
        )
        return reconcile_result

    async def start_processing(self, cpo_id: int) -> List[Deduction]:
        """Start production of a PAID order, deducting its materials from stock."""
        async with transaction(self.session):
            result = await self.session.execute(
                select(CustomerPurchaseOrder)
                .where(
                    CustomerPurchaseOrder.id == cpo_id,
                    CustomerPurchaseOrder.status == OrderStatus.PAID,
                )
                .with_for_update()
            )
            order = result.scalar_one_or_none()
            if order is None:
                logger.warning(f"Cannot start processing order {cpo_id}")
                raise InvalidStateError(f"Order {cpo_id} not found or not in PAID status")

            deductions = await self.reconciler.deduct(cpo_id)
            order.status = OrderStatus.PROCESSING
            await self.history.append(order.id, OrderStatus.PROCESSING, utcnow())

        logger.info(f"Order {cpo_id} is PROCESSING")
        return deductions

    async def advance(self, cpo_id: int, next_status: OrderStatus) -> CustomerPurchaseOrder:
        """Move an order to FINISHED_PROCESS, ON_DELIVERY or COMPLETED."""
        async with transaction(self.session):
            order = await self._get_for_update(cpo_id)
            check_advance(order, next_status)
            order.status = next_status
            await self.history.append(order.id, next_status, utcnow())

        logger.info(f"Order {cpo_id} advanced to {next_status.value}")
        return order

    async def run_expiry_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """Cancel NEW orders whose latest NEW history entry is too old.

        Orders that moved past NEW are never matched, so running the sweep
        again without intervening changes cancels nothing.
        """
        now = now or utcnow()
        cutoff = now - timedelta(days=settings.ORDER_EXPIRY_DAYS)

        async with transaction(self.session):
            latest_new = self.history.latest_reached_subquery(OrderStatus.NEW)
            result = await self.session.execute(
                select(CustomerPurchaseOrder.id)
                .join(latest_new, latest_new.c.cpo_id == CustomerPurchaseOrder.id)
                .where(
                    CustomerPurchaseOrder.status == OrderStatus.NEW,
                    latest_new.c.latest < cutoff,
                )
                .order_by(CustomerPurchaseOrder.id)
                .with_for_update(of=CustomerPurchaseOrder)
            )
            candidates = list(result.scalars().all())

            expired = []
            if candidates:
                # Only rows still NEW at UPDATE time are cancelled and get history
                result = await self.session.execute(
                    update(CustomerPurchaseOrder)
                    .where(
                        CustomerPurchaseOrder.id.in_(candidates),
                        CustomerPurchaseOrder.status == OrderStatus.NEW,
                    )
                    .values(status=OrderStatus.CANCELLED)
                    .returning(CustomerPurchaseOrder.id)
                    .execution_options(synchronize_session="fetch")
                )
                expired = sorted(result.scalars().all())
                if len(expired) < len(candidates):
                    logger.warning(
                        f"Expiry sweep skipped order(s) {sorted(set(candidates) - set(expired))} "
                        f"that left NEW during the sweep"
                    )
                await self.history.append_many(expired, OrderStatus.CANCELLED, now)

        if expired:
            logger.info(f"Expiry sweep cancelled {len(expired)} order(s): {expired}")
        return SweepResult(cancelled_count=len(expired), cancelled_ids=expired)

    # ==================== Queries ====================

    async def get_order(self, cpo_id: int) -> dict[str, Any]:
        """Order detail with its lines, payment state and delivery dates."""
        result = await self.session.execute(
            select(CustomerPurchaseOrder)
            .options(selectinload(CustomerPurchaseOrder.lines))
            .where(CustomerPurchaseOrder.id == cpo_id)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError(f"Order {cpo_id} not found")

        product_ids = [line.product_id for line in order.lines]
        products = {}
        if product_ids:
            rows = await self.session.execute(select(Product).where(Product.id.in_(product_ids)))
            products = {p.id: p for p in rows.scalars().all()}

        return {
            "id": order.id,
            "customer_id": order.customer_id,
            "status": order.status,
            "payment_status": "Completed" if order.paid_date_time else "Not paid",
            "paid_date_time": order.paid_date_time,
            "est_delivery_date": order.est_delivery_date,
            "delivered_date": await self.history.first_reached(order.id, OrderStatus.ON_DELIVERY),
            "payment_method": order.payment_method,
            "address": order.address,
            "phone_number": order.phone_number,
            "delivery_price": order.delivery_price,
            "total_price": order.total_price,
            "created_at": order.created_at,
            "lines": [
                {
                    "id": line.id,
                    "product_id": line.product_id,
                    "name": products[line.product_id].name if line.product_id in products else None,
                    "price": products[line.product_id].price if line.product_id in products else None,
                    "quantity": line.quantity,
                }
                for line in order.lines
            ],
        }

    async def list_orders(self, customer_id: Optional[str] = None) -> List[CustomerPurchaseOrder]:
        """Orders, newest first, optionally limited to one customer."""
        query = select(CustomerPurchaseOrder).options(selectinload(CustomerPurchaseOrder.lines))
        if customer_id:
            query = query.where(CustomerPurchaseOrder.customer_id == customer_id)
        result = await self.session.execute(
            query.order_by(CustomerPurchaseOrder.created_at.desc(), CustomerPurchaseOrder.id.desc())
        )
        return list(result.scalars().all())

    async def get_history(self, cpo_id: int):
        await self._get(cpo_id)
        return await self.history.for_order(cpo_id)

    async def _get(self, cpo_id: int) -> CustomerPurchaseOrder:
        order = await self.session.get(CustomerPurchaseOrder, cpo_id)
        if order is None:
            raise NotFoundError(f"Order {cpo_id} not found")
        return order

    async def _get_for_update(self, cpo_id: int) -> CustomerPurchaseOrder:
        result = await self.session.execute(
            select(CustomerPurchaseOrder)
            .where(CustomerPurchaseOrder.id == cpo_id)
            .with_for_update()
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError(f"Order {cpo_id} not found")
        return order
