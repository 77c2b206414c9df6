"""Repository for the customer order status history."""

from datetime import datetime
from typing import Iterable, List, Optional
from sqlalchemy import String, cast, func, literal, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.models.order import History, OrderStatus
from orderflow.models.procurement import MaterialPurchaseOrder


class HistoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, cpo_id: int, status: OrderStatus, at: datetime) -> History:
        record = History(cpo_id=cpo_id, status=status, date_time=at)
        self.session.add(record)
        await self.session.flush()
        return record

    async def append_many(
        self, cpo_ids: Iterable[int], status: OrderStatus, at: datetime
    ) -> None:
        self.session.add_all([History(cpo_id=i, status=status, date_time=at) for i in cpo_ids])
        await self.session.flush()

    async def for_order(self, cpo_id: int) -> List[History]:
        """Timeline of one order, oldest first."""
        result = await self.session.execute(
            select(History)
            .where(History.cpo_id == cpo_id)
            .order_by(History.date_time, History.id)
        )
        return list(result.scalars().all())

    async def first_reached(self, cpo_id: int, status: OrderStatus) -> Optional[datetime]:
        """Timestamp of the first time an order reached ``status``."""
        result = await self.session.execute(
            select(func.min(History.date_time)).where(
                History.cpo_id == cpo_id, History.status == status
            )
        )
        return result.scalar()

    def latest_reached_subquery(self, status: OrderStatus):
        """(cpo_id, latest) pairs: most recent time each order reached ``status``."""
        return (
            select(History.cpo_id, func.max(History.date_time).label("latest"))
            .where(History.status == status)
            .group_by(History.cpo_id)
            .subquery()
        )

    async def activity_feed(self, limit: int = 100) -> List[dict]:
        """Combined feed of CPO status changes and MPO lifecycle events, newest first.

        Each MPO contributes up to three events: NEW at creation, then
        RECEIVED or CANCELLED once stamped.
        """
        mpo = MaterialPurchaseOrder
        cpo_events = select(
            History.id.label("id"),
            History.cpo_id.label("po_id"),
            cast(History.status, String(30)).label("status"),
            History.date_time.label("date_time"),
            literal("CPO", String(3)).label("type"),
        )
        mpo_events = [
            select(
                mpo.id.label("id"),
                mpo.id.label("po_id"),
                literal(status, String(30)),
                stamped,
                literal("MPO", String(3)),
            ).where(stamped.is_not(None))
            for status, stamped in (
                ("NEW", mpo.create_date_time),
                ("RECEIVED", mpo.receive_date_time),
                ("CANCELLED", mpo.cancel_date_time),
            )
        ]
        feed = union_all(cpo_events, *mpo_events).subquery()

        result = await self.session.execute(
            select(feed)
            .order_by(feed.c.date_time.desc(), feed.c.type, feed.c.id.desc())
            .limit(limit)
        )
        return [dict(row) for row in result.mappings().all()]
