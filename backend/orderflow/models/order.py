# backend/orderflow/models/order.py
"""Customer purchase orders, their line items and the status history."""

import enum
from datetime import datetime
from sqlalchemy import Enum, Float, String, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from orderflow.core.database import Base


class OrderStatus(str, enum.Enum):
    NEW = "NEW"
    PAID = "PAID"
    PROCESSING = "PROCESSING"
    FINISHED_PROCESS = "FINISHED_PROCESS"
    ON_DELIVERY = "ON_DELIVERY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


ORDER_STATUS_TYPE = Enum(OrderStatus, native_enum=False, length=30, name="order_status")


class CustomerPurchaseOrder(Base):
    __tablename__ = "customer_purchase_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        ORDER_STATUS_TYPE, default=OrderStatus.NEW, nullable=False
    )
    delivery_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    address: Mapped[str | None] = mapped_column(String(500))
    phone_number: Mapped[str | None] = mapped_column(String(30))
    payment_method: Mapped[str | None] = mapped_column(String(30))
    total_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    # Promise made at checkout, e.g. "25-Oct-2026 - 27-Oct-2026"
    est_delivery_date: Mapped[str] = mapped_column(String(50), nullable=False)
    paid_date_time: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    lines: Mapped[list["OrderLine"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderLine.id"
    )

    __table_args__ = (
        Index("idx_cpo_customer", "customer_id"),
        Index("idx_cpo_status", "status"),
    )


class OrderLine(Base):
    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("customer_purchase_orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[CustomerPurchaseOrder] = relationship(back_populates="lines")

    __table_args__ = (Index("idx_order_lines_order", "order_id"),)


class History(Base):
    """Append-only status timeline of a customer purchase order."""

    __tablename__ = "history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cpo_id: Mapped[int] = mapped_column(
        ForeignKey("customer_purchase_orders.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[OrderStatus] = mapped_column(ORDER_STATUS_TYPE, nullable=False)
    date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("idx_history_cpo_status", "cpo_id", "status"),)
