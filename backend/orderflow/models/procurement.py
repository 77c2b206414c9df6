# backend/orderflow/models/procurement.py
"""Material requisitions, supplier purchase orders and money transactions."""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Enum,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship
from orderflow.core.database import Base
from orderflow.core.timeutil import utcnow


class MPOStatus(str, enum.Enum):
    NEW = "NEW"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


class MaterialRequisition(Base):
    """Outstanding shortage of one material, waiting to be ordered."""

    __tablename__ = "material_requisitions"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    # At most one open requisition per material
    material_id = Column(
        Integer,
        ForeignKey("materials.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    quantity = Column(Float, nullable=False)
    create_date_time = Column(DateTime, nullable=False)

    material = relationship("Material")


class MaterialPurchaseOrder(Base):
    __tablename__ = "material_purchase_orders"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    supplier = Column(String(255), nullable=False)
    status = Column(
        Enum(MPOStatus, native_enum=False, length=20, name="mpo_status"),
        default=MPOStatus.NEW,
        nullable=False,
    )
    total_price = Column(Float, default=0.0, nullable=False)
    create_date_time = Column(DateTime, nullable=False)
    receive_date_time = Column(DateTime)
    cancel_date_time = Column(DateTime)

    lines = relationship(
        "MPOOrderLine",
        back_populates="mpo",
        cascade="all, delete-orphan",
        order_by="MPOOrderLine.id",
    )

    __table_args__ = (Index("idx_mpo_status", "status"),)


class MPOOrderLine(Base):
    __tablename__ = "mpo_order_lines"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    mpo_id = Column(
        Integer,
        ForeignKey("material_purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    quantity = Column(Float, nullable=False)
    price = Column(Float, default=0.0, nullable=False)

    mpo = relationship("MaterialPurchaseOrder", back_populates="lines")
    material = relationship("Material")

    __table_args__ = (Index("idx_mpo_lines_mpo", "mpo_id"),)


class Transaction(Base):
    """Money movement tied to either a customer or a material purchase order."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    cpo_id = Column(
        Integer,
        ForeignKey("customer_purchase_orders.id", ondelete="CASCADE"),
        nullable=True,
    )
    mpo_id = Column(
        Integer,
        ForeignKey("material_purchase_orders.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )
    amount = Column(Float, default=0.0, nullable=False)
    payment_method = Column(String(30))
    create_date_time = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (Index("idx_transactions_cpo", "cpo_id"),)
