# backend/orderflow/models/material.py
"""Raw materials held in stock."""

from datetime import datetime
from sqlalchemy import String, Integer, Float, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from orderflow.core.database import Base


class Material(Base):
    """One stock ledger row per raw material.

    Materials with a ``color`` are color materials: they are not listed as
    component BOM edges but consumed through the color-use factors of the
    components that a product paints with them.
    """

    __tablename__ = "materials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)  # pcs, m, kg, ...
    quantity: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    threshold: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_materials_quantity_non_negative"),)

    @property
    def is_color_material(self) -> bool:
        return bool(self.color)
