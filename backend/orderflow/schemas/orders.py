# backend/orderflow/schemas/orders.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from orderflow.models.order import OrderStatus


class OrderLineRequest(BaseModel):
    product_id: int
    quantity: int


class CreateOrderRequest(BaseModel):
    customer_id: str
    order_lines: list[OrderLineRequest]
    delivery_price: float = 0.0
    address: str | None = None
    phone_number: str | None = None
    payment_method: str | None = None
    # Computed from product prices when omitted
    total_price: float | None = None


class MarkPaidRequest(BaseModel):
    amount: float | None = None
    payment_method: str = "qr"


class AdvanceRequest(BaseModel):
    status: OrderStatus


class OrderLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    name: str | None = None
    price: float | None = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: str
    status: OrderStatus
    total_price: float
    delivery_price: float
    est_delivery_date: str
    paid_date_time: datetime | None = None
    created_at: datetime
    lines: list[OrderLineResponse] = Field(default_factory=list)


class OrderDetailResponse(OrderResponse):
    payment_status: str
    delivered_date: datetime | None = None
    payment_method: str | None = None
    address: str | None = None
    phone_number: str | None = None


class HistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cpo_id: int
    status: OrderStatus
    date_time: datetime


class ShortageResponse(BaseModel):
    material_id: int
    material_name: str
    needed: float
    available: float
    shortage: float


class MarkPaidResponse(BaseModel):
    message: str
    created: int
    merged: int
    shortages: list[ShortageResponse]


class DeductionResponse(BaseModel):
    material_id: int
    material_name: str
    unit: str
    deducted: float
    remaining: float


class StartProcessingResponse(BaseModel):
    message: str
    materials: list[DeductionResponse]


class SweepResponse(BaseModel):
    cancelled_count: int
    cancelled_ids: list[int]
