# backend/orderflow/schemas/procurement.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from orderflow.models.procurement import MPOStatus


class CreateRequisitionRequest(BaseModel):
    material_id: int
    quantity: float


class RequisitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    material_id: int
    quantity: float
    create_date_time: datetime


class RequisitionListItem(RequisitionResponse):
    material_name: str
    unit: str


class MPOItemRequest(BaseModel):
    requisition_id: int
    material_id: int
    quantity: float


class CreateMPORequest(BaseModel):
    supplier: str
    materials: list[MPOItemRequest]


class LinePriceRequest(BaseModel):
    line_id: int
    price: float


class SetLinePricesRequest(BaseModel):
    payment_method: str | None = None
    materials: list[LinePriceRequest]


class MPOLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    material_id: int
    quantity: float
    price: float


class MPOResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    supplier: str
    status: MPOStatus
    total_price: float
    create_date_time: datetime
    receive_date_time: datetime | None = None
    cancel_date_time: datetime | None = None
    lines: list[MPOLineResponse] = []


class ActivityResponse(BaseModel):
    id: int
    po_id: int
    status: str
    date_time: datetime
    type: str
