# backend/orderflow/schemas/materials.py
from pydantic import BaseModel, ConfigDict, Field


class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    unit: str = Field(..., min_length=1, max_length=20)
    quantity: float = 0.0
    threshold: float = 0.0
    color: str | None = None


class MaterialUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    unit: str | None = Field(None, min_length=1, max_length=20)
    threshold: float | None = None
    color: str | None = None


class MaterialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit: str
    quantity: float
    threshold: float
    color: str | None = None
