# backend/orderflow/api/material_purchase_orders.py
"""REST API endpoints for supplier material purchase orders."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.database import get_db
from orderflow.schemas.procurement import CreateMPORequest, MPOResponse, SetLinePricesRequest
from orderflow.services.material_purchase import (
    LinePriceInput,
    MPOItemInput,
    ProcurementService,
)

router = APIRouter(prefix="/api/material-purchase-orders", tags=["material-purchase-orders"])


@router.post("", response_model=MPOResponse, status_code=status.HTTP_201_CREATED)
async def create_mpo(req: CreateMPORequest, db: AsyncSession = Depends(get_db)):
    """Convert requisitions into a supplier order; the requisitions are consumed."""
    mpo = await ProcurementService(db).create_mpo(
        req.supplier,
        [MPOItemInput(m.requisition_id, m.material_id, m.quantity) for m in req.materials],
    )
    return MPOResponse.model_validate(mpo)


@router.get("", response_model=list[MPOResponse])
async def list_mpos(db: AsyncSession = Depends(get_db)):
    return [MPOResponse.model_validate(m) for m in await ProcurementService(db).list_mpos()]


@router.get("/{mpo_id}", response_model=MPOResponse)
async def get_mpo(mpo_id: int, db: AsyncSession = Depends(get_db)):
    return MPOResponse.model_validate(await ProcurementService(db).get_mpo(mpo_id))


@router.patch("/{mpo_id}/receive", response_model=MPOResponse)
async def receive_mpo(mpo_id: int, db: AsyncSession = Depends(get_db)):
    """Goods arrived: credit every line to stock."""
    return MPOResponse.model_validate(await ProcurementService(db).receive_mpo(mpo_id))


@router.patch("/{mpo_id}/cancel", response_model=MPOResponse)
async def cancel_mpo(mpo_id: int, db: AsyncSession = Depends(get_db)):
    return MPOResponse.model_validate(await ProcurementService(db).cancel_mpo(mpo_id))


@router.post("/{mpo_id}/prices", response_model=MPOResponse)
async def set_line_prices(mpo_id: int, req: SetLinePricesRequest, db: AsyncSession = Depends(get_db)):
    mpo = await ProcurementService(db).set_line_prices(
        mpo_id,
        [LinePriceInput(m.line_id, m.price) for m in req.materials],
        payment_method=req.payment_method,
    )
    return MPOResponse.model_validate(mpo)
