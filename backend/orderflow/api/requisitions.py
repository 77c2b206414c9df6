# backend/orderflow/api/requisitions.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.database import get_db
from orderflow.schemas.procurement import (
    CreateRequisitionRequest,
    RequisitionListItem,
    RequisitionResponse,
)
from orderflow.services.material_purchase import ProcurementService

router = APIRouter(prefix="/api/requisitions", tags=["requisitions"])


@router.post("", response_model=RequisitionResponse, status_code=status.HTTP_201_CREATED)
async def create_requisition(req: CreateRequisitionRequest, db: AsyncSession = Depends(get_db)):
    """Raise a requisition; adds to the material's open requisition if there is one."""
    requisition = await ProcurementService(db).create_requisition(req.material_id, req.quantity)
    return RequisitionResponse.model_validate(requisition)


@router.get("", response_model=list[RequisitionListItem])
async def list_requisitions(db: AsyncSession = Depends(get_db)):
    return [RequisitionListItem(**r) for r in await ProcurementService(db).list_requisitions()]
