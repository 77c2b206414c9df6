# backend/orderflow/api/materials.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.database import get_db, transaction
from orderflow.repositories.stock_ledger import StockLedger
from orderflow.schemas.materials import MaterialCreate, MaterialResponse, MaterialUpdate

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(req: MaterialCreate, db: AsyncSession = Depends(get_db)):
    async with transaction(db):
        material = await StockLedger(db).create_material(
            name=req.name,
            unit=req.unit,
            quantity=req.quantity,
            threshold=req.threshold,
            color=req.color,
        )
    return MaterialResponse.model_validate(material)


@router.get("", response_model=list[MaterialResponse])
async def list_materials(db: AsyncSession = Depends(get_db)):
    return [MaterialResponse.model_validate(m) for m in await StockLedger(db).list_materials()]


@router.get("/low-stock", response_model=list[MaterialResponse])
async def list_low_stock(db: AsyncSession = Depends(get_db)):
    """Materials at or below their reorder threshold."""
    return [MaterialResponse.model_validate(m) for m in await StockLedger(db).list_below_threshold()]


@router.get("/{material_id}", response_model=MaterialResponse)
async def get_material(material_id: int, db: AsyncSession = Depends(get_db)):
    return MaterialResponse.model_validate(await StockLedger(db).get_material(material_id))


@router.patch("/{material_id}", response_model=MaterialResponse)
async def update_material(material_id: int, req: MaterialUpdate, db: AsyncSession = Depends(get_db)):
    async with transaction(db):
        material = await StockLedger(db).update_material(
            material_id, **req.model_dump(exclude_unset=True)
        )
    return MaterialResponse.model_validate(material)


@router.delete("/{material_id}")
async def delete_material(material_id: int, db: AsyncSession = Depends(get_db)):
    async with transaction(db):
        await StockLedger(db).delete_material(material_id)
    return {"message": "Material deleted successfully"}
