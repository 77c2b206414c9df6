"""Repository for material requisitions."""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.timeutil import utcnow
from orderflow.models.material import Material
from orderflow.models.procurement import MaterialRequisition


class RequisitionRepository:
    """CRUD for the one-open-requisition-per-material table.

    Nothing here commits; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, requisition_id: int) -> Optional[MaterialRequisition]:
        result = await self.session.execute(
            select(MaterialRequisition).where(MaterialRequisition.id == requisition_id)
        )
        return result.scalar_one_or_none()

    async def get_by_material(
        self, material_id: int, for_update: bool = False
    ) -> Optional[MaterialRequisition]:
        """Get the open requisition of a material.

        Args:
            material_id: Material ID
            for_update: Lock the row until the transaction ends

        Returns:
            MaterialRequisition instance or None
        """
        query = select(MaterialRequisition).where(MaterialRequisition.material_id == material_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def add_quantity(
        self, material_id: int, quantity: float, now: Optional[datetime] = None
    ) -> tuple[MaterialRequisition, bool]:
        """Create the requisition of a material or add to the existing one.

        The merge is additive: an existing quantity Q becomes Q + quantity and
        its timestamp is refreshed.

        Returns:
            Tuple of the requisition and whether it was newly created
        """
        now = now or utcnow()
        requisition = await self.get_by_material(material_id, for_update=True)
        if requisition is None:
            requisition = MaterialRequisition(
                material_id=material_id, quantity=quantity, create_date_time=now
            )
            self.session.add(requisition)
            await self.session.flush()
            return requisition, True

        requisition.quantity = requisition.quantity + quantity
        requisition.create_date_time = now
        await self.session.flush()
        return requisition, False

    async def list_with_materials(self) -> List[tuple[MaterialRequisition, Material]]:
        result = await self.session.execute(
            select(MaterialRequisition, Material)
            .join(Material, Material.id == MaterialRequisition.material_id)
            .order_by(MaterialRequisition.create_date_time, MaterialRequisition.id)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def delete_many(self, requisition_ids: List[int]) -> int:
        if not requisition_ids:
            return 0
        result = await self.session.execute(
            delete(MaterialRequisition).where(MaterialRequisition.id.in_(requisition_ids))
        )
        return result.rowcount or 0
