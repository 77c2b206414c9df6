"""Shortage detection, requisition merging and stock deduction.

Both operations run inside the caller's transaction and never commit, so a
failure part-way leaves no partial deduction or requisition update behind.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.timeutil import utcnow
from orderflow.repositories.requisition_repository import RequisitionRepository
from orderflow.repositories.stock_ledger import StockLedger
from orderflow.services.bom_explosion import BOMExplosionEngine

logger = logging.getLogger(__name__)


@dataclass
class Shortage:
    material_id: int
    material_name: str
    needed: float
    available: float
    shortage: float


@dataclass
class ReconcileResult:
    """Outcome of a reconciliation pass.

    Attributes:
        shortages: Materials whose PAID demand exceeds stock on hand
        created: Number of requisitions created
        merged: Number of existing requisitions increased
    """

    shortages: List[Shortage] = field(default_factory=list)
    created: int = 0
    merged: int = 0

    @property
    def message(self) -> str:
        if not self.shortages:
            return "No material shortages found"
        return "Material requisitions created/updated successfully"


@dataclass
class Deduction:
    material_id: int
    material_name: str
    unit: str
    deducted: float
    remaining: float


class RequisitionReconciler:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.explosion = BOMExplosionEngine(session)
        self.ledger = StockLedger(session)
        self.requisitions = RequisitionRepository(session)

    async def reconcile(self) -> ReconcileResult:
        """Raise or grow requisitions for every material short of PAID demand.

        Demand is the aggregate of all orders currently in PAID. For each
        material with ``needed > on_hand`` the shortage ``needed - on_hand``
        is added to the material's open requisition, or a new requisition is
        created with that quantity.
        """
        result = ReconcileResult()
        requirements = await self.explosion.explode_paid_demand()
        materials = await self.ledger.get_many([r.material_id for r in requirements])
        now = utcnow()

        for requirement in requirements:
            on_hand = materials[requirement.material_id].quantity
            shortage = max(requirement.quantity_needed - on_hand, 0.0)
            if shortage <= 0:
                continue

            requisition, created = await self.requisitions.add_quantity(
                requirement.material_id, shortage, now=now
            )
            if created:
                result.created += 1
                logger.info(
                    f"Created requisition {requisition.id} for material "
                    f"{requirement.material_id} ({requirement.material_name}): {shortage}"
                )
            else:
                result.merged += 1
                logger.info(
                    f"Merged shortage {shortage} into requisition {requisition.id} for material "
                    f"{requirement.material_id}, now {requisition.quantity}"
                )

            result.shortages.append(
                Shortage(
                    material_id=requirement.material_id,
                    material_name=requirement.material_name,
                    needed=requirement.quantity_needed,
                    available=on_hand,
                    shortage=shortage,
                )
            )

        return result

    async def deduct(self, cpo_id: int) -> List[Deduction]:
        """Debit the stock used by one order, never going below zero."""
        deductions = []
        for requirement in await self.explosion.explode_order(cpo_id):
            material = await self.ledger.debit(requirement.material_id, requirement.quantity_needed)
            deductions.append(
                Deduction(
                    material_id=material.id,
                    material_name=material.name,
                    unit=material.unit,
                    deducted=requirement.quantity_needed,
                    remaining=material.quantity,
                )
            )
        logger.info(f"Deducted {len(deductions)} material(s) for order {cpo_id}")
        return deductions

    async def create_requisition(self, material_id: int, quantity: float):
        """Manually raise (or add to) the requisition of a material."""
        await self.ledger.get_material(material_id)
        requisition, created = await self.requisitions.add_quantity(material_id, quantity)
        logger.info(
            f"{'Created' if created else 'Merged into'} requisition {requisition.id} "
            f"for material {material_id}, quantity {requisition.quantity}"
        )
        return requisition
