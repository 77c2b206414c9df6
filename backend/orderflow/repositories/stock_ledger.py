"""Stock ledger: the single place where material quantities change."""

import logging
from typing import List, Optional
from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.errors import InvalidStateError, NotFoundError, ValidationError
from orderflow.models.catalog import ComponentMaterial, ProductComponent
from orderflow.models.material import Material

logger = logging.getLogger(__name__)


class StockLedger:
    """Repository for raw material records.

    Quantity on hand is only modified through ``credit`` and ``debit`` so
    the non-negative invariant is enforced in one place. Both lock the row
    and re-read the committed quantity before writing. Methods flush but
    never commit; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        """Initialize the ledger with a database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def create_material(
        self,
        name: str,
        unit: str,
        quantity: float = 0.0,
        threshold: float = 0.0,
        color: Optional[str] = None,
    ) -> Material:
        """Register a new material.

        Args:
            name: Unique material name
            unit: Unit of measure
            quantity: Initial quantity on hand
            threshold: Reorder threshold
            color: Color tag for color materials

        Returns:
            Created Material instance

        Raises:
            ValidationError: If the quantity is negative
            InvalidStateError: If a material with that name already exists
        """
        if quantity < 0:
            raise ValidationError(f"Material quantity must not be negative, got {quantity}")

        existing = await self.session.execute(select(Material.id).where(Material.name == name))
        if existing.scalar_one_or_none() is not None:
            raise InvalidStateError(f"Material '{name}' already exists")

        material = Material(
            name=name, unit=unit, quantity=quantity, threshold=threshold, color=color or None
        )
        self.session.add(material)
        await self.session.flush()
        return material

    async def find(self, material_id: int, for_update: bool = False) -> Optional[Material]:
        query = select(Material).where(Material.id == material_id)
        if for_update:
            # Lock the row and overwrite any stale copy held by the session
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_material(self, material_id: int, for_update: bool = False) -> Material:
        """Get a material by ID.

        Args:
            material_id: Material ID
            for_update: Lock the row until the transaction ends and reload it

        Raises:
            NotFoundError: If the material does not exist
        """
        material = await self.find(material_id, for_update=for_update)
        if material is None:
            raise NotFoundError(f"Material {material_id} not found")
        return material

    async def get_many(self, material_ids: List[int]) -> dict[int, Material]:
        if not material_ids:
            return {}
        result = await self.session.execute(
            select(Material).where(Material.id.in_(set(material_ids)))
        )
        return {m.id: m for m in result.scalars().all()}

    async def list_materials(self) -> List[Material]:
        result = await self.session.execute(select(Material).order_by(Material.id))
        return list(result.scalars().all())

    async def list_below_threshold(self) -> List[Material]:
        """Materials whose quantity on hand is at or below the reorder threshold."""
        result = await self.session.execute(
            select(Material).where(Material.quantity <= Material.threshold).order_by(Material.id)
        )
        return list(result.scalars().all())

    async def update_material(
        self,
        material_id: int,
        name: Optional[str] = None,
        unit: Optional[str] = None,
        threshold: Optional[float] = None,
        color: Optional[str] = None,
    ) -> Material:
        """Update descriptive fields of a material.

        Quantity is deliberately not editable here; use ``credit``/``debit``.
        """
        material = await self.get_material(material_id)

        if name is not None and name != material.name:
            clash = await self.session.execute(select(Material.id).where(Material.name == name))
            if clash.scalar_one_or_none() is not None:
                raise InvalidStateError(f"Material '{name}' already exists")
            material.name = name
        if unit is not None:
            material.unit = unit
        if threshold is not None:
            material.threshold = threshold
        if color is not None:
            material.color = color or None

        await self.session.flush()
        return material

    async def is_referenced(self, material_id: int) -> bool:
        """Whether any BOM edge or color slot still points at the material."""
        component_edge = exists().where(ComponentMaterial.material_id == material_id)
        color_slot = exists().where(
            or_(
                ProductComponent.primary_color == material_id,
                ProductComponent.pattern_color == material_id,
            )
        )
        result = await self.session.execute(select(or_(component_edge, color_slot)))
        return bool(result.scalar())

    async def delete_material(self, material_id: int) -> None:
        """Delete a material that no bill of materials refers to.

        Raises:
            NotFoundError: If the material does not exist
            InvalidStateError: If the material is still referenced by a BOM edge
        """
        material = await self.get_material(material_id)
        if await self.is_referenced(material_id):
            raise InvalidStateError(
                f"Material {material_id} is referenced by a bill of materials and cannot be deleted"
            )
        await self.session.delete(material)
        await self.session.flush()

    async def credit(self, material_id: int, quantity: float) -> Material:
        """Add ``quantity`` to the stock of a material."""
        if quantity < 0:
            raise ValidationError(f"Credit quantity must not be negative, got {quantity}")
        material = await self.get_material(material_id, for_update=True)
        material.quantity = material.quantity + quantity
        await self.session.flush()
        logger.debug(f"Credited material {material_id} by {quantity}, now {material.quantity}")
        return material

    async def debit(self, material_id: int, quantity: float) -> Material:
        """Remove ``quantity`` from the stock of a material, clamped at zero."""
        if quantity < 0:
            raise ValidationError(f"Debit quantity must not be negative, got {quantity}")
        material = await self.get_material(material_id, for_update=True)
        if quantity > material.quantity:
            logger.warning(
                f"Debit of {quantity} exceeds stock {material.quantity} for material "
                f"{material_id}; clamping to zero"
            )
        material.quantity = max(0.0, material.quantity - quantity)
        await self.session.flush()
        return material
