"""Bill-of-materials explosion.

Turns order line items into the flat list of raw material quantities they
require, walking the two BOM edge tables:

    product --(ProductComponent.quantity, primary/pattern color)--> component
    component --(ComponentMaterial.quantity)--> non-color material

Color materials are not BOM edges. A component consumes
``color_primary_use`` of the edge's primary color and ``color_pattern_use``
of its pattern color per ordered product unit.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.errors import BOMIntegrityError
from orderflow.models.catalog import Component, ComponentMaterial, ProductComponent
from orderflow.models.material import Material
from orderflow.models.order import CustomerPurchaseOrder, OrderLine, OrderStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineDemand:
    """Quantity of one product to be built."""

    product_id: int
    quantity: float


@dataclass
class MaterialRequirement:
    """Total quantity of one material needed by a set of line items."""

    material_id: int
    material_name: str
    unit: str
    quantity_needed: float


class BOMExplosionEngine:
    """Read-only aggregation of material requirements.

    The engine never writes; results are deterministic for a given BOM graph
    and set of line items, ordered by material id.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def explode_order(self, cpo_id: int) -> List[MaterialRequirement]:
        """Material requirements of a single customer order, whatever its status."""
        result = await self.session.execute(
            select(OrderLine.product_id, OrderLine.quantity)
            .where(OrderLine.order_id == cpo_id)
            .order_by(OrderLine.id)
        )
        return await self.explode_lines(LineDemand(p, q) for p, q in result.all())

    async def explode_paid_demand(self) -> List[MaterialRequirement]:
        """Aggregate material requirements of every order currently in PAID."""
        result = await self.session.execute(
            select(OrderLine.product_id, OrderLine.quantity)
            .join(CustomerPurchaseOrder, CustomerPurchaseOrder.id == OrderLine.order_id)
            .where(CustomerPurchaseOrder.status == OrderStatus.PAID)
            .order_by(OrderLine.id)
        )
        return await self.explode_lines(LineDemand(p, q) for p, q in result.all())

    async def explode_lines(self, lines: Iterable[LineDemand]) -> List[MaterialRequirement]:
        """Explode arbitrary (product, quantity) pairs.

        Args:
            lines: Product demands; the same product may appear several times

        Returns:
            One MaterialRequirement per material touched, sorted by material id

        Raises:
            BOMIntegrityError: If a BOM edge or color slot references a
                material that does not exist
        """
        lines = list(lines)
        if not lines:
            return []

        product_ids = {line.product_id for line in lines}
        edge_rows = await self.session.execute(
            select(ProductComponent, Component)
            .join(Component, Component.id == ProductComponent.component_id)
            .where(ProductComponent.product_id.in_(product_ids))
            .order_by(ProductComponent.id)
        )
        edges_by_product: dict[int, list[tuple[ProductComponent, Component]]] = defaultdict(list)
        for edge, component in edge_rows.all():
            edges_by_product[edge.product_id].append((edge, component))

        component_ids = {c.id for edges in edges_by_product.values() for _, c in edges}
        materials_by_component = await self._component_materials(component_ids)

        totals: dict[int, float] = defaultdict(float)
        color_ids: set[int] = set()

        for line in lines:
            for edge, component in edges_by_product.get(line.product_id, []):
                if edge.primary_color is not None:
                    totals[edge.primary_color] += component.color_primary_use * line.quantity
                    color_ids.add(edge.primary_color)
                if edge.pattern_color is not None:
                    totals[edge.pattern_color] += component.color_pattern_use * line.quantity
                    color_ids.add(edge.pattern_color)

                for material_edge, material in materials_by_component.get(component.id, []):
                    if material.color:
                        continue
                    totals[material.id] += material_edge.quantity * edge.quantity * line.quantity

        materials = await self._load_materials(totals.keys())
        missing = sorted(color_ids - materials.keys())
        if missing:
            raise BOMIntegrityError(
                f"Color material(s) {missing} referenced by a product bill of materials do not exist"
            )

        requirements = [
            MaterialRequirement(
                material_id=material_id,
                material_name=materials[material_id].name,
                unit=materials[material_id].unit,
                quantity_needed=quantity,
            )
            for material_id, quantity in sorted(totals.items())
        ]
        logger.debug(f"Exploded {len(lines)} line(s) into {len(requirements)} material(s)")
        return requirements

    async def _component_materials(
        self, component_ids: set[int]
    ) -> dict[int, list[tuple[ComponentMaterial, Material]]]:
        if not component_ids:
            return {}
        rows = await self.session.execute(
            select(ComponentMaterial, Material)
            .outerjoin(Material, Material.id == ComponentMaterial.material_id)
            .where(ComponentMaterial.component_id.in_(component_ids))
            .order_by(ComponentMaterial.id)
        )
        by_component: dict[int, list[tuple[ComponentMaterial, Material]]] = defaultdict(list)
        for material_edge, material in rows.all():
            if material is None:
                raise BOMIntegrityError(
                    f"Component {material_edge.component_id} references material "
                    f"{material_edge.material_id} which does not exist"
                )
            by_component[material_edge.component_id].append((material_edge, material))
        return by_component

    async def _load_materials(self, material_ids: Iterable[int]) -> dict[int, Material]:
        ids = set(material_ids)
        if not ids:
            return {}
        result = await self.session.execute(select(Material).where(Material.id.in_(ids)))
        return {m.id: m for m in result.scalars().all()}
