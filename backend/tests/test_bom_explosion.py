"""Tests for the bill-of-materials explosion engine."""

import pytest
from sqlalchemy import delete

from orderflow.core.errors import BOMIntegrityError
from orderflow.models import Component, ComponentMaterial, Material, Product, ProductComponent
from orderflow.services.bom_explosion import BOMExplosionEngine, LineDemand
from orderflow.services.order_fulfillment import OrderFulfillmentService, OrderLineInput


def by_material(requirements):
    return {r.material_id: r.quantity_needed for r in requirements}


class TestExplodeLines:
    """Test BOMExplosionEngine.explode_lines."""

    @pytest.mark.asyncio
    async def test_explodes_raw_and_color_materials(self, test_session, catalog):
        """2 components x 5 raw x 2 ordered; color 3 x 2 ordered; pattern factor 0."""
        engine = BOMExplosionEngine(test_session)
        requirements = await engine.explode_lines([LineDemand(catalog.product_id, 2)])

        assert by_material(requirements) == {
            catalog.raw_id: 20.0,
            catalog.primary_color_id: 6.0,
            catalog.pattern_color_id: 0.0,
        }

    @pytest.mark.asyncio
    async def test_results_sorted_by_material_id(self, test_session, catalog):
        engine = BOMExplosionEngine(test_session)
        requirements = await engine.explode_lines([LineDemand(catalog.product_id, 1)])

        ids = [r.material_id for r in requirements]
        assert ids == sorted(ids)
        raw = next(r for r in requirements if r.material_id == catalog.raw_id)
        assert raw.material_name == "Oak plank"
        assert raw.unit == "pcs"

    @pytest.mark.asyncio
    async def test_repeated_product_lines_are_summed(self, test_session, catalog):
        engine = BOMExplosionEngine(test_session)
        requirements = await engine.explode_lines(
            [LineDemand(catalog.product_id, 1), LineDemand(catalog.product_id, 3)]
        )

        assert by_material(requirements)[catalog.raw_id] == 40.0
        assert by_material(requirements)[catalog.primary_color_id] == 12.0

    @pytest.mark.asyncio
    async def test_empty_lines(self, test_session):
        engine = BOMExplosionEngine(test_session)
        assert await engine.explode_lines([]) == []

    @pytest.mark.asyncio
    async def test_edge_without_colors_uses_only_raw_materials(self, test_session, catalog):
        product = Product(
            name="Plain shelf",
            price=90.0,
            component_edges=[ProductComponent(component_id=catalog.component_id, quantity=1)],
        )
        test_session.add(product)
        await test_session.commit()

        engine = BOMExplosionEngine(test_session)
        requirements = await engine.explode_lines([LineDemand(product.id, 1)])

        assert by_material(requirements) == {catalog.raw_id: 5.0}

    @pytest.mark.asyncio
    async def test_color_tagged_component_edge_is_skipped(self, test_session, catalog):
        """Color materials are only consumed through the color-use factors."""
        test_session.add(
            ComponentMaterial(
                component_id=catalog.component_id,
                material_id=catalog.primary_color_id,
                quantity=100.0,
            )
        )
        await test_session.commit()

        engine = BOMExplosionEngine(test_session)
        requirements = await engine.explode_lines([LineDemand(catalog.product_id, 2)])

        assert by_material(requirements)[catalog.primary_color_id] == 6.0

    @pytest.mark.asyncio
    async def test_color_use_ignores_edge_quantity(self, test_session):
        paint = Material(name="Blue paint", unit="l", quantity=10.0, threshold=0.0, color="blue")
        test_session.add(paint)
        await test_session.flush()
        component = Component(name="Leg", price=5.0, color_primary_use=0.5, color_pattern_use=0.0)
        test_session.add(component)
        await test_session.flush()
        product = Product(
            name="Stool",
            price=30.0,
            component_edges=[
                ProductComponent(component_id=component.id, quantity=4, primary_color=paint.id)
            ],
        )
        test_session.add(product)
        await test_session.commit()

        engine = BOMExplosionEngine(test_session)
        requirements = await engine.explode_lines([LineDemand(product.id, 2)])

        assert by_material(requirements) == {paint.id: 1.0}


class TestIntegrity:
    """Missing materials abort the explosion."""

    @pytest.mark.asyncio
    async def test_missing_component_material(self, test_session, catalog):
        # SQLite does not enforce the foreign key, so the edge is left dangling
        await test_session.execute(delete(Material).where(Material.id == catalog.raw_id))
        await test_session.commit()

        engine = BOMExplosionEngine(test_session)
        with pytest.raises(BOMIntegrityError) as exc_info:
            await engine.explode_lines([LineDemand(catalog.product_id, 1)])
        assert str(catalog.raw_id) in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_color_material(self, test_session, catalog):
        await test_session.execute(delete(Material).where(Material.id == catalog.primary_color_id))
        await test_session.commit()

        engine = BOMExplosionEngine(test_session)
        with pytest.raises(BOMIntegrityError):
            await engine.explode_lines([LineDemand(catalog.product_id, 1)])


class TestOrderDemand:
    """explode_order and explode_paid_demand."""

    @pytest.mark.asyncio
    async def test_explode_order(self, test_session, catalog):
        service = OrderFulfillmentService(test_session)
        order = await service.create_order("cust-1", [OrderLineInput(catalog.product_id, 2)])

        requirements = await BOMExplosionEngine(test_session).explode_order(order.id)
        assert by_material(requirements)[catalog.raw_id] == 20.0

    @pytest.mark.asyncio
    async def test_paid_demand_only_counts_paid_orders(self, test_session, catalog):
        service = OrderFulfillmentService(test_session)
        paid = await service.create_order("cust-1", [OrderLineInput(catalog.product_id, 2)])
        await service.create_order("cust-2", [OrderLineInput(catalog.product_id, 7)])
        processing = await service.create_order("cust-3", [OrderLineInput(catalog.product_id, 1)])

        await service.mark_paid(paid.id)
        await service.mark_paid(processing.id)
        await service.start_processing(processing.id)

        requirements = await BOMExplosionEngine(test_session).explode_paid_demand()
        assert by_material(requirements)[catalog.raw_id] == 20.0

    @pytest.mark.asyncio
    async def test_no_paid_orders(self, test_session, catalog):
        service = OrderFulfillmentService(test_session)
        await service.create_order("cust-1", [OrderLineInput(catalog.product_id, 2)])

        assert await BOMExplosionEngine(test_session).explode_paid_demand() == []
