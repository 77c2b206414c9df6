"""Tests for the stock ledger repository."""

import pytest
from sqlalchemy import select, update

from orderflow.core.errors import InvalidStateError, NotFoundError, ValidationError
from orderflow.models import Material
from orderflow.repositories.stock_ledger import StockLedger


class TestMaterials:
    """Material registration and lookup."""

    @pytest.mark.asyncio
    async def test_create_material(self, test_session):
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Steel rod", unit="m", quantity=12.5, threshold=3)

        assert material.id is not None
        assert material.quantity == 12.5
        assert material.is_color_material is False

    @pytest.mark.asyncio
    async def test_create_color_material(self, test_session):
        material = await StockLedger(test_session).create_material(
            name="Green paint", unit="l", color="green"
        )
        assert material.is_color_material is True

    @pytest.mark.asyncio
    async def test_duplicate_name(self, test_session):
        ledger = StockLedger(test_session)
        await ledger.create_material(name="Steel rod", unit="m")

        with pytest.raises(InvalidStateError):
            await ledger.create_material(name="Steel rod", unit="kg")

    @pytest.mark.asyncio
    async def test_negative_initial_quantity(self, test_session):
        with pytest.raises(ValidationError):
            await StockLedger(test_session).create_material(name="Glue", unit="l", quantity=-1)

    @pytest.mark.asyncio
    async def test_get_material_not_found(self, test_session):
        with pytest.raises(NotFoundError):
            await StockLedger(test_session).get_material(42)
        assert await StockLedger(test_session).find(42) is None

    @pytest.mark.asyncio
    async def test_list_below_threshold(self, test_session):
        ledger = StockLedger(test_session)
        await ledger.create_material(name="Screws", unit="pcs", quantity=100, threshold=50)
        low = await ledger.create_material(name="Hinges", unit="pcs", quantity=4, threshold=10)
        edge = await ledger.create_material(name="Glue", unit="l", quantity=2, threshold=2)

        below = await ledger.list_below_threshold()

        assert [m.id for m in below] == [low.id, edge.id]

    @pytest.mark.asyncio
    async def test_update_keeps_quantity(self, test_session):
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Screws", unit="pcs", quantity=100)

        updated = await ledger.update_material(material.id, name="Wood screws", threshold=20)

        assert updated.name == "Wood screws"
        assert updated.threshold == 20
        assert updated.quantity == 100

    @pytest.mark.asyncio
    async def test_update_to_taken_name(self, test_session):
        ledger = StockLedger(test_session)
        await ledger.create_material(name="Screws", unit="pcs")
        other = await ledger.create_material(name="Nails", unit="pcs")

        with pytest.raises(InvalidStateError):
            await ledger.update_material(other.id, name="Screws")


class TestCreditDebit:
    """Quantity changes."""

    @pytest.mark.asyncio
    async def test_credit(self, test_session):
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Screws", unit="pcs", quantity=10)

        await ledger.credit(material.id, 15)

        assert material.quantity == 25

    @pytest.mark.asyncio
    async def test_debit(self, test_session):
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Screws", unit="pcs", quantity=10)

        await ledger.debit(material.id, 4)

        assert material.quantity == 6

    @pytest.mark.asyncio
    async def test_debit_clamps_at_zero(self, test_session):
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Screws", unit="pcs", quantity=10)

        await ledger.debit(material.id, 25)

        assert material.quantity == 0.0

    @pytest.mark.asyncio
    async def test_debit_applies_to_current_row_not_stale_copy(self, test_session):
        """A credit committed elsewhere after the row was loaded is not overwritten."""
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Screws", unit="pcs", quantity=15)
        await test_session.commit()

        # Concurrent receipt of 20, written without touching the loaded instance
        await test_session.execute(
            update(Material)
            .where(Material.id == material.id)
            .values(quantity=Material.quantity + 20)
            .execution_options(synchronize_session=False)
        )
        assert material.quantity == 15

        await ledger.debit(material.id, 10)
        await test_session.commit()

        result = await test_session.execute(select(Material.quantity).where(Material.id == material.id))
        assert result.scalar_one() == 25

    @pytest.mark.asyncio
    async def test_credit_applies_to_current_row_not_stale_copy(self, test_session):
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Screws", unit="pcs", quantity=15)
        await test_session.commit()

        await test_session.execute(
            update(Material)
            .where(Material.id == material.id)
            .values(quantity=5)
            .execution_options(synchronize_session=False)
        )

        await ledger.credit(material.id, 20)

        assert material.quantity == 25

    @pytest.mark.asyncio
    async def test_negative_amounts_rejected(self, test_session):
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Screws", unit="pcs", quantity=10)

        with pytest.raises(ValidationError):
            await ledger.credit(material.id, -1)
        with pytest.raises(ValidationError):
            await ledger.debit(material.id, -1)


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_unreferenced(self, test_session):
        ledger = StockLedger(test_session)
        material = await ledger.create_material(name="Screws", unit="pcs")
        material_id = material.id

        await ledger.delete_material(material_id)

        assert await ledger.find(material_id) is None

    @pytest.mark.asyncio
    async def test_delete_component_material_refused(self, test_session, catalog):
        ledger = StockLedger(test_session)

        assert await ledger.is_referenced(catalog.raw_id) is True
        with pytest.raises(InvalidStateError):
            await ledger.delete_material(catalog.raw_id)

    @pytest.mark.asyncio
    async def test_delete_color_material_refused(self, test_session, catalog):
        with pytest.raises(InvalidStateError):
            await StockLedger(test_session).delete_material(catalog.pattern_color_id)
