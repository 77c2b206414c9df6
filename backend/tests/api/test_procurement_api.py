"""Tests for materials, requisitions, MPO and activity feed endpoints."""

import pytest


async def raise_requisitions(client, catalog):
    raw = (await client.post("/api/requisitions", json={"material_id": catalog.raw_id, "quantity": 20})).json()
    paint = (
        await client.post("/api/requisitions", json={"material_id": catalog.primary_color_id, "quantity": 8})
    ).json()
    return raw, paint


async def create_mpo(client, catalog):
    raw, paint = await raise_requisitions(client, catalog)
    response = await client.post(
        "/api/material-purchase-orders",
        json={
            "supplier": "Timber & Co",
            "materials": [
                {"requisition_id": raw["id"], "material_id": catalog.raw_id, "quantity": 25},
                {"requisition_id": paint["id"], "material_id": catalog.primary_color_id, "quantity": 8},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


class TestMaterialsAPI:
    """Test /api/materials endpoints."""

    @pytest.mark.asyncio
    async def test_crud(self, client):
        response = await client.post(
            "/api/materials", json={"name": "Steel rod", "unit": "m", "quantity": 5, "threshold": 10}
        )
        assert response.status_code == 201
        material_id = response.json()["id"]

        response = await client.patch(f"/api/materials/{material_id}", json={"threshold": 2})
        assert response.status_code == 200
        assert response.json()["threshold"] == 2
        assert response.json()["quantity"] == 5

        response = await client.delete(f"/api/materials/{material_id}")
        assert response.status_code == 200
        assert (await client.get(f"/api/materials/{material_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, client):
        await client.post("/api/materials", json={"name": "Steel rod", "unit": "m"})

        response = await client.post("/api/materials", json={"name": "Steel rod", "unit": "m"})

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_low_stock(self, client, catalog):
        await client.post("/api/materials", json={"name": "Hinges", "unit": "pcs", "quantity": 1, "threshold": 4})

        response = await client.get("/api/materials/low-stock")

        assert response.status_code == 200
        assert [m["name"] for m in response.json()] == ["Hinges"]

    @pytest.mark.asyncio
    async def test_delete_referenced_material(self, client, catalog):
        response = await client.delete(f"/api/materials/{catalog.raw_id}")

        assert response.status_code == 409
        assert response.json()["kind"] == "invalid_state"


class TestRequisitionsAPI:
    @pytest.mark.asyncio
    async def test_create_and_merge(self, client, catalog):
        first, _ = await raise_requisitions(client, catalog)
        response = await client.post(
            "/api/requisitions", json={"material_id": catalog.raw_id, "quantity": 5}
        )

        assert response.status_code == 201
        assert response.json()["id"] == first["id"]
        assert response.json()["quantity"] == 25

        # The merge refreshes the timestamp, moving Oak plank behind Red paint
        listed = (await client.get("/api/requisitions")).json()
        assert [r["material_name"] for r in listed] == ["Red paint", "Oak plank"]
        assert listed[1]["quantity"] == 25

    @pytest.mark.asyncio
    async def test_unknown_material(self, client):
        response = await client.post("/api/requisitions", json={"material_id": 999, "quantity": 5})
        assert response.status_code == 404


class TestMaterialPurchaseOrdersAPI:
    """Test /api/material-purchase-orders endpoints."""

    @pytest.mark.asyncio
    async def test_create_consumes_requisitions(self, client, catalog):
        mpo = await create_mpo(client, catalog)

        assert mpo["status"] == "NEW"
        assert len(mpo["lines"]) == 2
        assert (await client.get("/api/requisitions")).json() == []

    @pytest.mark.asyncio
    async def test_receive_credits_stock(self, client, catalog):
        mpo = await create_mpo(client, catalog)

        response = await client.patch(f"/api/material-purchase-orders/{mpo['id']}/receive")

        assert response.status_code == 200
        assert response.json()["status"] == "RECEIVED"
        material = (await client.get(f"/api/materials/{catalog.raw_id}")).json()
        assert material["quantity"] == 40

        response = await client.patch(f"/api/material-purchase-orders/{mpo['id']}/receive")
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_price_then_cancel(self, client, catalog):
        mpo = await create_mpo(client, catalog)
        prices = [
            {"line_id": mpo["lines"][0]["id"], "price": 300},
            {"line_id": mpo["lines"][1]["id"], "price": 45.5},
        ]

        response = await client.post(
            f"/api/material-purchase-orders/{mpo['id']}/prices",
            json={"payment_method": "bank_transfer", "materials": prices},
        )
        assert response.status_code == 200
        assert response.json()["total_price"] == 345.5

        response = await client.patch(f"/api/material-purchase-orders/{mpo['id']}/cancel")
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["total_price"] == 0

    @pytest.mark.asyncio
    async def test_get_and_list(self, client, catalog):
        mpo = await create_mpo(client, catalog)

        assert (await client.get(f"/api/material-purchase-orders/{mpo['id']}")).json()["supplier"] == "Timber & Co"
        assert [m["id"] for m in (await client.get("/api/material-purchase-orders")).json()] == [mpo["id"]]
        assert (await client.get("/api/material-purchase-orders/999")).status_code == 404

    @pytest.mark.asyncio
    async def test_empty_materials_rejected(self, client):
        response = await client.post(
            "/api/material-purchase-orders", json={"supplier": "Timber & Co", "materials": []}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_requisition_for_other_material_rejected(self, client, catalog):
        _, paint = await raise_requisitions(client, catalog)

        response = await client.post(
            "/api/material-purchase-orders",
            json={
                "supplier": "Timber & Co",
                "materials": [{"requisition_id": paint["id"], "material_id": catalog.raw_id, "quantity": 8}],
            },
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "validation"
        assert len((await client.get("/api/requisitions")).json()) == 2


class TestActivityFeedAPI:
    @pytest.mark.asyncio
    async def test_feed_mixes_cpo_and_mpo_events(self, client, catalog, order_payload):
        await client.post("/api/orders", json=order_payload)
        mpo = await create_mpo(client, catalog)
        await client.patch(f"/api/material-purchase-orders/{mpo['id']}/receive")

        response = await client.get("/api/history")

        assert response.status_code == 200
        feed = response.json()
        assert [(e["type"], e["status"]) for e in feed] == [
            ("MPO", "RECEIVED"),
            ("MPO", "NEW"),
            ("CPO", "NEW"),
        ]

    @pytest.mark.asyncio
    async def test_limit(self, client, catalog, order_payload):
        await client.post("/api/orders", json=order_payload)
        mpo = await create_mpo(client, catalog)
        await client.patch(f"/api/material-purchase-orders/{mpo['id']}/receive")

        response = await client.get("/api/history", params={"limit": 1})

        assert response.status_code == 200
        assert [(e["type"], e["status"]) for e in response.json()] == [("MPO", "RECEIVED")]
        assert (await client.get("/api/history", params={"limit": 0})).status_code == 422
