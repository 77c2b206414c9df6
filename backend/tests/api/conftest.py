"""Fixtures for API tests."""

import httpx
import pytest

from orderflow.core.database import get_db
from orderflow.main import app


@pytest.fixture
async def client(session_factory):
    """HTTP client for the FastAPI app, backed by the in-memory test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def order_payload(catalog):
    """Checkout body for two units of the seeded product."""
    return {
        "customer_id": "cust-1",
        "order_lines": [{"product_id": catalog.product_id, "quantity": 2}],
        "delivery_price": 15.0,
        "address": "12 Elm Street",
        "phone_number": "555-0100",
        "payment_method": "qr",
    }
