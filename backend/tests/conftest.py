"""Shared fixtures: in-memory database and a small bill of materials."""

from dataclasses import dataclass

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from orderflow.core.database import Base
from orderflow.models import (
    Component,
    ComponentMaterial,
    Material,
    Product,
    ProductComponent,
)


# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@dataclass
class Catalog:
    product_id: int
    component_id: int
    raw_id: int
    primary_color_id: int
    pattern_color_id: int


async def seed_catalog(session: AsyncSession, raw_on_hand: float = 15.0) -> Catalog:
    """Product P -> component C (x2) -> raw material R (x5).

    C consumes 3 of the edge's primary color and 0 of its pattern color per
    ordered product unit.
    """
    raw = Material(name="Oak plank", unit="pcs", quantity=raw_on_hand, threshold=5.0)
    red = Material(name="Red paint", unit="l", quantity=100.0, threshold=10.0, color="red")
    white = Material(name="White paint", unit="l", quantity=100.0, threshold=10.0, color="white")
    session.add_all([raw, red, white])
    await session.flush()

    component = Component(
        category="Frame",
        name="Side panel",
        price=40.0,
        color_primary_use=3.0,
        color_pattern_use=0.0,
        material_edges=[ComponentMaterial(material_id=raw.id, quantity=5.0)],
    )
    session.add(component)
    await session.flush()

    product = Product(
        name="Bookshelf",
        price=250.0,
        component_edges=[
            ProductComponent(
                component_id=component.id,
                quantity=2,
                primary_color=red.id,
                pattern_color=white.id,
            )
        ],
    )
    session.add(product)
    await session.commit()

    return Catalog(
        product_id=product.id,
        component_id=component.id,
        raw_id=raw.id,
        primary_color_id=red.id,
        pattern_color_id=white.id,
    )


@pytest.fixture
async def catalog(test_session):
    return await seed_catalog(test_session)
