# backend/orderflow/models/catalog.py
"""Catalog tables and the two bill-of-materials edge tables.

The catalog itself is maintained by another service; these tables are read
here to explode orders into material requirements:

- ProductComponent: product -> component, with the color materials used
- ComponentMaterial: component -> non-color material
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from orderflow.core.database import Base


class Component(Base):
    __tablename__ = "components"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    category = Column(String(100))
    name = Column(String(255), nullable=False)
    price = Column(Float, default=0.0, nullable=False)
    # Amount of a color material one unit of the component consumes
    color_primary_use = Column(Float, default=0.0, nullable=False)
    color_pattern_use = Column(Float, default=0.0, nullable=False)

    material_edges = relationship(
        "ComponentMaterial", back_populates="component", cascade="all, delete-orphan"
    )


class ComponentMaterial(Base):
    """BOM edge: quantity of a non-color material per component."""

    __tablename__ = "component_materials"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    component_id = Column(
        Integer, ForeignKey("components.id", ondelete="CASCADE"), nullable=False
    )
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    quantity = Column(Float, nullable=False)

    component = relationship("Component", back_populates="material_edges")

    __table_args__ = (
        Index("idx_component_materials_component", "component_id"),
        Index("idx_component_materials_material", "material_id"),
    )


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    name = Column(String(255), nullable=False)
    price = Column(Float, default=0.0, nullable=False)

    component_edges = relationship(
        "ProductComponent", back_populates="product", cascade="all, delete-orphan"
    )


class ProductComponent(Base):
    """BOM edge: component instances per product.

    The same component may appear on several edges of one product, each in
    different colors.
    """

    __tablename__ = "product_components"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    component_id = Column(
        Integer, ForeignKey("components.id", ondelete="RESTRICT"), nullable=False
    )
    quantity = Column(Float, default=1, nullable=False)
    primary_color = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=True
    )
    pattern_color = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=True
    )

    product = relationship("Product", back_populates="component_edges")

    __table_args__ = (
        Index("idx_product_components_product", "product_id"),
        Index("idx_product_components_component", "component_id"),
    )


class CartItem(Base):
    """Line a customer has put in the cart but not checked out yet."""

    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    customer_id = Column(String(100), nullable=False, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    quantity = Column(Integer, default=1, nullable=False)

    __table_args__ = (UniqueConstraint("customer_id", "product_id"),)
