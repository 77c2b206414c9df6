# Database models
from orderflow.models.material import Material
from orderflow.models.catalog import (
    CartItem,
    Component,
    ComponentMaterial,
    Product,
    ProductComponent,
)
from orderflow.models.order import (
    CustomerPurchaseOrder,
    History,
    OrderLine,
    OrderStatus,
)
from orderflow.models.procurement import (
    MaterialPurchaseOrder,
    MaterialRequisition,
    MPOOrderLine,
    MPOStatus,
    Transaction,
)

__all__ = [
    "Material",
    "CartItem",
    "Component",
    "ComponentMaterial",
    "Product",
    "ProductComponent",
    "CustomerPurchaseOrder",
    "History",
    "OrderLine",
    "OrderStatus",
    "MaterialPurchaseOrder",
    "MaterialRequisition",
    "MPOOrderLine",
    "MPOStatus",
    "Transaction",
]
