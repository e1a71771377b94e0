from .auth import AdminRole, AdminUser
from .customers import Customer
from .catalog import (
    ProductCategory,
    Product,
    ProductCategoryAssignment,
    ProductOption,
    ProductOptionVariant,
    ProductOptionSKU,
)
from .orders import Order, OrderItem, Shipment, ShipmentItem
from .inventory import InventoryLocation, InventoryProduct
from .system import SystemPreference, AuditLog

__all__ = [
    'AdminRole', 'AdminUser', 'Customer',
    'ProductCategory', 'Product', 'ProductCategoryAssignment',
    'ProductOption', 'ProductOptionVariant', 'ProductOptionSKU',
    'Order', 'OrderItem', 'Shipment', 'ShipmentItem',
    'InventoryLocation', 'InventoryProduct',
    'SystemPreference', 'AuditLog',
]
