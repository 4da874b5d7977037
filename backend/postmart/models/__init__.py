from .catalog import Location, Product, InventoryRecord
from .orders import Order, OrderItem
from .auth import Customer, Employee, SessionToken

__all__ = [
    'Location', 'Product', 'InventoryRecord',
    'Order', 'OrderItem',
    'Customer', 'Employee', 'SessionToken',
]
