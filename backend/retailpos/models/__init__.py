from .catalog import Product
from .customers import Customer
from .sales import Sale, SaleLine, SalePayment
from .inventory import InventoryLogEntry
from .settings import StoreSettings
from .audit import AuditLogEntry

__all__ = [
    'Product',
    'Customer',
    'Sale', 'SaleLine', 'SalePayment',
    'InventoryLogEntry',
    'StoreSettings',
    'AuditLogEntry',
]
