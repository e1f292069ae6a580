from .tenancy import Tenant
from .inventory import Product
from .transactions import Transaction, TransactionLine, ExtraCharge, BILLING_MODES
from .auth import SessionToken
from .security import SecurityEvent

__all__ = [
    'Tenant',
    'Product',
    'Transaction', 'TransactionLine', 'ExtraCharge', 'BILLING_MODES',
    'SessionToken',
    'SecurityEvent',
]
