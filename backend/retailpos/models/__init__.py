from .catalog import Product
from .ledger import Transaction, TransactionItem, InvoiceSequence
from .activity import ActivityLog

__all__ = [
    'Product',
    'Transaction', 'TransactionItem', 'InvoiceSequence',
    'ActivityLog',
]
