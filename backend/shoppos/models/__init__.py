from .catalog import Product
from .sales import Sale, SaleLine
from .customers import Customer
from .credits import CreditAccount, CreditPayment
from .expenses import Expense
from .cash import CashCut
from .auth import User, SessionToken

__all__ = [
    'Product',
    'Sale', 'SaleLine',
    'Customer',
    'CreditAccount', 'CreditPayment',
    'Expense',
    'CashCut',
    'User', 'SessionToken',
]
