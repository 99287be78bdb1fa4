from .auth import User, USER_ROLES
from .inventory import Category, Medicine, RefillRecord
from .sales import Sale, SaleItem

__all__ = [
    'User', 'USER_ROLES',
    'Category', 'Medicine', 'RefillRecord',
    'Sale', 'SaleItem',
]
