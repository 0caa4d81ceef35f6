from .registry import Product, Customer, Staff, Assignment
from .audit import AuditEntry
from .auth import AuthToken
from .settings import Setting

__all__ = [
    'Product', 'Customer', 'Staff', 'Assignment',
    'AuditEntry',
    'AuthToken',
    'Setting',
]
