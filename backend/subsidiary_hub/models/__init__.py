from .tenancy import Subsidiary
from .auth import User, SessionToken
from .inventory import InventoryItem
from .sales import Sale
from .activity import ActivityLog

__all__ = [
    'Subsidiary',
    'User', 'SessionToken',
    'InventoryItem',
    'Sale',
    'ActivityLog',
]
