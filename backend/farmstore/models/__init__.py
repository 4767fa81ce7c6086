from .auth import User
from .catalog import Product, BulkPriceTier
from .inventory import RestockRecord, RestockSubscription
from .orders import Order, OrderLine, OrderTimelineEvent, CartItem
from .applications import Application
from .notifications import Notification
from .documents import DocumentSequence

__all__ = [
    'User',
    'Product', 'BulkPriceTier',
    'RestockRecord', 'RestockSubscription',
    'Order', 'OrderLine', 'OrderTimelineEvent', 'CartItem',
    'Application',
    'Notification',
    'DocumentSequence',
]
