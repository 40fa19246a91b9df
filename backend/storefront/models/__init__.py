from .catalog import Category, Brand, Product, ProductPrice, ProductInventory
from .customers import Profile, Address
from .cart import CartItem
from .orders import Order, OrderItem, OrderSequence
from .sync import SyncLog
from .settings import SystemSetting
from .engagement import Review, Coupon, Wishlist, WishlistItem

__all__ = [
    'Category', 'Brand', 'Product', 'ProductPrice', 'ProductInventory',
    'Profile', 'Address',
    'CartItem',
    'Order', 'OrderItem', 'OrderSequence',
    'SyncLog',
    'SystemSetting',
    'Review', 'Coupon', 'Wishlist', 'WishlistItem',
]
