from .base import CrudResource, Resource
from .blogs import Blogs
from .collections import Collections, CustomCollections, SmartCollections
from .customers import Customers
from .fulfillments import Fulfillments
from .inventory import Inventory
from .metafields import Metafields
from .orders import Orders
from .pages import Pages
from .price_rules import PriceRules
from .products import Products
from .webhooks import Webhooks

__all__ = [
    "Resource",
    "CrudResource",
    "Products",
    "Orders",
    "Customers",
    "Collections",
    "CustomCollections",
    "SmartCollections",
    "Inventory",
    "PriceRules",
    "Fulfillments",
    "Metafields",
    "Pages",
    "Blogs",
    "Webhooks",
]
