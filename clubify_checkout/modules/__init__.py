from ._base import DataModel, ResourceRepository, validate_payload
from .cart import CartItemData, CartRepository
from .domains import DomainRepository
from .notifications import NotificationData, NotificationRepository
from .orders import OrderRepository
from .subscriptions import SubscriptionData, SubscriptionRepository
from .tenants import TenantData, TenantRepository
from .users import UserData, UserRepository
from .webhooks import WebhookData, WebhookRepository

__all__ = [
    "CartItemData",
    "CartRepository",
    "DataModel",
    "DomainRepository",
    "NotificationData",
    "NotificationRepository",
    "OrderRepository",
    "ResourceRepository",
    "SubscriptionData",
    "SubscriptionRepository",
    "TenantData",
    "TenantRepository",
    "UserData",
    "UserRepository",
    "WebhookData",
    "WebhookRepository",
    "validate_payload",
]
