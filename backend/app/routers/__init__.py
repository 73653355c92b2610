"""Routers package."""

from .alerts import router as alerts_router
from .analytics import router as analytics_router
from .clients import router as clients_router
from .interactions import router as interactions_router
from .metrics import router as metrics_router
from .notification_rules import router as notification_rules_router
from .projects import router as projects_router
from .subscriptions import router as subscriptions_router
from .subscriptions import services_router as subscription_services_router

__all__ = [
    "alerts_router",
    "analytics_router",
    "clients_router",
    "interactions_router",
    "metrics_router",
    "notification_rules_router",
    "projects_router",
    "subscriptions_router",
    "subscription_services_router",
]
