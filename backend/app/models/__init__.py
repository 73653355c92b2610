"""Expose SQLAlchemy models for convenient imports."""

from .alert import Alert, AlertEntityType, AlertPriority, AlertType
from .analytics import AnalyticsSnapshot
from .client import Client, ClientStatus, UpsellPotential
from .interaction import Interaction, InteractionType
from .notification_rule import NotificationRule, RuleType
from .payment import Payment
from .project import Project, ProjectCost, ProjectStatus, TERMINAL_PROJECT_STATUSES
from .subscription import Subscription, SubscriptionService, SubscriptionStatus

__all__ = [
    "Alert",
    "AlertEntityType",
    "AlertPriority",
    "AlertType",
    "AnalyticsSnapshot",
    "Client",
    "ClientStatus",
    "UpsellPotential",
    "Interaction",
    "InteractionType",
    "NotificationRule",
    "RuleType",
    "Payment",
    "Project",
    "ProjectCost",
    "ProjectStatus",
    "TERMINAL_PROJECT_STATUSES",
    "Subscription",
    "SubscriptionService",
    "SubscriptionStatus",
]
