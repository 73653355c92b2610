"""Service layer encapsulating business logic for API routers."""

from .alerts import AlertService
from .analytics import AnalyticsService, AnalyticsServiceError
from .clients import ClientService, ClientServiceError, DuplicateClientEmailError
from .interactions import InteractionService, InteractionServiceError
from .notification_rules import NotificationRuleError, NotificationRuleService
from .notification_scheduler import NotificationScheduler, read_interval_minutes
from .notifications import NotificationService, RuleEvaluationSummary
from .projects import ProjectService, ProjectServiceError, is_project_overdue
from .scheduler_monitor import JOB_NOTIFICATION_RULES, SchedulerMonitor
from .subscriptions import (
    OrphanedSubscriptionError,
    SubscriptionAggregator,
    SubscriptionManager,
    SubscriptionServiceError,
)

__all__ = [
    "AlertService",
    "AnalyticsService",
    "AnalyticsServiceError",
    "ClientService",
    "ClientServiceError",
    "DuplicateClientEmailError",
    "InteractionService",
    "InteractionServiceError",
    "NotificationRuleError",
    "NotificationRuleService",
    "NotificationScheduler",
    "read_interval_minutes",
    "NotificationService",
    "RuleEvaluationSummary",
    "ProjectService",
    "ProjectServiceError",
    "is_project_overdue",
    "JOB_NOTIFICATION_RULES",
    "SchedulerMonitor",
    "OrphanedSubscriptionError",
    "SubscriptionAggregator",
    "SubscriptionManager",
    "SubscriptionServiceError",
]
