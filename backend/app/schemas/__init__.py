"""Expose Pydantic schemas for convenient imports."""

from .alert import AlertListResponse, AlertRead
from .analytics import AnalyticsCreate, AnalyticsRead
from .client import ClientBase, ClientCreate, ClientRead, ClientUpdate, ClientWithStats
from .interaction import InteractionCreate, InteractionRead
from .metrics import SchedulerHealthResponse, SchedulerJobStatus
from .notification_rule import (
    NotificationRuleCreate,
    NotificationRuleRead,
    NotificationRuleUpdate,
    RuleCondition,
    RuleEvaluationResult,
)
from .project import (
    ProjectBase,
    ProjectCostCreate,
    ProjectCostRead,
    ProjectCostUpdate,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectUpdate,
    ProjectWithClient,
)
from .subscription import (
    PaymentCreate,
    PaymentRead,
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionServiceCreate,
    SubscriptionServiceRead,
    SubscriptionServiceUpdate,
    SubscriptionSummary,
    SubscriptionUpdate,
    SubscriptionWithClient,
    SubscriptionWithDetails,
)

__all__ = [
    "AlertListResponse",
    "AlertRead",
    "AnalyticsCreate",
    "AnalyticsRead",
    "ClientBase",
    "ClientCreate",
    "ClientRead",
    "ClientUpdate",
    "ClientWithStats",
    "InteractionCreate",
    "InteractionRead",
    "SchedulerHealthResponse",
    "SchedulerJobStatus",
    "NotificationRuleCreate",
    "NotificationRuleRead",
    "NotificationRuleUpdate",
    "RuleCondition",
    "RuleEvaluationResult",
    "ProjectBase",
    "ProjectCostCreate",
    "ProjectCostRead",
    "ProjectCostUpdate",
    "ProjectCreate",
    "ProjectDetail",
    "ProjectRead",
    "ProjectUpdate",
    "ProjectWithClient",
    "PaymentCreate",
    "PaymentRead",
    "SubscriptionCreate",
    "SubscriptionRead",
    "SubscriptionServiceCreate",
    "SubscriptionServiceRead",
    "SubscriptionServiceUpdate",
    "SubscriptionSummary",
    "SubscriptionUpdate",
    "SubscriptionWithClient",
    "SubscriptionWithDetails",
]
