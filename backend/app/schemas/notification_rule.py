"""Schemas for notification rule definitions and evaluation results."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RuleCondition(BaseModel):
    """Structured rule condition.

    Only ``type`` selects behaviour; ``field``, ``operator`` and ``value``
    describe the rule for humans and are kept for future generic evaluation.
    """

    type: str = Field(..., min_length=1, max_length=100)
    field: Optional[str] = None
    operator: Optional[str] = None
    value: Any = None
    entity_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("entityType", "entity_type"),
        serialization_alias="entityType",
    )

    model_config = ConfigDict(populate_by_name=True)


class NotificationRuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    condition: RuleCondition
    is_active: bool = True


class NotificationRuleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    condition: Optional[RuleCondition] = None
    is_active: Optional[bool] = None


class NotificationRuleRead(BaseModel):
    id: str
    name: str
    description: str
    condition: RuleCondition
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RuleEvaluationResult(BaseModel):
    """Outcome of one evaluation pass."""

    rules_checked: int = Field(..., ge=0)
    alerts_created: int = Field(..., ge=0)
    skipped_rules: list[str] = Field(default_factory=list)
    failed_rules: list[str] = Field(default_factory=list)
