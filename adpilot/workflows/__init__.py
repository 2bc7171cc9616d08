from adpilot.workflows.base import StepResult, Workflow, WorkflowDeps
from adpilot.workflows.engine import WorkflowEngine
from adpilot.workflows.models import (
    CampaignDraft,
    MediaDraft,
    MenuData,
    ProductBrowse,
    UserSession,
    WorkflowData,
    WorkflowKind,
)

__all__ = [
    "CampaignDraft",
    "MediaDraft",
    "MenuData",
    "ProductBrowse",
    "StepResult",
    "UserSession",
    "Workflow",
    "WorkflowData",
    "WorkflowDeps",
    "WorkflowEngine",
    "WorkflowKind",
]
