from typing import Any

from adpilot.workflows import prompts
from adpilot.workflows.base import HintWorkflow, StepResult, Workflow
from adpilot.workflows.models import MenuData, UserSession, WorkflowKind
from adpilot.workflows.parsing import leading_number

MENU_KEYWORDS: tuple[tuple[WorkflowKind, tuple[str, ...]], ...] = (
    (WorkflowKind.CREATE_CAMPAIGN, ("create campaign", "new campaign")),
    (WorkflowKind.GENERATE_MEDIA, ("generate media", "create image", "create video", "image", "video")),
    (WorkflowKind.MANAGE_CAMPAIGNS, ("manage campaign", "campaigns")),
    (WorkflowKind.ANALYZE_PERFORMANCE, ("analyze", "performance", "stats")),
    (WorkflowKind.MANAGE_PRODUCTS, ("manage product", "product")),
)
MENU_NUMBERS = {i: kind for i, (kind, _) in enumerate(MENU_KEYWORDS, 1)}
QUICK_ACTIONS_NUMBER = 6


def menu_choice(text: str) -> WorkflowKind | None:
    number = leading_number(text)
    if number in MENU_NUMBERS:
        return MENU_NUMBERS[number]
    lower = text.lower()
    for kind, keywords in MENU_KEYWORDS:
        if any(k in lower for k in keywords):
            return kind
    return None


class MainMenuWorkflow(Workflow):
    kind = WorkflowKind.MAIN_MENU
    first_step = 0

    def new_data(self, **prefill: Any) -> MenuData:
        return MenuData()

    def render(self, session: UserSession) -> str:
        return prompts.MAIN_MENU

    async def handle(self, user_id: str, session: UserSession, text: str) -> StepResult:
        if leading_number(text) == QUICK_ACTIONS_NUMBER or "quick" in text.lower():
            return StepResult(finished=True).say(prompts.QUICK_ACTIONS)
        if (kind := menu_choice(text)) is not None:
            return StepResult(finished=True, next_workflow=kind)
        return StepResult().say(prompts.MENU_RETRY)


class ManageCampaignsWorkflow(HintWorkflow):
    kind = WorkflowKind.MANAGE_CAMPAIGNS
    hint = prompts.MANAGE_CAMPAIGNS_HINT


class AnalyzePerformanceWorkflow(HintWorkflow):
    kind = WorkflowKind.ANALYZE_PERFORMANCE
    hint = prompts.ANALYZE_PERFORMANCE_HINT
