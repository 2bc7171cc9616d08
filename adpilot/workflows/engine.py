from datetime import UTC, datetime
from typing import Any

from adpilot.logging import get_logger
from adpilot.store import InMemoryStore, SessionStore
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult, Workflow, WorkflowDeps
from adpilot.workflows.campaign import CreateCampaignWorkflow
from adpilot.workflows.media import GenerateMediaWorkflow
from adpilot.workflows.menu import AnalyzePerformanceWorkflow, MainMenuWorkflow, ManageCampaignsWorkflow
from adpilot.workflows.models import UserSession, WorkflowKind
from adpilot.workflows.products import ManageProductsWorkflow

_logger = get_logger(__name__)

WORKFLOW_TYPES: tuple[type[Workflow], ...] = (
    MainMenuWorkflow,
    CreateCampaignWorkflow,
    GenerateMediaWorkflow,
    ManageCampaignsWorkflow,
    AnalyzePerformanceWorkflow,
    ManageProductsWorkflow,
)


class WorkflowEngine:
    """Drives per-user workflow sessions.

    Collaborator failures are handled inside the workflows, so every call here
    returns a StepResult the caller can deliver as-is.
    """

    def __init__(self, deps: WorkflowDeps, sessions: SessionStore[UserSession] | None = None):
        self.deps = deps
        self.sessions = sessions or InMemoryStore[UserSession]()
        self.workflows: dict[WorkflowKind, Workflow] = {wf.kind: wf(deps) for wf in WORKFLOW_TYPES}

    async def session(self, user_id: str) -> UserSession | None:
        return await self.sessions.get(user_id)

    async def _store(self, user_id: str, session: UserSession, result: StepResult) -> StepResult:
        if result.finished:
            await self.sessions.delete(user_id)
        else:
            session.last_activity = datetime.now(UTC)
            await self.sessions.set(user_id, session)

        if result.next_workflow is not None:
            result.extend(await self.start(user_id, result.next_workflow, **result.prefill))
        return result

    async def start(self, user_id: str, kind: WorkflowKind, **prefill: Any) -> StepResult:
        workflow = self.workflows[kind]
        session = UserSession(workflow=kind, step=workflow.first_step, data=workflow.new_data(**prefill))
        _logger.info("Starting %s for %s", kind, user_id)
        return await self._store(user_id, session, await workflow.begin(user_id, session))

    async def advance(self, user_id: str, text: str) -> StepResult:
        session = await self.sessions.get(user_id)
        if session is None:
            return await self.start(user_id, WorkflowKind.MAIN_MENU)
        workflow = self.workflows[session.workflow]
        result = await workflow.handle(user_id, session, text)
        _logger.debug("%s for %s now at step %d", session.workflow, user_id, session.step)
        return await self._store(user_id, session, result)

    async def back(self, user_id: str) -> StepResult:
        session = await self.sessions.get(user_id)
        if session is None or session.step <= 1:
            return StepResult().say(prompts.CANT_GO_BACK)
        session.step -= 1
        session.last_activity = datetime.now(UTC)
        await self.sessions.set(user_id, session)
        prompt = self.workflows[session.workflow].render(session)
        return StepResult().say(f"{prompts.GOING_BACK}\n\n{prompt}")

    async def cancel(self, user_id: str) -> StepResult:
        await self.sessions.delete(user_id)
        return StepResult().say(prompts.CANCELLED)

    async def menu(self, user_id: str) -> StepResult:
        await self.sessions.delete(user_id)
        return await self.start(user_id, WorkflowKind.MAIN_MENU)
