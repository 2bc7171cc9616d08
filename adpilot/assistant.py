import asyncio
import time
import weakref

import structlog

from adpilot.channel import Channel
from adpilot.commands import CommandDispatcher
from adpilot.conversation.confirmation import Cancelled, ConfirmationGate, Confirmed, NoPending
from adpilot.conversation.memory import ConversationMemory
from adpilot.conversation.models import Role
from adpilot.errors import CollaboratorError
from adpilot.events import TurnHandled
from adpilot.integrations.base import Transport
from adpilot.intents import FreeformHandler
from adpilot.logging import get_logger
from adpilot.messages import Content, text_of
from adpilot.router import (
    CommandRouter,
    ConfirmationReply,
    FreeformIntent,
    Navigation,
    NavigationKind,
    ResumeWorkflow,
    RouterDecision,
    StructuredCommand,
)
from adpilot.workflows.base import StepResult
from adpilot.workflows.engine import WorkflowEngine

_logger = get_logger(__name__)


class Assistant:
    """One inbound message in, replies out.

    Turns of the same user run one at a time; different users never wait on
    each other. A user's lock lives only while one of their turns holds it
    or waits on it.
    """

    def __init__(
        self,
        router: CommandRouter,
        engine: WorkflowEngine,
        dispatcher: CommandDispatcher,
        freeform: FreeformHandler,
        gate: ConfirmationGate,
        memory: ConversationMemory,
        channel: Channel,
        transport: Transport | None = None,
    ):
        self.router = router
        self.engine = engine
        self.dispatcher = dispatcher
        self.freeform = freeform
        self.gate = gate
        self.memory = memory
        self.channel = channel
        self.transport = transport
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    async def handle(self, user_id: str, text: str) -> list[Content]:
        started = time.monotonic()
        if (lock := self._locks.get(user_id)) is None:
            lock = self._locks[user_id] = asyncio.Lock()
        with structlog.contextvars.bound_contextvars(user_id=user_id):
            async with lock:
                decision = await self.router.route(user_id, text)
                _logger.info("Turn routed to %s", type(decision).__name__)
                result = await self._dispatch(user_id, decision)

                await self.memory.record(user_id, Role.USER, text)
                for message in result.messages:
                    await self.memory.record(user_id, Role.ASSISTANT, text_of(message))

                await self._deliver(user_id, result.messages)

        self.channel.publish(
            TurnHandled(
                user_id=user_id,
                decision=type(decision).__name__,
                replies=len(result.messages),
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        )
        return result.messages

    async def _dispatch(self, user_id: str, decision: RouterDecision) -> StepResult:
        match decision:
            case ConfirmationReply(text=text):
                return await self._confirmation(user_id, text)
            case StructuredCommand(command=command):
                return await self.dispatcher.dispatch(user_id, command)
            case Navigation(kind=NavigationKind.BACK):
                return await self.engine.back(user_id)
            case Navigation(kind=NavigationKind.CANCEL):
                return await self.engine.cancel(user_id)
            case Navigation(kind=NavigationKind.MENU):
                return await self.engine.menu(user_id)
            case ResumeWorkflow(text=text):
                return await self.engine.advance(user_id, text)
            case FreeformIntent(text=text):
                return await self.freeform.handle(user_id, text)

    async def _confirmation(self, user_id: str, text: str) -> StepResult:
        match await self.gate.resolve(user_id, text):
            case Confirmed() as confirmed:
                return await self.dispatcher.execute_confirmed(user_id, confirmed)
            case Cancelled(command=command):
                return StepResult().say(f"❌ /{command} cancelled.")
            case NoPending():
                return await self.freeform.handle(user_id, text)

    async def _deliver(self, user_id: str, messages: list[Content]) -> None:
        if self.transport is None:
            return
        for message in messages:
            try:
                await self.transport.send(user_id, message)
            except CollaboratorError as e:
                _logger.warning("Delivery to %s via %s failed: %s", user_id, self.transport.channel, e)
                return
