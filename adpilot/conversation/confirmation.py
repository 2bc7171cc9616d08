from collections.abc import Sequence
from dataclasses import dataclass, field

from adpilot.constants import DEFAULT_ACCEPT_TOKEN
from adpilot.conversation.models import PendingConfirmation
from adpilot.logging import get_logger
from adpilot.store import InMemoryStore, SessionStore

_logger = get_logger(__name__)


@dataclass(frozen=True)
class Confirmed:
    command: str
    args: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Cancelled:
    command: str


@dataclass(frozen=True)
class NoPending:
    pass


type ConfirmationOutcome = Confirmed | Cancelled | NoPending


class ConfirmationGate:
    """At most one pending confirmation per user.

    Any reply resolves it: the accept token (case-insensitive) confirms,
    everything else cancels. A new request replaces the outstanding one.
    """

    def __init__(
        self,
        store: SessionStore[PendingConfirmation] | None = None,
        accept_token: str = DEFAULT_ACCEPT_TOKEN,
    ):
        self.store = store or InMemoryStore[PendingConfirmation]()
        self.accept_token = accept_token

    async def pending(self, user_id: str) -> PendingConfirmation | None:
        return await self.store.get(user_id)

    async def request_confirmation(
        self, user_id: str, command: str, args: Sequence[str] = ()
    ) -> PendingConfirmation | None:
        """Store a new pending confirmation and return the one it displaced, if any."""
        displaced = await self.store.get(user_id)
        if displaced is not None:
            _logger.warning(
                "Pending confirmation %s for %s replaced by /%s",
                displaced.describe(),
                user_id,
                command,
            )
        await self.store.set(user_id, PendingConfirmation(command=command, args=list(args)))
        return displaced

    def is_affirmative(self, reply: str) -> bool:
        return reply.strip().casefold() == self.accept_token.casefold()

    async def resolve(self, user_id: str, reply: str) -> ConfirmationOutcome:
        pending = await self.store.get(user_id)
        if pending is None:
            return NoPending()
        await self.store.delete(user_id)
        if self.is_affirmative(reply):
            return Confirmed(command=pending.command, args=list(pending.args))
        return Cancelled(command=pending.command)
