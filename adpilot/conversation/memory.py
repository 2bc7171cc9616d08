import re
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from adpilot.catalog.models import Product
from adpilot.catalog.resolution import Match, resolve
from adpilot.constants import CONTEXT_IDLE_SECONDS, HISTORY_LIMIT
from adpilot.conversation.models import ConversationContext, HistoryEntry, Role
from adpilot.logging import get_logger
from adpilot.store import InMemoryStore, SessionStore

_logger = get_logger(__name__)

ORDINAL_RE = re.compile(r"^(?:number|no\.?|item|option|#)?\s*#?\s*(\d+)[.)]?$", re.IGNORECASE)
PRONOUN_RE = re.compile(
    r"^(?:(?:use|pick|select|choose|take)\s+)?(?:it|this|that)(?:\s+one)?[.!]?$",
    re.IGNORECASE,
)
QUOTED_RE = re.compile(r"[\"'“”‘’]([^\"'“”‘’]+)[\"'“”‘’]")
NAMED_RE = re.compile(r"\b(?:called|named|product)\s+(.+)$", re.IGNORECASE)


def parse_ordinal(text: str) -> int | None:
    """1-based ordinal from "3", "#3", "number 3", "item 3" or "option 3"."""
    m = ORDINAL_RE.match(text.strip())
    return int(m.group(1)) if m else None


def is_pronoun(text: str) -> bool:
    return bool(PRONOUN_RE.match(text.strip()))


def extract_name(text: str) -> str | None:
    if m := QUOTED_RE.search(text):
        return m.group(1).strip() or None
    if m := NAMED_RE.search(text):
        return m.group(1).strip() or None
    return None


class ConversationMemory:
    """Short-term per-user context: recent history plus the entities the user can refer back to.

    Contexts are independent of workflow sessions. A context idle for longer
    than ``idle_seconds`` is dropped the next time it is touched.
    """

    def __init__(
        self,
        store: SessionStore[ConversationContext] | None = None,
        history_limit: int = HISTORY_LIMIT,
        idle_seconds: int = CONTEXT_IDLE_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store or InMemoryStore[ConversationContext]()
        self.history_limit = history_limit
        self.idle_seconds = idle_seconds
        self._clock = clock or (lambda: datetime.now(UTC))

    async def _load(self, user_id: str) -> ConversationContext:
        now = self._clock()
        ctx = await self.store.get(user_id)
        if ctx is not None and (now - ctx.last_access).total_seconds() > self.idle_seconds:
            _logger.debug("Context for %s expired, purging", user_id)
            await self.store.delete(user_id)
            ctx = None
        if ctx is None:
            ctx = ConversationContext(last_access=now)
        return ctx

    async def _save(self, user_id: str, ctx: ConversationContext) -> None:
        ctx.last_access = self._clock()
        await self.store.set(user_id, ctx)

    async def get(self, user_id: str) -> ConversationContext:
        return await self._load(user_id)

    async def record(self, user_id: str, role: Role, text: str) -> None:
        ctx = await self._load(user_id)
        ctx.history.append(HistoryEntry(role=role, text=text, timestamp=self._clock()))
        while len(ctx.history) > self.history_limit:
            ctx.history.popleft()
        await self._save(user_id, ctx)

    async def recent_history(self, user_id: str, max_messages: int) -> list[HistoryEntry]:
        if max_messages <= 0:
            return []
        ctx = await self._load(user_id)
        return list(ctx.history)[-max_messages:]

    async def set_last_entity(self, user_id: str, entity: Product) -> None:
        ctx = await self._load(user_id)
        ctx.last_entity = entity
        await self._save(user_id, ctx)

    async def set_shown_list(self, user_id: str, entities: Sequence[Product]) -> None:
        """A newly shown list supersedes any unanswered disambiguation."""
        ctx = await self._load(user_id)
        ctx.last_shown_list = list(entities)
        ctx.pending_candidates = None
        await self._save(user_id, ctx)

    async def set_pending_candidates(self, user_id: str, candidates: Sequence[Product]) -> None:
        ctx = await self._load(user_id)
        ctx.pending_candidates = list(candidates) or None
        await self._save(user_id, ctx)

    async def clear_pending(self, user_id: str) -> None:
        ctx = await self._load(user_id)
        ctx.pending_candidates = None
        await self._save(user_id, ctx)

    async def resolve_referent(
        self,
        user_id: str,
        text: str,
        pool: Sequence[Product] | None = None,
    ) -> Product | None:
        ctx = await self._load(user_id)

        index = parse_ordinal(text)
        if index is not None:
            for entities in (ctx.pending_candidates, ctx.last_shown_list):
                if entities and 1 <= index <= len(entities):
                    entity = entities[index - 1]
                    ctx.last_entity = entity
                    ctx.pending_candidates = None
                    await self._save(user_id, ctx)
                    return entity
            return None

        if is_pronoun(text):
            return ctx.last_entity

        name = extract_name(text)
        if name and pool:
            result = resolve(name, pool)
            if isinstance(result, Match):
                ctx.last_entity = result.entity
                await self._save(user_id, ctx)
                return result.entity
        return None
