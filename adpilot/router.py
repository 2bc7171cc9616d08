from dataclasses import dataclass
from enum import StrEnum

from adpilot.conversation.confirmation import ConfirmationGate
from adpilot.store import SessionStore
from adpilot.workflows.models import UserSession, WorkflowKind


class CommandName(StrEnum):
    PRODUCTS = "products"
    PRODUCT = "product"
    IMAGE = "image"
    VIDEO = "video"
    CAMPAIGNS = "campaigns"
    CREATE_AD = "createad"
    PAUSE = "pause"
    RESUME = "resume"
    BUDGET = "budget"
    UNKNOWN = "unknown"


class NavigationKind(StrEnum):
    BACK = "back"
    CANCEL = "cancel"
    MENU = "menu"


NAVIGATION_ALIASES: dict[str, NavigationKind] = {
    "back": NavigationKind.BACK,
    "/back": NavigationKind.BACK,
    "prev": NavigationKind.BACK,
    "previous": NavigationKind.BACK,
    "cancel": NavigationKind.CANCEL,
    "/cancel": NavigationKind.CANCEL,
    "stop": NavigationKind.CANCEL,
    "exit": NavigationKind.CANCEL,
    "quit": NavigationKind.CANCEL,
    "menu": NavigationKind.MENU,
    "/menu": NavigationKind.MENU,
    "main menu": NavigationKind.MENU,
    "home": NavigationKind.MENU,
    # Greetings open the menu too
    "hi": NavigationKind.MENU,
    "hello": NavigationKind.MENU,
    "start": NavigationKind.MENU,
    "help": NavigationKind.MENU,
    "/start": NavigationKind.MENU,
    "/help": NavigationKind.MENU,
}

_NAVIGATION_COMMANDS = {alias.lstrip("/") for alias in NAVIGATION_ALIASES if alias.startswith("/")}


@dataclass(frozen=True)
class ParsedCommand:
    name: CommandName
    raw_name: str
    args: tuple[str, ...] = ()

    @property
    def arg_text(self) -> str:
        return " ".join(self.args)


def parse_command(text: str) -> ParsedCommand | None:
    """Parse ``/name arg...``. Navigation names are left to the navigation check."""
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None
    parts = stripped[1:].split()
    raw_name = parts[0].lower() if parts else ""
    if raw_name in _NAVIGATION_COMMANDS:
        return None
    try:
        name = CommandName(raw_name)
    except ValueError:
        name = CommandName.UNKNOWN
    return ParsedCommand(name=name, raw_name=raw_name, args=tuple(parts[1:]))


def parse_navigation(text: str) -> NavigationKind | None:
    return NAVIGATION_ALIASES.get(" ".join(text.lower().split()))


@dataclass(frozen=True)
class ConfirmationReply:
    text: str


@dataclass(frozen=True)
class StructuredCommand:
    command: ParsedCommand


@dataclass(frozen=True)
class Navigation:
    kind: NavigationKind


@dataclass(frozen=True)
class ResumeWorkflow:
    text: str
    workflow: WorkflowKind


@dataclass(frozen=True)
class FreeformIntent:
    text: str


type RouterDecision = ConfirmationReply | StructuredCommand | Navigation | ResumeWorkflow | FreeformIntent


class CommandRouter:
    """Decides how one inbound message is interpreted. Never mutates state."""

    def __init__(self, gate: ConfirmationGate, sessions: SessionStore[UserSession]):
        self.gate = gate
        self.sessions = sessions

    async def route(self, user_id: str, text: str) -> RouterDecision:
        if await self.gate.pending(user_id) is not None:
            return ConfirmationReply(text=text)

        if (command := parse_command(text)) is not None:
            return StructuredCommand(command=command)

        if (kind := parse_navigation(text)) is not None:
            return Navigation(kind=kind)

        session = await self.sessions.get(user_id)
        if session is not None:
            return ResumeWorkflow(text=text, workflow=session.workflow)

        return FreeformIntent(text=text)
