from adpilot.conversation.confirmation import Cancelled, ConfirmationGate, ConfirmationOutcome, Confirmed, NoPending
from adpilot.conversation.memory import ConversationMemory
from adpilot.conversation.models import ConversationContext, HistoryEntry, PendingConfirmation, Role

__all__ = [
    "Cancelled",
    "ConfirmationGate",
    "ConfirmationOutcome",
    "Confirmed",
    "ConversationContext",
    "ConversationMemory",
    "HistoryEntry",
    "NoPending",
    "PendingConfirmation",
    "Role",
]
