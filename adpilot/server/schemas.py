from pydantic import BaseModel, ConfigDict, Field

# --- WhatsApp Cloud API webhook payload (only the fields we read) ---


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TextBody(_Payload):
    body: str = ""


class InboundMessage(_Payload):
    id: str = ""
    from_: str = Field(alias="from")
    type: str
    text: TextBody | None = None


class StatusUpdate(_Payload):
    id: str
    status: str


class ChangeValue(_Payload):
    messages: list[InboundMessage] = Field(default_factory=list)
    statuses: list[StatusUpdate] = Field(default_factory=list)


class Change(_Payload):
    field: str
    value: ChangeValue


class Entry(_Payload):
    changes: list[Change] = Field(default_factory=list)


class WebhookPayload(_Payload):
    object: str
    entry: list[Entry] = Field(default_factory=list)

    def text_messages(self) -> list[InboundMessage]:
        return [
            message
            for entry in self.entry
            for change in entry.changes
            if change.field == "messages"
            for message in change.value.messages
            if message.type == "text" and message.text and message.text.body.strip()
        ]
