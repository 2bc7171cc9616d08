class AdpilotError(Exception):
    """Base for errors the conversation core knows how to turn into a reply."""


class CollaboratorError(AdpilotError):
    """An external service (catalog, media, ads, text model, transport) failed.

    The message is shown to the operator verbatim, so adapters should keep it
    short and readable.
    """

    def __init__(self, service: str, message: str):
        super().__init__(message)
        self.service = service
        self.message = message

    def __str__(self) -> str:
        return self.message


class Unauthorized(AdpilotError):
    def __init__(self, user_id: str, command: str):
        super().__init__(f"User {user_id} is not allowed to run /{command}")
        self.user_id = user_id
        self.command = command
