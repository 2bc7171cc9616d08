from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from adpilot.integrations.base import Transport
from adpilot.messages import Content, ImageMessage, TextMessage, VideoMessage


class ConsoleTransport(Transport):
    """Prints replies to the terminal; generated media is written to ``media_dir``."""

    channel = "console"

    def __init__(self, console: Console | None = None, media_dir: Path | None = None):
        self.console = console or Console()
        self.media_dir = media_dir
        self._saved = 0

    async def send(self, user_id: str, content: Content) -> None:
        match content:
            case TextMessage(text=text):
                self.console.print(Panel(text, border_style="cyan"))
            case ImageMessage(data=data, mime_type=mime_type, caption=caption) | VideoMessage(
                data=data, mime_type=mime_type, caption=caption
            ):
                where = self._save(data, mime_type)
                label = f"[dim]{mime_type}, {len(data)} bytes{f' -> {where}' if where else ''}[/dim]"
                self.console.print(Panel(f"{caption}\n{label}".strip(), border_style="magenta"))

    def _save(self, data: bytes, mime_type: str) -> Path | None:
        if self.media_dir is None:
            return None
        self.media_dir.mkdir(parents=True, exist_ok=True)
        self._saved += 1
        path = self.media_dir / f"asset_{self._saved}.{mime_type.split('/')[-1]}"
        path.write_bytes(data)
        return path
