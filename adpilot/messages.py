from dataclasses import dataclass


@dataclass(frozen=True)
class TextMessage:
    text: str


@dataclass(frozen=True)
class ImageMessage:
    data: bytes
    mime_type: str = "image/png"
    caption: str = ""


@dataclass(frozen=True)
class VideoMessage:
    data: bytes
    mime_type: str = "video/mp4"
    caption: str = ""


type Content = TextMessage | ImageMessage | VideoMessage


def text_of(content: Content) -> str:
    match content:
        case TextMessage(text=text):
            return text
        case ImageMessage(caption=caption):
            return f"[image] {caption}".rstrip()
        case VideoMessage(caption=caption):
            return f"[video] {caption}".rstrip()


def format_money(amount: float) -> str:
    """``$40``, ``$12.5``, ``$1,500``: grouped, without trailing zeros."""
    return "$" + f"{amount:,.2f}".rstrip("0").rstrip(".")
