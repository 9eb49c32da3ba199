"""Client session controller and transports."""

from agent_chat.session.client import ChatClient, ChatClientError, ChatTransport, InProcessTransport
from agent_chat.session.controller import ChatSessionController, DisplayMessage
from agent_chat.session.extraction import PlainTextExtractor, TextExtractor, UnsupportedFileType, Upload

__all__ = [
    "ChatClient",
    "ChatClientError",
    "ChatSessionController",
    "ChatTransport",
    "DisplayMessage",
    "InProcessTransport",
    "PlainTextExtractor",
    "TextExtractor",
    "UnsupportedFileType",
    "Upload",
]
