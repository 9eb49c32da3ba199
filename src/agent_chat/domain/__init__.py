"""Domain models and exceptions."""

from agent_chat.domain.exceptions import (
    AppError,
    AuthError,
    ConfigurationError,
    ExternalError,
    HistoryStoreError,
    InvalidRequest,
    MissingCredential,
    ProviderError,
    ToolInputError,
    UnknownTool,
    ValidationError,
)
from agent_chat.domain.models import (
    AgentDefinition,
    ChatMessage,
    ConversationTurn,
    ToolDefinition,
)

__all__ = [
    # Exceptions
    "AppError",
    "AuthError",
    "ConfigurationError",
    "ExternalError",
    "HistoryStoreError",
    "InvalidRequest",
    "MissingCredential",
    "ProviderError",
    "ToolInputError",
    "UnknownTool",
    "ValidationError",
    # Models
    "AgentDefinition",
    "ChatMessage",
    "ConversationTurn",
    "ToolDefinition",
]
