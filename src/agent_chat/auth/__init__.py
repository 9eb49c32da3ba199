"""Identity and capability gating."""

from agent_chat.auth.capabilities import filter_tools, is_agent_available
from agent_chat.auth.identity import Identity, identity_from_request

__all__ = [
    "Identity",
    "filter_tools",
    "identity_from_request",
    "is_agent_available",
]
