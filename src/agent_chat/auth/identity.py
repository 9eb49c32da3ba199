"""
Caller identity.

Identity is established upstream by an external session provider; this
service only reads the owner id it forwards in a trusted header.
"""
from dataclasses import dataclass
from typing import Optional
from starlette.requests import Request

from agent_chat.config.settings import get_settings


@dataclass(frozen=True)
class Identity:
    """Current caller: owner id (when signed in) and the authenticated flag."""
    owner_id: Optional[str] = None
    is_authenticated: bool = False

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls()

    @classmethod
    def user(cls, owner_id: str) -> "Identity":
        return cls(owner_id=owner_id, is_authenticated=True)


def identity_from_request(request: Request, header: Optional[str] = None) -> Identity:
    """Read the forwarded identity header; blank or missing means anonymous."""
    header = header or get_settings().identity_header
    owner_id = (request.headers.get(header) or "").strip()
    if not owner_id:
        return Identity.anonymous()
    return Identity.user(owner_id)
