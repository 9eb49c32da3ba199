"""
SQLModel table for persisted chat turns.

``id`` and ``created_at`` are assigned by the store. ``agent_id`` is a soft
reference to the agent configuration, not a foreign key: agents live in a
configuration file, not in the database.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Index, Text, func
from sqlmodel import Field, SQLModel


class ChatMessageRecord(SQLModel, table=True):
    """
    Persisted user or assistant message.

    Indexes:
        - owner_id, agent_id: history lookups per (owner, agent) pair
        - (owner_id, agent_id, created_at): ordered history scans
    """

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_owner_agent_created", "owner_id", "agent_id", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: str = Field(index=True, max_length=255)
    agent_id: str = Field(index=True, max_length=255)
    role: str = Field(max_length=16)
    content: str = Field(sa_column=Column(Text, nullable=False))
    extracted_text: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False),
    )
