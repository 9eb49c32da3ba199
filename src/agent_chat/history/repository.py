"""Storage access for persisted chat turns."""
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agent_chat.history.models import ChatMessageRecord


class ChatMessageRepository:
    """
    Repository for ChatMessageRecord.

    Example:
        >>> async with db.session() as session:
        ...     repo = ChatMessageRepository(session)
        ...     await repo.add(owner_id="u1", agent_id="chat-assistant", role="user", content="hi")
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(
        self,
        *,
        owner_id: str,
        agent_id: str,
        role: str,
        content: str,
        extracted_text: Optional[str] = None,
    ) -> ChatMessageRecord:
        """Insert one record and load its store-assigned id and timestamp."""
        record = ChatMessageRecord(
            owner_id=owner_id,
            agent_id=agent_id,
            role=role,
            content=content,
            extracted_text=extracted_text,
        )
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def list_recent(
        self,
        owner_id: str,
        agent_id: str,
        limit: int,
    ) -> Sequence[ChatMessageRecord]:
        """
        The most recent ``limit`` records for an (owner, agent) pair, oldest first.

        Ordering is by store-assigned (created_at, id); the id breaks ties
        between records written within the same timestamp.
        """
        query = (
            select(ChatMessageRecord)
            .where(
                ChatMessageRecord.owner_id == owner_id,
                ChatMessageRecord.agent_id == agent_id,
            )
            .order_by(ChatMessageRecord.created_at.desc(), ChatMessageRecord.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        records = list(result.scalars().all())
        records.reverse()
        return records
