"""
History side-channel.

Persistence is best-effort and out of band: it never delays or fails the
response it belongs to. Every failure ends here, as a log entry and a
``history_writes_total`` sample; nothing is raised to callers.
"""
import asyncio
from typing import Iterable, NamedTuple, Optional

from agent_chat.domain.models import ConversationTurn
from agent_chat.history.models import ChatMessageRecord
from agent_chat.history.repository import ChatMessageRepository
from agent_chat.infrastructure.database.connection import DatabaseManager
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.infrastructure.observability.metrics import HISTORY_WRITES

logger = get_logger(__name__)

PERSISTED_ROLES = ("user", "assistant")


class HistoryEntry(NamedTuple):
    """A turn waiting to be recorded."""
    role: str
    content: str
    extracted_text: Optional[str] = None


def _to_turn(record: ChatMessageRecord) -> ConversationTurn:
    return ConversationTurn(
        id=record.id,
        role=record.role,
        content=record.content,
        owner_id=record.owner_id,
        agent_id=record.agent_id,
        extracted_text=record.extracted_text,
        created_at=record.created_at,
    )


class HistoryRecorder:
    """
    Best-effort persistence of completed turns.

    Args:
        db: Connected database manager, or None to run without a store
        default_limit: History size returned when the caller gives none
        max_limit: Upper bound on a requested history size

    Example:
        >>> recorder = HistoryRecorder(db)
        >>> recorder.schedule("user-1", "chat-assistant", [
        ...     HistoryEntry("user", "hello"),
        ...     HistoryEntry("assistant", "hi there"),
        ... ])
        >>> await recorder.drain()
    """

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        default_limit: int = 50,
        max_limit: int = 200,
    ):
        self._db = db
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._tasks: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return self._db is not None and self._db.is_connected

    @property
    def pending(self) -> int:
        """Scheduled writes that have not finished yet."""
        return len(self._tasks)

    async def record(
        self,
        role: str,
        content: str,
        agent_id: str,
        owner_id: Optional[str],
        extracted_text: Optional[str] = None,
    ) -> Optional[ConversationTurn]:
        """
        Persist one turn.

        Returns:
            The stored turn, or None when there is no owner, no store, or the
            write failed. Never raises.
        """
        if not owner_id:
            logger.debug("History write skipped: no authenticated owner", agent_id=agent_id)
            HISTORY_WRITES.labels(status="skipped").inc()
            return None
        if role not in PERSISTED_ROLES:
            logger.warning("History write skipped: unsupported role", role=role, agent_id=agent_id)
            HISTORY_WRITES.labels(status="skipped").inc()
            return None
        if not self.enabled:
            logger.debug("History write skipped: no history store", agent_id=agent_id)
            HISTORY_WRITES.labels(status="skipped").inc()
            return None

        try:
            async with self._db.session() as session:
                record = await ChatMessageRepository(session).add(
                    owner_id=owner_id,
                    agent_id=agent_id,
                    role=role,
                    content=content,
                    extracted_text=extracted_text,
                )
                turn = _to_turn(record)
        except Exception as e:
            logger.warning(
                "History write failed",
                agent_id=agent_id,
                role=role,
                error=str(e),
                error_type=type(e).__name__,
            )
            HISTORY_WRITES.labels(status="failed").inc()
            return None

        HISTORY_WRITES.labels(status="stored").inc()
        return turn

    def schedule(
        self,
        owner_id: Optional[str],
        agent_id: str,
        entries: Iterable[HistoryEntry],
    ) -> Optional[asyncio.Task]:
        """
        Record entries in order on a detached task.

        The caller does not wait for the task. It is kept referenced until it
        finishes so it cannot be garbage collected mid-write.
        """
        entries = list(entries)
        if not owner_id or not entries:
            return None

        task = asyncio.create_task(
            self._record_all(owner_id, agent_id, entries),
            name=f"history-write-{agent_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _record_all(self, owner_id: str, agent_id: str, entries: list[HistoryEntry]) -> None:
        # Sequential so the user turn is stored before the assistant turn
        for entry in entries:
            await self.record(
                entry.role,
                entry.content,
                agent_id=agent_id,
                owner_id=owner_id,
                extracted_text=entry.extracted_text,
            )

    async def fetch_history(
        self,
        owner_id: Optional[str],
        agent_id: str,
        limit: Optional[int] = None,
    ) -> list[ConversationTurn]:
        """
        Most recent turns for an (owner, agent) pair, oldest first.

        Returns an empty list when there is no owner, no store, or the read
        fails. Never raises.
        """
        if not owner_id or not self.enabled:
            return []
        limit = self._default_limit if limit is None else min(limit, self._max_limit)
        if limit <= 0:
            return []

        try:
            async with self._db.session() as session:
                records = await ChatMessageRepository(session).list_recent(owner_id, agent_id, limit)
                return [_to_turn(record) for record in records]
        except Exception as e:
            logger.warning(
                "History read failed",
                agent_id=agent_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
