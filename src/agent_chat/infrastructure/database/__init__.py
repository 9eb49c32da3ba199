from agent_chat.infrastructure.database.connection import DatabaseManager

__all__ = ["DatabaseManager"]
