from agent_chat.api.routes import agents, analysis, chat, health, history

__all__ = ["agents", "analysis", "chat", "health", "history"]
