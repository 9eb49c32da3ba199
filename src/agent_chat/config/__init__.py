"""Configuration management for the agent chat service."""

from agent_chat.config.settings import DEFAULT_AGENTS_CONFIG, Settings, get_settings

__all__ = [
    "DEFAULT_AGENTS_CONFIG",
    "Settings",
    "get_settings",
]
