"""Streaming chat orchestration over configured AI agents."""

__version__ = "0.1.0"
