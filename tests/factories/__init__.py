"""Test doubles and builders shared by the unit and integration suites."""

from tests.factories.providers import (
    FakeModelRouter,
    ScriptedProvider,
    StallingProvider,
    text_step,
    tool_step,
)

__all__ = ["FakeModelRouter", "ScriptedProvider", "StallingProvider", "text_step", "tool_step"]
