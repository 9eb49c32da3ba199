"""
Capability gate: which agents and tools a caller may use.

Unauthenticated callers never receive tools, whatever the agent configuration
says, and never see agents that require authentication.
"""
from agent_chat.domain.models import AgentDefinition
from agent_chat.interfaces import ITool
from agent_chat.tools.registry import ToolRegistry


def is_agent_available(agent: AgentDefinition, is_authenticated: bool) -> bool:
    return is_authenticated or not agent.requires_auth


def filter_tools(
    agent: AgentDefinition,
    is_authenticated: bool,
    tool_registry: ToolRegistry,
) -> dict[str, ITool]:
    """
    Tool set granted for one turn.

    Returns:
        Mapping of tool id to executor, in the agent's configured order.
        Empty whenever ``is_authenticated`` is false.
    """
    if not is_authenticated:
        return {}
    granted: dict[str, ITool] = {}
    for tool_id in agent.tool_ids:
        tool = tool_registry.get(tool_id)
        if tool is not None:
            granted[tool_id] = tool
    return granted
