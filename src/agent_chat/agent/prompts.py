"""System prompt selection."""
from agent_chat.domain.models import AgentDefinition


def compose_prompt(agent: AgentDefinition, is_authenticated: bool) -> str:
    """
    Return the system prompt for a turn.

    The authenticated variant is used only when the caller is authenticated
    and the agent defines one.
    """
    if is_authenticated and agent.authenticated_system_prompt:
        return agent.authenticated_system_prompt
    return agent.system_prompt
