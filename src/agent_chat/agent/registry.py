"""
Agent registry loaded from the declarative agent configuration.

The configuration is a JSON document with three keys:

    {
      "defaultAgent": "chat-assistant",
      "agents": [{"id": ..., "name": ..., "model": ..., ...}],
      "tools": {"analyzeFile": {"description": ...}}
    }

The registry is read-only after construction and is passed explicitly to
whatever needs it; there is no module-level instance.
"""
import json
from pathlib import Path
from typing import Any, Mapping
from pydantic import ValidationError as PydanticValidationError

from agent_chat.domain.exceptions import ConfigurationError
from agent_chat.domain.models import AgentDefinition, ToolDefinition
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.tools.registry import ToolRegistry

logger = get_logger(__name__)


class AgentRegistry:
    """
    Registry of agent and tool definitions.

    Example:
        >>> registry = AgentRegistry.from_file(settings.agents_config_path)
        >>> agent = registry.resolve("no-such-agent")  # default agent
        >>> registry.get_available(is_authenticated=False)
    """

    def __init__(
        self,
        agents: list[AgentDefinition],
        tools: Mapping[str, ToolDefinition],
        default_agent_id: str,
        tool_registry: ToolRegistry | None = None,
    ):
        self._agents: dict[str, AgentDefinition] = {}
        for agent in agents:
            if agent.id in self._agents:
                raise ConfigurationError(
                    f"Duplicate agent id '{agent.id}'",
                    details={"agent_id": agent.id},
                )
            self._agents[agent.id] = agent

        self._tools: dict[str, ToolDefinition] = dict(tools)

        for agent in self._agents.values():
            unknown = [tool_id for tool_id in agent.tool_ids if tool_id not in self._tools]
            if unknown:
                raise ConfigurationError(
                    f"Agent '{agent.id}' references unknown tools: {', '.join(unknown)}",
                    details={"agent_id": agent.id, "tools": unknown},
                )

        if tool_registry is not None:
            missing = [tool_id for tool_id in self._tools if tool_id not in tool_registry]
            if missing:
                raise ConfigurationError(
                    f"No executor registered for tools: {', '.join(missing)}",
                    details={"tools": missing, "registered": tool_registry.list_tool_names()},
                )

        if default_agent_id not in self._agents:
            raise ConfigurationError(
                f"Default agent '{default_agent_id}' is not defined",
                details={"default_agent": default_agent_id, "agents": list(self._agents)},
            )
        if self._agents[default_agent_id].requires_auth:
            # The default is the fallback for anonymous callers
            raise ConfigurationError(
                f"Default agent '{default_agent_id}' must not require authentication",
                details={"default_agent": default_agent_id},
            )
        self._default = default_agent_id

        logger.info(
            "Agent registry loaded",
            agents=list(self._agents),
            tools=list(self._tools),
            default_agent=self._default,
        )

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        tool_registry: ToolRegistry | None = None,
    ) -> "AgentRegistry":
        """
        Build a registry from a parsed configuration mapping.

        Raises:
            ConfigurationError: If the configuration is malformed or inconsistent
        """
        try:
            agents = [AgentDefinition.model_validate(entry) for entry in config.get("agents", [])]
            tools = {
                tool_id: ToolDefinition.model_validate({"id": tool_id, **(spec or {})})
                for tool_id, spec in (config.get("tools") or {}).items()
            }
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Agent configuration is invalid",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e
        except (AttributeError, TypeError) as e:
            raise ConfigurationError(f"Agent configuration is malformed: {e}") from e

        default_agent_id = config.get("defaultAgent")
        if not default_agent_id:
            raise ConfigurationError("Agent configuration has no defaultAgent")

        return cls(agents, tools, default_agent_id, tool_registry=tool_registry)

    @classmethod
    def from_file(
        cls,
        path: Path | str,
        tool_registry: ToolRegistry | None = None,
    ) -> "AgentRegistry":
        """
        Load the registry from a JSON configuration file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        try:
            config = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Agent configuration file not found: {path}",
                details={"path": str(path)},
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Agent configuration file could not be read: {e}",
                details={"path": str(path)},
            ) from e
        if not isinstance(config, dict):
            raise ConfigurationError(
                "Agent configuration must be a JSON object",
                details={"path": str(path)},
            )
        return cls.from_config(config, tool_registry=tool_registry)

    def get_agent(self, agent_id: str | None) -> AgentDefinition | None:
        """
        Get an agent by id.

        Returns:
            Agent definition or None if not found
        """
        if agent_id is None:
            return None
        return self._agents.get(agent_id)

    def get_default(self) -> AgentDefinition:
        """Get the default agent. Never fails after construction."""
        return self._agents[self._default]

    def resolve(self, agent_id: str | None) -> AgentDefinition:
        """
        Look up an agent, falling back to the default for unknown ids.

        Example:
            >>> registry.resolve("does-not-exist").id
            'chat-assistant'
        """
        agent = self.get_agent(agent_id)
        if agent is None:
            if agent_id is not None:
                logger.info("Unknown agent requested, using default", requested=agent_id, default=self._default)
            return self.get_default()
        return agent

    def resolve_for(self, agent_id: str | None, is_authenticated: bool) -> AgentDefinition:
        """
        Like ``resolve``, but an agent that requires authentication is replaced
        by the default agent for unauthenticated callers.
        """
        agent = self.resolve(agent_id)
        if agent.requires_auth and not is_authenticated:
            logger.info("Agent requires authentication, using default", requested=agent.id, default=self._default)
            return self.get_default()
        return agent

    def get_available(self, is_authenticated: bool) -> list[AgentDefinition]:
        """Agents the caller may use, in configuration order."""
        return [
            agent
            for agent in self._agents.values()
            if not agent.requires_auth or is_authenticated
        ]

    def get_tool(self, tool_id: str) -> ToolDefinition | None:
        return self._tools.get(tool_id)

    def get_agent_tools(self, agent: AgentDefinition) -> dict[str, ToolDefinition]:
        """Configured tool definitions of an agent, in the agent's order."""
        return {tool_id: self.get_tool(tool_id) for tool_id in agent.tool_ids}

    def list_agents(self) -> list[str]:
        """
        List all agent ids.

        Example:
            >>> registry.list_agents()
            ['chat-assistant', 'compliance-expert', 'document-analyst']
        """
        return list(self._agents.keys())

    @property
    def default_agent_id(self) -> str:
        return self._default
