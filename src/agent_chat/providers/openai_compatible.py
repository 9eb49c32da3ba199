"""
Streaming provider over the OpenAI chat completions API.

Serves both model families: OpenAI directly, Gemini through Google's
OpenAI-compatible endpoint. Tool call fragments are accumulated by index and
emitted whole once the model call ends.
"""
from __future__ import annotations
import json
import uuid
from typing import Any, AsyncIterator

from openai import AsyncOpenAI, OpenAIError

from agent_chat.domain.exceptions import ProviderError
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.interfaces.provider import (
    IModelProvider,
    ModelFamily,
    ProviderEvent,
    StepFinish,
    TextDelta,
    ToolCallRequest,
)

logger = get_logger(__name__)


class OpenAICompatibleProvider(IModelProvider):
    """
    Provider bound to one AsyncOpenAI client and one model name.

    Args:
        client: Client for the family endpoint (shared, owned by the router)
        family: Model family the client talks to
        model_name: Effective model name sent upstream
    """

    def __init__(self, client: AsyncOpenAI, family: ModelFamily, model_name: str):
        self._client = client
        self.family = family
        self.model_name = model_name

    def __repr__(self) -> str:
        return f"OpenAICompatibleProvider(family={self.family.value}, model={self.model_name})"

    def _error(self, e: Exception) -> ProviderError:
        return ProviderError(
            f"{self.family.value} model call failed: {e}",
            details={"model_family": self.family.value, "model": self.model_name},
        )

    async def stream(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> AsyncIterator[ProviderEvent]:
        api_params: dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "stream": True,
        }
        if temperature is not None:
            api_params["temperature"] = temperature
        if tools:
            api_params["tools"] = tools
            api_params["tool_choice"] = "auto"

        try:
            response = await self._client.chat.completions.create(**api_params)
        except OpenAIError as e:
            raise self._error(e) from e

        tool_calls_accum: list[dict[str, str]] = []
        finish_reason = "stop"
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta

                if delta is not None and delta.content:
                    yield TextDelta(text=delta.content)

                if delta is not None and delta.tool_calls:
                    for tool_call_delta in delta.tool_calls:
                        idx = tool_call_delta.index or 0

                        while len(tool_calls_accum) <= idx:
                            tool_calls_accum.append({"id": "", "name": "", "arguments": ""})

                        if tool_call_delta.id:
                            tool_calls_accum[idx]["id"] = tool_call_delta.id
                        if tool_call_delta.function:
                            if tool_call_delta.function.name:
                                tool_calls_accum[idx]["name"] = tool_call_delta.function.name
                            if tool_call_delta.function.arguments:
                                tool_calls_accum[idx]["arguments"] += tool_call_delta.function.arguments

                if choice.finish_reason:
                    finish_reason = choice.finish_reason
        except OpenAIError as e:
            raise self._error(e) from e
        finally:
            # Releases the upstream HTTP stream, including on cancellation
            await response.close()

        for tc in tool_calls_accum:
            yield ToolCallRequest(
                # Gemini's compatible endpoint may omit call ids
                call_id=tc["id"] or f"call_{uuid.uuid4().hex[:24]}",
                name=tc["name"],
                arguments=tc["arguments"] or "{}",
            )
        yield StepFinish(finish_reason=finish_reason)

    async def complete_json(
        self,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
    ) -> dict[str, Any]:
        api_params: dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "response_format": {"type": "json_object"},
        }
        if temperature is not None:
            api_params["temperature"] = temperature

        try:
            response = await self._client.chat.completions.create(**api_params)
        except OpenAIError as e:
            raise self._error(e) from e

        content = response.choices[0].message.content if response.choices else None
        try:
            payload = json.loads(content or "")
        except json.JSONDecodeError as e:
            logger.warning("Model returned non-JSON content", model=self.model_name)
            raise self._error(e) from e
        if not isinstance(payload, dict):
            raise ProviderError(
                "Model returned JSON that is not an object",
                details={"model_family": self.family.value, "model": self.model_name},
            )
        return payload
