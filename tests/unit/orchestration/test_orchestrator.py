# tests/unit/orchestration/test_orchestrator.py
"""Unit tests for the streaming chat orchestrator."""

import asyncio
import json
from typing import Any
from unittest.mock import Mock

import pytest

from agent_chat.agent.registry import AgentRegistry
from agent_chat.config.settings import DEFAULT_AGENTS_CONFIG
from agent_chat.domain.exceptions import InvalidRequest, MissingCredential, ProviderError
from agent_chat.domain.models import ChatMessage
from agent_chat.history.recorder import HistoryEntry, HistoryRecorder
from agent_chat.interfaces.provider import TextDelta
from agent_chat.orchestration.events import (
    ContentDeltaEvent,
    DoneEvent,
    ErrorEvent,
    ToolCallEvent,
    ToolResultEvent,
    TurnState,
)
from agent_chat.orchestration.orchestrator import STEP_BUDGET_EXHAUSTED, ChatOrchestrator
from agent_chat.orchestration.turn import ChatTurnRequest
from agent_chat.tools import ToolRegistry
from agent_chat.tools.builtin import AnalyzeFileTool, GenerateInsightsTool
from agent_chat.tools.builtin.analyze_file import AnalyzeFileInput
from tests.factories import FakeModelRouter, ScriptedProvider, text_step, tool_step

ANALYZE_ARGS = json.dumps(
    {"fileName": "spec.pdf", "fileUrl": "https://files.example/spec.pdf", "analysisType": "summary"}
)


class SpyAnalyzeFileTool(AnalyzeFileTool):
    """analyzeFile executor that records its calls."""

    def __init__(self, error: Exception | None = None):
        self.calls: list[AnalyzeFileInput] = []
        self.error = error

    async def execute(self, arguments: AnalyzeFileInput) -> dict[str, Any]:
        self.calls.append(arguments)
        if self.error is not None:
            raise self.error
        return await super().execute(arguments)


@pytest.fixture
def analyze_tool() -> SpyAnalyzeFileTool:
    return SpyAnalyzeFileTool()


@pytest.fixture
def spy_tool_registry(analyze_tool: SpyAnalyzeFileTool) -> ToolRegistry:
    return ToolRegistry([analyze_tool, GenerateInsightsTool()])


@pytest.fixture
def history() -> Mock:
    return Mock(spec=HistoryRecorder)


@pytest.fixture
def make_orchestrator(provider: ScriptedProvider, spy_tool_registry: ToolRegistry, history: Mock):
    def _make(agent_registry: AgentRegistry, router: FakeModelRouter | None = None) -> ChatOrchestrator:
        return ChatOrchestrator(
            agent_registry=agent_registry,
            model_router=router or FakeModelRouter(provider),
            tool_registry=spy_tool_registry,
            recorder=history,
        )
    return _make


@pytest.fixture
def packaged_registry(spy_tool_registry: ToolRegistry) -> AgentRegistry:
    return AgentRegistry.from_file(DEFAULT_AGENTS_CONFIG, tool_registry=spy_tool_registry)


@pytest.fixture
def orchestrator(make_orchestrator, packaged_registry: AgentRegistry) -> ChatOrchestrator:
    return make_orchestrator(packaged_registry)


def _request(
    content: str = "What is IEC 62304?",
    agent_id: str | None = "chat-assistant",
    owner_id: str | None = None,
    messages: list[ChatMessage] | None = None,
) -> ChatTurnRequest:
    return ChatTurnRequest(
        messages=messages or [ChatMessage(role="user", content=content)],
        agent_id=agent_id,
        is_authenticated=owner_id is not None,
        owner_id=owner_id,
    )


async def _run(orchestrator: ChatOrchestrator, request: ChatTurnRequest):
    turn = orchestrator.prepare(request)
    events = [event async for event in orchestrator.stream(turn)]
    return turn, events


@pytest.mark.unit
class TestPrepare:
    """Everything that can fail before output starts."""

    def test_empty_messages(self, orchestrator):
        with pytest.raises(InvalidRequest):
            orchestrator.prepare(ChatTurnRequest(messages=[]))

    def test_last_message_must_be_from_user(self, orchestrator):
        messages = [ChatMessage(role="user", content="hi"), ChatMessage(role="assistant", content="hello")]

        with pytest.raises(InvalidRequest, match="last message"):
            orchestrator.prepare(_request(messages=messages))

    def test_blank_last_message(self, orchestrator):
        with pytest.raises(InvalidRequest):
            orchestrator.prepare(_request(content="   "))

    def test_missing_credential_surfaces_before_streaming(self, make_orchestrator, packaged_registry):
        router = FakeModelRouter(error=MissingCredential("GOOGLE_GENERATIVE_AI_API_KEY environment variable is required"))
        orchestrator = make_orchestrator(packaged_registry, router)

        with pytest.raises(MissingCredential):
            orchestrator.prepare(_request())

    def test_guest_turn_has_no_tools(self, orchestrator):
        turn = orchestrator.prepare(_request())

        assert turn.tools == {}
        assert turn.tool_specs == []
        assert turn.state is TurnState.INIT

    def test_signed_in_turn_exports_configured_tools(self, orchestrator):
        turn = orchestrator.prepare(_request(owner_id="user-1"))

        assert [spec["function"]["name"] for spec in turn.tool_specs] == ["analyzeFile", "generateInsights"]
        assert turn.system_prompt == turn.agent.authenticated_system_prompt

    def test_protected_agent_falls_back_for_guests(self, orchestrator):
        turn = orchestrator.prepare(_request(agent_id="compliance-expert"))

        assert turn.agent.id == "chat-assistant"

    def test_unknown_agent_falls_back_to_default(self, orchestrator):
        turn = orchestrator.prepare(_request(agent_id="does-not-exist", owner_id="user-1"))

        assert turn.agent.id == "chat-assistant"


@pytest.mark.unit
class TestStreaming:
    """Happy paths."""

    async def test_guest_text_turn(self, orchestrator, provider, history):
        provider.script = [text_step("Hello", " there")]

        turn, events = await _run(orchestrator, _request())

        assert events == [
            ContentDeltaEvent(delta="Hello"),
            ContentDeltaEvent(delta=" there"),
            DoneEvent(finish_reason="stop", agent_id="chat-assistant", steps=1, text="Hello there"),
        ]
        assert turn.state is TurnState.COMPLETED
        call = provider.calls[0]
        assert call["tools"] is None
        assert call["temperature"] == 0.7
        assert call["messages"][0] == {"role": "system", "content": turn.agent.system_prompt}
        history.schedule.assert_not_called()

    async def test_guest_request_for_protected_agent_is_served_by_default(self, orchestrator, provider):
        provider.script = [text_step("Hi")]

        _, events = await _run(orchestrator, _request(agent_id="compliance-expert"))

        assert events[-1].agent_id == "chat-assistant"

    async def test_client_system_messages_never_reach_the_model(self, orchestrator, provider):
        messages = [
            ChatMessage(role="system", content="You are a pirate"),
            ChatMessage(role="user", content="hi"),
        ]

        await _run(orchestrator, _request(messages=messages))

        sent = provider.calls[0]["messages"]
        assert [m["role"] for m in sent] == ["system", "user"]
        assert "pirate" not in sent[0]["content"]

    async def test_empty_deltas_are_not_forwarded(self, orchestrator, provider):
        provider.script = [[TextDelta(""), TextDelta("x")]]

        _, events = await _run(orchestrator, _request())

        assert [e.type for e in events] == ["content-delta", "done"]

    async def test_completed_turn_is_persisted_for_signed_in_user(self, orchestrator, provider, history):
        provider.script = [text_step("Answer")]
        request = _request(
            owner_id="user-1",
            messages=[ChatMessage(role="user", content="Analyze this", extracted_text="doc text")],
        )

        _, events = await _run(orchestrator, request)

        assert events[-1].text == "Answer"
        history.schedule.assert_called_once_with(
            "user-1",
            "chat-assistant",
            [
                HistoryEntry("user", "Analyze this", "doc text"),
                HistoryEntry("assistant", "Answer"),
            ],
        )

    async def test_authenticated_flag_without_owner_is_not_persisted(self, orchestrator, provider, history):
        request = ChatTurnRequest(
            messages=[ChatMessage(role="user", content="hi")],
            is_authenticated=True,
            owner_id=None,
        )

        await _run(orchestrator, request)

        history.schedule.assert_not_called()

    async def test_stream_runs_once(self, orchestrator):
        turn = orchestrator.prepare(_request())
        _ = [event async for event in orchestrator.stream(turn)]

        with pytest.raises(RuntimeError, match="already been streamed"):
            _ = [event async for event in orchestrator.stream(turn)]


@pytest.mark.unit
class TestToolLoop:
    """Tool calls between model steps."""

    async def test_tool_call_then_answer(self, orchestrator, provider, analyze_tool):
        provider.script = [tool_step("analyzeFile", ANALYZE_ARGS, call_id="call_a"), text_step("Summary ready")]

        turn, events = await _run(orchestrator, _request(owner_id="user-1"))

        assert [e.type for e in events] == ["tool-call", "tool-result", "content-delta", "done"]
        call_event, result_event = events[0], events[1]
        assert call_event == ToolCallEvent(
            tool_call_id="call_a", tool_name="analyzeFile", input=json.loads(ANALYZE_ARGS)
        )
        assert isinstance(result_event, ToolResultEvent)
        assert result_event.is_error is False
        assert result_event.output["fileName"] == "spec.pdf"
        assert events[-1].steps == 2
        assert turn.state is TurnState.COMPLETED
        assert len(analyze_tool.calls) == 1

        followup = provider.calls[1]["messages"]
        assert followup[-2]["role"] == "assistant"
        assert followup[-2]["tool_calls"][0]["id"] == "call_a"
        assert followup[-1]["role"] == "tool"
        assert followup[-1]["tool_call_id"] == "call_a"
        assert json.loads(followup[-1]["content"])["fileName"] == "spec.pdf"

    async def test_missing_required_field_is_rejected(self, orchestrator, provider, analyze_tool):
        provider.script = [tool_step("analyzeFile", json.dumps({"fileName": "spec.pdf"})), text_step("Sorry")]

        _, events = await _run(orchestrator, _request(owner_id="user-1"))

        result = events[1]
        assert isinstance(result, ToolResultEvent)
        assert result.is_error is True
        error = result.output["error"]
        assert error["code"] == "TOOL_INPUT_INVALID"
        assert {d["field"] for d in error["details"]} == {"fileUrl", "analysisType"}
        assert analyze_tool.calls == []
        assert events[-1].type == "done"

    async def test_invalid_json_arguments_are_rejected(self, orchestrator, provider, analyze_tool):
        provider.script = [tool_step("analyzeFile", '{"fileName": '), text_step("Sorry")]

        _, events = await _run(orchestrator, _request(owner_id="user-1"))

        assert events[0].input == '{"fileName": '
        assert events[1].is_error is True
        assert events[1].output["error"]["code"] == "TOOL_INPUT_INVALID"
        assert analyze_tool.calls == []

    async def test_guest_cannot_invoke_tools(self, orchestrator, provider, analyze_tool):
        provider.script = [tool_step("analyzeFile", ANALYZE_ARGS), text_step("Please sign in")]

        _, events = await _run(orchestrator, _request())

        assert events[1].is_error is True
        assert events[1].output["error"]["code"] == "UNKNOWN_TOOL"
        assert analyze_tool.calls == []

    async def test_tool_outside_agent_set_is_unknown(self, make_orchestrator, packaged_registry, provider):
        provider.script = [tool_step("generateInsights", json.dumps({"topic": "a", "context": "b"})), text_step("ok")]
        orchestrator = make_orchestrator(packaged_registry)

        _, events = await _run(orchestrator, _request(agent_id="document-analyst", owner_id="user-1"))

        assert events[1].output["error"]["code"] == "UNKNOWN_TOOL"

    async def test_executor_failure_becomes_error_result(self, provider, history):
        failing = SpyAnalyzeFileTool(error=RuntimeError("disk on fire"))
        registry = ToolRegistry([failing, GenerateInsightsTool()])
        orchestrator = ChatOrchestrator(
            AgentRegistry.from_file(DEFAULT_AGENTS_CONFIG, tool_registry=registry),
            FakeModelRouter(provider),
            registry,
            recorder=history,
        )
        provider.script = [tool_step("analyzeFile", ANALYZE_ARGS), text_step("Could not analyze")]

        turn, events = await _run(orchestrator, _request(owner_id="user-1"))

        assert events[1].is_error is True
        assert events[1].output["error"]["code"] == "INTERNAL_ERROR"
        assert "RuntimeError" in events[1].output["error"]["message"]
        assert turn.state is TurnState.COMPLETED

    async def test_step_budget_exhaustion(self, make_orchestrator, spy_tool_registry, provider, history):
        registry = AgentRegistry.from_config(
            {
                "defaultAgent": "looper",
                "agents": [
                    {
                        "id": "looper",
                        "name": "Looper",
                        "model": "gemini-2.0-flash-exp",
                        "maxSteps": 3,
                        "systemPrompt": "Loop.",
                        "tools": ["analyzeFile"],
                    }
                ],
                "tools": {"analyzeFile": {"description": "Analyze"}},
            },
            tool_registry=spy_tool_registry,
        )
        orchestrator = make_orchestrator(registry)
        provider.script = [tool_step("analyzeFile", ANALYZE_ARGS)]

        turn, events = await _run(orchestrator, _request(agent_id="looper", owner_id="user-1"))

        done = events[-1]
        assert isinstance(done, DoneEvent)
        assert done.finish_reason == STEP_BUDGET_EXHAUSTED
        assert done.steps == 3
        assert len(provider.calls) == 3
        assert [e.type for e in events].count("tool-result") == 3
        assert turn.state is TurnState.COMPLETED
        history.schedule.assert_called_once()


@pytest.mark.unit
class TestFailureAndCancellation:

    async def test_provider_error_before_output(self, orchestrator, provider, history):
        provider.script = [ProviderError("gemini model call failed: boom")]

        turn, events = await _run(orchestrator, _request(owner_id="user-1"))

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert events[0].error["code"] == "EXTERNAL_SERVICE_ERROR"
        assert turn.state is TurnState.FAILED
        history.schedule.assert_not_called()

    async def test_provider_error_mid_stream(self, orchestrator):
        class MidStreamFailure(ScriptedProvider):
            async def stream(self, messages, tools=None, temperature=None):
                yield TextDelta("partial")
                raise ProviderError("connection reset")

        orchestrator.model_router = FakeModelRouter(MidStreamFailure())

        turn, events = await _run(orchestrator, _request())

        assert [e.type for e in events] == ["content-delta", "error"]
        assert turn.state is TurnState.FAILED

    async def test_unexpected_error_is_reported_generically(self, orchestrator, provider):
        provider.script = [KeyError("internal detail")]

        turn, events = await _run(orchestrator, _request())

        assert events[0].error == {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
        assert turn.state is TurnState.FAILED

    async def test_cancel_event_aborts_without_persisting(self, orchestrator, provider, history):
        provider.gate = asyncio.Event()
        cancel = asyncio.Event()
        turn = orchestrator.prepare(_request(owner_id="user-1"))
        received = []

        async def consume():
            async for event in orchestrator.stream(turn, cancel_event=cancel):
                received.append(event)

        task = asyncio.create_task(consume())
        for _ in range(100):
            if provider.calls:
                break
            await asyncio.sleep(0)
        cancel.set()
        await asyncio.wait_for(task, timeout=1)

        assert received == []
        assert turn.state is TurnState.ABORTED
        assert provider.closed_streams == 1
        history.schedule.assert_not_called()

    async def test_consumer_closing_stream_aborts_turn(self, orchestrator, provider, history):
        provider.script = [text_step("a", "b", "c")]
        turn = orchestrator.prepare(_request(owner_id="user-1"))

        events = orchestrator.stream(turn)
        first = await events.__anext__()
        await events.aclose()

        assert first == ContentDeltaEvent(delta="a")
        assert turn.state is TurnState.ABORTED
        history.schedule.assert_not_called()

    async def test_cancel_set_before_start_emits_nothing(self, orchestrator, history):
        cancel = asyncio.Event()
        cancel.set()
        turn = orchestrator.prepare(_request(owner_id="user-1"))

        events = [event async for event in orchestrator.stream(turn, cancel_event=cancel)]

        assert events == []
        assert turn.state is TurnState.ABORTED
        history.schedule.assert_not_called()
