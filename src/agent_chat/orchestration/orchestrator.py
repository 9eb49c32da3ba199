"""
Streaming chat orchestrator.

One turn runs as a producer task that drives the model provider and writes
events into a queue; ``stream`` drains that queue for the caller. Tokens are
forwarded as they arrive, tool calls are validated and executed between model
calls, and a completed turn is handed to the history side-channel without
waiting for it.

Turn lifecycle:

    INIT -> DISPATCHED -> STREAMING <-> TOOL_PENDING -> COMPLETED
                     \\-> ABORTED (cancel event or consumer gone)
                     \\-> FAILED  (provider or configuration error)
"""
import asyncio
import json
import time
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional

from agent_chat.agent.prompts import compose_prompt
from agent_chat.agent.registry import AgentRegistry
from agent_chat.auth.capabilities import filter_tools
from agent_chat.domain.exceptions import (
    AppError,
    InvalidRequest,
    ToolInputError,
    UnknownTool,
    error_payload,
)
from agent_chat.history.recorder import HistoryEntry, HistoryRecorder
from agent_chat.infrastructure.observability.context import log_context
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.infrastructure.observability.metrics import (
    ACTIVE_STREAMS,
    CHAT_TURNS,
    MODEL_STEPS,
    TIME_TO_FIRST_TOKEN,
    TOOL_EXECUTIONS,
    TURN_LATENCY,
)
from agent_chat.interfaces.provider import StepFinish, TextDelta, ToolCallRequest
from agent_chat.orchestration.events import (
    BaseEvent,
    ContentDeltaEvent,
    DoneEvent,
    ErrorEvent,
    ToolCallEvent,
    ToolResultEvent,
    TurnState,
)
from agent_chat.orchestration.turn import ChatTurnRequest, PreparedTurn
from agent_chat.providers.router import ModelRouter
from agent_chat.tools.registry import ToolRegistry

logger = get_logger(__name__)

STEP_BUDGET_EXHAUSTED = "step-budget-exhausted"

_ABORT = object()


class ChatOrchestrator:
    """
    Drives chat turns from request to terminal state.

    Args:
        agent_registry: Read-only agent configuration
        model_router: Resolves an agent's model id to a provider
        tool_registry: Tool executors
        recorder: History side-channel (None disables persistence)
        queue_size: Bound on events buffered between producer and consumer

    Example:
        >>> turn = orchestrator.prepare(ChatTurnRequest(messages=[...], agent_id="chat-assistant"))
        >>> async for event in orchestrator.stream(turn):
        ...     print(event.type)
    """

    def __init__(
        self,
        agent_registry: AgentRegistry,
        model_router: ModelRouter,
        tool_registry: ToolRegistry,
        recorder: Optional[HistoryRecorder] = None,
        queue_size: int = 256,
    ):
        self.agent_registry = agent_registry
        self.model_router = model_router
        self.tool_registry = tool_registry
        self.recorder = recorder
        self._queue_size = queue_size

    # ------------------------------------------------------------------
    # INIT
    # ------------------------------------------------------------------

    def prepare(self, request: ChatTurnRequest) -> PreparedTurn:
        """
        Resolve everything a turn needs before any output is produced.

        Raises:
            InvalidRequest: If the message list is empty or does not end with a user message
            ConfigurationError: If the model provider cannot be configured
        """
        if not request.messages:
            raise InvalidRequest(
                "At least one message is required",
                details={"field": "messages"},
            )
        last = request.messages[-1]
        if last.role != "user":
            raise InvalidRequest(
                "The last message must come from the user",
                details={"field": "messages", "role": last.role},
            )
        if not last.content.strip():
            raise InvalidRequest(
                "The last message must not be empty",
                details={"field": "messages"},
            )

        agent = self.agent_registry.resolve_for(request.agent_id, request.is_authenticated)
        with log_context(agent_id=agent.id):
            provider = self.model_router.resolve(agent.model_id)
            tools = filter_tools(agent, request.is_authenticated, self.tool_registry)
            tool_specs = self.tool_registry.to_openai_format(
                tools, self.agent_registry.get_agent_tools(agent)
            )

        turn = PreparedTurn(
            request=request,
            agent=agent,
            provider=provider,
            system_prompt=compose_prompt(agent, request.is_authenticated),
            tools=tools,
            tool_specs=tool_specs,
        )
        logger.info(
            "Chat turn prepared",
            turn_id=turn.turn_id,
            agent_id=agent.id,
            requested_agent_id=request.agent_id,
            model_family=provider.family.value,
            model=provider.model_name,
            message_count=len(request.messages),
            tools=list(tools),
        )
        return turn

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    async def stream(
        self,
        turn: PreparedTurn,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[BaseEvent]:
        """
        Run a prepared turn and yield its events in order.

        Setting ``cancel_event`` or closing this iterator aborts the turn:
        the producer is cancelled, the upstream stream is closed, nothing
        further is emitted and nothing is persisted.
        """
        if turn.state is not TurnState.INIT:
            raise RuntimeError(f"Turn {turn.turn_id} has already been streamed")

        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        producer = asyncio.create_task(self._produce(turn, queue), name=f"chat-turn-{turn.turn_id}")
        terminal_seen = False
        ACTIVE_STREAMS.inc()
        try:
            while True:
                item = await self._next_item(queue, cancel_event)
                if item is _ABORT:
                    break
                if isinstance(item, DoneEvent):
                    if cancel_event is not None and cancel_event.is_set():
                        break
                    terminal_seen = True
                    self._complete(turn)
                    yield item
                    break
                if isinstance(item, ErrorEvent):
                    terminal_seen = True
                    yield item
                    break
                yield item
        finally:
            ACTIVE_STREAMS.dec()
            if terminal_seen:
                await asyncio.gather(producer, return_exceptions=True)
            else:
                if not turn.state.is_terminal:
                    turn.transition(TurnState.ABORTED)
                    self._finish_metrics(turn)
                    logger.info("Chat turn aborted", turn_id=turn.turn_id, agent_id=turn.agent.id, steps=turn.steps)
                producer.cancel()
                await asyncio.gather(producer, return_exceptions=True)

    @staticmethod
    async def _next_item(queue: asyncio.Queue, cancel_event: Optional[asyncio.Event]) -> Any:
        if cancel_event is None:
            return await queue.get()
        if cancel_event.is_set():
            return _ABORT

        getter = asyncio.ensure_future(queue.get())
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({getter, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for fut in (getter, waiter):
                if not fut.done():
                    fut.cancel()
        if waiter in done:
            return _ABORT
        return getter.result()

    def _complete(self, turn: PreparedTurn) -> None:
        turn.transition(TurnState.COMPLETED)
        self._finish_metrics(turn)
        logger.info(
            "Chat turn completed",
            turn_id=turn.turn_id,
            agent_id=turn.agent.id,
            steps=turn.steps,
            finish_reason=turn.finish_reason,
        )

        owner_id = turn.owner_id
        if self.recorder is None or owner_id is None:
            return
        user_message = turn.last_user_message
        self.recorder.schedule(
            owner_id,
            turn.agent.id,
            [
                HistoryEntry("user", user_message.content, user_message.extracted_text),
                HistoryEntry("assistant", turn.text),
            ],
        )

    def _finish_metrics(self, turn: PreparedTurn) -> None:
        CHAT_TURNS.labels(
            agent_id=turn.agent.id,
            model_family=turn.provider.family.value,
            state=turn.state.value,
        ).inc()
        TURN_LATENCY.labels(agent_id=turn.agent.id).observe(time.perf_counter() - turn.started_at)

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    async def _produce(self, turn: PreparedTurn, queue: asyncio.Queue) -> None:
        with log_context(
            turn_id=turn.turn_id,
            agent_id=turn.agent.id,
            model_family=turn.provider.family.value,
        ):
            try:
                await self._drive(turn, queue)
            except asyncio.CancelledError:
                if not turn.state.is_terminal:
                    turn.transition(TurnState.ABORTED)
                raise
            except AppError as e:
                turn.transition(TurnState.FAILED)
                self._finish_metrics(turn)
                logger.error(
                    "Chat turn failed",
                    error_code=e.error_code.value,
                    error=e.message,
                    steps=turn.steps,
                )
                await queue.put(ErrorEvent(error=error_payload(e)))
            except Exception as e:
                turn.transition(TurnState.FAILED)
                self._finish_metrics(turn)
                logger.exception("Chat turn failed unexpectedly", error_type=type(e).__name__)
                await queue.put(ErrorEvent(error=error_payload(AppError())))

    async def _drive(self, turn: PreparedTurn, queue: asyncio.Queue) -> None:
        messages = turn.model_messages()
        family = turn.provider.family.value
        first_token_pending = True

        for _ in range(turn.agent.max_steps):
            turn.transition(TurnState.DISPATCHED)
            turn.steps += 1
            MODEL_STEPS.labels(model_family=family).inc()

            step_text: list[str] = []
            tool_calls: list[ToolCallRequest] = []
            finish_reason = "stop"

            async with aclosing(
                turn.provider.stream(
                    messages,
                    tools=turn.tool_specs or None,
                    temperature=turn.agent.temperature,
                )
            ) as events:
                async for event in events:
                    if isinstance(event, TextDelta):
                        if not event.text:
                            continue
                        turn.transition(TurnState.STREAMING)
                        if first_token_pending:
                            first_token_pending = False
                            TIME_TO_FIRST_TOKEN.labels(model_family=family).observe(
                                time.perf_counter() - turn.started_at
                            )
                        step_text.append(event.text)
                        turn.text_parts.append(event.text)
                        await queue.put(ContentDeltaEvent(delta=event.text))
                    elif isinstance(event, ToolCallRequest):
                        tool_calls.append(event)
                    elif isinstance(event, StepFinish):
                        finish_reason = event.finish_reason

            if not tool_calls:
                turn.finish_reason = finish_reason
                await queue.put(self._done_event(turn))
                return

            turn.transition(TurnState.TOOL_PENDING)
            messages.append(
                {
                    "role": "assistant",
                    "content": "".join(step_text) or None,
                    "tool_calls": [
                        {
                            "id": call.call_id,
                            "type": "function",
                            "function": {"name": call.name, "arguments": call.arguments},
                        }
                        for call in tool_calls
                    ],
                }
            )
            for call in tool_calls:
                output = await self._run_tool(turn, call, queue)
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.call_id,
                        "content": json.dumps(output, default=str),
                    }
                )

        logger.info("Step budget exhausted", max_steps=turn.agent.max_steps)
        turn.finish_reason = STEP_BUDGET_EXHAUSTED
        await queue.put(self._done_event(turn))

    @staticmethod
    def _done_event(turn: PreparedTurn) -> DoneEvent:
        return DoneEvent(
            finish_reason=turn.finish_reason or "stop",
            agent_id=turn.agent.id,
            steps=turn.steps,
            text=turn.text,
        )

    async def _run_tool(
        self,
        turn: PreparedTurn,
        call: ToolCallRequest,
        queue: asyncio.Queue,
    ) -> Any:
        """Validate and execute one tool call; returns the output fed back to the model."""
        try:
            arguments: Any = json.loads(call.arguments) if call.arguments.strip() else {}
            decode_error: Optional[ToolInputError] = None
        except json.JSONDecodeError as e:
            arguments = call.arguments
            decode_error = ToolInputError(
                call.name,
                "Tool arguments are not valid JSON",
                errors=[{"loc": [], "msg": str(e), "type": "json_invalid"}],
            )

        await queue.put(ToolCallEvent(tool_call_id=call.call_id, tool_name=call.name, input=arguments))

        tool = turn.tools.get(call.name)
        try:
            if tool is None:
                raise UnknownTool(call.name)
            if decode_error is not None:
                raise decode_error
            validated = self.tool_registry.validate(call.name, arguments)
        except ToolInputError as e:
            logger.warning(
                "Tool call rejected",
                tool=call.name,
                error_code=e.error_code.value,
                errors=len(e.errors),
            )
            TOOL_EXECUTIONS.labels(tool_name=call.name, status="rejected").inc()
            output = {"error": error_payload(e)}
            await queue.put(
                ToolResultEvent(tool_call_id=call.call_id, tool_name=call.name, output=output, is_error=True)
            )
            return output

        try:
            output = await tool.execute(validated)
        except Exception as e:
            logger.exception("Tool execution failed", tool=call.name)
            TOOL_EXECUTIONS.labels(tool_name=call.name, status="error").inc()
            output = {"error": error_payload(AppError(f"Tool '{call.name}' failed: {type(e).__name__}"))}
            await queue.put(
                ToolResultEvent(tool_call_id=call.call_id, tool_name=call.name, output=output, is_error=True)
            )
            return output

        TOOL_EXECUTIONS.labels(tool_name=call.name, status="success").inc()
        await queue.put(ToolResultEvent(tool_call_id=call.call_id, tool_name=call.name, output=output))
        return output
