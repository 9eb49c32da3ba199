"""
Prometheus metrics.

Add new metrics following this pattern.
"""
from prometheus_client import Counter, Histogram, Gauge


# Request metrics
REQUEST_COUNT = Counter(
    "agent_chat_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

# Turn metrics
CHAT_TURNS = Counter(
    "chat_turns_total",
    "Chat turns by terminal state",
    ["agent_id", "model_family", "state"],
)

TURN_LATENCY = Histogram(
    "chat_turn_latency_seconds",
    "Chat turn latency from dispatch to terminal state",
    ["agent_id"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

TIME_TO_FIRST_TOKEN = Histogram(
    "chat_time_to_first_token_seconds",
    "Time from dispatch to the first content token",
    ["model_family"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

MODEL_STEPS = Counter(
    "chat_model_steps_total",
    "Model calls made while serving chat turns",
    ["model_family"],
)

# Tool metrics
TOOL_EXECUTIONS = Counter(
    "tool_executions_total",
    "Total tool executions",
    ["tool_name", "status"],
)

# History side-channel
HISTORY_WRITES = Counter(
    "history_writes_total",
    "History record attempts by outcome",
    ["status"],
)

# Active connections
ACTIVE_STREAMS = Gauge(
    "active_streams",
    "Number of active streaming connections",
)
