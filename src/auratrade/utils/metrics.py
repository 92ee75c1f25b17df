from prometheus_client import Counter, Histogram, Gauge

# Latency of HTTP requests by method and endpoint
REQUEST_LATENCY = Histogram(
    "api_request_latency_seconds",
    "Latency of API requests in seconds",
    ["method", "endpoint"],
)

# Total HTTP requests processed
REQUEST_COUNT = Counter(
    "api_request_count",
    "Total API requests",
    ["method", "endpoint", "http_status"],
)

# Client websocket connections currently attached to the bridge
BRIDGE_CONNECTIONS = Gauge(
    "bridge_client_connections",
    "Client websocket connections open on the feed bridge",
)

# Messages relayed to clients by kind (tick/snapshot/status)
BRIDGE_MESSAGES = Counter(
    "bridge_messages_total",
    "Messages relayed from upstream feeds to clients",
    ["kind"],
)

# Client frames dropped because they could not be understood
BRIDGE_DROPPED = Counter(
    "bridge_dropped_frames_total",
    "Malformed client frames dropped by the bridge",
)

# Upstream subscriptions opened (including replacements)
UPSTREAM_SUBSCRIPTIONS = Counter(
    "upstream_subscriptions_total",
    "Upstream feed sessions opened",
)

# Websocket connection failures by feed
WS_FAILURES = Counter(
    "ws_failures_total",
    "Total websocket connection failures",
    ["adapter"],
)

# Analysis calls made to the analyst collaborator
ANALYSIS_CALLS = Counter(
    "analysis_calls_total",
    "Analysis requests sent to the analyst",
)

# Analysis failures by error kind
ANALYSIS_ERRORS = Counter(
    "analysis_errors_total",
    "Analysis requests that ended in an error",
    ["kind"],
)

# Analysis cycles skipped because buffered context was insufficient
ANALYSIS_SKIPS = Counter(
    "analysis_skips_total",
    "Analysis cycles skipped for lack of market context",
)

# Latency of analysis round trips
ANALYSIS_LATENCY = Histogram(
    "analysis_latency_seconds",
    "Latency of analyst round trips in seconds",
)

# Simulated trades confirmed by the user
TRADES_CONFIRMED = Counter(
    "trades_confirmed_total",
    "Simulated trades confirmed",
    ["side"],
)

# Net P/L of the simulated trade log
TRADING_PNL = Gauge(
    "trading_pnl",
    "Net profit and loss of the simulated trade log",
)

# Messages that could not be delivered to a bridge client
BRIDGE_SEND_FAILURES = Counter(
    "bridge_send_failures_total",
    "Relay messages that failed to reach the client socket",
)
