from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

provider_requests_total = Counter(
    "inkwell_provider_requests_total",
    "Total requests sent to AI providers",
    labelnames=["provider", "endpoint", "status"],
)

provider_request_latency_seconds = Histogram(
    "inkwell_provider_request_latency_seconds",
    "AI provider request latency (seconds)",
    buckets=[0.1, 0.3, 0.5, 1, 2, 5, 10, 30, 60, 120],
    labelnames=["provider", "endpoint"],
)

command_invocations_total = Counter(
    "inkwell_command_invocations_total",
    "Editor command invocations by outcome",
    labelnames=["command", "outcome"],
)

bridge_requests_total = Counter(
    "inkwell_bridge_requests_total",
    "Total HTTP requests handled by the command bridge",
    labelnames=["path", "status"],
)


def maybe_start_metrics(*, enable: bool, bind: str, port: int) -> None:
    if not enable:
        return
    start_http_server(port, addr=bind)
