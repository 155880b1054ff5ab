from prometheus_client import Counter, CollectorRegistry, push_to_gateway

from stalegreen import config

evaluation_counter = Counter(
    "stalegreen_num_evaluations",
    "Number of retest evaluations by outcome",
    labelnames=["result"],
)

retest_counter = Counter(
    "stalegreen_num_retests_requested",
    "Number of retest comments posted",
    labelnames=["context"],
)

stale_comment_counter = Counter(
    "stalegreen_num_stale_comments",
    "Number of tracking comments classified stale",
    labelnames=["deleted"],
)

error_counter = Counter(
    "stalegreen_error_counter", "Total number of errors", labelnames=["context"]
)

push_registry = CollectorRegistry()

api_call_count = Counter(
    "stalegreen_num_api_calls",
    "Total number of GitHub API calls",
    labelnames=["endpoint"],
    registry=push_registry,
)

worker_pass_count = Counter(
    "stalegreen_num_worker_passes",
    "Number of completed worker passes",
    registry=push_registry,
)


def record_api_call(endpoint: str) -> None:
    api_call_count.labels(endpoint=endpoint).inc()


def push_metrics() -> bool:
    if config.PUSH_GATEWAY is None:
        return False
    push_to_gateway(config.PUSH_GATEWAY, job="stale-green-ci", registry=push_registry)
    return True
