from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from stalegreen.policy import Tristate

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class FakePullRequest:
    def __init__(
        self,
        *,
        number: int = 42,
        is_pull_request: bool = True,
        labels: Sequence[str] = ("lgtm",),
        mergeable: Optional[bool] = True,
        states: Optional[Dict[str, str]] = None,
        times: Optional[Dict[str, Optional[datetime]]] = None,
        wait_result: bool = True,
        on_wait: Optional[Callable[["FakePullRequest"], None]] = None,
        post_error: Optional[Exception] = None,
        wait_error: Optional[Exception] = None,
    ):
        self.number = number
        self._is_pull_request = is_pull_request
        self.labels = set(labels)
        self.mergeable = mergeable
        self.states = states
        self.times = dict(times or {})
        self.wait_result = wait_result
        self.on_wait = on_wait
        self.post_error = post_error
        self.wait_error = wait_error
        self.posted: List[str] = []
        self.wait_calls: List[List[str]] = []

    @property
    def is_pull_request(self) -> bool:
        return self._is_pull_request

    def has_label(self, name: str) -> bool:
        return name in self.labels

    def is_mergeable(self) -> Tristate:
        return Tristate.from_optional(self.mergeable)

    def is_status_success(self, contexts: Sequence[str]) -> Tristate:
        if self.states is None:
            return Tristate.unknown
        return Tristate.from_optional(
            all(self.states.get(c) == "success" for c in contexts)
        )

    def status_time(self, context: str) -> Optional[datetime]:
        return self.times.get(context)

    async def post_comment(self, body: str) -> None:
        if self.post_error is not None:
            raise self.post_error
        self.posted.append(body)

    async def wait_for_pending(self, contexts: Sequence[str]) -> bool:
        self.wait_calls.append(list(contexts))
        if self.wait_error is not None:
            raise self.wait_error
        if self.on_wait is not None:
            self.on_wait(self)
        return self.wait_result


def green(*contexts: str) -> Dict[str, str]:
    return {c: "success" for c in contexts}


def _hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def hours_ago():
    return _hours_ago


@pytest.fixture
def make_pr():
    def make(**kwargs) -> FakePullRequest:
        kwargs.setdefault("states", green("ci/build", "ci/test"))
        kwargs.setdefault(
            "times", {"ci/build": _hours_ago(2), "ci/test": _hours_ago(2)}
        )
        return FakePullRequest(**kwargs)

    return make
