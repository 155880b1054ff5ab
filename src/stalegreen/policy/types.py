from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Protocol, Sequence


class Tristate(Enum):
    yes = 1
    no = 2
    unknown = 3

    @classmethod
    def from_optional(cls, value: Optional[bool]) -> Tristate:
        if value is None:
            return cls.unknown
        return cls.yes if value else cls.no


class Action(Enum):
    noop = "noop"
    request_retest = "request_retest"


class UnknownStateError(Exception):
    """A tri-state query that the decision depends on has no answer yet."""

    context: Optional[str]

    def __init__(self, *args, context: Optional[str] = None):
        self.context = context
        super().__init__(*args)


@dataclass(frozen=True)
class TrackingComment:
    author: Optional[str]
    body: str
    created_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class RetestEvaluation:
    action: Action
    result: str
    context: str | None = None
    age: timedelta | None = None
    error: str | None = None


class PullRequestSnapshot(Protocol):
    """Read access to one issue or pull request, plus the two writes the
    retest policy needs.

    Every tri-state query distinguishes "no" from "not determined yet"; a
    ``None`` status time means the time is not known.
    """

    number: int

    @property
    def is_pull_request(self) -> bool: ...

    def has_label(self, name: str) -> bool: ...

    def is_mergeable(self) -> Tristate: ...

    def is_status_success(self, contexts: Sequence[str]) -> Tristate: ...

    def status_time(self, context: str) -> Optional[datetime]: ...

    async def post_comment(self, body: str) -> None: ...

    async def wait_for_pending(self, contexts: Sequence[str]) -> bool: ...
