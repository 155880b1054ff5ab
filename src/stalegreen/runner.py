from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Awaitable, Callable, Dict, List, Protocol, Sequence

from stalegreen.github import (
    GitHubPullRequest,
    InvalidConfig,
    get_config_from_repo,
    tracking_comment,
)
from stalegreen.github.api import API
from stalegreen.metric import error_counter, stale_comment_counter
from stalegreen.model import Config
from stalegreen.policy.types import (
    PullRequestSnapshot,
    RetestEvaluation,
    TrackingComment,
)

logger = logging.getLogger("stalegreen")


class Policy(Protocol):
    name: str

    async def munge(
        self, pr: PullRequestSnapshot, config: Config
    ) -> RetestEvaluation: ...

    def stale_comments(
        self,
        pr: PullRequestSnapshot,
        comments: Sequence[TrackingComment],
        config: Config,
    ) -> List[TrackingComment]: ...


@dataclass(frozen=True)
class PullRequestResult:
    number: int
    evaluations: Dict[str, RetestEvaluation] = field(default_factory=dict)
    stale_comments: List[int] = field(default_factory=list)
    error: str | None = None


class DryRunPullRequest:
    """Forwards reads to the wrapped snapshot and only logs the writes."""

    def __init__(self, pr: GitHubPullRequest):
        self._pr = pr

    def __getattr__(self, name):
        return getattr(self._pr, name)

    async def post_comment(self, body: str) -> None:
        logger.info("#%d: dry run, not posting comment: %r", self._pr.number, body)

    async def wait_for_pending(self, contexts: Sequence[str]) -> bool:
        return True

    async def delete_comment(self, comment_id: int) -> None:
        logger.info(
            "#%d: dry run, not deleting comment %d", self._pr.number, comment_id
        )


SnapshotFactory = Callable[[API, str, int], Awaitable[GitHubPullRequest]]


class PolicyRunner:
    """Runs an ordered list of policies against pull requests, one at a time."""

    def __init__(
        self,
        policies: Sequence[Policy],
        *,
        dry_run: bool = False,
        snapshot_factory: SnapshotFactory = GitHubPullRequest.load,
    ):
        self.policies = list(policies)
        self.dry_run = dry_run
        self.snapshot_factory = snapshot_factory

    async def process_repository(
        self, api: API, repo_url: str
    ) -> List[PullRequestResult]:
        try:
            config = await get_config_from_repo(api, repo_url)
        except InvalidConfig as e:
            error_counter.labels(context="config").inc()
            logger.error("Invalid config file at %s:\n%s", e.source_url, e)
            return []

        if config is None:
            logger.debug("No config file found on %s, skipping", repo_url)
            return []

        numbers = [pr.number async for pr in api.get_pulls(repo_url)]
        logger.info("Processing %d open PRs on %s", len(numbers), repo_url)

        return [
            await self.process_pull_request(api, repo_url, number, config)
            for number in numbers
        ]

    async def process_pull_request(
        self, api: API, repo_url: str, number: int, config: Config
    ) -> PullRequestResult:
        started = time.monotonic()
        try:
            result = await self._process_pull_request(api, repo_url, number, config)
        except Exception as exc:  # noqa: BLE001
            error_counter.labels(context="pull_request").inc()
            logger.error(
                "Processing failed repo=%s pr=%d", repo_url, number, exc_info=True
            )
            return PullRequestResult(number=number, error=str(exc))

        logger.info(
            "Processed repo=%s pr=%d results=%s stale_comments=%d duration_ms=%.1f",
            repo_url,
            number,
            {name: ev.result for name, ev in result.evaluations.items()},
            len(result.stale_comments),
            (time.monotonic() - started) * 1000.0,
        )
        return result

    async def _process_pull_request(
        self, api: API, repo_url: str, number: int, config: Config
    ) -> PullRequestResult:
        pr = await self.snapshot_factory(api, repo_url, number)
        if self.dry_run:
            pr = DryRunPullRequest(pr)

        evaluations = {}
        for policy in self.policies:
            evaluations[policy.name] = await policy.munge(pr, config)

        if not pr.is_pull_request:
            return PullRequestResult(number=number, evaluations=evaluations)

        comments = [tracking_comment(c) for c in await pr.get_comments()]

        stale: List[int] = []
        for policy in self.policies:
            for comment in policy.stale_comments(pr, comments, config):
                if comment.id is None or comment.id in stale:
                    continue
                await pr.delete_comment(comment.id)
                stale_comment_counter.labels(deleted=str(not self.dry_run)).inc()
                stale.append(comment.id)

        return PullRequestResult(
            number=number, evaluations=evaluations, stale_comments=stale
        )
