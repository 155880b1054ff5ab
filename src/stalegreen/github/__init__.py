import asyncio
from datetime import datetime, timezone
import io
import logging
from typing import Dict, List, Optional, Sequence

import aiocache
import gidgethub
from gidgethub import BadRequest
from gidgethub import aiohttp as gh_aiohttp
from gidgethub.apps import get_installation_access_token
import pydantic
import yaml

from stalegreen import config as app_config
from stalegreen.github.api import API
from stalegreen.github.model import CommitStatus, Issue, IssueComment, PullRequest
from stalegreen.model import Config
from stalegreen.policy.types import TrackingComment, Tristate

logger = logging.getLogger("stalegreen")

CONFIG_FILE = ".stale-green-ci.yml"


class InvalidConfig(Exception):
    raw_config: str
    source_url: str

    def __init__(self, *args, **kwargs):
        self.raw_config = kwargs.pop("raw_config")
        self.source_url = kwargs.pop("source_url")
        super().__init__(*args, **kwargs)


@aiocache.cached(ttl=app_config.ACCESS_TOKEN_TTL, key_builder=lambda fn, gh, id: id)
async def get_access_token(gh: gh_aiohttp.GitHubAPI, installation_id: int) -> str:
    logger.debug("Getting NEW installation access token for %d", installation_id)
    access_token_response = await get_installation_access_token(
        gh,
        installation_id=installation_id,
        app_id=app_config.GITHUB_APP_ID,
        private_key=app_config.GITHUB_PRIVATE_KEY,
    )

    token = access_token_response["token"]
    return token


def parse_config(raw_config: str, source_url: str) -> Config:
    data = yaml.safe_load(io.StringIO(raw_config))
    try:
        return Config() if data is None else Config.model_validate(data)
    except pydantic.ValidationError as e:
        raise InvalidConfig(str(e), raw_config=raw_config, source_url=source_url)


async def get_config_from_repo(api: API, repo_url: str) -> Optional[Config]:
    if app_config.OVERRIDE_CONFIG is not None:
        with open(app_config.OVERRIDE_CONFIG) as fh:
            return parse_config(fh.read(), source_url=app_config.OVERRIDE_CONFIG)

    try:
        content = await api.get_content(repo_url, CONFIG_FILE)
    except BadRequest as e:
        if e.status_code == 404:
            return None
        raise e

    if content.type != "file":
        raise ValueError("Config file is not a file")

    return parse_config(content.decoded_content(), source_url=content.html_url)


def tracking_comment(comment: IssueComment) -> TrackingComment:
    return TrackingComment(
        author=comment.user.login if comment.user is not None else None,
        body=comment.body,
        created_at=comment.created_at,
        id=comment.id,
    )


class GitHubPullRequest:
    """Snapshot of an issue or pull request as read from the GitHub API."""

    api: API
    repo_url: str
    issue: Issue
    pull: Optional[PullRequest]
    statuses: Optional[Dict[str, CommitStatus]]

    def __init__(
        self,
        api: API,
        repo_url: str,
        issue: Issue,
        pull: Optional[PullRequest] = None,
        statuses: Optional[Dict[str, CommitStatus]] = None,
        *,
        pending_timeout: float = app_config.PENDING_TIMEOUT,
        poll_interval: float = app_config.PENDING_POLL_INTERVAL,
    ):
        self.api = api
        self.repo_url = repo_url
        self.issue = issue
        self.pull = pull
        self.statuses = statuses
        self.pending_timeout = pending_timeout
        self.poll_interval = poll_interval

    @classmethod
    async def load(
        cls, api: API, repo_url: str, number: int, **kwargs
    ) -> "GitHubPullRequest":
        issue = await api.get_issue(repo_url, number)
        if not issue.is_pull_request:
            return cls(api, repo_url, issue, **kwargs)

        pull = await api.get_pull(repo_url, number)
        statuses = await cls._load_statuses(api, repo_url, pull.head.sha)
        return cls(api, repo_url, issue, pull, statuses, **kwargs)

    @staticmethod
    async def _load_statuses(
        api: API, repo_url: str, ref: str
    ) -> Optional[Dict[str, CommitStatus]]:
        try:
            statuses = [s async for s in api.get_statuses_for_ref(repo_url, ref)]
        except gidgethub.GitHubException:
            logger.warning("Unable to load commit status for %s", ref, exc_info=True)
            return None

        latest: Dict[str, CommitStatus] = {}
        for status in statuses:
            existing = latest.get(status.context)
            if existing is None or _updated(status) > _updated(existing):
                latest[status.context] = status
        return latest

    @property
    def number(self) -> int:
        return self.issue.number

    @property
    def is_pull_request(self) -> bool:
        return self.issue.is_pull_request

    def has_label(self, name: str) -> bool:
        return name in self.issue.label_names

    def is_mergeable(self) -> Tristate:
        if self.pull is None:
            return Tristate.unknown
        return Tristate.from_optional(self.pull.mergeable)

    def _all_in_state(self, contexts: Sequence[str], state: str) -> Tristate:
        if self.statuses is None:
            return Tristate.unknown
        for context in contexts:
            status = self.statuses.get(context)
            if status is None or status.state != state:
                return Tristate.no
        return Tristate.yes

    def is_status_success(self, contexts: Sequence[str]) -> Tristate:
        return self._all_in_state(contexts, "success")

    def is_status_pending(self, contexts: Sequence[str]) -> Tristate:
        return self._all_in_state(contexts, "pending")

    def status_time(self, context: str) -> Optional[datetime]:
        if self.statuses is None:
            return None
        status = self.statuses.get(context)
        if status is None:
            return None
        return status.updated_at

    async def post_comment(self, body: str) -> None:
        await self.api.post_comment(self.repo_url, self.number, body)

    async def get_comments(self) -> List[IssueComment]:
        return [c async for c in self.api.get_issue_comments(self.repo_url, self.number)]

    async def delete_comment(self, comment_id: int) -> None:
        await self.api.delete_comment(self.repo_url, comment_id)

    async def wait_for_pending(self, contexts: Sequence[str]) -> bool:
        if self.pull is None:
            return False
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.pending_timeout
        while True:
            self.statuses = await self._load_statuses(
                self.api, self.repo_url, self.pull.head.sha
            )
            if self.is_status_pending(contexts) is Tristate.yes:
                logger.debug("#%d: required contexts are pending", self.number)
                return True
            if loop.time() + self.poll_interval > deadline:
                return False
            await asyncio.sleep(self.poll_interval)


def _updated(status: CommitStatus) -> datetime:
    return (
        status.updated_at
        or status.created_at
        or datetime.min.replace(tzinfo=timezone.utc)
    )
