import logging
from typing import AsyncIterator

from gidgethub.abc import GitHubAPI

from stalegreen.github.model import (
    CommitStatus,
    Content,
    Issue,
    IssueComment,
    PullRequest,
)
from stalegreen.metric import record_api_call

logger = logging.getLogger("stalegreen")


class API:
    gh: GitHubAPI
    installation: int

    call_count: int

    def __init__(self, gh: GitHubAPI, installation: int):
        self.gh = gh
        self.installation = installation
        self.call_count = 0

    def _count(self, endpoint: str) -> None:
        self.call_count += 1
        record_api_call(endpoint)

    async def get_content(self, repo_url: str, path: str) -> Content:
        self._count("contents")
        url = f"{repo_url}/contents/{path}"
        logger.debug("Get file content: %s", url)
        return Content.model_validate(await self.gh.getitem(url))

    async def get_issue(self, repo_url: str, number: int) -> Issue:
        self._count("issues")
        url = f"{repo_url}/issues/{number}"
        logger.debug("Get issue %s", url)
        return Issue.model_validate(await self.gh.getitem(url))

    async def get_pull(self, repo_url: str, number: int) -> PullRequest:
        self._count("pulls")
        url = f"{repo_url}/pulls/{number}"
        logger.debug("Get pull %s", url)
        return PullRequest.model_validate(await self.gh.getitem(url))

    async def get_pulls(self, repo_url: str) -> AsyncIterator[PullRequest]:
        self._count("pulls")
        async for item in self.gh.getiter(f"{repo_url}/pulls?state=open"):
            yield PullRequest.model_validate(item)

    async def get_statuses_for_ref(
        self, repo_url: str, ref: str
    ) -> AsyncIterator[CommitStatus]:
        self._count("status")
        url = f"{repo_url}/commits/{ref}/status"
        logger.debug("Get commit status for ref %s", url)
        async for item in self.gh.getiter(url, iterable_key="statuses"):
            yield CommitStatus.model_validate(item)

    async def get_issue_comments(
        self, repo_url: str, number: int
    ) -> AsyncIterator[IssueComment]:
        self._count("comments")
        url = f"{repo_url}/issues/{number}/comments"
        logger.debug("Get comments %s", url)
        async for item in self.gh.getiter(url):
            yield IssueComment.model_validate(item)

    async def post_comment(self, repo_url: str, number: int, body: str) -> IssueComment:
        self._count("comments")
        url = f"{repo_url}/issues/{number}/comments"
        logger.debug("Posting comment on %s", url)
        return IssueComment.model_validate(await self.gh.post(url, data={"body": body}))

    async def delete_comment(self, repo_url: str, comment_id: int) -> None:
        self._count("comments")
        url = f"{repo_url}/issues/comments/{comment_id}"
        logger.debug("Deleting comment %s", url)
        await self.gh.delete(url)
