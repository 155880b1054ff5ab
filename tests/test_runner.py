import base64
from datetime import datetime

import pytest

from stalegreen.github.model import Content, IssueComment, PullRequest
from stalegreen.model import Config
from stalegreen.policy import RETEST_MESSAGE, StaleGreenCI
from stalegreen.runner import PolicyRunner

BOT = "k8s-merge-robot"
REPO_URL = "/repos/org/repo"
CONFIG = Config(required_contexts=["ci/build", "ci/test"])


@pytest.fixture
def snapshot(make_pr):
    def make(comments=(), **kwargs):
        pr = make_pr(**kwargs)
        pr.comments = list(comments)
        pr.deleted = []

        async def get_comments():
            return pr.comments

        async def delete_comment(comment_id: int):
            pr.deleted.append(comment_id)

        pr.get_comments = get_comments
        pr.delete_comment = delete_comment
        return pr

    return make


def _runner(pr, now, **kwargs):
    async def factory(_api, repo_url: str, number: int):
        assert repo_url == REPO_URL
        return pr

    return PolicyRunner(
        [StaleGreenCI(bot_name=BOT, clock=lambda: now)],
        snapshot_factory=factory,
        **kwargs,
    )


def _comment(id: int, created_at: datetime, author: str = BOT) -> IssueComment:
    return IssueComment.model_validate(
        {
            "id": id,
            "body": RETEST_MESSAGE,
            "user": {"login": author},
            "created_at": created_at.isoformat(),
        }
    )


@pytest.mark.asyncio
async def test_runner_requests_retest(snapshot, hours_ago, now):
    pr = snapshot(times={"ci/build": hours_ago(100), "ci/test": hours_ago(2)})

    result = await _runner(pr, now).process_pull_request(None, REPO_URL, 42, CONFIG)

    assert result.error is None
    assert result.evaluations["stale-green-ci"].result == "retest_requested"
    assert pr.posted == [RETEST_MESSAGE]
    assert result.stale_comments == []


@pytest.mark.asyncio
async def test_runner_deletes_superseded_comments(snapshot, hours_ago, now):
    pr = snapshot(
        times={"ci/build": hours_ago(10), "ci/test": hours_ago(10)},
        comments=[
            _comment(1, hours_ago(12)),
            _comment(2, hours_ago(1)),
            _comment(3, hours_ago(12), author="someone-else"),
        ],
    )

    result = await _runner(pr, now).process_pull_request(None, REPO_URL, 42, CONFIG)

    assert result.evaluations["stale-green-ci"].result == "fresh"
    assert result.stale_comments == [1]
    assert pr.deleted == [1]


@pytest.mark.asyncio
async def test_runner_keeps_comment_when_wait_times_out(snapshot, hours_ago, now):
    pr = snapshot(
        times={"ci/build": hours_ago(100), "ci/test": hours_ago(2)},
        wait_result=False,
        comments=[_comment(99, now)],
    )

    result = await _runner(pr, now).process_pull_request(None, REPO_URL, 42, CONFIG)

    assert result.evaluations["stale-green-ci"].result == "wait_timeout"
    assert pr.posted == [RETEST_MESSAGE]
    assert result.stale_comments == []
    assert pr.deleted == []


@pytest.mark.asyncio
async def test_runner_dry_run_does_not_write(snapshot, hours_ago, now):
    pr = snapshot(
        times={"ci/build": hours_ago(100), "ci/test": hours_ago(100)},
        comments=[_comment(5, hours_ago(101)), _comment(6, hours_ago(1))],
    )

    result = await _runner(pr, now, dry_run=True).process_pull_request(
        None, REPO_URL, 42, CONFIG
    )

    assert result.evaluations["stale-green-ci"].result == "retest_requested"
    assert result.stale_comments == [5]
    assert pr.posted == []
    assert pr.wait_calls == []
    assert pr.deleted == []


@pytest.mark.asyncio
async def test_runner_skips_comments_on_issues(snapshot, now):
    pr = snapshot(is_pull_request=False)

    result = await _runner(pr, now).process_pull_request(None, REPO_URL, 42, CONFIG)

    assert result.evaluations["stale-green-ci"].result == "not_pr"
    assert result.stale_comments == []


@pytest.mark.asyncio
async def test_runner_contains_per_pr_errors(now):
    async def factory(_api, repo_url: str, number: int):
        raise RuntimeError(f"cannot load #{number}")

    runner = PolicyRunner(
        [StaleGreenCI(bot_name=BOT, clock=lambda: now)], snapshot_factory=factory
    )

    result = await runner.process_pull_request(None, REPO_URL, 7, CONFIG)

    assert result.number == 7
    assert result.error == "cannot load #7"
    assert result.evaluations == {}


class _FakeRepoAPI:
    def __init__(self, numbers, config_yaml=None):
        self.numbers = numbers
        self.config_yaml = config_yaml

    async def get_content(self, repo_url: str, path: str):
        return Content(
            type="file",
            encoding="base64",
            size=len(self.config_yaml),
            name=path,
            path=path,
            content=base64.b64encode(self.config_yaml.encode()).decode(),
            sha="c" * 40,
            url=f"https://api.github.com{repo_url}/contents/{path}",
            html_url=f"https://github.com/org/repo/blob/main/{path}",
        )

    async def get_pulls(self, repo_url: str):
        for number in self.numbers:
            yield PullRequest.model_validate(
                {
                    "url": f"https://api.github.com{repo_url}/pulls/{number}",
                    "id": 1000 + number,
                    "number": number,
                    "state": "open",
                    "created_at": "2026-10-01T10:00:00Z",
                    "updated_at": "2026-10-10T10:00:00Z",
                    "head": {"ref": "feature", "sha": "a" * 40},
                    "base": {"ref": "main", "sha": "b" * 40},
                }
            )


@pytest.mark.asyncio
async def test_process_repository_visits_open_pulls(snapshot, now):
    seen = []

    async def factory(_api, repo_url: str, number: int):
        seen.append(number)
        if number == 2:
            raise RuntimeError("broken")
        return snapshot(number=number)

    runner = PolicyRunner(
        [StaleGreenCI(bot_name=BOT, clock=lambda: now)], snapshot_factory=factory
    )
    api = _FakeRepoAPI([1, 2, 3], "required-contexts: [ci/build, ci/test]\n")

    results = await runner.process_repository(api, REPO_URL)

    assert seen == [1, 2, 3]
    assert [r.number for r in results] == [1, 2, 3]
    assert [r.error for r in results] == [None, "broken", None]


@pytest.mark.asyncio
async def test_process_repository_invalid_config(now):
    async def factory(_api, repo_url: str, number: int):  # pragma: no cover
        raise AssertionError("no PR should be loaded")

    runner = PolicyRunner(
        [StaleGreenCI(bot_name=BOT, clock=lambda: now)], snapshot_factory=factory
    )
    api = _FakeRepoAPI([1], "unknown-key: true\n")

    assert await runner.process_repository(api, REPO_URL) == []
