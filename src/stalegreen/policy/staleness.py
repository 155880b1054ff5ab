from __future__ import annotations

from datetime import datetime, timedelta, timezone

from stalegreen.policy.types import TrackingComment

STALE_GREEN_CI_HOURS = 96
STALE_GREEN_CI_THRESHOLD = timedelta(hours=STALE_GREEN_CI_HOURS)

# statuses and comments are not ordered atomically from the bot's point of view
STATUS_GRACE_WINDOW = timedelta(minutes=30)

TEST_BOT_NAME = "k8s-bot"

_RETEST_MESSAGE_FORMAT = (
    "@" + TEST_BOT_NAME + " test this\n\n"
    "Tests are more than {hours} hours old. Re-running tests."
)


def retest_message(hours: int = STALE_GREEN_CI_HOURS) -> str:
    return _RETEST_MESSAGE_FORMAT.format(hours=hours)


RETEST_MESSAGE = retest_message(STALE_GREEN_CI_HOURS)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_tracking_comment(comment: TrackingComment, bot_name: str) -> bool:
    return comment.author == bot_name and comment.body == RETEST_MESSAGE


def is_stale_status(status_time: datetime, now: datetime) -> bool:
    return now - status_time > STALE_GREEN_CI_THRESHOLD


def rerun_since_comment(comment_time: datetime, status_time: datetime) -> bool:
    return not comment_time > status_time + STATUS_GRACE_WINDOW
