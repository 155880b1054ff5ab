from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from stalegreen.policy.staleness import is_tracking_comment, rerun_since_comment
from stalegreen.policy.types import PullRequestSnapshot, TrackingComment, Tristate

logger = logging.getLogger("stalegreen")


class CommentStalenessClassifier:
    def __init__(self, *, bot_name: str, required_contexts: Sequence[str]):
        self.bot_name = bot_name
        self.required_contexts = list(required_contexts)

    def is_stale(self, pr: PullRequestSnapshot, comment: TrackingComment) -> bool:
        if not is_tracking_comment(comment, self.bot_name):
            return False
        # a retest request is still relevant while tests are not all green
        if pr.is_status_success(self.required_contexts) is not Tristate.yes:
            return False
        if comment.created_at is None:
            return False

        for context in self.required_contexts:
            status_time = pr.status_time(context)
            if status_time is None:
                return False
            if not rerun_since_comment(comment.created_at, status_time):
                return False

        logger.debug("#%d: found stale retest comment %s", pr.number, comment.id)
        return True

    def filter_stale(
        self, pr: PullRequestSnapshot, comments: Iterable[TrackingComment]
    ) -> List[TrackingComment]:
        return [c for c in comments if self.is_stale(pr, c)]
