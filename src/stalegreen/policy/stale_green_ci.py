from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, List

from stalegreen.model import Config
from stalegreen.policy.classifier import CommentStalenessClassifier
from stalegreen.policy.evaluator import RetriggerEvaluator
from stalegreen.policy.staleness import utcnow
from stalegreen.policy.types import PullRequestSnapshot, RetestEvaluation, TrackingComment


class StaleGreenCI:
    """Re-runs passed tests for approved PRs once they are more than 96 hours
    old, and reports its own retest comments once CI has caught up."""

    name = "stale-green-ci"

    def __init__(self, *, bot_name: str, clock: Callable[[], datetime] = utcnow):
        self.bot_name = bot_name
        self.clock = clock

    async def munge(self, pr: PullRequestSnapshot, config: Config) -> RetestEvaluation:
        evaluator = RetriggerEvaluator(
            approved_label=config.approved_label,
            retest_not_required_labels=config.retest_not_required_labels,
            clock=self.clock,
        )
        return await evaluator.evaluate(pr, config.required_contexts)

    def stale_comments(
        self,
        pr: PullRequestSnapshot,
        comments: Iterable[TrackingComment],
        config: Config,
    ) -> List[TrackingComment]:
        classifier = CommentStalenessClassifier(
            bot_name=self.bot_name, required_contexts=config.required_contexts
        )
        return classifier.filter_stale(pr, comments)
