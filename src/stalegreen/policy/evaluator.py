from __future__ import annotations

from datetime import datetime, timedelta
import logging
from typing import Callable, Iterable, Sequence

import humanize

from stalegreen.metric import error_counter, evaluation_counter, retest_counter
from stalegreen.policy.staleness import (
    STALE_GREEN_CI_THRESHOLD,
    RETEST_MESSAGE,
    is_stale_status,
    utcnow,
)
from stalegreen.policy.types import (
    Action,
    PullRequestSnapshot,
    RetestEvaluation,
    Tristate,
    UnknownStateError,
)

logger = logging.getLogger("stalegreen")

DEFAULT_APPROVED_LABEL = "lgtm"
DEFAULT_RETEST_NOT_REQUIRED_LABELS = (
    "retest-not-required",
    "retest-not-required-docs-only",
)


class RetriggerEvaluator:
    """Re-runs tests on approved pull requests whose required contexts have
    been green for longer than the staleness threshold.

    The evaluator keeps no memory between calls. Once a retest starts the
    status times advance, which is what keeps the next pass from posting a
    second comment.
    """

    def __init__(
        self,
        *,
        approved_label: str = DEFAULT_APPROVED_LABEL,
        retest_not_required_labels: Iterable[str] = DEFAULT_RETEST_NOT_REQUIRED_LABELS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.approved_label = approved_label
        self.retest_not_required_labels = tuple(retest_not_required_labels)
        self.clock = clock

    async def evaluate(
        self, pr: PullRequestSnapshot, required_contexts: Sequence[str]
    ) -> RetestEvaluation:
        try:
            result = await self._evaluate(pr, list(required_contexts))
        except UnknownStateError as exc:
            error_counter.labels(context="unknown_state").inc()
            logger.error("#%d: %s", pr.number, exc)
            result = RetestEvaluation(
                action=Action.noop,
                result="unknown_state",
                context=exc.context,
                error=str(exc),
            )
        evaluation_counter.labels(result=result.result).inc()
        return result

    def _skip_reason(
        self, pr: PullRequestSnapshot, required_contexts: Sequence[str]
    ) -> str | None:
        if not pr.is_pull_request:
            return "not_pr"
        if not pr.has_label(self.approved_label):
            return "not_approved"
        if any(pr.has_label(label) for label in self.retest_not_required_labels):
            return "retest_not_required"
        if pr.is_mergeable() is not Tristate.yes:
            return "not_mergeable"
        if pr.is_status_success(required_contexts) is not Tristate.yes:
            return "not_green"
        return None

    async def _evaluate(
        self, pr: PullRequestSnapshot, required_contexts: Sequence[str]
    ) -> RetestEvaluation:
        reason = self._skip_reason(pr, required_contexts)
        if reason is not None:
            logger.debug("#%d: skipping, reason=%s", pr.number, reason)
            return RetestEvaluation(action=Action.noop, result=reason)

        now = self.clock()
        for context in required_contexts:
            status_time = pr.status_time(context)
            if status_time is None:
                raise UnknownStateError(
                    f"unable to determine time {context!r} context was set",
                    context=context,
                )
            if is_stale_status(status_time, now):
                return await self._request_retest(
                    pr, required_contexts, context, now - status_time
                )

        logger.debug(
            "#%d: all %d required contexts are younger than %s",
            pr.number,
            len(required_contexts),
            humanize.naturaldelta(STALE_GREEN_CI_THRESHOLD),
        )
        return RetestEvaluation(action=Action.noop, result="fresh")

    async def _request_retest(
        self,
        pr: PullRequestSnapshot,
        required_contexts: Sequence[str],
        context: str,
        age: timedelta,
    ) -> RetestEvaluation:
        logger.info(
            "#%d: context %r is %s old, requesting retest",
            pr.number,
            context,
            humanize.naturaldelta(age),
        )
        try:
            await pr.post_comment(RETEST_MESSAGE)
        except Exception as exc:  # noqa: BLE001
            error_counter.labels(context="post_comment").inc()
            logger.error(
                "#%d: failed to write retrigger old test comment",
                pr.number,
                exc_info=True,
            )
            return RetestEvaluation(
                action=Action.request_retest,
                result="comment_failed",
                context=context,
                age=age,
                error=str(exc),
            )
        retest_counter.labels(context=context).inc()

        try:
            started = await pr.wait_for_pending(required_contexts)
        except Exception as exc:  # noqa: BLE001
            error_counter.labels(context="wait_for_pending").inc()
            logger.error(
                "#%d: failed waiting for PR to start testing",
                pr.number,
                exc_info=True,
            )
            return RetestEvaluation(
                action=Action.request_retest,
                result="wait_failed",
                context=context,
                age=age,
                error=str(exc),
            )

        if not started:
            error_counter.labels(context="wait_for_pending").inc()
            logger.error("#%d: timed out waiting for PR to start testing", pr.number)
            return RetestEvaluation(
                action=Action.request_retest,
                result="wait_timeout",
                context=context,
                age=age,
            )

        return RetestEvaluation(
            action=Action.request_retest,
            result="retest_requested",
            context=context,
            age=age,
        )
