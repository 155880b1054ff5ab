from stalegreen.policy.classifier import CommentStalenessClassifier
from stalegreen.policy.evaluator import RetriggerEvaluator
from stalegreen.policy.stale_green_ci import StaleGreenCI
from stalegreen.policy.staleness import (
    RETEST_MESSAGE,
    STALE_GREEN_CI_HOURS,
    STALE_GREEN_CI_THRESHOLD,
    STATUS_GRACE_WINDOW,
    retest_message,
)
from stalegreen.policy.types import (
    Action,
    PullRequestSnapshot,
    RetestEvaluation,
    TrackingComment,
    Tristate,
    UnknownStateError,
)

__all__ = [
    "Action",
    "CommentStalenessClassifier",
    "PullRequestSnapshot",
    "RETEST_MESSAGE",
    "RetestEvaluation",
    "RetriggerEvaluator",
    "STALE_GREEN_CI_HOURS",
    "STALE_GREEN_CI_THRESHOLD",
    "STATUS_GRACE_WINDOW",
    "StaleGreenCI",
    "TrackingComment",
    "Tristate",
    "UnknownStateError",
    "retest_message",
]
