"""Merge orchestrator for prmerge.

Sequences one invocation:

    authorize -> fetch PR -> build commit message -> merge (or arm auto-merge)
    -> post result comment

All GitHub traffic goes through a :class:`PullRequestService`; the real one
lives in :mod:`prmerge.github`.  Every path posts exactly one comment.  If that
comment cannot be delivered, :class:`~prmerge.errors.CommentDeliveryFailure`
is raised instead of returning an outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from prmerge.authorize import InvocationContext, authorize
from prmerge.commit_message import CommitMessage, PullRequestMetadata, synthesize
from prmerge.errors import (
    AuthError,
    CommentDeliveryFailure,
    FetchFailure,
    GitHubError,
    MergeFailure,
    classify,
)

logger = logging.getLogger(__name__)

MERGE_METHODS = ("merge", "squash", "rebase")


# ---------------------------------------------------------------------------
# Collaborator protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class PullRequestService(Protocol):
    """GitHub operations for one repository.  Errors are raised as GitHubError."""

    def fetch_pull_request(self, number: int) -> PullRequestMetadata:
        ...

    def merge(self, number: int, message: CommitMessage, method: str) -> None:
        ...

    def enable_auto_merge(self, number: int, message: CommitMessage, method: str) -> None:
        ...

    def post_comment(self, number: int, text: str) -> None:
        ...


MergeCall = Callable[[int, CommitMessage, str], None]


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MergeOutcome:
    """Result of one invocation; ``message`` is the comment that was posted."""

    success: bool
    message: str

    @classmethod
    def succeeded(cls, message: str) -> "MergeOutcome":
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, reason: str) -> "MergeOutcome":
        return cls(success=False, message=reason)

    def to_dict(self) -> dict:
        return {"success": self.success, "message": self.message}


def success_message(pr_number: int) -> str:
    return f"Merged PR #{pr_number} successfully!"


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def select_merge_call(service: PullRequestService, auto_merge: bool) -> MergeCall:
    """Pick the merge mechanism; both share one signature."""
    if auto_merge:
        return service.enable_auto_merge
    return service.merge


def _post(service: PullRequestService, pr_number: int, text: str) -> None:
    try:
        service.post_comment(pr_number, text)
    except GitHubError as exc:
        logger.error("failed to send message %r to PR #%d: %s", text, pr_number, exc)
        raise CommentDeliveryFailure(text, exc) from exc


def _merge(
    service: PullRequestService,
    pr_number: int,
    merge_method: str,
    auto_merge: bool,
) -> None:
    try:
        pr = service.fetch_pull_request(pr_number)
    except GitHubError as exc:
        raise FetchFailure(exc) from exc

    message = synthesize(pr)
    logger.debug("commit subject: %s", message.subject)
    logger.debug("commit body:\n%s", message.body)

    merge_call = select_merge_call(service, auto_merge)
    logger.info(
        "%s PR #%d with method %s",
        "enabling auto-merge for" if auto_merge else "merging",
        pr.number,
        merge_method,
    )
    try:
        merge_call(pr.number, message, merge_method)
    except GitHubError as exc:
        raise MergeFailure(exc) from exc


def run(
    ctx: InvocationContext,
    service: PullRequestService,
    pr_number: int,
    merge_method: str = "merge",
    auto_merge: bool = False,
) -> MergeOutcome:
    """Run one merge invocation for *pr_number* and report back on the PR.

    Returns a failed outcome for refused or failed merges (after commenting).
    Raises CommentDeliveryFailure when the comment itself cannot be posted.
    """
    try:
        authorize(ctx)
        _merge(service, pr_number, merge_method, auto_merge)
    except (AuthError, FetchFailure, MergeFailure) as exc:
        reason = classify(exc)
        logger.error("merge of PR #%d failed: %s", pr_number, exc)
        _post(service, pr_number, reason)
        return MergeOutcome.failed(reason)

    text = success_message(pr_number)
    _post(service, pr_number, text)
    logger.info(text)
    return MergeOutcome.succeeded(text)
