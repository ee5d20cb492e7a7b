"""Error types for prmerge and the classifier that turns them into comments.

Every failure that ends an invocation is posted back to the pull request as a
comment.  :func:`classify` decides the wording of that comment.

Public API
----------
- ``PRMergeError``  -- root of the hierarchy
- ``classify(err)`` -> ``str``
"""

from __future__ import annotations

import re
from typing import Optional


class PRMergeError(Exception):
    """Base class for every error raised by prmerge."""


class ConfigError(PRMergeError):
    """Action inputs are missing or invalid."""


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class AuthError(PRMergeError):
    """The invocation is not allowed to merge."""


class BadTrigger(AuthError):
    def __init__(self, comment: str, trigger: str = "/merge") -> None:
        super().__init__(f"comment must be {trigger}, got {comment}")
        self.comment = comment
        self.trigger = trigger


class ActorNotAuthorized(AuthError):
    def __init__(self, actor: str) -> None:
        super().__init__(f"actor {actor} is not in mergers list")
        self.actor = actor


# ---------------------------------------------------------------------------
# Collaborator errors
# ---------------------------------------------------------------------------


class GitHubError(PRMergeError):
    """A call to GitHub (REST API or ``gh`` CLI) failed."""


class GitHubAPIError(GitHubError):
    """Non-2xx response from the REST API."""

    def __init__(self, method: str, url: str, status: int, message: str) -> None:
        super().__init__(f"{method} {url}: {status} {message}")
        self.method = method
        self.url = url
        self.status = status
        self.message = message


class GitHubCLIError(GitHubError):
    """The ``gh`` command exited non-zero."""

    def __init__(self, returncode: int, stderr: str) -> None:
        detail = stderr.strip() or "no output"
        super().__init__(f"gh exited with status {returncode}: {detail}")
        self.returncode = returncode
        self.stderr = stderr


class DeadlineExceeded(GitHubError):
    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


# ---------------------------------------------------------------------------
# Pipeline failures
# ---------------------------------------------------------------------------


class FetchFailure(PRMergeError):
    def __init__(self, cause: Exception) -> None:
        super().__init__(f"failed to get pull request: {cause}")
        self.cause = cause


class MergeFailure(PRMergeError):
    def __init__(self, cause: Exception) -> None:
        super().__init__(f"failed to merge pull request: {cause}")
        self.cause = cause


class CommentDeliveryFailure(PRMergeError):
    """No comment could be posted, so the run cannot explain itself."""

    def __init__(self, text: str, cause: Exception) -> None:
        super().__init__(f"failed to send message: {cause}")
        self.text = text
        self.cause = cause


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

_NEED_APPROVAL_RE = re.compile(
    r"[Aa]t least ([0-9]+) approving review is required by reviewers with write access"
)


def classify(err: Optional[BaseException]) -> str:
    """Return the comment text to post for *err*.

    GitHub reports missing approvals inside a longer API error; that case is
    shortened to ``Need N approving review``.  Anything else is shown as-is.
    """
    if err is None:
        return "Succeeded!"
    text = str(err)
    m = _NEED_APPROVAL_RE.search(text)
    if m:
        return f"Need {m.group(1)} approving review"
    return text
