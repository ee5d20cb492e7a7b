"""GitHub collaborator for prmerge.

Implements :class:`prmerge.orchestrator.PullRequestService` against the real
GitHub:

- REST API v3 for reading the PR, merging it and posting comments
- the ``gh`` CLI for arming auto-merge (``gh pr merge --auto``)

Design goals
------------
- Dependency-free transport (``urllib``).
- Suitable for GitHub Actions: uses ``GITHUB_TOKEN`` and repo env vars.
- Every call is bounded by one :class:`Deadline` for the whole invocation.
"""

from __future__ import annotations

import http.client
import json
import logging
import os
import socket
import subprocess
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Optional

from prmerge.commit_message import CommitMessage, PullRequestMetadata
from prmerge.errors import DeadlineExceeded, GitHubAPIError, GitHubCLIError, GitHubError

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
JOB_TIMEOUT_SECONDS = 10 * 60


@dataclass
class Deadline:
    """Wall-clock budget shared by every call of one invocation."""

    seconds: float = JOB_TIMEOUT_SECONDS
    started: float = field(default_factory=time.monotonic)

    def remaining(self) -> float:
        return self.seconds - (time.monotonic() - self.started)

    def expired(self) -> bool:
        return self.remaining() <= 0

    def timeout(self) -> float:
        """Remaining seconds, raising DeadlineExceeded once the budget is spent."""
        left = self.remaining()
        if left <= 0:
            raise DeadlineExceeded()
        return left


def _error_message(data: Any) -> str:
    if isinstance(data, dict):
        message = data.get("message")
        if message:
            errors = data.get("errors")
            return f"{message} {json.dumps(errors)}" if errors else str(message)
        if "raw" in data:
            return str(data["raw"])
    return str(data)


class GitHubClient:
    """PullRequestService for ``owner/repo`` authenticated with *token*."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        deadline: Optional[Deadline] = None,
        api_url: str = API_URL,
        gh_binary: str = "gh",
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.token = token
        self.deadline = deadline or Deadline()
        self.api_url = api_url.rstrip("/")
        self.gh_binary = gh_binary

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, endpoint: str, payload: Optional[dict] = None) -> Any:
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "User-Agent": "prmerge",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"

        timeout = self.deadline.timeout()
        logger.debug("%s %s", method, url)
        req = urllib.request.Request(url, method=method, headers=headers, data=data)
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                body = resp.read().decode("utf-8")
                return json.loads(body) if body else {}
        except urllib.error.HTTPError as e:
            try:
                body = e.read().decode("utf-8", "replace")
            except (OSError, http.client.HTTPException):
                body = ""
            try:
                parsed = json.loads(body) if body else {}
            except json.JSONDecodeError:
                parsed = {"raw": body}
            raise GitHubAPIError(method, url, int(e.code or 0), _error_message(parsed)) from e
        except (socket.timeout, TimeoutError) as e:
            if self.deadline.expired():
                raise DeadlineExceeded() from e
            raise GitHubError(f"{method} {url}: {e}") from e
        except urllib.error.URLError as e:
            if self.deadline.expired():
                raise DeadlineExceeded() from e
            raise GitHubError(f"{method} {url}: {e.reason}") from e
        except (OSError, http.client.HTTPException) as e:
            # connection dropped while reading the response
            raise GitHubError(f"{method} {url}: {e!r}") from e
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError from a 2xx body
            raise GitHubError(f"{method} {url}: invalid response body: {e}") from e

    # ------------------------------------------------------------------
    # PullRequestService
    # ------------------------------------------------------------------

    def fetch_pull_request(self, number: int) -> PullRequestMetadata:
        data = self._request("GET", f"repos/{self.owner}/{self.repo}/pulls/{number}")
        try:
            return PullRequestMetadata.from_api(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise GitHubError(f"unexpected pull request payload: {e!r}") from e

    def merge(self, number: int, message: CommitMessage, method: str) -> None:
        payload = {
            "commit_title": message.subject,
            "commit_message": message.body,
            "merge_method": method,
        }
        data = self._request("PUT", f"repos/{self.owner}/{self.repo}/pulls/{number}/merge", payload)
        if isinstance(data, dict) and data.get("merged") is False:
            raise GitHubError(_error_message(data))
        logger.info("merged PR #%d (%s)", number, data.get("sha") if isinstance(data, dict) else "")

    def enable_auto_merge(self, number: int, message: CommitMessage, method: str) -> None:
        """Arm auto-merge through ``gh pr merge --auto``."""
        argv = auto_merge_argv(number, self.slug, message, method, gh_binary=self.gh_binary)
        env = dict(os.environ)
        if self.token and not env.get("GH_TOKEN"):
            env["GH_TOKEN"] = self.token
        timeout = self.deadline.timeout()
        logger.debug("running %s pr merge %d --%s --auto", self.gh_binary, number, method)
        try:
            proc = subprocess.run(
                argv, capture_output=True, text=True, env=env, timeout=timeout, check=False
            )
        except subprocess.TimeoutExpired as e:
            raise DeadlineExceeded() from e
        except OSError as e:
            raise GitHubError(f"failed to run {self.gh_binary}: {e}") from e
        if proc.returncode != 0:
            raise GitHubCLIError(proc.returncode, proc.stderr or proc.stdout or "")

    def post_comment(self, number: int, text: str) -> None:
        self._request(
            "POST",
            f"repos/{self.owner}/{self.repo}/issues/{number}/comments",
            {"body": text},
        )


def auto_merge_argv(
    number: int,
    slug: str,
    message: CommitMessage,
    method: str,
    gh_binary: str = "gh",
) -> list[str]:
    """Argument vector for arming auto-merge with the ``gh`` CLI."""
    return [
        gh_binary, "pr", "merge", str(number),
        f"--{method}",
        "--auto",
        "--subject", message.subject,
        "--body", message.body,
        "--repo", slug,
    ]
