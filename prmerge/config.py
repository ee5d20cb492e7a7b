"""prmerge Config System: action inputs read from the environment.

GitHub passes action inputs as ``INPUT_<NAME>`` environment variables.  The
runner's own variables (``GITHUB_REPOSITORY``, ``GITHUB_ACTOR``,
``GITHUB_TOKEN``) are used when an input is left empty.

Public API
----------
load_config(environ) -> ActionConfig
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, asdict
from typing import Any, Mapping, Optional

from prmerge.authorize import InvocationContext
from prmerge.errors import ConfigError
from prmerge.github import JOB_TIMEOUT_SECONDS
from prmerge.orchestrator import MERGE_METHODS

ENV_PREFIX = "INPUT_"

# ---------------------------------------------------------------------------
# Default values (canonical source of truth)
# ---------------------------------------------------------------------------

DEFAULTS: dict[str, Any] = {
    "comment": "",
    "merge_method": "merge",
    "timeout": JOB_TIMEOUT_SECONDS,
}

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off", ""}


@dataclass
class ActionConfig:
    github_token: str
    owner: str
    repo: str
    pr_number: int
    comment: str = ""
    merge_method: str = "merge"
    mergers: list[str] = field(default_factory=list)
    actor: str = ""
    enable_auto_merge: bool = False
    timeout: float = JOB_TIMEOUT_SECONDS

    def context(self) -> InvocationContext:
        """The authorization inputs of this run."""
        return InvocationContext(
            triggering_comment=self.comment,
            actor=self.actor,
            mergers=tuple(self.mergers),
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["github_token"] = "***" if self.github_token else ""
        return d


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"Expected a boolean (true/false), got {raw!r}")


def _parse_list(raw: str) -> list[str]:
    """Comma separated list; blank entries are dropped."""
    return [item.strip() for item in raw.split(",") if item.strip()]


def _get(env: Mapping[str, str], name: str, fallback: Optional[str] = None) -> str:
    value = env.get(ENV_PREFIX + name, "").strip()
    if not value and fallback:
        value = env.get(fallback, "").strip()
    return value


def _env_repo(env: Mapping[str, str]) -> tuple[str, str]:
    owner = _get(env, "OWNER")
    repo = _get(env, "REPO")
    if owner and repo:
        return owner, repo
    slug = env.get("GITHUB_REPOSITORY", "").strip()
    if slug and "/" in slug:
        slug_owner, slug_repo = slug.split("/", 1)
        return owner or slug_owner, repo or slug_repo
    return owner, repo


def load_config(environ: Optional[Mapping[str, str]] = None) -> ActionConfig:
    """Read and validate action inputs from *environ* (default ``os.environ``)."""
    env = os.environ if environ is None else environ

    raw_pr = _get(env, "PR_NUMBER")
    if not raw_pr:
        raise ConfigError("INPUT_PR_NUMBER is required")
    try:
        pr_number = int(raw_pr)
    except ValueError:
        raise ConfigError(f"INPUT_PR_NUMBER must be an integer, got {raw_pr!r}") from None
    if pr_number <= 0:
        raise ConfigError(f"INPUT_PR_NUMBER must be positive, got {pr_number}")

    owner, repo = _env_repo(env)
    if not owner or not repo:
        raise ConfigError("Missing INPUT_OWNER/INPUT_REPO (or GITHUB_REPOSITORY)")

    token = _get(env, "GITHUB_TOKEN", "GITHUB_TOKEN")
    if not token:
        raise ConfigError("INPUT_GITHUB_TOKEN (or GITHUB_TOKEN) is required")

    merge_method = _get(env, "MERGE_METHOD") or DEFAULTS["merge_method"]
    if merge_method not in MERGE_METHODS:
        choices = ", ".join(MERGE_METHODS)
        raise ConfigError(f"INPUT_MERGE_METHOD must be one of {choices}, got {merge_method!r}")

    try:
        auto_merge = _parse_bool(_get(env, "ENABLE_AUTO_MERGE"))
    except ValueError as e:
        raise ConfigError(f"INPUT_ENABLE_AUTO_MERGE: {e}") from None

    raw_timeout = _get(env, "TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULTS["timeout"]
    except ValueError:
        raise ConfigError(f"INPUT_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from None
    if timeout <= 0:
        raise ConfigError(f"INPUT_TIMEOUT must be positive, got {raw_timeout!r}")

    return ActionConfig(
        github_token=token,
        owner=owner,
        repo=repo,
        pr_number=pr_number,
        # the comment is compared verbatim, so it is not stripped
        comment=env.get(ENV_PREFIX + "COMMENT", DEFAULTS["comment"]),
        merge_method=merge_method,
        mergers=_parse_list(env.get(ENV_PREFIX + "MERGERS", "")),
        actor=_get(env, "GITHUB_ACTOR", "GITHUB_ACTOR"),
        enable_auto_merge=auto_merge,
        timeout=timeout,
    )
