"""Authorization gate for prmerge.

Decides whether an invocation may merge at all.  Two conditions apply:

- The triggering comment is exactly ``/merge``
- The actor is in the configured list of mergers (an empty list means
  anybody may merge)

This module is side-effect free; reporting a refusal is the orchestrator's job.

Public API
----------
- ``InvocationContext``  -- who asked, and with which comment
- ``authorize(ctx)``  -- raises :class:`~prmerge.errors.AuthError` on refusal
"""

from __future__ import annotations

from dataclasses import dataclass, field

from prmerge.errors import ActorNotAuthorized, BadTrigger

MERGE_COMMENT = "/merge"


@dataclass(frozen=True)
class InvocationContext:
    """The comment, the actor and the allow-list for one run."""

    triggering_comment: str
    actor: str
    mergers: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "triggering_comment": self.triggering_comment,
            "actor": self.actor,
            "mergers": list(self.mergers),
        }


def authorize(ctx: InvocationContext) -> None:
    """Raise if *ctx* is not allowed to merge; return ``None`` otherwise."""
    if ctx.triggering_comment != MERGE_COMMENT:
        raise BadTrigger(ctx.triggering_comment, MERGE_COMMENT)
    if not ctx.mergers:
        return
    if ctx.actor in ctx.mergers:
        return
    raise ActorNotAuthorized(ctx.actor)


def is_authorized(ctx: InvocationContext) -> bool:
    """Boolean form of :func:`authorize`."""
    try:
        authorize(ctx)
    except (BadTrigger, ActorNotAuthorized):
        return False
    return True
