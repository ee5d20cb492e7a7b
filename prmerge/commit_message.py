"""Merge commit message builder for prmerge.

Turns pull-request metadata into the subject and body of the merge commit.
The body carries, in order:

- The PR description (minus its release-note block, if it had one)
- A ``Labels:`` list
- A fenced ``release-note`` block for downstream changelog tooling

Release notes are written by PR authors as a fenced block in the PR body::

    ```release-note
    Fixed a crash when the config file is empty.
    ```

A PR without such a block (or with an empty one) gets ``NONE``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PullRequestMetadata:
    """The parts of a pull request the commit message is built from."""

    number: int
    title: str
    body: str = ""
    labels: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequestMetadata":
        """Build from a ``GET /repos/{owner}/{repo}/pulls/{n}`` payload."""
        labels = tuple(
            str(label.get("name", ""))
            for label in data.get("labels") or []
            if isinstance(label, dict) and label.get("name")
        )
        return cls(
            number=int(data["number"]),
            title=str(data.get("title") or ""),
            body=str(data.get("body") or ""),
            labels=labels,
        )


@dataclass(frozen=True)
class ReleaseNoteExtraction:
    description: str
    release_note: str   # never empty; "NONE" when absent


@dataclass(frozen=True)
class CommitMessage:
    subject: str
    body: str

    def to_dict(self) -> dict:
        return {"subject": self.subject, "body": self.body}


# ---------------------------------------------------------------------------
# Release note extraction
# ---------------------------------------------------------------------------

NO_RELEASE_NOTE = "NONE"

_OPEN_FENCE = "```release-note\n"
_CLOSE_FENCE = "\n```"


def _find_release_note_block(body: str) -> Optional[tuple[int, int, str]]:
    """Locate the first release-note block.

    Returns ``(start, end, content)`` where ``body[start:end]`` is the whole
    block from the opening marker through the closing fence.
    """
    start = body.find(_OPEN_FENCE)
    if start == -1:
        return None
    content_start = start + len(_OPEN_FENCE)
    close = body.find(_CLOSE_FENCE, content_start)
    if close == -1:
        return None
    end = close + len(_CLOSE_FENCE)
    return start, end, body[content_start:close]


def extract_release_note(body: str) -> ReleaseNoteExtraction:
    """Split *body* into the description and its release note.

    The block is removed from the description only when it had content; an
    empty block is left where it was.
    """
    found = _find_release_note_block(body)
    if found is None:
        return ReleaseNoteExtraction(description=body, release_note=NO_RELEASE_NOTE)
    start, end, content = found
    note = content.strip()
    if not note:
        return ReleaseNoteExtraction(description=body, release_note=NO_RELEASE_NOTE)
    return ReleaseNoteExtraction(description=body[:start] + body[end:], release_note=note)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def commit_subject(pr: PullRequestMetadata) -> str:
    return f"{pr.title} (#{pr.number})"


def _trim_blank_lines(text: str) -> str:
    """Drop blank lines at both ends, keeping indentation of the first line."""
    lines = text.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)


def render_body(description: str, labels: tuple[str, ...], release_note: str) -> str:
    """Render the commit body; empty sections are left out entirely."""
    sections: list[str] = []
    message = _trim_blank_lines(description)
    if message:
        sections.append(message)
    if labels:
        lines = ["Labels:"]
        lines.extend(f"  * {label}" for label in labels)
        sections.append("\n".join(lines))
    sections.append(f"```release-note\n* {release_note}\n```")
    return "\n\n".join(sections)


def synthesize(pr: PullRequestMetadata) -> CommitMessage:
    """Build the merge commit subject and body for *pr*."""
    extraction = extract_release_note(pr.body)
    return CommitMessage(
        subject=commit_subject(pr),
        body=render_body(extraction.description, pr.labels, extraction.release_note),
    )
