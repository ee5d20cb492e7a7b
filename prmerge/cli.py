"""Command-line interface for prmerge."""
from __future__ import annotations

import json
import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .authorize import is_authorized
from .commit_message import synthesize
from .config import ActionConfig, load_config
from .errors import CommentDeliveryFailure, ConfigError, GitHubError
from .github import Deadline, GitHubClient
from .orchestrator import run as run_merge

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_UNREPORTED = 3

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

app = typer.Typer(
    name="prmerge",
    help="prmerge -- merge a pull request from a /merge comment.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("prmerge")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def _config() -> ActionConfig:
    try:
        return load_config()
    except ConfigError as e:
        err_console.print(f"failed to load inputs: {e}", style="red", markup=False)
        raise typer.Exit(EXIT_CONFIG)


def _client(cfg: ActionConfig) -> GitHubClient:
    return GitHubClient(
        cfg.owner,
        cfg.repo,
        cfg.github_token,
        deadline=Deadline(cfg.timeout),
    )


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------


@app.command()
def version() -> None:
    """Print the prmerge version."""
    console.print(f"prmerge {__version__}")


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


@app.command()
def run(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    """Merge the pull request and report the result as a PR comment."""
    _setup_logging(verbose)
    cfg = _config()
    try:
        outcome = run_merge(
            cfg.context(),
            _client(cfg),
            cfg.pr_number,
            merge_method=cfg.merge_method,
            auto_merge=cfg.enable_auto_merge,
        )
    except CommentDeliveryFailure as e:
        logger.critical("%s original: %s", e, e.text)
        err_console.print(str(e), style="red", markup=False)
        raise typer.Exit(EXIT_UNREPORTED)

    if outcome.success:
        console.print(outcome.message, style="green", markup=False)
        return
    err_console.print(outcome.message, style="red", markup=False)
    raise typer.Exit(EXIT_FAILED)


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


@app.command()
def preview(
    as_json: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Dry run: print the commit message that would be used, without merging."""
    _setup_logging(verbose)
    cfg = _config()
    try:
        pr = _client(cfg).fetch_pull_request(cfg.pr_number)
    except GitHubError as e:
        err_console.print(f"failed to get pull request: {e}", style="red", markup=False)
        raise typer.Exit(EXIT_FAILED)

    message = synthesize(pr)
    if as_json:
        print(json.dumps(message.to_dict(), indent=2))
        return
    console.print(message.subject, style="bold", markup=False, soft_wrap=True)
    console.print()
    console.print(message.body, markup=False, soft_wrap=True)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@app.command(name="config")
def show_config(
    as_json: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
) -> None:
    """Show the resolved action inputs (token redacted)."""
    cfg = _config()
    data = cfg.to_dict()
    data["authorized"] = is_authorized(cfg.context())
    if as_json:
        print(json.dumps(data, indent=2))
        return
    table = Table(title="prmerge inputs")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, val in data.items():
        if isinstance(val, list):
            val = ", ".join(val) or "(anyone)"
        table.add_row(key, escape(str(val)))
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
