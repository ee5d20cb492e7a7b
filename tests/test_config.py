"""Tests for prmerge/config.py: action inputs from the environment."""

from __future__ import annotations

import pytest

from prmerge.authorize import InvocationContext
from prmerge.config import (
    DEFAULTS,
    ActionConfig,
    load_config,
    _parse_bool,
    _parse_list,
)
from prmerge.errors import ConfigError


def _env(**overrides) -> dict:
    env = {
        "INPUT_GITHUB_TOKEN": "tok",
        "INPUT_OWNER": "octo",
        "INPUT_REPO": "hello",
        "INPUT_PR_NUMBER": "7",
        "INPUT_COMMENT": "/merge",
        "INPUT_GITHUB_ACTOR": "alice",
    }
    for key, val in overrides.items():
        if val is None:
            env.pop(key, None)
        else:
            env[key] = val
    return env


class TestParseBool:
    @pytest.mark.parametrize("raw", ["true", "True", "1", "yes", "on", " TRUE "])
    def test_true(self, raw):
        assert _parse_bool(raw) is True

    @pytest.mark.parametrize("raw", ["false", "0", "no", "off", ""])
    def test_false(self, raw):
        assert _parse_bool(raw) is False

    def test_invalid(self):
        with pytest.raises(ValueError):
            _parse_bool("maybe")


class TestParseList:
    def test_comma_separated(self):
        assert _parse_list("alice,bob") == ["alice", "bob"]

    def test_whitespace_and_blanks_dropped(self):
        assert _parse_list(" alice , ,bob, ") == ["alice", "bob"]

    def test_empty(self):
        assert _parse_list("") == []


class TestLoadConfig:
    def test_minimal_inputs_use_defaults(self):
        cfg = load_config(_env())
        assert cfg.owner == "octo"
        assert cfg.repo == "hello"
        assert cfg.pr_number == 7
        assert cfg.merge_method == DEFAULTS["merge_method"] == "merge"
        assert cfg.mergers == []
        assert cfg.enable_auto_merge is False
        assert cfg.timeout == 600

    def test_all_inputs(self):
        cfg = load_config(
            _env(
                INPUT_MERGE_METHOD="squash",
                INPUT_MERGERS="alice,bob",
                INPUT_ENABLE_AUTO_MERGE="true",
                INPUT_TIMEOUT="30",
            )
        )
        assert cfg.merge_method == "squash"
        assert cfg.mergers == ["alice", "bob"]
        assert cfg.enable_auto_merge is True
        assert cfg.timeout == 30.0

    def test_repository_fallback(self):
        cfg = load_config(_env(INPUT_OWNER=None, INPUT_REPO=None, GITHUB_REPOSITORY="acme/widgets"))
        assert (cfg.owner, cfg.repo) == ("acme", "widgets")

    def test_explicit_owner_wins_over_repository(self):
        cfg = load_config(_env(INPUT_REPO=None, GITHUB_REPOSITORY="acme/widgets"))
        assert (cfg.owner, cfg.repo) == ("octo", "widgets")

    def test_token_and_actor_fallback(self):
        cfg = load_config(
            _env(
                INPUT_GITHUB_TOKEN=None,
                INPUT_GITHUB_ACTOR=None,
                GITHUB_TOKEN="runner-token",
                GITHUB_ACTOR="bob",
            )
        )
        assert cfg.github_token == "runner-token"
        assert cfg.actor == "bob"

    def test_comment_not_stripped(self):
        cfg = load_config(_env(INPUT_COMMENT="/merge\n"))
        assert cfg.comment == "/merge\n"

    @pytest.mark.parametrize(
        "overrides, fragment",
        [
            ({"INPUT_PR_NUMBER": None}, "INPUT_PR_NUMBER is required"),
            ({"INPUT_PR_NUMBER": "seven"}, "must be an integer"),
            ({"INPUT_PR_NUMBER": "0"}, "must be positive"),
            ({"INPUT_OWNER": None}, "GITHUB_REPOSITORY"),
            ({"INPUT_GITHUB_TOKEN": None}, "GITHUB_TOKEN"),
            ({"INPUT_MERGE_METHOD": "fast-forward"}, "INPUT_MERGE_METHOD"),
            ({"INPUT_ENABLE_AUTO_MERGE": "sometimes"}, "INPUT_ENABLE_AUTO_MERGE"),
            ({"INPUT_TIMEOUT": "soon"}, "INPUT_TIMEOUT"),
            ({"INPUT_TIMEOUT": "-1"}, "INPUT_TIMEOUT"),
        ],
    )
    def test_invalid_inputs(self, overrides, fragment):
        with pytest.raises(ConfigError, match=fragment):
            load_config(_env(**overrides))

    def test_reads_os_environ_by_default(self, monkeypatch):
        for key, val in _env().items():
            monkeypatch.setenv(key, val)
        monkeypatch.setenv("INPUT_PR_NUMBER", "12")
        assert load_config().pr_number == 12


class TestActionConfig:
    def test_context(self):
        cfg = load_config(_env(INPUT_MERGERS="alice"))
        assert cfg.context() == InvocationContext(
            triggering_comment="/merge", actor="alice", mergers=("alice",)
        )

    def test_to_dict_redacts_token(self):
        d = ActionConfig(github_token="secret", owner="o", repo="r", pr_number=1).to_dict()
        assert d["github_token"] == "***"
        assert "secret" not in str(d)
        assert d["pr_number"] == 1
