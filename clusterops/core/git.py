"""Read-only git queries used to annotate rollouts."""

from __future__ import annotations

from pathlib import Path

from clusterops.core.errors import ExternalCommandFailure
from clusterops.core.runner import CommandRunner

GIT = "git"


def _git(runner: CommandRunner, *args: str, cwd: Path | None = None) -> str:
    return runner.output([GIT, *args], cwd=cwd)


def tag_at_head(runner: CommandRunner, *, cwd: Path | None = None) -> str:
    tags = _git(runner, "tag", "--points-at", "HEAD", cwd=cwd).splitlines()
    return tags[0].strip() if tags else ""


def short_hash(runner: CommandRunner, *, cwd: Path | None = None) -> str:
    return _git(runner, "rev-parse", "--short", "--verify", "HEAD", cwd=cwd)


def current_branch(runner: CommandRunner, *, cwd: Path | None = None) -> str:
    return _git(runner, "branch", "--show-current", cwd=cwd)


def has_diff(runner: CommandRunner, *, cwd: Path | None = None) -> bool:
    return _git(runner, "diff", "--stat", cwd=cwd) != ""


def config_value(
    runner: CommandRunner, key: str, default: str = "", *, cwd: Path | None = None
) -> str:
    # `git config` exits 1 when the key is unset.
    try:
        value = _git(runner, "config", "--get", key, cwd=cwd)
    except ExternalCommandFailure:
        return default
    return value or default


def get_ref(runner: CommandRunner, *, cwd: Path | None = None) -> str:
    """Tag at HEAD, else the short commit hash; `-dirty` for a modified tree."""
    ref = tag_at_head(runner, cwd=cwd) or short_hash(runner, cwd=cwd)
    if has_diff(runner, cwd=cwd):
        ref += "-dirty"
    return ref
