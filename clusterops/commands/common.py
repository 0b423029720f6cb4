from __future__ import annotations

import argparse

from clusterops.core.config import (
    EnvironmentConfig,
    EnvironmentPaths,
    load_environment_config,
    resolve_project_root,
)
from clusterops.core.identity import require_cloud_config
from clusterops.core.rollout import RolloutTarget
from clusterops.core.runner import CommandRunner


def add_environment_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "environment",
        help="Environment name (directory under deployment/environments)",
    )


def add_target_arguments(parser: argparse.ArgumentParser, *, required: bool = True) -> None:
    parser.add_argument(
        "service",
        nargs=None if required else "?",
        help="Service name (e.g. api, web)",
    )
    parser.add_argument("subservice", nargs="?", help="Optional subservice (e.g. cli, jobs)")


def load_environment(args: argparse.Namespace) -> tuple[EnvironmentPaths, EnvironmentConfig]:
    paths = EnvironmentPaths(
        resolve_project_root(getattr(args, "project_dir", None)),
        args.environment,
    )
    return paths, load_environment_config(paths)


def load_checked_environment(
    args: argparse.Namespace, runner: CommandRunner
) -> tuple[EnvironmentPaths, EnvironmentConfig]:
    paths, config = load_environment(args)
    require_cloud_config(runner, config)
    return paths, config


def target_from_args(args: argparse.Namespace) -> RolloutTarget:
    return RolloutTarget(args.service, getattr(args, "subservice", None) or None)
