"""CLI parser for the status command."""

from __future__ import annotations

import argparse

from clusterops.commands.common import (
    add_environment_argument,
    add_target_arguments,
    load_checked_environment,
    target_from_args,
)
from clusterops.core import logging
from clusterops.core.rollout import RolloutTarget, report_status
from clusterops.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "status",
        help="Show deployment status (all configured services when SERVICE is omitted)",
    )
    add_environment_argument(parser)
    add_target_arguments(parser, required=False)
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner) -> int:
    _, config = load_checked_environment(args, runner)
    if args.service:
        targets = [target_from_args(args)]
    else:
        targets = [RolloutTarget(service) for service in config.services]

    statuses = report_status(runner, config, targets)
    if len(statuses) < len(targets):
        logging.warning(f"{len(targets) - len(statuses)} deployment(s) not found")
    return 0
