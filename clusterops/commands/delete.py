"""CLI parser for the delete command."""

from __future__ import annotations

import argparse

from clusterops.commands.common import (
    add_environment_argument,
    add_target_arguments,
    load_checked_environment,
    target_from_args,
)
from clusterops.core.rollout import delete_deployment
from clusterops.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("delete", help="Delete a service deployment")
    add_environment_argument(parser)
    add_target_arguments(parser)
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner) -> int:
    paths, config = load_checked_environment(args, runner)
    delete_deployment(runner, config, paths, target_from_args(args))
    return 0
