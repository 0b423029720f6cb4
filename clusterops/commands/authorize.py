"""CLI parser for the authorize command."""

from __future__ import annotations

import argparse

from clusterops.commands.common import add_environment_argument, load_environment
from clusterops.core import logging
from clusterops.core.identity import authorize_environment, verify_account
from clusterops.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "authorize",
        help="Point gcloud and kubectl at the environment's project and cluster",
    )
    add_environment_argument(parser)
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner) -> int:
    _, config = load_environment(args)
    account = verify_account(runner, config.project)
    logging.step(f"Authorizing {account} for {config.environment}")
    authorize_environment(runner, config)
    logging.success(
        f"Authorized {config.environment} (project={config.project}, "
        f"compute/zone={config.compute_zone}, cluster={config.cluster_name})"
    )
    return 0
