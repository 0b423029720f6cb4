"""CLI parser for the bootstrap command."""

from __future__ import annotations

import argparse

from clusterops.core.bootstrap_ops import BootstrapOptions, execute_bootstrap
from clusterops.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "bootstrap",
        help="Provision infrastructure and cluster resources for a new environment",
    )
    parser.add_argument("environment", help="Environment name (directory under deployment/environments)")
    parser.add_argument("project", help="Google Cloud project to bootstrap into")
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Accept all confirmation prompts",
    )
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner) -> int:
    options = BootstrapOptions(
        environment=args.environment,
        project=args.project,
        project_dir=getattr(args, "project_dir", None),
        assume_yes=bool(args.yes),
    )
    execute_bootstrap(options, runner)
    return 0
