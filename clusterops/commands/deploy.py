"""CLI parsers for the deploy and rollout commands."""

from __future__ import annotations

import argparse

from clusterops.commands.common import (
    add_environment_argument,
    add_target_arguments,
    load_checked_environment,
    target_from_args,
)
from clusterops.core import logging
from clusterops.core.deploy_ops import DeployOptions, deploy_service
from clusterops.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "deploy",
        help="Build and push a service image, then roll out its deployment",
    )
    add_environment_argument(parser)
    add_target_arguments(parser)
    parser.add_argument(
        "--skip-build",
        action="store_true",
        help="Only roll out (no image build/push)",
    )
    parser.add_argument(
        "--image",
        help="Image reference to build and push (default: first container image of the manifest)",
    )
    parser.set_defaults(func=run, build=True)

    rollout_parser = subparsers.add_parser(
        "rollout",
        help="Force a rolling update of a deployment without building",
    )
    add_environment_argument(rollout_parser)
    add_target_arguments(rollout_parser)
    rollout_parser.set_defaults(func=run, build=False, skip_build=True, image=None)


def run(args: argparse.Namespace, runner: CommandRunner) -> int:
    paths, config = load_checked_environment(args, runner)
    options = DeployOptions(
        target=target_from_args(args),
        build=bool(args.build) and not bool(args.skip_build),
        image=args.image,
    )
    name = deploy_service(runner, config, paths, options)
    logging.success(f"Rolled out deployment {name}")
    return 0
