#!/usr/bin/env python3
"""Cluster bootstrap and rollout CLI."""

from __future__ import annotations

import argparse
import logging as std_logging
import sys

from clusterops.commands import authorize, bootstrap, delete, deploy, status
from clusterops.core import logging
from clusterops.core.errors import ClusterOpsError, PipelineAborted
from clusterops.core.runner import CommandRunner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clusterops",
        description="Bootstrap and roll out application environments on GKE",
    )
    parser.add_argument(
        "--project-dir",
        help="Project root containing deployment/environments (default: CLUSTEROPS_PROJECT_DIR or .)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print mutating commands without executing them",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log executed commands")

    subparsers = parser.add_subparsers(dest="command", required=True)
    authorize.register_parser(subparsers)
    bootstrap.register_parser(subparsers)
    deploy.register_parser(subparsers)
    delete.register_parser(subparsers)
    status.register_parser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        std_logging.basicConfig(level=std_logging.DEBUG, format="%(name)s: %(message)s")
    runner = CommandRunner(dry_run=bool(args.dry_run))

    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        return int(args.func(args, runner))
    except PipelineAborted:
        logging.info("Aborted.")
        return 0
    except ClusterOpsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
