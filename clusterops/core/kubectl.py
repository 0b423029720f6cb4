"""kubectl collaborator and delete-then-create resource synchronization."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from clusterops.core import logging
from clusterops.core.errors import ClusterOpsError
from clusterops.core.runner import CommandRunner

KUBECTL = "kubectl"


def apply_manifest(runner: CommandRunner, path: Path) -> None:
    runner.run([KUBECTL, "apply", "-f", str(path)], stream_output=True)


def create_manifest(runner: CommandRunner, path: Path) -> None:
    runner.run([KUBECTL, "create", "-f", str(path)], stream_output=True)


def delete_manifest(runner: CommandRunner, path: Path, *, ignore_not_found: bool = True) -> None:
    cmd = [KUBECTL, "delete", "-f", str(path)]
    if ignore_not_found:
        cmd.append("--ignore-not-found")
    runner.run(cmd, stream_output=True)


def patch_deployment(runner: CommandRunner, name: str, patch: dict[str, Any]) -> None:
    runner.run(
        [KUBECTL, "patch", "deployment", name, "-p", json.dumps(patch, separators=(",", ":"))],
        stream_output=True,
    )


def get_deployment(runner: CommandRunner, name: str) -> dict[str, Any] | None:
    raw = runner.output(
        [KUBECTL, "get", "deployment", name, "-o", "json", "--ignore-not-found"]
    )
    if raw == "":
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ClusterOpsError(f"kubectl returned invalid JSON for deployment {name}: {exc}") from exc
    return payload if isinstance(payload, dict) else None


def get_nodes(runner: CommandRunner) -> str:
    return runner.output([KUBECTL, "get", "nodes"])


def sync_resource(runner: CommandRunner, kind: str, path: Path) -> bool:
    """Recreate the objects declared at `path` (a file or a directory).

    Deleting first means the live objects end up exactly as declared rather
    than merged with earlier drift. Returns False when `path` is absent.
    """
    if not path.exists():
        logging.warning(f"Skipping {kind}: {path} not found")
        return False
    logging.info(f"Recreating {kind} from {path.name}")
    delete_manifest(runner, path, ignore_not_found=True)
    create_manifest(runner, path)
    return True
