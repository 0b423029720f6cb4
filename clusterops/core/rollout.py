"""Deployment rollout, deletion and status queries."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Any

from clusterops.core import git
from clusterops.core import kubectl
from clusterops.core import logging
from clusterops.core.config import EnvironmentConfig, EnvironmentPaths
from clusterops.core.runner import CommandRunner

DEPLOYMENT_POSTFIX = "-deployment"

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


@dataclass(frozen=True)
class RolloutTarget:
    service: str
    subservice: str | None = None

    @property
    def deployment(self) -> str:
        if self.subservice:
            return f"{self.service}-{self.subservice}{DEPLOYMENT_POSTFIX}"
        return f"{self.service}{DEPLOYMENT_POSTFIX}"

    def __str__(self) -> str:
        if self.subservice:
            return f"{self.service}/{self.subservice}"
        return self.service


def deployment_identity(
    deployment: str,
    *,
    drop_postfix: bool = False,
    prefix: str | None = None,
) -> str:
    """Name of the live Deployment object for a configured deployment name.

    Rollout patches and status checks must both go through this function.
    """
    name = deployment
    if drop_postfix and name.endswith(DEPLOYMENT_POSTFIX):
        name = name[: -len(DEPLOYMENT_POSTFIX)]
    if prefix:
        name = prefix + name
    return name


def identity_for(config: EnvironmentConfig, target: RolloutTarget) -> str:
    return deployment_identity(
        target.deployment,
        drop_postfix=config.drop_deployment_postfix,
        prefix=config.gcr_prefix,
    )


def local_architecture() -> str:
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine or "unknown")


@dataclass(frozen=True)
class RolloutMetadata:
    date: str
    author: str
    branch: str
    arch: str
    git: str

    def annotations(self) -> dict[str, str]:
        return {
            "date": self.date,
            "author": self.author,
            "branch": self.branch,
            "arch": self.arch,
            "git": self.git,
        }

    def patch(self) -> dict[str, Any]:
        return {"spec": {"template": {"metadata": {"annotations": self.annotations()}}}}


def build_metadata(
    runner: CommandRunner,
    *,
    cwd: Path | None = None,
    now: datetime | None = None,
) -> RolloutMetadata:
    moment = now or datetime.now(timezone.utc)
    return RolloutMetadata(
        date=format_datetime(moment.astimezone(timezone.utc), usegmt=True),
        author=git.config_value(runner, "user.name", "Anonymous", cwd=cwd),
        branch=git.current_branch(runner, cwd=cwd),
        arch=local_architecture(),
        git=git.get_ref(runner, cwd=cwd),
    )


def rollout_deployment(
    runner: CommandRunner,
    config: EnvironmentConfig,
    paths: EnvironmentPaths,
    target: RolloutTarget,
) -> str:
    """Apply the deployment manifest (if any) and force a rolling update.

    Only pod-template annotations change; with `imagePullPolicy: Always` the
    cluster pulls the latest image while replacing the pods.
    """
    logging.step(f"Rolling out {config.environment} {target.deployment}")

    # Deployments created dynamically (feature branches) have no manifest.
    manifest = paths.deployment_manifest(target.deployment)
    if manifest.is_file():
        kubectl.apply_manifest(runner, manifest)

    metadata = build_metadata(runner, cwd=paths.root)
    name = identity_for(config, target)
    kubectl.patch_deployment(runner, name, metadata.patch())
    return name


def delete_deployment(
    runner: CommandRunner,
    config: EnvironmentConfig,
    paths: EnvironmentPaths,
    target: RolloutTarget,
) -> bool:
    logging.step(f"Deleting {config.environment} {target.deployment}")

    manifest = paths.deployment_manifest(target.deployment)
    if not manifest.is_file():
        logging.warning(f"No manifest for {target.deployment}, nothing to delete")
        return False
    kubectl.delete_manifest(runner, manifest, ignore_not_found=False)
    return True


def check_deployment(
    runner: CommandRunner,
    config: EnvironmentConfig,
    target: RolloutTarget,
) -> dict[str, Any] | None:
    name = identity_for(config, target)
    payload = kubectl.get_deployment(runner, name)
    if payload is None:
        logging.warning(f'Deployment "{name}" could not be found')
    return payload


@dataclass(frozen=True)
class DeploymentStatus:
    name: str
    desired: int
    ready: int
    updated: int
    image: str
    git: str
    date: str

    @property
    def healthy(self) -> bool:
        return self.ready >= self.desired and self.updated >= self.desired

    def describe(self) -> str:
        parts = [f"{self.name}: {self.ready}/{self.desired} ready"]
        if self.image:
            parts.append(f"image={self.image}")
        if self.git:
            parts.append(f"git={self.git}")
        if self.date:
            parts.append(f"date={self.date}")
        return ", ".join(parts)


def summarize_deployment(payload: dict[str, Any]) -> DeploymentStatus:
    metadata = payload.get("metadata") or {}
    spec = payload.get("spec") or {}
    status = payload.get("status") or {}
    template = spec.get("template") or {}
    annotations = (template.get("metadata") or {}).get("annotations") or {}
    containers = (template.get("spec") or {}).get("containers") or []
    image = ""
    if containers and isinstance(containers[0], dict):
        image = str(containers[0].get("image", ""))

    return DeploymentStatus(
        name=str(metadata.get("name", "")),
        desired=int(spec.get("replicas", 1) or 0),
        ready=int(status.get("readyReplicas", 0) or 0),
        updated=int(status.get("updatedReplicas", 0) or 0),
        image=image,
        git=str(annotations.get("git", "")),
        date=str(annotations.get("date", "")),
    )


def report_status(
    runner: CommandRunner,
    config: EnvironmentConfig,
    targets: list[RolloutTarget],
) -> list[DeploymentStatus]:
    statuses: list[DeploymentStatus] = []
    for target in targets:
        payload = check_deployment(runner, config, target)
        if payload is None:
            continue
        status = summarize_deployment(payload)
        statuses.append(status)
        if status.healthy:
            logging.success(status.describe())
        else:
            logging.warning(status.describe())
    return statuses
