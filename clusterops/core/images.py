"""Container image build and push for service deployments."""

from __future__ import annotations

from pathlib import Path

from clusterops.core.config import EnvironmentConfig, EnvironmentPaths
from clusterops.core.errors import ClusterOpsError
from clusterops.core.manifests import container_image, read_manifest
from clusterops.core.rollout import RolloutTarget
from clusterops.core.runner import CommandRunner

DOCKER = "docker"


def resolve_image(paths: EnvironmentPaths, target: RolloutTarget, override: str | None = None) -> str:
    if override and override.strip():
        return override.strip()
    manifest = paths.deployment_manifest(target.deployment)
    if not manifest.is_file():
        raise ClusterOpsError(
            f"cannot determine image for {target.deployment}: {manifest} not found "
            "(pass --image or --skip-build)"
        )
    image = container_image(read_manifest(manifest))
    if not image:
        raise ClusterOpsError(f"no container image declared in {manifest}")
    return image


def dockerfile_for(paths: EnvironmentPaths, target: RolloutTarget) -> Path:
    source_dir = paths.source_dir(target.service)
    name = f"Dockerfile.{target.subservice}" if target.subservice else "Dockerfile"
    dockerfile = source_dir / name
    if not dockerfile.is_file():
        raise FileNotFoundError(f"Dockerfile not found: {dockerfile}")
    return dockerfile


def build_image(
    runner: CommandRunner,
    config: EnvironmentConfig,
    paths: EnvironmentPaths,
    target: RolloutTarget,
    image: str,
) -> None:
    dockerfile = dockerfile_for(paths, target)
    runner.run(
        [
            DOCKER,
            "build",
            "--platform",
            config.platform,
            "-t",
            image,
            "-f",
            str(dockerfile),
            str(dockerfile.parent),
        ],
        stream_output=True,
    )


def push_image(runner: CommandRunner, image: str) -> None:
    runner.run([DOCKER, "push", image], stream_output=True)
