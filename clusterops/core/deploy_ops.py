"""Build, push and roll out a single service deployment."""

from __future__ import annotations

from dataclasses import dataclass

from clusterops.core import images
from clusterops.core import logging
from clusterops.core.config import EnvironmentConfig, EnvironmentPaths
from clusterops.core.rollout import RolloutTarget, rollout_deployment
from clusterops.core.runner import CommandRunner

# Deployed, in order, at the end of a bootstrap.
BOOTSTRAP_TARGETS = (
    RolloutTarget("api", "cli"),
    RolloutTarget("api"),
    RolloutTarget("web"),
)


@dataclass(frozen=True)
class DeployOptions:
    target: RolloutTarget
    build: bool = True
    image: str | None = None


def deploy_service(
    runner: CommandRunner,
    config: EnvironmentConfig,
    paths: EnvironmentPaths,
    options: DeployOptions,
) -> str:
    target = options.target
    if options.build:
        image = images.resolve_image(paths, target, options.image)
        logging.step(f"Building {target} image {image}")
        images.build_image(runner, config, paths, target, image)
        logging.step(f"Pushing {image}")
        images.push_image(runner, image)
    return rollout_deployment(runner, config, paths, target)
