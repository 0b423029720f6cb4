"""Terraform init/apply for an environment's provisioning directory."""

from __future__ import annotations

from pathlib import Path

from clusterops.core.config import EnvironmentConfig, EnvironmentPaths, load_environment_context
from clusterops.core.errors import ClusterOpsError
from clusterops.core.runner import CommandRunner

TERRAFORM = "terraform"


def terraform_context(config: EnvironmentConfig, paths: EnvironmentPaths) -> dict[str, str]:
    env = load_environment_context(paths)
    env.update(
        {
            "TF_VAR_project": config.project,
            "TF_VAR_region": config.region,
            "TF_VAR_zone": config.compute_zone,
            "TF_VAR_cluster_name": config.cluster_name,
            "TF_VAR_bucket_prefix": config.bucket_prefix or config.project,
        }
    )
    return env


def _provisioning_dir(paths: EnvironmentPaths) -> Path:
    directory = paths.provisioning_dir
    if not directory.is_dir():
        raise ClusterOpsError(f"provisioning directory not found: {directory}")
    return directory


def terraform_init(runner: CommandRunner, config: EnvironmentConfig, paths: EnvironmentPaths) -> None:
    runner.run(
        [TERRAFORM, "init", "-input=false"],
        cwd=_provisioning_dir(paths),
        env=terraform_context(config, paths),
        stream_output=True,
    )


def terraform_apply(
    runner: CommandRunner, config: EnvironmentConfig, paths: EnvironmentPaths
) -> None:
    runner.run(
        [TERRAFORM, "apply", "-input=false", "-auto-approve"],
        cwd=_provisioning_dir(paths),
        env=terraform_context(config, paths),
        stream_output=True,
    )


def provision_infrastructure(
    runner: CommandRunner, config: EnvironmentConfig, paths: EnvironmentPaths
) -> None:
    terraform_init(runner, config, paths)
    terraform_apply(runner, config, paths)
