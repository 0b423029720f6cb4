"""Cloud identity, project access and gcloud context management."""

from __future__ import annotations

from clusterops.core import gcloud
from clusterops.core import logging
from clusterops.core.config import EnvironmentConfig, EnvironmentPaths, write_environment_config
from clusterops.core.errors import (
    ClusterOpsError,
    ExternalCommandFailure,
    PipelineAborted,
    UnauthenticatedIdentity,
    UnauthorizedProject,
)
from clusterops.core.prompt import Confirm
from clusterops.core.runner import CommandRunner


def verify_account(runner: CommandRunner, project: str) -> str:
    """Return the active gcloud account after checking it can see `project`."""
    account = gcloud.get_active_account(runner)
    if not account:
        raise UnauthenticatedIdentity()

    try:
        gcloud.describe_project(runner, project)
    except ExternalCommandFailure as exc:
        raise UnauthorizedProject(project, account) from exc
    return account


def reconcile_project(
    config: EnvironmentConfig,
    live_project: str,
    *,
    paths: EnvironmentPaths,
    confirm: Confirm,
) -> EnvironmentConfig:
    if config.project == live_project:
        return config

    confirmed = confirm(
        f'Project "{live_project}" is different from project "{config.project}" as defined '
        "in config.json. Your config.json will be updated, do you want to continue?",
        True,
    )
    if not confirmed:
        raise PipelineAborted(f"project change to {live_project!r} declined")

    updated = config.with_project(live_project)
    path = write_environment_config(paths, updated)
    logging.info(f"Updated {path} (project={live_project})")
    return updated


def authorize_environment(runner: CommandRunner, config: EnvironmentConfig) -> None:
    """Point the local gcloud and kubectl context at the environment's cluster."""
    gcloud.set_config_value(runner, "project", config.project)
    gcloud.set_config_value(runner, "compute/zone", config.compute_zone)
    gcloud.get_cluster_credentials(
        runner,
        config.cluster_name,
        zone=config.compute_zone,
        project=config.project,
    )
    gcloud.set_config_value(runner, "container/cluster", config.cluster_name)


def check_cloud_config(runner: CommandRunner, config: EnvironmentConfig) -> bool:
    valid = True
    expected = (
        ("project", config.project),
        ("compute/zone", config.compute_zone),
        ("container/cluster", config.cluster_name),
    )
    for key, value in expected:
        current = gcloud.get_config_value(runner, key)
        if current != value:
            valid = False
            logging.mismatch(
                f"Invalid Google Cloud config (use authorize command): {key} = {current}"
            )

    if valid:
        logging.success(
            f"Using Google Cloud environment {config.environment} "
            f"(project={config.project}, compute/zone={config.compute_zone}, "
            f"cluster={config.cluster_name})"
        )
    return valid


def require_cloud_config(runner: CommandRunner, config: EnvironmentConfig) -> None:
    if not check_cloud_config(runner, config):
        raise ClusterOpsError(
            f"Invalid Google Cloud config, run `clusterops authorize {config.environment}`"
        )
