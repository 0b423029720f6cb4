"""High-level environment bootstrap orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from clusterops.core import gcloud
from clusterops.core import kubectl
from clusterops.core import logging
from clusterops.core.addresses import ResolvedAddress, resolve_address
from clusterops.core.config import (
    EnvironmentConfig,
    EnvironmentPaths,
    load_environment_config,
    resolve_project_root,
)
from clusterops.core.deploy_ops import BOOTSTRAP_TARGETS, DeployOptions, deploy_service
from clusterops.core.errors import InvalidManifest, ManifestNotFound, PipelineAborted
from clusterops.core.gcloud import AddressScope
from clusterops.core.identity import authorize_environment, reconcile_project, verify_account
from clusterops.core.manifests import (
    BOOTSTRAP_IMAGE_DEPLOYMENTS,
    container_env_value,
    read_manifest,
    rewrite_image_path,
)
from clusterops.core.prompt import Confirm, auto_confirm
from clusterops.core.prompt import confirm as ask_confirm
from clusterops.core.rollout import RolloutTarget, report_status
from clusterops.core.runner import CommandRunner
from clusterops.core.terraform import provision_infrastructure

REQUIRED_TOOLS = ("gcloud", "kubectl", "terraform")

# Report cross-references: entry name -> (companion deployment, env var).
_COMPANION_URLS = {
    "api": ("web-deployment", "API_URL"),
    "web": ("api-deployment", "APP_URL"),
}


@dataclass(frozen=True)
class BootstrapOptions:
    environment: str
    project: str
    project_dir: str | None = None
    assume_yes: bool = False


@dataclass(frozen=True)
class ReportEntry:
    kind: str
    name: str
    address: ResolvedAddress


@dataclass
class BootstrapResult:
    config: EnvironmentConfig
    account: str = ""
    entries: list[ReportEntry] = field(default_factory=list)


def execute_bootstrap(
    options: BootstrapOptions,
    runner: CommandRunner,
    *,
    confirm: Confirm | None = None,
) -> BootstrapResult:
    """Run every bootstrap stage in order; the first failure stops the run."""
    if confirm is None:
        confirm = auto_confirm if options.assume_yes else ask_confirm

    paths = EnvironmentPaths(resolve_project_root(options.project_dir), options.environment)
    config = load_environment_config(paths)

    logging.step("Checking required tools")
    tools = list(REQUIRED_TOOLS)
    if config.bootstrap_deploy:
        tools.extend(["docker", "git"])
    for tool in tools:
        runner.require_command(tool)

    logging.step("Verifying Google Cloud account")
    account = verify_account(runner, options.project)
    logging.success(f"Authenticated as {account} with access to project {options.project}")

    config = reconcile_project(config, options.project, paths=paths, confirm=confirm)
    result = BootstrapResult(config=config, account=account)

    logging.step(f"Configuring project {config.project}")
    gcloud.set_config_value(runner, "project", config.project)

    logging.step("Enabling Compute and Kubernetes Engine APIs")
    gcloud.enable_services(runner)

    logging.step("Updating deployment image paths")
    for deployment in BOOTSTRAP_IMAGE_DEPLOYMENTS:
        manifest = paths.deployment_manifest(f"{deployment}-deployment")
        if rewrite_image_path(manifest, config.project):
            logging.info(f"Updated image path in {manifest.name}")

    if not confirm(
        f"Provision infrastructure with Terraform for environment "
        f'"{config.environment}" in project "{config.project}"?',
        True,
    ):
        raise PipelineAborted("provisioning declined")

    logging.step("Provisioning infrastructure (terraform init, apply)")
    provision_infrastructure(runner, config, paths)

    logging.step(f"Authorizing cluster {config.cluster_name}")
    authorize_environment(runner, config)

    logging.step("Checking node access")
    nodes = kubectl.get_nodes(runner)
    if nodes:
        runner.emit(nodes)

    logging.step("Creating data resources")
    kubectl.sync_resource(runner, "data resources", paths.data_dir)

    for service in config.services:
        logging.step(f"Creating {service} service")
        name = f"{service}-service"
        manifest = paths.service_manifest(name)
        address = resolve_address(
            runner,
            name,
            AddressScope.regional(config.region),
            manifest_path=manifest,
        )
        result.entries.append(ReportEntry(kind="service", name=service, address=address))
        kubectl.sync_resource(runner, f"{service} service", manifest)

    for ingress in config.ingresses:
        logging.step(f"Creating {ingress} ingress")
        name = f"{ingress}-ingress"
        address = resolve_address(runner, name, AddressScope.global_())
        result.entries.append(ReportEntry(kind="ingress", name=ingress, address=address))
        if config.recreate_ingress:
            kubectl.sync_resource(runner, f"{ingress} ingress", paths.service_manifest(name))
        else:
            logging.info(f"Leaving {ingress} ingress untouched (recreateIngress is false)")

    if config.bootstrap_deploy:
        for target in BOOTSTRAP_TARGETS:
            deploy_service(runner, config, paths, DeployOptions(target=target))
        logging.step("Deployment status")
        report_status(runner, config, list(BOOTSTRAP_TARGETS))

    for line in render_report(result, paths):
        runner.emit(line)
    return result


def render_report(result: BootstrapResult, paths: EnvironmentPaths) -> list[str]:
    config = result.config
    lines = [
        "",
        logging.highlight(
            f"Bootstrap of {config.environment} complete (project={config.project}, "
            f"cluster={config.cluster_name})"
        ),
    ]
    if not result.entries:
        lines.append("No addresses were resolved.")
        return lines

    for entry in result.entries:
        address = entry.address
        ip = address.ip or "<pending>"
        lines.append(f"- {entry.kind} {entry.name}: {address.name} ({address.scope}) {ip}")
        companion = _COMPANION_URLS.get(entry.name)
        if companion is None:
            continue
        deployment, variable = companion
        value = _companion_url(paths.deployment_manifest(deployment), variable)
        if value is not None:
            lines.append(f"  {variable} configured in {deployment}.yml: {value}")
    return lines


def _companion_url(manifest: Path, variable: str) -> str | None:
    try:
        payload = read_manifest(manifest)
        return container_env_value(payload, variable)
    except (InvalidManifest, ManifestNotFound, ValueError):
        return None
