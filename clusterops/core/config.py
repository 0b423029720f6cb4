"""Environment configuration loading, validation and persistence."""

from __future__ import annotations

import copy
import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from clusterops.core.errors import ConfigNotFound, InvalidConfigField, MissingConfigField

ENV_PROJECT_DIR = "CLUSTEROPS_PROJECT_DIR"
DEFAULT_SERVICES = ("api", "web")
DEFAULT_PLATFORM = "linux/amd64"

_ZONE_RE = re.compile(r"^(?P<region>[a-z0-9]+(?:-[a-z0-9]+)*)-(?P<letter>[a-z])$")


def resolve_project_root(raw: str | None = None) -> Path:
    value = (raw or "").strip() or os.environ.get(ENV_PROJECT_DIR, "").strip() or "."
    return Path(value).expanduser().resolve()


@dataclass(frozen=True)
class EnvironmentPaths:
    """Filesystem layout of one environment under `deployment/environments`."""

    root: Path
    environment: str

    @property
    def env_dir(self) -> Path:
        return self.root / "deployment" / "environments" / self.environment

    @property
    def config_file(self) -> Path:
        return self.env_dir / "config.json"

    @property
    def env_file(self) -> Path:
        return self.env_dir / ".env"

    @property
    def services_dir(self) -> Path:
        return self.env_dir / "services"

    @property
    def data_dir(self) -> Path:
        return self.env_dir / "data"

    @property
    def provisioning_dir(self) -> Path:
        return self.env_dir / "provisioning"

    def service_manifest(self, name: str) -> Path:
        return self.services_dir / f"{name}.yml"

    def deployment_manifest(self, deployment: str) -> Path:
        return self.service_manifest(deployment)

    def source_dir(self, service: str) -> Path:
        return self.root / "services" / service


@dataclass(frozen=True)
class EnvironmentConfig:
    environment: str
    project: str
    compute_zone: str
    cluster_name: str
    services: tuple[str, ...] = DEFAULT_SERVICES
    ingresses: tuple[str, ...] = ()
    bootstrap_deploy: bool = True
    recreate_ingress: bool = True
    drop_deployment_postfix: bool = False
    gcr_prefix: str | None = None
    bucket_prefix: str | None = None
    platform: str = DEFAULT_PLATFORM
    document: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def region(self) -> str:
        return region_from_zone(self.compute_zone)

    def with_project(self, project: str) -> EnvironmentConfig:
        """Return a copy targeting `project`.

        The bucket prefix follows the project unless it was customized.
        """
        bucket_prefix = self.bucket_prefix
        if bucket_prefix == self.project:
            bucket_prefix = project

        document = copy.deepcopy(self.document)
        gcloud = document.setdefault("gcloud", {})
        gcloud["project"] = project
        if bucket_prefix is not None:
            gcloud["bucketPrefix"] = bucket_prefix

        return EnvironmentConfig(
            environment=self.environment,
            project=project,
            compute_zone=self.compute_zone,
            cluster_name=self.cluster_name,
            services=self.services,
            ingresses=self.ingresses,
            bootstrap_deploy=self.bootstrap_deploy,
            recreate_ingress=self.recreate_ingress,
            drop_deployment_postfix=self.drop_deployment_postfix,
            gcr_prefix=self.gcr_prefix,
            bucket_prefix=bucket_prefix,
            platform=self.platform,
            document=document,
        )


def region_from_zone(zone: str) -> str:
    match = _ZONE_RE.match(zone)
    if match is None:
        raise ValueError(f"compute zone must look like <region>-<letter>, got: {zone!r}")
    return match.group("region")


def load_environment_config(paths: EnvironmentPaths) -> EnvironmentConfig:
    config_path = paths.config_file
    if not config_path.is_file():
        raise ConfigNotFound(paths.environment, config_path)

    try:
        document = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidConfigField("config.json", paths.environment, str(exc)) from exc

    return parse_environment_config(document, paths.environment)


def parse_environment_config(document: Any, environment: str) -> EnvironmentConfig:
    if not isinstance(document, dict):
        raise InvalidConfigField("config.json", environment, "must be a JSON object")

    gcloud = document.get("gcloud")
    if not isinstance(gcloud, dict):
        raise MissingConfigField("gcloud", environment)

    project = _require_str(gcloud, "project", environment)
    compute_zone = _require_str(gcloud, "computeZone", environment)
    try:
        region_from_zone(compute_zone)
    except ValueError as exc:
        raise InvalidConfigField("gcloud.computeZone", environment, str(exc)) from exc

    kubernetes = gcloud.get("kubernetes")
    if not isinstance(kubernetes, dict):
        raise MissingConfigField("gcloud.kubernetes", environment)
    cluster_name = _require_str(kubernetes, "clusterName", environment, prefix="gcloud.kubernetes")

    return EnvironmentConfig(
        environment=environment,
        project=project,
        compute_zone=compute_zone,
        cluster_name=cluster_name,
        services=_str_list(gcloud, "services", environment, DEFAULT_SERVICES),
        ingresses=_str_list(gcloud, "ingresses", environment, ()),
        bootstrap_deploy=_bool(gcloud, "bootstrapDeploy", environment, True),
        recreate_ingress=_bool(gcloud, "recreateIngress", environment, True),
        drop_deployment_postfix=_bool(gcloud, "dropDeploymentPostfix", environment, False),
        gcr_prefix=_optional_str(gcloud, "gcrPrefix"),
        bucket_prefix=_optional_str(gcloud, "bucketPrefix"),
        platform=_optional_str(gcloud, "platform") or DEFAULT_PLATFORM,
        document=copy.deepcopy(document),
    )


def write_environment_config(paths: EnvironmentPaths, config: EnvironmentConfig) -> Path:
    path = paths.config_file
    path.write_text(json.dumps(config.document, indent=2) + "\n", encoding="utf-8")
    return path


def load_environment_context(paths: EnvironmentPaths) -> dict[str, str]:
    """Values from the environment's optional `.env` file, for external tools."""
    if not paths.env_file.is_file():
        return {}
    values = dotenv_values(paths.env_file)
    return {key: value for key, value in values.items() if value is not None}


def _require_str(
    payload: dict[str, Any],
    key: str,
    environment: str,
    *,
    prefix: str = "gcloud",
) -> str:
    value = payload.get(key)
    if value is None or str(value).strip() == "":
        raise MissingConfigField(f"{prefix}.{key}", environment)
    return str(value).strip()


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _str_list(
    payload: dict[str, Any],
    key: str,
    environment: str,
    default: tuple[str, ...],
) -> tuple[str, ...]:
    raw = payload.get(key)
    if raw is None:
        return default
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise InvalidConfigField(f"gcloud.{key}", environment, "must be a list of strings")
    return tuple(item.strip() for item in raw if item.strip())


def _bool(payload: dict[str, Any], key: str, environment: str, default: bool) -> bool:
    raw = payload.get(key)
    if raw is None:
        return default
    if not isinstance(raw, bool):
        raise InvalidConfigField(f"gcloud.{key}", environment, "must be true or false")
    return raw
