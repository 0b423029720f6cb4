"""Google Cloud CLI collaborator."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from clusterops.core.errors import AddressNotFound, ClusterOpsError, ExternalCommandFailure
from clusterops.core.runner import CommandRunner

GCLOUD = "gcloud"
REQUIRED_APIS = ("compute.googleapis.com", "container.googleapis.com")
_UNSET = "(unset)"


@dataclass(frozen=True)
class AddressScope:
    """Regional scope (service load balancer) or global scope (ingress)."""

    region: str | None = None

    @classmethod
    def regional(cls, region: str) -> AddressScope:
        if not region:
            raise ValueError("regional address scope requires a region")
        return cls(region=region)

    @classmethod
    def global_(cls) -> AddressScope:
        return cls(region=None)

    @property
    def is_global(self) -> bool:
        return self.region is None

    def flags(self) -> list[str]:
        if self.region is None:
            return ["--global"]
        return ["--region", self.region]

    def __str__(self) -> str:
        if self.region is None:
            return "global"
        return f"regional:{self.region}"


def get_config_value(runner: CommandRunner, key: str) -> str:
    value = runner.output([GCLOUD, "config", "get-value", key])
    if value == _UNSET:
        return ""
    return value


def set_config_value(runner: CommandRunner, key: str, value: str) -> None:
    # gcloud reports "Updated property [...]" on stderr.
    result = runner.run([GCLOUD, "config", "set", key, value], capture_output=True)
    message = (result.stderr or result.stdout).strip()
    if message:
        runner.emit(message)


def get_active_account(runner: CommandRunner) -> str:
    return get_config_value(runner, "account")


def describe_project(runner: CommandRunner, project: str) -> dict[str, Any]:
    raw = runner.output([GCLOUD, "projects", "describe", project, "--format", "json"])
    return _parse_json(raw, f"project {project}")


def enable_services(runner: CommandRunner, apis: tuple[str, ...] = REQUIRED_APIS) -> None:
    runner.run([GCLOUD, "services", "enable", *apis], stream_output=True)


def describe_address(runner: CommandRunner, name: str, scope: AddressScope) -> dict[str, Any]:
    cmd = [GCLOUD, "compute", "addresses", "describe", name, *scope.flags(), "--format", "json"]
    try:
        raw = runner.output(cmd)
    except ExternalCommandFailure as exc:
        # Permission and region errors must surface as-is, not as a create attempt.
        if "not found" not in exc.detail.lower():
            raise
        raise AddressNotFound(name, str(scope)) from exc
    return _parse_json(raw, f"address {name}")


def create_address(runner: CommandRunner, name: str, scope: AddressScope) -> None:
    runner.run([GCLOUD, "compute", "addresses", "create", name, *scope.flags()], capture_output=True)


def get_cluster_credentials(
    runner: CommandRunner,
    cluster_name: str,
    *,
    zone: str,
    project: str,
) -> None:
    result = runner.run(
        [
            GCLOUD,
            "container",
            "clusters",
            "get-credentials",
            cluster_name,
            "--zone",
            zone,
            "--project",
            project,
        ],
        capture_output=True,
    )
    message = (result.stderr or result.stdout).strip()
    if message:
        runner.emit(message)


def _parse_json(raw: str, what: str) -> dict[str, Any]:
    if raw == "":
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ClusterOpsError(f"gcloud returned invalid JSON for {what}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ClusterOpsError(f"gcloud returned unexpected JSON for {what}")
    return payload
