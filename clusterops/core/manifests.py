"""Kubernetes manifest reading and field rewrites.

Manifests are read from disk on every access and written back immediately
after a change; nothing is cached between pipeline stages.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from clusterops.core.errors import InvalidManifest, ManifestNotFound

# Deployments whose image path is rewritten to the bootstrapped project.
BOOTSTRAP_IMAGE_DEPLOYMENTS = ("api", "api-cli", "api-jobs", "web")


def read_manifest(path: Path) -> dict[str, Any]:
    manifest_path = Path(path)
    if not manifest_path.is_file():
        raise ManifestNotFound(manifest_path)
    try:
        payload = yaml.safe_load(manifest_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise InvalidManifest(manifest_path, str(exc)) from exc
    if not isinstance(payload, dict):
        raise ValueError(f"manifest must be a mapping: {manifest_path}")
    return payload


def write_manifest(path: Path, payload: dict[str, Any]) -> None:
    Path(path).write_text(
        yaml.safe_dump(payload, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )


def first_container(payload: dict[str, Any]) -> dict[str, Any]:
    try:
        containers = payload["spec"]["template"]["spec"]["containers"]
        container = containers[0]
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError("manifest has no spec.template.spec.containers[0]") from exc
    if not isinstance(container, dict):
        raise ValueError("spec.template.spec.containers[0] must be a mapping")
    return container


def container_image(payload: dict[str, Any]) -> str:
    return str(first_container(payload).get("image", "")).strip()


def container_env_value(payload: dict[str, Any], name: str) -> str | None:
    for entry in first_container(payload).get("env") or []:
        if isinstance(entry, dict) and entry.get("name") == name:
            value = entry.get("value")
            return None if value is None else str(value)
    return None


def rewrite_image_ref(image: str, project_prefix: str) -> str:
    """Move `image` to `<registry>/<project_prefix>/<name>[:tag]`.

    Images without a registry path are returned unchanged.
    """
    if "/" not in image:
        return image
    registry = image.split("/", 1)[0]
    name = image.rsplit("/", 1)[1]
    return f"{registry}/{project_prefix}/{name}"


def rewrite_image_path(manifest_path: Path, project_prefix: str) -> bool:
    """Rewrite the first container image of a deployment; True when written."""
    if not Path(manifest_path).is_file():
        return False
    payload = read_manifest(manifest_path)
    container = first_container(payload)
    current = str(container.get("image", "")).strip()
    if not current:
        return False
    updated = rewrite_image_ref(current, project_prefix)
    if updated == current:
        return False
    container["image"] = updated
    write_manifest(manifest_path, payload)
    return True


def set_load_balancer_ip(manifest_path: Path, ip: str) -> bool:
    """Set `spec.loadBalancerIP` of a Service manifest; True when written."""
    if not Path(manifest_path).is_file():
        return False
    payload = read_manifest(manifest_path)
    spec = payload.get("spec")
    if not isinstance(spec, dict):
        spec = {}
        payload["spec"] = spec
    if spec.get("loadBalancerIP") == ip:
        return False
    spec["loadBalancerIP"] = ip
    write_manifest(manifest_path, payload)
    return True
