from __future__ import annotations

from pathlib import Path

import pytest

from clusterops.core.config import EnvironmentPaths
from clusterops.core.errors import InvalidManifest, ManifestNotFound
from clusterops.core.manifests import (
    container_env_value,
    container_image,
    read_manifest,
    rewrite_image_path,
    rewrite_image_ref,
    set_load_balancer_ip,
)
from clusterops.tests.fakes import read_yaml


@pytest.mark.parametrize(
    ("image", "expected"),
    [
        ("gcr.io/old-project/acme-services-api:1.4", "gcr.io/new-project/acme-services-api:1.4"),
        ("gcr.io/old-project/acme-services-web", "gcr.io/new-project/acme-services-web"),
        ("us-docker.pkg.dev/old/repo/api:latest", "us-docker.pkg.dev/new-project/api:latest"),
        ("mongo:6", "mongo:6"),
    ],
)
def test_rewrite_image_ref(image: str, expected: str) -> None:
    assert rewrite_image_ref(image, "new-project") == expected


def test_rewrite_image_path_writes_only_on_change(env_paths: EnvironmentPaths) -> None:
    manifest = env_paths.service_manifest("api-deployment")

    assert rewrite_image_path(manifest, "acme-prod") is True
    first = manifest.read_text(encoding="utf-8")
    first_mtime = manifest.stat().st_mtime_ns

    assert rewrite_image_path(manifest, "acme-prod") is False
    assert manifest.read_text(encoding="utf-8") == first
    assert manifest.stat().st_mtime_ns == first_mtime
    assert container_image(read_yaml(manifest)) == "gcr.io/acme-prod/acme-services-api:latest"


def test_rewrite_image_path_same_project_is_noop(env_paths: EnvironmentPaths) -> None:
    manifest = env_paths.service_manifest("web-deployment")
    before = manifest.read_text(encoding="utf-8")

    assert rewrite_image_path(manifest, "acme-staging") is False
    assert manifest.read_text(encoding="utf-8") == before


def test_rewrite_image_path_skips_missing_manifest(tmp_path: Path) -> None:
    assert rewrite_image_path(tmp_path / "missing-deployment.yml", "acme") is False


def test_set_load_balancer_ip_is_change_gated(env_paths: EnvironmentPaths) -> None:
    manifest = env_paths.service_manifest("api-service")

    assert set_load_balancer_ip(manifest, "34.1.2.3") is True
    assert read_yaml(manifest)["spec"]["loadBalancerIP"] == "34.1.2.3"
    assert read_yaml(manifest)["spec"]["type"] == "LoadBalancer"
    assert set_load_balancer_ip(manifest, "34.1.2.3") is False


def test_container_env_value(env_paths: EnvironmentPaths) -> None:
    payload = read_manifest(env_paths.service_manifest("web-deployment"))

    assert container_env_value(payload, "API_URL") == "https://api.acme.test"
    assert container_env_value(payload, "MISSING") is None


def test_read_manifest_missing(tmp_path: Path) -> None:
    with pytest.raises(ManifestNotFound):
        read_manifest(tmp_path / "nope.yml")


def test_container_image_requires_containers() -> None:
    with pytest.raises(ValueError):
        container_image({"kind": "Service", "spec": {}})


def test_read_manifest_malformed_yaml(tmp_path: Path) -> None:
    manifest = tmp_path / "api-deployment.yml"
    manifest.write_text("spec: [unclosed\n", encoding="utf-8")

    with pytest.raises(InvalidManifest) as exc:
        read_manifest(manifest)

    assert str(exc.value).startswith(f"invalid manifest {manifest}: ")
    assert "\n" not in str(exc.value)
