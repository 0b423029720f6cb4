from __future__ import annotations

import json

from clusterops.core import kubectl
from clusterops.core.config import EnvironmentPaths
from clusterops.tests.fakes import FakeCluster, ScriptedRunner, read_yaml, service_manifest


def test_sync_resource_deletes_then_creates(runner: ScriptedRunner, env_paths: EnvironmentPaths) -> None:
    manifest = env_paths.service_manifest("api-service")

    assert kubectl.sync_resource(runner, "api service", manifest) is True

    assert runner.commands == [
        ["kubectl", "delete", "-f", str(manifest), "--ignore-not-found"],
        ["kubectl", "create", "-f", str(manifest)],
    ]


def test_sync_resource_converges_drifted_object(
    runner: ScriptedRunner, env_paths: EnvironmentPaths
) -> None:
    cluster = FakeCluster()
    cluster.install(runner)
    drifted = service_manifest("api-service")
    drifted["spec"]["ports"] = [{"port": 8080, "targetPort": 8080}]
    drifted["spec"]["sessionAffinity"] = "ClientIP"
    cluster.put(drifted)
    manifest = env_paths.service_manifest("api-service")

    kubectl.sync_resource(runner, "api service", manifest)

    assert cluster.objects[("Service", "api-service")] == read_yaml(manifest)


def test_sync_resource_handles_directories(runner: ScriptedRunner, env_paths: EnvironmentPaths) -> None:
    cluster = FakeCluster()
    cluster.install(runner)

    assert kubectl.sync_resource(runner, "data resources", env_paths.data_dir) is True
    assert ("Deployment", "mongo-deployment") in cluster.objects


def test_sync_resource_skips_missing_manifest(
    runner: ScriptedRunner, env_paths: EnvironmentPaths
) -> None:
    missing = env_paths.service_manifest("admin-ingress")

    assert kubectl.sync_resource(runner, "admin ingress", missing) is False
    assert runner.commands == []


def test_patch_deployment_passes_json_as_single_argument(runner: ScriptedRunner) -> None:
    patch = {"spec": {"template": {"metadata": {"annotations": {"author": 'Jane "JD" Doe'}}}}}

    kubectl.patch_deployment(runner, "web", patch)

    command = runner.commands[0]
    assert command[:5] == ["kubectl", "patch", "deployment", "web", "-p"]
    assert json.loads(command[5]) == patch


def test_get_deployment_empty_output_is_none(runner: ScriptedRunner) -> None:
    assert kubectl.get_deployment(runner, "web") is None
    assert runner.commands == [
        ["kubectl", "get", "deployment", "web", "-o", "json", "--ignore-not-found"]
    ]
