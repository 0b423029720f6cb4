from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from clusterops.core import rollout
from clusterops.core.config import EnvironmentPaths, load_environment_config, parse_environment_config
from clusterops.core.errors import ExternalCommandFailure
from clusterops.core.rollout import (
    RolloutTarget,
    build_metadata,
    check_deployment,
    delete_deployment,
    deployment_identity,
    identity_for,
    rollout_deployment,
    summarize_deployment,
)
from clusterops.tests.fakes import FakeCluster, Reply, ScriptedRunner, install_git, read_yaml


def _config(**gcloud):
    base = {"project": "p", "computeZone": "us-east1-c", "kubernetes": {"clusterName": "c"}}
    base.update(gcloud)
    return parse_environment_config({"gcloud": base}, "staging")


def test_rollout_target_deployment_names() -> None:
    assert RolloutTarget("web").deployment == "web-deployment"
    assert RolloutTarget("api", "cli").deployment == "api-cli-deployment"


@pytest.mark.parametrize(
    ("name", "drop_postfix", "prefix", "expected"),
    [
        ("web-deployment", True, "myorg-", "myorg-web"),
        ("web-deployment", False, "myorg-", "myorg-web-deployment"),
        ("web-deployment", True, None, "web"),
        ("web-deployment", False, None, "web-deployment"),
        ("web-worker", True, "myorg-", "myorg-web-worker"),
        ("deployment", True, None, "deployment"),
    ],
)
def test_deployment_identity(name: str, drop_postfix: bool, prefix, expected: str) -> None:
    assert deployment_identity(name, drop_postfix=drop_postfix, prefix=prefix) == expected


@pytest.mark.parametrize("drop_postfix", [True, False])
@pytest.mark.parametrize("prefix", [None, "myorg-"])
def test_patch_and_status_target_the_same_deployment(
    env_paths: EnvironmentPaths, drop_postfix: bool, prefix
) -> None:
    gcloud = {"dropDeploymentPostfix": drop_postfix}
    if prefix:
        gcloud["gcrPrefix"] = prefix
    config = _config(**gcloud)
    runner = ScriptedRunner()
    install_git(runner)
    target = RolloutTarget("web")

    patched = rollout_deployment(runner, config, env_paths, target)
    check_deployment(runner, config, target)

    patch_cmd = runner.ran("kubectl", "patch", "deployment")[0]
    get_cmd = runner.ran("kubectl", "get", "deployment")[0]
    assert patch_cmd[3] == get_cmd[3] == patched == identity_for(config, target)


def test_build_metadata(runner: ScriptedRunner, monkeypatch) -> None:
    install_git(runner, tag="v1.2.0", branch="main", user="Jane Doe")
    monkeypatch.setattr(rollout.platform, "machine", lambda: "x86_64")

    metadata = build_metadata(runner, now=datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc))

    assert metadata.annotations() == {
        "date": "Mon, 06 May 2024 07:08:09 GMT",
        "author": "Jane Doe",
        "branch": "main",
        "arch": "amd64",
        "git": "v1.2.0",
    }
    assert metadata.patch() == {
        "spec": {"template": {"metadata": {"annotations": metadata.annotations()}}}
    }


def test_build_metadata_defaults_author(runner: ScriptedRunner) -> None:
    install_git(runner)
    runner.respond(["git", "config", "--get", "user.name"], Reply(returncode=1))

    assert build_metadata(runner).author == "Anonymous"


def test_rollout_applies_manifest_then_patches(
    runner: ScriptedRunner, env_paths: EnvironmentPaths
) -> None:
    install_git(runner, commit="abc1234", dirty=True)
    cluster = FakeCluster()
    cluster.install(runner)
    config = load_environment_config(env_paths)

    name = rollout_deployment(runner, config, env_paths, RolloutTarget("api"))

    assert name == "api-deployment"
    manifest = env_paths.deployment_manifest("api-deployment")
    assert runner.index_of("kubectl", "apply", "-f", str(manifest)) < runner.index_of(
        "kubectl", "patch", "deployment"
    )
    patch = json.loads(runner.ran("kubectl", "patch", "deployment")[0][5])
    annotations = patch["spec"]["template"]["metadata"]["annotations"]
    assert annotations["git"] == "abc1234-dirty"
    assert set(annotations) == {"date", "author", "branch", "arch", "git"}
    live = cluster.objects[("Deployment", "api-deployment")]
    assert live["spec"]["template"]["metadata"]["annotations"]["git"] == "abc1234-dirty"
    # The image tag is untouched; only annotations change.
    assert live["spec"]["template"]["spec"]["containers"][0]["image"] == (
        "gcr.io/acme-staging/acme-services-api:latest"
    )


def test_rollout_without_manifest_still_patches(
    runner: ScriptedRunner, env_paths: EnvironmentPaths
) -> None:
    install_git(runner)
    config = load_environment_config(env_paths)
    target = RolloutTarget("web", "feature-login")
    assert not env_paths.deployment_manifest(target.deployment).exists()

    name = rollout_deployment(runner, config, env_paths, target)

    assert name == "web-feature-login-deployment"
    assert runner.ran("kubectl", "apply") == []
    assert len(runner.ran("kubectl", "patch", "deployment", name)) == 1


def test_rollout_patch_failure_is_fatal(runner: ScriptedRunner, env_paths: EnvironmentPaths) -> None:
    install_git(runner)
    runner.respond(
        ["kubectl", "patch", "deployment"],
        Reply(stderr='Error from server (NotFound): deployments "x" not found', returncode=1),
    )

    with pytest.raises(ExternalCommandFailure):
        rollout_deployment(
            runner, load_environment_config(env_paths), env_paths, RolloutTarget("x")
        )


def test_delete_deployment_with_manifest(runner: ScriptedRunner, env_paths: EnvironmentPaths) -> None:
    config = load_environment_config(env_paths)

    assert delete_deployment(runner, config, env_paths, RolloutTarget("web")) is True
    assert runner.commands == [
        ["kubectl", "delete", "-f", str(env_paths.deployment_manifest("web-deployment"))]
    ]


def test_delete_deployment_without_manifest(runner: ScriptedRunner, env_paths: EnvironmentPaths) -> None:
    config = load_environment_config(env_paths)

    assert delete_deployment(runner, config, env_paths, RolloutTarget("web", "preview")) is False
    assert runner.commands == []


def test_check_deployment_not_found_returns_none(runner: ScriptedRunner, capsys) -> None:
    config = _config(dropDeploymentPostfix=True, gcrPrefix="myorg-")

    assert check_deployment(runner, config, RolloutTarget("web")) is None
    assert 'Deployment "myorg-web" could not be found' in capsys.readouterr().out


def test_check_deployment_returns_live_object(runner: ScriptedRunner) -> None:
    payload = {"metadata": {"name": "web-deployment"}, "spec": {"replicas": 2}}
    runner.respond(["kubectl", "get", "deployment", "web-deployment"], Reply(stdout=json.dumps(payload)))

    assert check_deployment(runner, _config(), RolloutTarget("web")) == payload


def test_summarize_deployment() -> None:
    status = summarize_deployment(
        {
            "metadata": {"name": "api-deployment"},
            "spec": {
                "replicas": 2,
                "template": {
                    "metadata": {"annotations": {"git": "v1.2.0", "date": "today"}},
                    "spec": {"containers": [{"image": "gcr.io/p/api:latest"}]},
                },
            },
            "status": {"readyReplicas": 1, "updatedReplicas": 2},
        }
    )

    assert status.name == "api-deployment"
    assert status.ready == 1 and status.desired == 2
    assert status.healthy is False
    assert status.describe() == (
        "api-deployment: 1/2 ready, image=gcr.io/p/api:latest, git=v1.2.0, date=today"
    )


def test_manifest_is_untouched_by_rollout(runner: ScriptedRunner, env_paths: EnvironmentPaths) -> None:
    install_git(runner)
    manifest: Path = env_paths.deployment_manifest("web-deployment")
    before = read_yaml(manifest)

    rollout_deployment(runner, load_environment_config(env_paths), env_paths, RolloutTarget("web"))

    assert read_yaml(manifest) == before
