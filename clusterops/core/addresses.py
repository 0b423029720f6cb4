"""Idempotent lookup and allocation of external IP addresses."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from clusterops.core import gcloud
from clusterops.core import logging
from clusterops.core.errors import AddressNotFound, ClusterOpsError
from clusterops.core.gcloud import AddressScope
from clusterops.core.manifests import set_load_balancer_ip
from clusterops.core.runner import CommandRunner


@dataclass(frozen=True)
class ResolvedAddress:
    name: str
    scope: AddressScope
    ip: str
    created: bool = False
    manifest_updated: bool = False


def resolve_address(
    runner: CommandRunner,
    name: str,
    scope: AddressScope,
    *,
    manifest_path: Path | None = None,
) -> ResolvedAddress:
    """Return the IP of address `name`, creating the address when missing.

    The manifest's `loadBalancerIP` is only written when the address is
    created here; an existing address never touches the manifest.
    """
    try:
        existing = gcloud.describe_address(runner, name, scope)
    except AddressNotFound:
        pass
    else:
        ip = _address_ip(existing, name)
        logging.info(f"Using existing address {name} ({scope}): {ip}")
        return ResolvedAddress(name=name, scope=scope, ip=ip)

    logging.info(f"Creating address {name} ({scope})")
    gcloud.create_address(runner, name, scope)
    if runner.dry_run:
        return ResolvedAddress(name=name, scope=scope, ip="", created=True)

    try:
        created = gcloud.describe_address(runner, name, scope)
    except AddressNotFound as exc:
        raise ClusterOpsError(f"address {name} ({scope}) not found after creation") from exc
    ip = _address_ip(created, name)
    logging.success(f"Created address {name} ({scope}): {ip}")

    updated = False
    if manifest_path is not None and set_load_balancer_ip(manifest_path, ip):
        updated = True
        logging.info(f"Set loadBalancerIP {ip} in {manifest_path.name}")

    return ResolvedAddress(
        name=name,
        scope=scope,
        ip=ip,
        created=True,
        manifest_updated=updated,
    )


def _address_ip(payload: dict, name: str) -> str:
    ip = str(payload.get("address", "")).strip()
    if not ip:
        raise ClusterOpsError(f"address {name} has no IP assigned")
    return ip
