"""Error taxonomy shared by clusterops commands."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class ClusterOpsError(RuntimeError):
    """Base class for fatal pipeline errors."""


class PipelineAborted(Exception):
    """Raised when the user declines a confirmation gate."""


class ConfigNotFound(ClusterOpsError):
    def __init__(self, environment: str, path: Path) -> None:
        super().__init__(
            f'Could not find config.json for environment: "{environment}", file path: "{path}"'
        )
        self.environment = environment
        self.path = path


class MissingConfigField(ClusterOpsError):
    def __init__(self, field: str, environment: str) -> None:
        super().__init__(f'Missing {field} in config.json for environment: "{environment}"')
        self.field = field
        self.environment = environment


class InvalidConfigField(ClusterOpsError):
    def __init__(self, field: str, environment: str, reason: str) -> None:
        super().__init__(
            f'Invalid {field} in config.json for environment: "{environment}" ({reason})'
        )
        self.field = field
        self.environment = environment


class UnauthenticatedIdentity(ClusterOpsError):
    def __init__(self) -> None:
        super().__init__("No active gcloud account (log in first with `gcloud auth login`)")


class UnauthorizedProject(ClusterOpsError):
    def __init__(self, project: str, account: str | None = None) -> None:
        who = f" for account {account}" if account else ""
        super().__init__(
            f'Project "{project}" does not exist or is not accessible{who} '
            "(log in with an account that has access: `gcloud auth login`)"
        )
        self.project = project
        self.account = account


class ExternalCommandFailure(ClusterOpsError):
    """An external tool exited with a non-zero status."""

    def __init__(self, cmd: Sequence[str], returncode: int, detail: str = "") -> None:
        self.cmd = tuple(str(token) for token in cmd)
        self.returncode = returncode
        self.detail = collapse_output(detail)
        if self.detail:
            message = self.detail
        else:
            message = f"command failed with exit code {returncode}: {' '.join(self.cmd)}"
        super().__init__(message)


class ManifestNotFound(ClusterOpsError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"manifest not found: {path}")
        self.path = path


class InvalidManifest(ClusterOpsError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"invalid manifest {path}: {collapse_output(reason)}")
        self.path = path


class AddressNotFound(ClusterOpsError):
    def __init__(self, name: str, scope: str) -> None:
        super().__init__(f"address {name} ({scope}) not found")
        self.name = name
        self.scope = scope


def collapse_output(text: str) -> str:
    return " ".join(line.strip() for line in (text or "").splitlines() if line.strip())
