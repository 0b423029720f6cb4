"""Command execution helpers for clusterops commands."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Sequence

from clusterops.core.errors import ClusterOpsError, ExternalCommandFailure

logger = logging.getLogger(__name__)

# Lines of streamed output kept in the failure message.
STREAM_ERROR_TAIL = 20


@dataclass(frozen=True)
class CompletedCommand:
    """Normalized command execution result."""

    cmd: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class CommandRunner:
    """Thin subprocess wrapper with dry-run support and deterministic logging."""

    def __init__(
        self,
        *,
        dry_run: bool = False,
        printer: Callable[[str], None] | None = None,
    ) -> None:
        self.dry_run = dry_run
        self._printer = printer or print

    def format_cmd(self, cmd: Sequence[str]) -> str:
        return "$ " + " ".join(shlex.quote(str(token)) for token in cmd)

    def emit(self, message: str) -> None:
        self._printer(message)

    def which(self, command: str) -> str | None:
        resolved = shutil.which(command)
        if resolved is None:
            return None
        return str(Path(resolved).resolve())

    def require_command(self, command: str) -> str:
        resolved = self.which(command)
        if resolved is None:
            raise ClusterOpsError(f"required command not found: {command}")
        return resolved

    def output(
        self,
        cmd: Sequence[str],
        *,
        stderr: bool = False,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        run_in_dry_run: bool = True,
    ) -> str:
        """Run a query command and return its stripped output.

        gcloud reports the result of several `config` subcommands on stderr,
        so callers can pick the stream they need.
        """
        result = self.run(
            cmd,
            cwd=cwd,
            env=env,
            capture_output=True,
            run_in_dry_run=run_in_dry_run,
        )
        return (result.stderr if stderr else result.stdout).strip()

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        capture_output: bool = False,
        check: bool = True,
        stream_output: bool = False,
        run_in_dry_run: bool = False,
    ) -> CompletedCommand:
        rendered = self.format_cmd(cmd)
        if self.dry_run and not run_in_dry_run:
            self.emit(f"[dry-run] {rendered}")
            return CompletedCommand(tuple(str(token) for token in cmd), 0, "", "")

        logger.debug("running %s (cwd=%s)", rendered, cwd or ".")

        run_env = os.environ.copy()
        if env:
            run_env.update({str(key): str(value) for key, value in env.items()})

        if stream_output:
            self.emit(rendered)
            proc = subprocess.Popen(
                [str(token) for token in cmd],
                cwd=str(cwd) if cwd else None,
                env=run_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
                errors="replace",
            )
            assert proc.stdout is not None
            captured: list[str] = []
            for raw_line in proc.stdout:
                line = raw_line.rstrip("\n")
                captured.append(line)
                self.emit(line)
            rc = proc.wait()
            stdout = "\n".join(captured)
            if check and rc != 0:
                # Output was already streamed; the error carries only its tail.
                raise ExternalCommandFailure(cmd, rc, "\n".join(captured[-STREAM_ERROR_TAIL:]))
            return CompletedCommand(tuple(str(token) for token in cmd), rc, stdout, "")

        completed = subprocess.run(
            [str(token) for token in cmd],
            cwd=str(cwd) if cwd else None,
            env=run_env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE if capture_output else None,
            stderr=subprocess.PIPE if capture_output else None,
            text=True,
            check=False,
            errors="replace",
        )

        if check and completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            stdout = (completed.stdout or "").strip()
            raise ExternalCommandFailure(cmd, completed.returncode, stderr or stdout)

        return CompletedCommand(
            tuple(str(token) for token in cmd),
            completed.returncode,
            completed.stdout or "",
            completed.stderr or "",
        )
