from __future__ import annotations

from pathlib import Path

import pytest

from clusterops.core.config import EnvironmentPaths
from clusterops.tests.fakes import ScriptedRunner, make_environment


@pytest.fixture
def env_paths(tmp_path: Path) -> EnvironmentPaths:
    return make_environment(tmp_path)


@pytest.fixture
def runner() -> ScriptedRunner:
    return ScriptedRunner()
