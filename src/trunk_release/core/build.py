"""Run the optional build step between version bump and release commit."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import TYPE_CHECKING

from trunk_release.exceptions import BuildCommandError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)


def run_build_command(command: str, env: Mapping[str, str], cwd: Path) -> None:
    """Run a shell command with release details in its environment.

    Args:
        command: Shell command line
        env: Extra environment variables (e.g. RELEASE_VERSION)
        cwd: Working directory

    Raises:
        BuildCommandError: If the command cannot be spawned or exits non-zero
    """
    logger.info("Running build command: %s", command)
    try:
        result = subprocess.run(
            command,
            shell=True,
            cwd=cwd,
            env={**os.environ, **env},
            check=False,
        )
    except OSError as e:
        raise BuildCommandError(command) from e

    if result.returncode != 0:
        raise BuildCommandError(command, result.returncode)
