"""Docker discovery for integration tests.

Integration tests start real PostgreSQL servers through testcontainers and
are skipped when no Docker daemon answers.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from docker import from_env  # type: ignore[import-untyped]
from docker.errors import DockerException  # type: ignore[import-untyped]


def pytest_configure(config: pytest.Config) -> None:  # noqa: ARG001
    """Point testcontainers at a local Docker socket before any fixture runs."""
    if not os.environ.get("DOCKER_HOST"):
        possible_sockets = [
            Path("/var/run/docker.sock"),
            Path.home() / ".docker" / "run" / "docker.sock",
        ]
        for socket_path in possible_sockets:
            if socket_path.exists():
                os.environ["DOCKER_HOST"] = f"unix://{socket_path}"
                os.environ["TESTCONTAINERS_DOCKER_SOCKET_OVERRIDE"] = str(socket_path)
                break

    # Ryuk (testcontainers cleanup daemon) has known issues on macOS/Docker Desktop
    if sys.platform == "darwin" and not os.environ.get("TESTCONTAINERS_RYUK_DISABLED"):
        os.environ["TESTCONTAINERS_RYUK_DISABLED"] = "true"


def is_docker_available() -> bool:
    """Check that the Docker daemon responds to ping, not just that a socket exists."""
    try:
        client = from_env()
        client.ping()
    except DockerException:
        return False
    else:
        return True
