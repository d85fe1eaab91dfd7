from __future__ import annotations

from typing import Any, Optional

import docker

from ..util.errors import map_docker_error


def get_docker_client(base_url: Optional[str] = None) -> Any:
    """
    Create a DockerClient, honoring an explicit daemon URL when provided.

    Without base_url the SDK reads DOCKER_HOST, DOCKER_TLS_VERIFY and
    DOCKER_CERT_PATH from the environment.
    """
    try:
        if base_url:
            return docker.DockerClient(base_url=base_url)
        return docker.from_env()
    except Exception as e:
        mapped = map_docker_error(e, "Unable to connect to the Docker daemon")
        if mapped:
            raise mapped from e
        raise
