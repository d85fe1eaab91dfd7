from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    FAILURE = 1


class NetGraphError(Exception):
    """Base error for the topology pipeline."""


class ConfigError(NetGraphError):
    """Raised for configuration or argument issues."""


class DockerClientError(NetGraphError):
    """Raised when listing or inspecting runtime state fails."""


class GraphBuildError(NetGraphError):
    """Raised when the abstract graph cannot be assembled."""


class RenderError(NetGraphError):
    """Raised when rendering or writing the graph fails."""


def as_exit_code(exc: BaseException) -> int:
    # Every failure is fatal and reported the same way.
    return int(ExitCode.FAILURE)


def _docker_error_types() -> tuple[type[BaseException], ...]:
    from docker.errors import DockerException
    from requests.exceptions import RequestException

    return (DockerException, RequestException)


def is_docker_error(exc: BaseException) -> bool:
    """
    Return True if the exception comes from the Docker SDK or its HTTP transport.
    """
    if isinstance(exc, _docker_error_types()):
        return True
    return exc.__class__.__module__.startswith("docker.")


def map_docker_error(exc: BaseException, context: str) -> DockerClientError | None:
    """
    Wrap Docker SDK errors with DockerClientError so the CLI reports them uniformly.
    """
    if not is_docker_error(exc):
        return None
    return DockerClientError(f"{context}: {exc}")
