from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, TypeVar

from ..logging import get_logger
from ..util.errors import map_docker_error

LOG = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ContainerRecord:
    """
    A listed container paired with its inspection payload.
    """

    summary: Dict[str, Any]
    details: Dict[str, Any]

    @property
    def container_id(self) -> str:
        return str(self.summary.get("Id") or "")


def _call(context: str, fn: Callable[..., T], *args: Any) -> T:
    try:
        return fn(*args)
    except Exception as e:
        mapped = map_docker_error(e, context)
        if mapped:
            raise mapped from e
        raise


def list_networks(client: Any) -> List[Dict[str, Any]]:
    """
    Return raw network records as reported by the Engine API (/networks).
    """
    networks = _call("Docker error while listing networks", client.api.networks)
    return list(networks or [])


def list_containers(client: Any) -> List[Dict[str, Any]]:
    """
    Return raw summaries of running containers (/containers/json).
    """
    containers = _call("Docker error while listing containers", client.api.containers)
    return list(containers or [])


def inspect_container(client: Any, container_id: str) -> Dict[str, Any]:
    return _call(
        f"Docker error while inspecting container {container_id[:12]}",
        client.api.inspect_container,
        container_id,
    )


def list_container_records(client: Any) -> List[ContainerRecord]:
    """
    List running containers and inspect each one, sequentially.
    The first failure aborts the whole listing.
    """
    records: List[ContainerRecord] = []
    for summary in list_containers(client):
        container_id = str(summary.get("Id") or "")
        details = inspect_container(client, container_id)
        LOG.debug("Inspected container", extra={"container_id": container_id[:12]})
        records.append(ContainerRecord(summary=summary, details=details or {}))
    return records
