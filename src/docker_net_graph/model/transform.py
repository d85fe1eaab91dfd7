from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..logging import get_logger
from ..runtime.discovery import ContainerRecord
from .colors import ColorAllocator
from .schema import HOST_NETWORK, Container, Interface, Link, Network, Topology

LOG = get_logger(__name__)

ICC_OPTION = "com.docker.network.bridge.enable_icc"
SHORT_ID_LENGTH = 12

NetworkCallback = Callable[[Network], None]
ContainerCallback = Callable[[Container], None]


def network_gateway(record: Mapping[str, Any]) -> str:
    """
    First configured IPAM subnet, or "" when the network has none.
    """
    ipam = record.get("IPAM") or {}
    configs = ipam.get("Config") or []
    if not configs:
        return ""
    first = configs[0] or {}
    return str(first.get("Subnet") or "")


def is_isolated(options: Optional[Mapping[str, Any]]) -> bool:
    """
    Inter-container communication counts as disabled only on an explicit "false".
    """
    if not options:
        return False
    return options.get(ICC_OPTION) == "false"


def build_networks(
    records: Iterable[Mapping[str, Any]],
    allocator: ColorAllocator,
    *,
    on_network: Optional[NetworkCallback] = None,
) -> Dict[str, Network]:
    """
    Turn raw network records into Networks keyed by name.

    Records are taken in name order so palette colors are reproducible.
    Networks without a subnet are skipped; the synthetic host network is
    always added last and replaces any reported network called "host".
    """
    networks: Dict[str, Network] = {}
    for record in sorted(records, key=lambda r: str(r.get("Name") or "")):
        name = str(record.get("Name") or "")
        gateway = network_gateway(record)
        if not name or not gateway:
            LOG.debug("Skipping network without subnet", extra={"network": name})
            continue
        network = Network(
            name=name,
            gateway=gateway,
            internal=bool(record.get("Internal")),
            isolated=is_isolated(record.get("Options")),
            color=allocator.next_color(),
        )
        networks[name] = network
        if on_network:
            on_network(network)

    networks.pop(HOST_NETWORK.name, None)
    networks[HOST_NETWORK.name] = HOST_NETWORK
    return networks


def container_name(summary: Mapping[str, Any]) -> str:
    names = summary.get("Names") or []
    if names:
        return str(names[0]).lstrip("/")
    return str(summary.get("Id") or "")[:SHORT_ID_LENGTH]


def filter_aliases(aliases: Optional[Sequence[str]], container_id: str, name: str) -> Tuple[str, ...]:
    """
    Drop self-referential aliases (short id, display name) and duplicates.
    """
    short_id = container_id[:SHORT_ID_LENGTH]
    out: List[str] = []
    for alias in aliases or []:
        if alias in (short_id, name) or alias in out:
            continue
        out.append(alias)
    return tuple(out)


def _port_id(key: str) -> str:
    return key.split("/", 1)[0]


def build_container(record: ContainerRecord) -> Tuple[Container, List[Link]]:
    summary = record.summary
    settings = record.details.get("NetworkSettings") or {}
    container_id = str(summary.get("Id") or record.details.get("Id") or "")
    name = container_name(summary)

    ports = tuple(_port_id(str(key)) for key in (settings.get("Ports") or {}))

    interfaces: List[Interface] = []
    links: List[Link] = []
    for network_name, attachment in (settings.get("Networks") or {}).items():
        attachment = attachment or {}
        endpoint_id = str(attachment.get("EndpointID") or "")
        interfaces.append(
            Interface(
                endpoint_id=endpoint_id,
                address=str(attachment.get("IPAddress") or ""),
                aliases=filter_aliases(attachment.get("Aliases"), container_id, name),
            )
        )
        links.append(Link(container_id=container_id, endpoint_id=endpoint_id, network_name=network_name))

    container = Container(
        container_id=container_id,
        name=name,
        ports=ports,
        interfaces=tuple(interfaces),
    )
    return container, links


def build_containers(
    records: Iterable[ContainerRecord],
    *,
    on_container: Optional[ContainerCallback] = None,
) -> Tuple[List[Container], List[Link]]:
    containers: List[Container] = []
    links: List[Link] = []
    for record in records:
        container, container_links = build_container(record)
        containers.append(container)
        links.extend(container_links)
        if on_container:
            on_container(container)
    return containers, links


def build_topology(
    network_records: Iterable[Mapping[str, Any]],
    container_records: Iterable[ContainerRecord],
    allocator: ColorAllocator,
    *,
    on_network: Optional[NetworkCallback] = None,
    on_container: Optional[ContainerCallback] = None,
) -> Topology:
    networks = build_networks(network_records, allocator, on_network=on_network)
    containers, links = build_containers(container_records, on_container=on_container)
    return Topology(networks=networks, containers=containers, links=links)
