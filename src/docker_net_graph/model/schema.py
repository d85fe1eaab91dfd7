from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .colors import HOST_COLOR

HOST_NETWORK_NAME = "host"
HOST_GATEWAY = "0.0.0.0"
NO_NETWORK_NAME = "none"


@dataclass(frozen=True)
class Network:
    name: str
    gateway: str
    internal: bool = False
    isolated: bool = False
    color: str = HOST_COLOR

    @property
    def is_host(self) -> bool:
        return self.name == HOST_NETWORK_NAME

    @property
    def exposed(self) -> bool:
        """Reachable from outside the host: not internal and not host networking."""
        return not self.internal and not self.is_host


HOST_NETWORK = Network(
    name=HOST_NETWORK_NAME,
    gateway=HOST_GATEWAY,
    internal=False,
    isolated=False,
    color=HOST_COLOR,
)


@dataclass(frozen=True)
class Interface:
    endpoint_id: str
    address: str = ""
    aliases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Container:
    container_id: str
    name: str
    ports: Tuple[str, ...] = ()
    interfaces: Tuple[Interface, ...] = ()


@dataclass(frozen=True)
class Link:
    container_id: str
    endpoint_id: str
    network_name: str


@dataclass
class Topology:
    networks: Dict[str, Network] = field(default_factory=dict)
    containers: List[Container] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
