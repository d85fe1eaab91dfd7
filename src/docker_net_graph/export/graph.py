from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from ..logging import get_logger
from ..model.schema import NO_NETWORK_NAME, Container, Link, Network, Topology
from ..util.errors import GraphBuildError

LOG = get_logger(__name__)

NETWORK_BORDER_ALPHA = "60"
CONTAINER_FILL = "#cdcdcd"
EXPOSURE_COLOR = "#808080"
EXPOSURE_START = "start"
EXPOSURE_END = "end"

INTERNAL_MARKER = "Internal"
ISOLATED_MARKER = "Containers isolated"

_RECORD_SPECIAL = "\\{}|<>"


def escape_record_text(text: str) -> str:
    """
    Backslash-escape characters that carry meaning inside Graphviz record labels.
    """
    return "".join(f"\\{ch}" if ch in _RECORD_SPECIAL else ch for ch in text)


@dataclass(frozen=True)
class RecordField:
    text: str
    port: Optional[str] = None

    def render(self) -> str:
        body = escape_record_text(self.text)
        if self.port:
            return f"<{self.port}> {body}"
        return body


@dataclass(frozen=True)
class RecordLabel:
    """
    A record label group; each nesting level flips the Graphviz layout direction.
    """

    fields: Tuple[Union[RecordField, RecordLabel], ...] = ()

    def render(self) -> str:
        return "{" + " | ".join(f.render() for f in self.fields) + "}"

    def ports(self) -> List[str]:
        out: List[str] = []
        for f in self.fields:
            if isinstance(f, RecordLabel):
                out.extend(f.ports())
            elif f.port:
                out.append(f.port)
        return out


@dataclass
class GraphNode:
    name: str
    kind: str
    label: Optional[RecordLabel] = None
    attrs: Dict[str, str] = field(default_factory=dict)


@dataclass
class GraphEdge:
    tail: str
    head: str
    tail_port: Optional[str] = None
    attrs: Dict[str, str] = field(default_factory=dict)


class TopologyGraph:
    """
    Renderer-independent graph: named nodes plus an ordered edge list.
    Parallel edges between the same pair of nodes are kept.
    """

    def __init__(self) -> None:
        self.nodes: Dict[str, GraphNode] = {}
        self.edges: List[GraphEdge] = []

    def add_node(self, name: str, kind: str, *, label: Optional[RecordLabel] = None, **attrs: str) -> GraphNode:
        if not name:
            raise GraphBuildError(f"Cannot create {kind} node without a name")
        if name in self.nodes:
            raise GraphBuildError(f"Duplicate node name: {name}")
        node = GraphNode(name=name, kind=kind, label=label, attrs=dict(attrs))
        self.nodes[name] = node
        return node

    def ensure_node(self, name: str, kind: str, **attrs: str) -> GraphNode:
        """Return the node called name, creating it if absent. Existing nodes are reused as is."""
        existing = self.nodes.get(name)
        if existing is None:
            return self.add_node(name, kind, **attrs)
        return existing

    def add_edge(self, tail: str, head: str, *, tail_port: Optional[str] = None, **attrs: str) -> GraphEdge:
        for name in (tail, head):
            if name not in self.nodes:
                raise GraphBuildError(f"Edge references unknown node: {name}")
        edge = GraphEdge(tail=tail, head=head, tail_port=tail_port or None, attrs=dict(attrs))
        self.edges.append(edge)
        return edge

    def nodes_of_kind(self, kind: str) -> List[GraphNode]:
        return [n for n in self.nodes.values() if n.kind == kind]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


def network_label(network: Network) -> RecordLabel:
    fields: List[RecordField] = [RecordField(network.name)]
    if network.internal:
        fields.append(RecordField(INTERNAL_MARKER))
    if network.isolated:
        fields.append(RecordField(ISOLATED_MARKER))
    return RecordLabel(tuple(fields))


def container_label(container: Container) -> RecordLabel:
    """
    Name, then the bound ports, then one group per interface. The interface
    address carries the endpoint id as its port so edges can attach to it.
    """
    fields: List[Union[RecordField, RecordLabel]] = [RecordField(container.name)]
    if container.ports:
        fields.append(RecordLabel(tuple(RecordField(p) for p in container.ports)))
    interface_groups = []
    for iface in container.interfaces:
        parts = [RecordField(alias) for alias in iface.aliases]
        parts.append(RecordField(iface.address, port=iface.endpoint_id or None))
        interface_groups.append(RecordLabel(tuple(parts)))
    if interface_groups:
        fields.append(RecordLabel(tuple(interface_groups)))
    return RecordLabel(tuple(fields))


def edge_style(network: Network) -> str:
    if network.isolated:
        return "dashed"
    if network.is_host:
        return "bold"
    return "solid"


def draw_network(graph: TopologyGraph, network: Network) -> GraphNode:
    return graph.add_node(
        network.name,
        "network",
        label=network_label(network),
        shape="record",
        style="rounded",
        color=network.color + NETWORK_BORDER_ALPHA,
    )


def draw_container(graph: TopologyGraph, container: Container) -> GraphNode:
    return graph.add_node(
        container.container_id,
        "container",
        label=container_label(container),
        shape="record",
        style="filled",
        fillcolor=CONTAINER_FILL,
    )


def draw_link(graph: TopologyGraph, networks: Dict[str, Network], link: Link) -> GraphEdge:
    network = networks.get(link.network_name)
    if network is None:
        raise GraphBuildError(
            f"Container {link.container_id[:12]} is attached to unknown network {link.network_name}"
        )
    return graph.add_edge(
        link.container_id,
        network.name,
        tail_port=link.endpoint_id,
        color=network.color,
        style=edge_style(network),
    )


def draw_exposure(graph: TopologyGraph) -> GraphEdge:
    graph.ensure_node(EXPOSURE_START, "exposure")
    graph.ensure_node(EXPOSURE_END, "exposure")
    return graph.add_edge(EXPOSURE_START, EXPOSURE_END, color=EXPOSURE_COLOR, style="dotted")


def assemble_graph(topology: Topology) -> TopologyGraph:
    """
    One node per network and container, one edge per attachment (except to
    "none"), plus one start->end exposure edge per externally reachable network.
    """
    graph = TopologyGraph()

    for network in topology.networks.values():
        draw_network(graph, network)

    for container in topology.containers:
        draw_container(graph, container)

    for link in topology.links:
        if link.network_name == NO_NETWORK_NAME:
            continue
        draw_link(graph, topology.networks, link)

    for network in topology.networks.values():
        if network.exposed:
            draw_exposure(graph)

    LOG.debug(
        "Assembled graph",
        extra={"nodes": graph.node_count, "edges": graph.edge_count},
    )
    return graph
