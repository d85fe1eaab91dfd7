from __future__ import annotations

from docker_net_graph.model.colors import COLORS, HOST_COLOR, ColorAllocator
from docker_net_graph.model.schema import HOST_NETWORK, Interface, Link
from docker_net_graph.model.transform import (
    ICC_OPTION,
    build_container,
    build_networks,
    build_topology,
    container_name,
    filter_aliases,
    is_isolated,
    network_gateway,
)
from docker_net_graph.runtime.discovery import ContainerRecord

CONTAINER_ID = "c0ffee" + "0" * 58
SHORT_ID = CONTAINER_ID[:12]
ENDPOINT_ID = "e1" * 32


def _network(name: str, subnet: str | None = "172.18.0.0/16", *, internal: bool = False, options=None):
    config = [{"Subnet": subnet, "Gateway": "172.18.0.1"}] if subnet else []
    return {
        "Name": name,
        "Id": f"{name}-id",
        "Driver": "bridge",
        "Internal": internal,
        "IPAM": {"Driver": "default", "Config": config},
        "Options": options or {},
    }


def _container(networks, *, ports=None, name="/app", container_id=CONTAINER_ID) -> ContainerRecord:
    return ContainerRecord(
        summary={"Id": container_id, "Names": [name]},
        details={
            "Id": container_id,
            "NetworkSettings": {"Ports": ports or {}, "Networks": networks},
        },
    )


def test_network_gateway_uses_first_subnet() -> None:
    record = _network("multi")
    record["IPAM"]["Config"].append({"Subnet": "10.0.0.0/8"})
    assert network_gateway(record) == "172.18.0.0/16"
    assert network_gateway({"Name": "x", "IPAM": None}) == ""
    assert network_gateway({"Name": "x", "IPAM": {"Config": None}}) == ""


def test_is_isolated_only_when_icc_explicitly_false() -> None:
    assert is_isolated({ICC_OPTION: "false"}) is True
    assert is_isolated({ICC_OPTION: "true"}) is False
    assert is_isolated({ICC_OPTION: "0"}) is False
    assert is_isolated({"other": "false"}) is False
    assert is_isolated({}) is False
    assert is_isolated(None) is False


def test_build_networks_skips_networks_without_subnet() -> None:
    records = [_network("front"), _network("none", subnet=None), _network("nosubnet", subnet=None)]
    networks = build_networks(records, ColorAllocator())

    assert set(networks) == {"front", "host"}


def test_host_network_always_present_with_fixed_attributes() -> None:
    networks = build_networks([], ColorAllocator())
    assert networks == {"host": HOST_NETWORK}

    overridden = build_networks([_network("host", internal=True)], ColorAllocator())
    host = overridden["host"]
    assert list(overridden) == ["host"]
    assert host.gateway == "0.0.0.0"
    assert host.internal is False
    assert host.isolated is False
    assert host.color == HOST_COLOR


def test_build_networks_allocates_colors_in_name_order() -> None:
    records = [_network("zeta"), _network("alpha"), _network("mid", options={ICC_OPTION: "false"})]
    networks = build_networks(records, ColorAllocator())

    assert networks["alpha"].color == COLORS[0]
    assert networks["mid"].color == COLORS[1]
    assert networks["zeta"].color == COLORS[2]
    assert networks["mid"].isolated is True
    assert list(networks)[-1] == "host"


def test_build_networks_reports_each_discovered_network() -> None:
    seen = []
    build_networks([_network("a"), _network("b", subnet=None)], ColorAllocator(), on_network=seen.append)
    assert [n.name for n in seen] == ["a"]


def test_isolation_and_internal_are_independent() -> None:
    records = [
        _network("both", internal=True, options={ICC_OPTION: "false"}),
        _network("internal-only", internal=True),
        _network("isolated-only", options={ICC_OPTION: "false"}),
    ]
    networks = build_networks(records, ColorAllocator())

    assert (networks["both"].internal, networks["both"].isolated) == (True, True)
    assert (networks["internal-only"].internal, networks["internal-only"].isolated) == (True, False)
    assert (networks["isolated-only"].internal, networks["isolated-only"].isolated) == (False, True)


def test_filter_aliases_drops_self_references_and_duplicates() -> None:
    aliases = [SHORT_ID, "app", "web", "db-proxy", "web"]
    assert filter_aliases(aliases, CONTAINER_ID, "app") == ("web", "db-proxy")
    assert filter_aliases(None, CONTAINER_ID, "app") == ()


def test_container_name_strips_leading_slash() -> None:
    assert container_name({"Id": CONTAINER_ID, "Names": ["/app", "/alias"]}) == "app"
    assert container_name({"Id": CONTAINER_ID, "Names": []}) == SHORT_ID


def test_build_container_creates_interface_and_link_per_attachment() -> None:
    record = _container(
        {
            "front": {"EndpointID": ENDPOINT_ID, "IPAddress": "172.18.0.2", "Aliases": ["app", SHORT_ID, "web"]},
            "back": {"EndpointID": "e2" * 32, "IPAddress": "172.19.0.5", "Aliases": None},
        },
        ports={"8080/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8080"}], "53/udp": None},
    )

    container, links = build_container(record)

    assert container.name == "app"
    assert container.ports == ("8080", "53")
    assert container.interfaces == (
        Interface(endpoint_id=ENDPOINT_ID, address="172.18.0.2", aliases=("web",)),
        Interface(endpoint_id="e2" * 32, address="172.19.0.5", aliases=()),
    )
    assert links == [
        Link(container_id=CONTAINER_ID, endpoint_id=ENDPOINT_ID, network_name="front"),
        Link(container_id=CONTAINER_ID, endpoint_id="e2" * 32, network_name="back"),
    ]


def test_build_topology_single_bridge_scenario() -> None:
    record = _container(
        {"bridge-name": {"EndpointID": ENDPOINT_ID, "IPAddress": "172.18.0.2", "Aliases": ["web", "app"]}},
        ports={"8080/tcp": None},
    )
    topology = build_topology([_network("bridge-name")], [record], ColorAllocator())

    assert set(topology.networks) == {"bridge-name", "host"}
    bridge = topology.networks["bridge-name"]
    assert bridge.color == COLORS[0]
    assert (bridge.internal, bridge.isolated) == (False, False)

    assert len(topology.containers) == 1
    container = topology.containers[0]
    assert container.ports == ("8080",)
    assert len(container.interfaces) == 1
    assert set(container.interfaces[0].aliases) == {"web"}
    assert topology.links == [Link(CONTAINER_ID, ENDPOINT_ID, "bridge-name")]


def test_build_topology_keeps_links_to_none_network() -> None:
    record = _container({"none": {"EndpointID": ENDPOINT_ID, "IPAddress": "", "Aliases": None}})
    topology = build_topology([_network("none", subnet=None)], [record], ColorAllocator())

    assert "none" not in topology.networks
    assert topology.links[0].network_name == "none"
