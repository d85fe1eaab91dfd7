from __future__ import annotations

from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..model.schema import Container, Network


def _stderr_console() -> Console:
    return Console(stderr=True, highlight=False)


def format_network(network: Network) -> str:
    flags = [flag for flag, on in (("internal", network.internal), ("isolated", network.isolated)) if on]
    parts = [network.name, *flags, f"gw:{network.gateway}"]
    return "Network: " + " ".join(parts)


def format_container(container: Container) -> str:
    interfaces = ", ".join(
        f"{iface.address or '-'}[{' '.join(iface.aliases)}]" if iface.aliases else iface.address or "-"
        for iface in container.interfaces
    )
    return f"Container: {container.name} ports=[{', '.join(container.ports)}] interfaces=[{interfaces}]"


class DiscoveryReporter:
    """
    Prints networks and containers as they are discovered (verbose mode).
    Writes to stderr so DOT on stdout stays clean.
    """

    def __init__(self, *, enabled: bool, console: Optional[Console] = None) -> None:
        self._enabled = bool(enabled)
        self._console = console or (_stderr_console() if self._enabled else None)

    def network_discovered(self, network: Network) -> None:
        if not self._enabled or not self._console:
            return
        self._console.print(escape(format_network(network)), style=network.color)

    def container_discovered(self, container: Container) -> None:
        if not self._enabled or not self._console:
            return
        self._console.print(escape(format_container(container)))


def render_run_summary_table(
    *,
    enabled: bool,
    metrics: Dict[str, Any],
    target: str,
    console: Optional[Console] = None,
) -> None:
    if not enabled:
        return
    table = Table(title="Topology Summary", show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Networks", str(metrics.get("networks", 0)))
    table.add_row("Containers", str(metrics.get("containers", 0)))
    table.add_row("Links", str(metrics.get("links", 0)))
    table.add_row("Graph nodes", str(metrics.get("nodes", 0)))
    table.add_row("Graph edges", str(metrics.get("edges", 0)))
    table.add_row("Output", target)
    (console or _stderr_console()).print(table)
