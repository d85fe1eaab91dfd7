from __future__ import annotations

import logging
import sys
from time import perf_counter
from typing import Any, Dict, List, Optional, TextIO

from .config import RunConfig, describe_target, dump_config, load_run_config
from .export.graph import TopologyGraph, assemble_graph
from .export.render import render_graph
from .logging import LogConfig, get_logger, setup_logging
from .model.colors import ColorAllocator
from .model.schema import Topology
from .model.transform import build_topology
from .runtime.clients import get_docker_client
from .runtime.discovery import list_container_records, list_networks
from .util.errors import ExitCode, as_exit_code
from .util.rich_output import DiscoveryReporter, render_run_summary_table

LOG = get_logger(__name__)


class _StepTimers:
    def __init__(self) -> None:
        self._starts: Dict[str, float] = {}

    def start(self, key: str) -> None:
        self._starts[key] = perf_counter()

    def finish(self, key: str) -> Optional[int]:
        started = self._starts.pop(key, None)
        if started is None:
            return None
        return int((perf_counter() - started) * 1000)


def _log_event(
    logger: Any,
    level: int,
    message: str,
    *,
    step: str,
    phase: str,
    timers: Optional[_StepTimers] = None,
    **fields: Any,
) -> None:
    duration_ms: Optional[int] = None
    if timers is not None:
        if phase == "start":
            timers.start(step)
        else:
            duration_ms = timers.finish(step)
    extra: Dict[str, Any] = {"step": step, "phase": phase}
    if duration_ms is not None:
        extra["duration_ms"] = duration_ms
    extra.update({k: v for k, v in fields.items() if v is not None})
    logger.log(level, message, extra=extra)


def _metrics(topology: Topology, graph: TopologyGraph) -> Dict[str, int]:
    return {
        "networks": len(topology.networks),
        "containers": len(topology.containers),
        "links": len(topology.links),
        "nodes": graph.node_count,
        "edges": graph.edge_count,
    }


def discover_topology(cfg: RunConfig, allocator: ColorAllocator, reporter: DiscoveryReporter) -> Topology:
    timers = _StepTimers()
    _log_event(LOG, logging.INFO, "Discovery started", step="discovery", phase="start", timers=timers)
    client = get_docker_client(cfg.docker_host)
    network_records = list_networks(client)
    container_records = list_container_records(client)
    _log_event(
        LOG,
        logging.INFO,
        "Discovery complete",
        step="discovery",
        phase="complete",
        timers=timers,
        networks=len(network_records),
        containers=len(container_records),
    )

    _log_event(LOG, logging.INFO, "Building topology", step="model", phase="start", timers=timers)
    topology = build_topology(
        network_records,
        container_records,
        allocator,
        on_network=reporter.network_discovered,
        on_container=reporter.container_discovered,
    )
    _log_event(
        LOG,
        logging.INFO,
        "Topology built",
        step="model",
        phase="complete",
        timers=timers,
        networks=len(topology.networks),
        links=len(topology.links),
    )
    return topology


def cmd_generate(cfg: RunConfig, *, stream: Optional[TextIO] = None) -> int:
    timers = _StepTimers()
    LOG.debug("Run configuration", extra={"config": dump_config(cfg)})
    reporter = DiscoveryReporter(enabled=cfg.verbose)
    topology = discover_topology(cfg, ColorAllocator(), reporter)

    _log_event(LOG, logging.INFO, "Assembling graph", step="graph", phase="start", timers=timers)
    graph = assemble_graph(topology)
    _log_event(
        LOG,
        logging.INFO,
        "Graph assembled",
        step="graph",
        phase="complete",
        timers=timers,
        nodes=graph.node_count,
        edges=graph.edge_count,
    )

    mode, destination = describe_target(cfg)
    _log_event(LOG, logging.INFO, "Rendering graph", step="render", phase="start", timers=timers, mode=mode)
    render_graph(graph, out=cfg.out, url=cfg.url, stream=stream)
    _log_event(
        LOG,
        logging.INFO,
        "Render complete",
        step="render",
        phase="complete",
        timers=timers,
        mode=mode,
        path=destination,
    )

    render_run_summary_table(
        enabled=cfg.verbose,
        metrics=_metrics(topology, graph),
        target=destination or mode,
    )
    return int(ExitCode.OK)


def main(argv: Optional[List[str]] = None) -> None:
    try:
        cfg = load_run_config(argv=argv)
        setup_logging(LogConfig(level=cfg.log_level, json_logs=cfg.json_logs))
        sys.exit(cmd_generate(cfg))
    except SystemExit:
        raise
    except BrokenPipeError:
        # Common when users pipe to `head` or similar tools.
        sys.exit(int(ExitCode.OK))
    except Exception as e:
        setup_logging(LogConfig())  # no-op when already configured
        LOG.error("Execution failed: %s", e, extra={"error": str(e)})
        sys.exit(as_exit_code(e))


if __name__ == "__main__":
    main()
