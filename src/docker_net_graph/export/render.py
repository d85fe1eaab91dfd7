from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, TextIO

import graphviz

from ..logging import get_logger
from ..util.errors import RenderError
from .graph import TopologyGraph

LOG = get_logger(__name__)

GRAPH_NAME = "docker"
LAYOUT_ENGINE = "sfdp"
RANKDIR = "LR"
DEFAULT_FORMAT = "dot"
URL_NOT_IMPLEMENTED = "URL generation is not implemented"


def to_digraph(graph: TopologyGraph) -> graphviz.Digraph:
    """
    Translate the abstract graph into a graphviz.Digraph laid out with sfdp, left to right.
    """
    dot = graphviz.Digraph(name=GRAPH_NAME, engine=LAYOUT_ENGINE)
    dot.attr(rankdir=RANKDIR)
    for node in graph.nodes.values():
        attrs = dict(node.attrs)
        if node.label is not None:
            attrs["label"] = node.label.render()
        dot.node(node.name, **attrs)
    for edge in graph.edges:
        tail = f"{edge.tail}:{edge.tail_port}" if edge.tail_port else edge.tail
        dot.edge(tail, edge.head, **edge.attrs)
    return dot


def output_format(path: Path) -> str:
    fmt = path.suffix[1:].lower()
    if not fmt:
        raise RenderError(f"Cannot infer output format from {path}: add an extension such as .svg or .png")
    return fmt


def _pipe(dot: graphviz.Digraph, fmt: str) -> bytes:
    try:
        return dot.pipe(format=fmt)
    except graphviz.ExecutableNotFound as e:
        raise RenderError(f"Graphviz executables not found on PATH: {e}") from e
    except graphviz.CalledProcessError as e:
        stderr = e.stderr.decode("utf-8", "replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        raise RenderError(f"Graphviz failed to render {fmt}: {stderr.strip() or e}") from e
    except ValueError as e:
        raise RenderError(f"Unsupported output format {fmt!r}: {e}") from e


def render_to_file(dot: graphviz.Digraph, path: Path) -> Path:
    fmt = output_format(path)
    data = _pipe(dot, fmt)
    try:
        path.write_bytes(data)
    except OSError as e:
        raise RenderError(f"Failed to write {path}: {e}") from e
    LOG.info("Graph written", extra={"path": str(path), "format": fmt, "bytes": len(data)})
    return path


def render_to_stream(dot: graphviz.Digraph, stream: TextIO) -> None:
    data = _pipe(dot, DEFAULT_FORMAT)
    stream.write(data.decode("utf-8"))
    stream.flush()


def render_graph(
    graph: TopologyGraph,
    *,
    out: Optional[Path] = None,
    url: bool = False,
    stream: Optional[TextIO] = None,
) -> Optional[Path]:
    """
    Render to a file when out is given, otherwise print the notice for URL
    mode, otherwise write DOT to the stream (stdout by default).
    Returns the written path for file output.
    """
    stream = stream or sys.stdout
    dot = to_digraph(graph)
    if out:
        return render_to_file(dot, Path(out))
    if url:
        print(URL_NOT_IMPLEMENTED, file=stream)
        return None
    render_to_stream(dot, stream)
    return None
