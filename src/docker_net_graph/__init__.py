"""Render Docker network topology (networks, containers, attachments) as a Graphviz graph."""

__version__ = "0.1.0"
