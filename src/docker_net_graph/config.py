from __future__ import annotations

import argparse
import json
import os
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .util.errors import ConfigError

# --------
# Defaults
# --------
DEFAULT_LOG_LEVEL = "WARNING"
VERBOSE_LOG_LEVEL = "INFO"
ALLOWED_CONFIG_KEYS = {
    "out",
    "url",
    "verbose",
    "json_logs",
    "log_level",
    "docker_host",
}
BOOL_CONFIG_KEYS = {"url", "verbose", "json_logs"}
PATH_CONFIG_KEYS = {"out"}
STR_CONFIG_KEYS = {"log_level", "docker_host"}


@dataclass(frozen=True)
class RunConfig:
    # Output
    out: Optional[Path] = None
    url: bool = False

    # Reporting
    verbose: bool = False
    json_logs: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    # Runtime
    docker_host: Optional[str] = None  # falls back to DOCKER_HOST handling in the SDK

    # Internal/derived
    collected_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds")
    )


def _parse_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        elif path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            # Try YAML first then JSON
            try:
                data = yaml.safe_load(text) or {}
            except yaml.YAMLError:
                data = json.loads(text)
    except Exception as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Top-level config must be an object")
    return data


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    return raw


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip().lower()
    if not raw:
        return None
    return raw in {"1", "true", "yes", "on"}


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"Config field '{key}' must be a boolean")


def _normalize_config_file(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(data.keys()) - ALLOWED_CONFIG_KEYS)
    if unknown:
        warnings.warn(f"Unknown config keys ignored: {', '.join(unknown)}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in ALLOWED_CONFIG_KEYS:
            continue
        if value is None:
            normalized[key] = None
            continue
        if key in BOOL_CONFIG_KEYS:
            normalized[key] = _coerce_bool(key, value)
        elif key in PATH_CONFIG_KEYS:
            if isinstance(value, (str, Path)):
                normalized[key] = value
            else:
                raise ValueError(f"Config field '{key}' must be a string path")
        elif key in STR_CONFIG_KEYS:
            if isinstance(value, str):
                normalized[key] = value
            else:
                raise ValueError(f"Config field '{key}' must be a string")
    return _compact_dict(normalized)


def _compact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop keys with None values so they don't override lower-precedence config.
    """
    return {k: v for k, v in data.items() if v is not None}


def _merge_dicts(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow merge: values in b override a.
    """
    merged = dict(a)
    merged.update(b)
    return merged


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docker-net-graph",
        description="Visualize Docker networks and container attachments with Graphviz",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Print discovered networks and containers",
    )
    parser.add_argument(
        "-o",
        "--out",
        type=Path,
        nargs="?",
        default=None,
        help="Render to file; the format follows the extension (e.g. graph.svg)",
    )
    parser.add_argument(
        "-u",
        "--url",
        action="store_true",
        default=None,
        help="Generate a shareable URL (not implemented)",
    )
    parser.add_argument("--config", type=Path, help="Optional YAML/JSON config file")
    parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable JSON logs",
    )
    parser.add_argument("--log-level", default=None, help="Log level (WARNING, INFO, DEBUG, ...)")
    parser.add_argument(
        "--docker-host",
        default=None,
        help="Docker daemon URL (default: DOCKER_HOST or the local socket)",
    )
    return parser


def load_run_config(
    args: Optional[argparse.Namespace] = None,
    argv: Optional[List[str]] = None,
) -> RunConfig:
    """
    Build RunConfig by merging defaults, optional config file, env vars, and CLI args.
    Precedence (low -> high): defaults < config file < env < CLI.

    Unknown command-line flags are ignored.
    """
    if args is not None:
        ns = args
    else:
        ns, _unknown = build_parser().parse_known_args(argv)

    # defaults
    base: Dict[str, Any] = {
        "out": None,
        "url": False,
        "verbose": False,
        "json_logs": False,
        "log_level": None,
        "docker_host": None,
    }

    # config file
    file_cfg: Dict[str, Any] = {}
    if getattr(ns, "config", None):
        try:
            file_cfg = _normalize_config_file(_parse_config_file(Path(ns.config)))
        except (OSError, ValueError) as e:
            raise ConfigError(str(e)) from e

    # env
    env_cfg: Dict[str, Any] = _compact_dict(
        {
            "out": _env_str("DOCKER_NET_GRAPH_OUT"),
            "url": _env_bool("DOCKER_NET_GRAPH_URL"),
            "verbose": _env_bool("DOCKER_NET_GRAPH_VERBOSE"),
            "json_logs": _env_bool("DOCKER_NET_GRAPH_JSON_LOGS"),
            "log_level": _env_str("DOCKER_NET_GRAPH_LOG_LEVEL"),
            "docker_host": _env_str("DOCKER_NET_GRAPH_DOCKER_HOST"),
        }
    )

    # CLI
    cli_cfg: Dict[str, Any] = _compact_dict(
        {
            "out": getattr(ns, "out", None),
            "url": getattr(ns, "url", None),
            "verbose": getattr(ns, "verbose", None),
            "json_logs": getattr(ns, "json_logs", None),
            "log_level": getattr(ns, "log_level", None),
            "docker_host": getattr(ns, "docker_host", None),
        }
    )

    merged = _merge_dicts(base, _merge_dicts(file_cfg, _merge_dicts(env_cfg, cli_cfg)))

    verbose = bool(merged["verbose"])
    log_level = merged.get("log_level") or (VERBOSE_LOG_LEVEL if verbose else DEFAULT_LOG_LEVEL)
    out = Path(merged["out"]) if merged.get("out") else None
    docker_host = merged.get("docker_host")

    return RunConfig(
        out=out,
        url=bool(merged["url"]),
        verbose=verbose,
        json_logs=bool(merged["json_logs"]),
        log_level=str(log_level).upper(),
        docker_host=str(docker_host) if docker_host else None,
    )


def dump_config(cfg: RunConfig) -> Dict[str, Any]:
    return {
        "out": str(cfg.out) if cfg.out else None,
        "url": cfg.url,
        "verbose": cfg.verbose,
        "json_logs": cfg.json_logs,
        "log_level": cfg.log_level,
        "docker_host": cfg.docker_host,
        "collected_at": cfg.collected_at,
    }


def describe_target(cfg: RunConfig) -> Tuple[str, Optional[str]]:
    """
    Return (mode, destination) for the render step: file|url|stdout.
    """
    if cfg.out:
        return "file", str(cfg.out)
    if cfg.url:
        return "url", None
    return "stdout", None
