"""Config Loader - Loads run configuration and pre-fetched ingress resources.

Handles loading YAML config files with environment variable substitution,
and turning saved `kubectl get ingress -o yaml` (or `-o json`) output into
RoutingResource models.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ingress_http.models import RoutingPath, RoutingResource, RoutingRule, RunConfig


class ConfigError(Exception):
    """Raised when configuration or resource loading fails."""


_LIST_KINDS = {"List", "IngressList"}


def load_run_config(config_path: Path) -> RunConfig:
    """Load run defaults from YAML with ${ENV_VAR} substitution.

    A relative `resources` path is resolved against the config file's directory.
    """
    raw_config = _load_yaml_documents(config_path, "Config file")
    if len(raw_config) != 1 or not isinstance(raw_config[0], dict):
        raise ConfigError("Config file must be a single YAML mapping")

    data = _substitute_env_vars(raw_config[0])

    try:
        config = RunConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config structure: {e}") from e

    if config.resources:
        config.resources = str(resolve_relative_path(config_path, config.resources))
    return config


def merge_run_config(config: RunConfig, overrides: dict[str, Any]) -> RunConfig:
    """Return config with every override that was actually given applied.

    None means "not given" for optional values and False means "not given"
    for flags, so a flag can switch an option on but never off.
    """
    merged = config.model_dump()
    for key, value in overrides.items():
        if value is None or value is False:
            continue
        merged[key] = value
    return RunConfig.model_validate(merged)


def resolve_relative_path(config_path: Path, ref: str) -> Path:
    """Resolve ref relative to config_path's directory. Absolute paths pass through."""
    path = Path(ref)
    if path.is_absolute():
        return path
    return (config_path.parent / path).resolve()


def load_routing_resources(
    resources_path: Path,
    namespace: str | None = None,
) -> list[RoutingResource]:
    """Load ingress resources from saved kubectl YAML/JSON output.

    Accepts a List/IngressList with `items`, a single Ingress, or a
    multi-document YAML stream of either. Input order is preserved.

    Args:
        resources_path: File containing the ingress listing.
        namespace: If given, resources from other namespaces are dropped.

    Raises:
        ConfigError: If the file is missing, unparseable, or not ingress-shaped.
    """
    documents = _load_yaml_documents(resources_path, "Resource file")

    resources: list[RoutingResource] = []
    for doc in documents:
        if doc is None:
            continue
        if not isinstance(doc, dict):
            raise ConfigError("Resource file documents must be YAML mappings")
        if doc.get("kind") in _LIST_KINDS or "items" in doc:
            items = doc.get("items") or []
        else:
            items = [doc]
        if not isinstance(items, list):
            raise ConfigError("'items' must be a list")
        for item in items:
            resources.append(parse_ingress(item))

    if namespace:
        resources = [r for r in resources if r.namespace == namespace]
    return resources


def parse_ingress(item: Any) -> RoutingResource:
    """Convert one Ingress object (as a dict) to a RoutingResource.

    Only what is needed to enumerate hosts and paths is read; everything else
    in the object is ignored.
    """
    if not isinstance(item, dict):
        raise ConfigError("Ingress entries must be mappings")

    metadata = _mapping(item.get("metadata"), "metadata")
    name = metadata.get("name")
    if not name:
        raise ConfigError("Ingress entry is missing metadata.name")
    namespace = metadata.get("namespace")
    if namespace is not None and not isinstance(namespace, str):
        raise ConfigError(f"Ingress '{name}': metadata.namespace must be a string")

    spec = _mapping(item.get("spec"), f"Ingress '{name}': spec")
    rules: list[RoutingRule] = []
    for raw_rule in _sequence(spec.get("rules"), f"Ingress '{name}': rules"):
        if not isinstance(raw_rule, dict):
            raise ConfigError(f"Ingress '{name}': rules must be mappings")
        http = _mapping(raw_rule.get("http"), f"Ingress '{name}': http")
        paths = [
            RoutingPath(
                path_prefix=str(raw_path.get("path") or ""),
                backend_description=describe_backend(raw_path.get("backend")),
            )
            for raw_path in _sequence(http.get("paths"), f"Ingress '{name}': paths")
            if isinstance(raw_path, dict)
        ]
        rules.append(RoutingRule(host=str(raw_rule.get("host") or ""), paths=paths))

    try:
        return RoutingResource(name=str(name), namespace=namespace, rules=rules)
    except ValidationError as e:
        raise ConfigError(f"Invalid ingress '{name}': {e}") from e


def _mapping(value: Any, label: str) -> dict[str, Any]:
    """Return value as a mapping; a missing value is an empty one."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{label} must be a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, label: str) -> list[Any]:
    """Return value as a list; a missing value is an empty one."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{label} must be a list, got {type(value).__name__}")
    return value


def describe_backend(backend: Any) -> str:
    """Render an ingress backend (v1, v1beta1, or resource backend) for display."""
    if not isinstance(backend, dict):
        return "<none>"

    # networking.k8s.io/v1
    service = backend.get("service")
    if isinstance(service, dict):
        port = service.get("port")
        if isinstance(port, dict):
            port_value = port.get("number", port.get("name", ""))
        else:
            port_value = "" if port is None else port
        return f"{service.get('name', '')}:{port_value}"

    # networking.k8s.io/v1beta1 and extensions/v1beta1
    if "serviceName" in backend:
        return f"{backend['serviceName']}:{backend.get('servicePort', '')}"

    resource = backend.get("resource")
    if isinstance(resource, dict):
        return f"{resource.get('kind', '')}/{resource.get('name', '')}"

    return "<none>"


def _load_yaml_documents(path: Path, label: str) -> list[Any]:
    """Read every YAML document in path. JSON parses as YAML too."""
    if not path.exists():
        raise ConfigError(f"{label} not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            return list(yaml.safe_load_all(f))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {label.lower()}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {label.lower()}: {e}") from e


def _substitute_env_vars(data: Any) -> Any:
    """Recursively substitute ${ENV_VAR} patterns in strings within data."""
    if isinstance(data, str):
        return _substitute_string(data)
    elif isinstance(data, dict):
        return {k: _substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    return data


def _substitute_string(s: str) -> str:
    """Substitute ${ENV_VAR} patterns. Raises ConfigError if env var is not set."""
    pattern = re.compile(r"\$\{([^}]+)\}")

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set")
        return value

    return pattern.sub(replacer, s)
