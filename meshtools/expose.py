"""Building Service manifests that expose pods, deployments and similar resources."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from meshtools.errors import MeshkitError
from meshtools.expose_errors import (
    err_cannot_expose_object,
    err_failed_to_extract_pod_selector,
    err_failed_to_extract_ports,
    err_failed_to_extract_protocols,
    err_generate_service,
    err_invalid_deployment_no_selectors,
    err_invalid_deployment_no_selectors_labels,
    err_invalid_replica_no_selectors_labels,
    err_invalid_replica_set_no_selectors,
    err_label_based_map,
    err_match_expressions_conversion,
    err_no_ports_found_for_headless_resource,
    err_pod_has_no_labels,
    err_port_parsing,
    err_protocol_based_map,
    err_resource_cannot_be_exposed,
    err_selector_based_map,
    err_service_has_no_selectors,
    err_unknown_session_affinity,
)

DNS1035_LABEL_MAX_LENGTH = 63
_DEFAULT_PROTOCOL = "TCP"
_HEADLESS = "None"


class SessionAffinity(str, enum.Enum):
    """Session affinity of a Service."""

    NONE = "None"
    CLIENT_IP = "ClientIP"


class ServiceType(str, enum.Enum):
    """Type of a Service."""

    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"


@dataclass
class ExposeConfig:
    """How the generated Service should look.

    An empty type leaves the cluster default (ClusterIP); a cluster_ip of
    "None" makes the service headless; an empty namespace takes the
    namespace of the exposed object.
    """

    type: ServiceType | str = ""
    load_balancer_ip: str = ""
    cluster_ip: str = ""
    namespace: str = ""
    session_affinity: SessionAffinity | str = ""
    name: str = ""
    annotations: dict[str, str] = field(default_factory=dict)


_EXPOSABLE = frozenset(
    {
        ("", "ReplicationController"),
        ("", "Service"),
        ("", "Pod"),
        ("apps", "Deployment"),
        ("apps", "ReplicaSet"),
        ("extensions", "Deployment"),
        ("extensions", "ReplicaSet"),
    }
)


class _Shape(enum.Enum):
    REPLICATION_CONTROLLER = enum.auto()
    POD = enum.auto()
    SERVICE = enum.auto()
    LEGACY_DEPLOYMENT = enum.auto()
    DEPLOYMENT = enum.auto()
    LEGACY_REPLICA_SET = enum.auto()
    REPLICA_SET = enum.auto()


_SHAPES: dict[tuple[str, str, str], _Shape] = {
    ("", "v1", "ReplicationController"): _Shape.REPLICATION_CONTROLLER,
    ("", "v1", "Pod"): _Shape.POD,
    ("", "v1", "Service"): _Shape.SERVICE,
    ("extensions", "v1beta1", "Deployment"): _Shape.LEGACY_DEPLOYMENT,
    ("apps", "v1", "Deployment"): _Shape.DEPLOYMENT,
    ("apps", "v1beta2", "Deployment"): _Shape.DEPLOYMENT,
    ("apps", "v1beta1", "Deployment"): _Shape.DEPLOYMENT,
    ("extensions", "v1beta1", "ReplicaSet"): _Shape.LEGACY_REPLICA_SET,
    ("apps", "v1", "ReplicaSet"): _Shape.REPLICA_SET,
    ("apps", "v1beta2", "ReplicaSet"): _Shape.REPLICA_SET,
}


def _group_version(obj: Mapping[str, Any]) -> tuple[str, str]:
    api_version = str(obj.get("apiVersion") or "")
    group, sep, version = api_version.rpartition("/")
    return (group, version) if sep else ("", api_version)


def _shape(obj: Mapping[str, Any]) -> _Shape | None:
    group, version = _group_version(obj)
    return _SHAPES.get((group, version, str(obj.get("kind") or "")))


def _section(obj: Mapping[str, Any] | None, *keys: str) -> Any:
    value: Any = obj
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _pod_spec(obj: Mapping[str, Any], shape: _Shape) -> Mapping[str, Any]:
    if shape is _Shape.POD:
        spec = _section(obj, "spec")
    else:
        spec = _section(obj, "spec", "template", "spec")
    return spec or {}


def can_be_exposed(group: str, kind: str) -> None:
    """Raise MeshkitError unless resources of this group and kind can be exposed."""
    if (group, kind) not in _EXPOSABLE:
        raise err_cannot_expose_object(group, kind)


def _selector_labels(selector: Mapping[str, Any]) -> dict[str, str]:
    if selector.get("matchExpressions"):
        raise err_match_expressions_conversion(selector["matchExpressions"])
    return dict(selector.get("matchLabels") or {})


def _strict_selector(obj: Mapping[str, Any], missing: MeshkitError) -> dict[str, str]:
    selector = _section(obj, "spec", "selector")
    if not isinstance(selector, Mapping) or not selector.get("matchLabels"):
        raise missing
    return _selector_labels(selector)


def _legacy_selector(obj: Mapping[str, Any], missing: MeshkitError) -> dict[str, str]:
    selector = _section(obj, "spec", "selector")
    if isinstance(selector, Mapping):
        labels = _selector_labels(selector)
    else:
        labels = dict(_section(obj, "spec", "template", "metadata", "labels") or {})
    if not labels:
        raise missing
    return labels


def map_based_selector_for_object(obj: Mapping[str, Any]) -> dict[str, str]:
    """Return the map-based pod selector of a resource manifest.

    Raises MeshkitError when the resource has no usable selector, uses
    set-based match expressions, or is of an unsupported kind.
    """
    shape = _shape(obj)
    if shape is _Shape.REPLICATION_CONTROLLER:
        return dict(_section(obj, "spec", "selector") or {})
    if shape is _Shape.POD:
        labels = _section(obj, "metadata", "labels")
        if not labels:
            raise err_pod_has_no_labels()
        return dict(labels)
    if shape is _Shape.SERVICE:
        selector = _section(obj, "spec", "selector")
        if selector is None:
            raise err_service_has_no_selectors()
        return dict(selector)
    if shape is _Shape.LEGACY_DEPLOYMENT:
        return _legacy_selector(obj, err_invalid_deployment_no_selectors_labels())
    if shape is _Shape.DEPLOYMENT:
        return _strict_selector(obj, err_invalid_deployment_no_selectors())
    if shape is _Shape.LEGACY_REPLICA_SET:
        return _legacy_selector(obj, err_invalid_replica_no_selectors_labels())
    if shape is _Shape.REPLICA_SET:
        return _strict_selector(obj, err_invalid_replica_set_no_selectors())
    raise err_failed_to_extract_pod_selector(obj)


def _container_ports(spec: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    return [
        port
        for container in spec.get("containers") or []
        for port in (container or {}).get("ports") or []
    ]


def _service_ports(obj: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    return list(_section(obj, "spec", "ports") or [])


def protocols_for_object(obj: Mapping[str, Any]) -> dict[str, str]:
    """Return a map from port number (as text) to protocol, TCP by default.

    Raises MeshkitError for unsupported kinds.
    """
    shape = _shape(obj)
    if shape is None:
        raise err_failed_to_extract_protocols(obj)
    if shape is _Shape.SERVICE:
        return {
            str(int(port.get("port", 0) or 0)): port.get("protocol") or _DEFAULT_PROTOCOL
            for port in _service_ports(obj)
        }
    return {
        str(int(port.get("containerPort", 0) or 0)): port.get("protocol") or _DEFAULT_PROTOCOL
        for port in _container_ports(_pod_spec(obj, shape))
    }


def ports_for_object(obj: Mapping[str, Any]) -> list[str]:
    """Return the port numbers (as text) a resource listens on, in order.

    Raises MeshkitError for unsupported kinds.
    """
    shape = _shape(obj)
    if shape is None:
        raise err_failed_to_extract_ports(obj)
    if shape is _Shape.SERVICE:
        return [str(int(port.get("port", 0) or 0)) for port in _service_ports(obj)]
    return [
        str(int(port.get("containerPort", 0) or 0))
        for port in _container_ports(_pod_spec(obj, shape))
    ]


def _text(value: enum.Enum | str | None) -> str:
    if isinstance(value, enum.Enum):
        return str(value.value)
    return value or ""


def generate_service(
    config: ExposeConfig,
    selectors: Mapping[str, str],
    labels: Mapping[str, str],
    protocols: Mapping[str, str],
    ports: Sequence[str],
) -> dict[str, Any]:
    """Return a Service manifest built from the given parts.

    Raises ValueError when a port is not an integer and MeshkitError for an
    unknown session affinity.
    """
    service_ports = []
    for number, port in enumerate(ports, start=1):
        try:
            value = int(port)
        except ValueError as exc:
            raise ValueError(f"invalid port {port!r}") from exc
        entry: dict[str, Any] = {}
        if len(ports) > 1:
            entry["name"] = f"port-{number}"
        entry["port"] = value
        entry["protocol"] = protocols.get(port, _DEFAULT_PROTOCOL)
        entry["targetPort"] = value
        service_ports.append(entry)

    metadata: dict[str, Any] = {}
    if config.name:
        metadata["name"] = config.name
    if labels:
        metadata["labels"] = dict(labels)
    if config.namespace:
        metadata["namespace"] = config.namespace
    if config.annotations:
        metadata["annotations"] = dict(config.annotations)

    spec: dict[str, Any] = {"selector": dict(selectors), "ports": service_ports}

    service_type = _text(config.type)
    if service_type:
        spec["type"] = service_type
    if service_type == ServiceType.LOAD_BALANCER.value and config.load_balancer_ip:
        spec["loadBalancerIP"] = config.load_balancer_ip

    affinity = _text(config.session_affinity)
    if affinity:
        try:
            spec["sessionAffinity"] = SessionAffinity(affinity).value
        except ValueError:
            raise err_unknown_session_affinity(config.session_affinity) from None

    if config.cluster_ip:
        spec["clusterIP"] = config.cluster_ip

    return {"apiVersion": "v1", "kind": "Service", "metadata": metadata, "spec": spec}


def build_service_for_object(obj: Mapping[str, Any], config: ExposeConfig) -> dict[str, Any]:
    """Return the Service manifest that exposes the given resource manifest.

    The config is not modified: an empty namespace is taken from the object
    and the name is cut to the DNS-1035 label length.

    Raises MeshkitError when the object cannot be exposed.
    """
    effective = dataclasses.replace(
        config,
        annotations=dict(config.annotations),
        namespace=config.namespace or str(_section(obj, "metadata", "namespace") or ""),
        name=config.name[:DNS1035_LABEL_MAX_LENGTH],
    )

    group, _version = _group_version(obj)
    kind = str(obj.get("kind") or "")
    try:
        can_be_exposed(group, kind)
    except MeshkitError as exc:
        raise err_resource_cannot_be_exposed(exc, kind) from exc

    try:
        selectors = map_based_selector_for_object(obj)
    except MeshkitError as exc:
        raise err_selector_based_map(exc) from exc

    headless = effective.cluster_ip == _HEADLESS

    try:
        protocols = protocols_for_object(obj)
    except MeshkitError as exc:
        raise err_protocol_based_map(exc) from exc

    labels = _section(obj, "metadata", "labels")
    if labels is not None and not isinstance(labels, Mapping):
        raise err_label_based_map(TypeError("metadata.labels is not a mapping"))

    try:
        ports = ports_for_object(obj)
    except MeshkitError as exc:
        raise err_port_parsing(exc) from exc
    if not ports and not headless:
        raise err_port_parsing(err_no_ports_found_for_headless_resource())

    try:
        return generate_service(effective, selectors, labels or {}, protocols, ports)
    except (ValueError, MeshkitError) as exc:
        raise err_generate_service(exc) from exc