"""Discovery of internal and external endpoints of Kubernetes services."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import urlsplit

from meshtools.errors import (
    err_endpoint_not_found,
    err_invalid_api_server,
    err_service_discovery,
)
from meshtools.network import Endpoint, HostPort, MockOptions, tcp_check

_LOCALHOST = "localhost"
_PENDING = "<pending>"


class ServiceReader(Protocol):
    """Anything that can fetch a Service manifest by name and namespace."""

    def read_namespaced_service(self, name: str, namespace: str) -> Mapping[str, Any]:
        ...


@dataclass
class ServiceOptions:
    """Which service to look at and how its endpoints can be reached.

    port_selector names the service port to use; api_server_url is used as a
    fallback address (for example on minikube); worker_node_ip defaults to
    localhost for node-port endpoints.
    """

    name: str = ""
    namespace: str = ""
    port_selector: str = ""
    api_server_url: str = ""
    worker_node_ip: str = ""
    mock: MockOptions | None = None


def _split_host_port(hostport: str) -> str:
    """Return the host part of host:port, requiring the port separator."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0 or hostport[end + 1:end + 2] != ":":
            raise ValueError(f"invalid host and port: {hostport!r}")
        return hostport[1:end]
    host, sep, _port = hostport.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address: {hostport!r}")
    if ":" in host:
        raise ValueError(f"too many colons in address: {hostport!r}")
    return host


def _api_server_host(url: str) -> str:
    try:
        netloc = urlsplit(url).netloc
        return _split_host_port(netloc.rpartition("@")[2])
    except ValueError as exc:
        raise err_invalid_api_server() from exc


def _first_ingress(service: Mapping[str, Any]) -> Mapping[str, Any] | None:
    status = service.get("status") or {}
    load_balancer = status.get("loadBalancer") or {}
    ingress = load_balancer.get("ingress") or []
    if not ingress:
        return None
    first = ingress[0] or {}
    if not any(first.values()):
        return None
    return first


def get_endpoint(opts: ServiceOptions, service: Mapping[str, Any]) -> Endpoint:
    """Return the endpoints of a Service manifest.

    The port named by opts.port_selector is used, or the last port when none
    matches. A service without a node or load-balancer port yields only an
    internal endpoint.

    Raises MeshkitError when the API server URL is needed but invalid, or
    when no reachable external endpoint is found.
    """
    worker_node_ip = opts.worker_node_ip or _LOCALHOST
    spec = service.get("spec") or {}
    cluster_ip = spec.get("clusterIP", "") or ""

    node_port = cluster_port = 0
    for port in spec.get("ports") or []:
        node_port = port.get("nodePort", 0) or 0
        cluster_port = port.get("port", 0) or 0
        if opts.port_selector and port.get("name") == opts.port_selector:
            break

    internal = HostPort(cluster_ip, cluster_port)
    external = HostPort(worker_node_ip, node_port)

    ingress = _first_ingress(service)
    if ingress is not None:
        ip = ingress.get("ip", "") or ""
        if not ip:
            external.address = ingress.get("hostname", "") or ""
            external.port = cluster_port
        elif ip in (cluster_ip, _PENDING):
            if opts.api_server_url:
                external.address = _api_server_host(opts.api_server_url)
                external.port = node_port
            else:
                external.address = cluster_ip
                external.port = cluster_port
        else:
            external.address = ip
            external.port = cluster_port

    if external.port == 0:
        return Endpoint(internal=internal)

    if not tcp_check(external, opts.mock) and external.address != _LOCALHOST:
        external.address = _api_server_host(opts.api_server_url)
        if not tcp_check(external, opts.mock) and external.address != _LOCALHOST:
            external.port = node_port
            if not tcp_check(external, opts.mock):
                raise err_endpoint_not_found()

    return Endpoint(internal=internal, external=external)


def get_service_endpoint(client: ServiceReader, opts: ServiceOptions) -> Endpoint:
    """Fetch the service described by opts and return its endpoints.

    Raises MeshkitError when the service cannot be fetched.
    """
    try:
        service = client.read_namespaced_service(opts.name, opts.namespace)
    except Exception as exc:
        raise err_service_discovery(exc) from exc
    return get_endpoint(opts, service)