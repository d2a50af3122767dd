"""Errors raised while exposing Kubernetes resources through services."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from meshtools.errors import MeshkitError, Severity

ERR_EXPOSE_RESOURCE_CODE = "meshkit-11205"
ERR_GETTING_RESOURCE_CODE = "meshkit-11206"
ERR_TRAVERSER_CODE = "meshkit-11207"
ERR_RESOURCE_CANNOT_BE_EXPOSED_CODE = "meshkit-11208"
ERR_SELECTOR_BASED_MAP_CODE = "meshkit-11209"
ERR_PROTOCOL_BASED_MAP_CODE = "meshkit-11210"
ERR_LABEL_BASED_MAP_CODE = "meshkit-11211"
ERR_PORT_PARSING_CODE = "meshkit-11212"
ERR_GENERATE_SERVICE_CODE = "meshkit-11213"
ERR_CONSTRUCTING_REST_HELPER_CODE = "meshkit-11214"
ERR_CREATING_SERVICE_CODE = "meshkit-11215"
ERR_POD_HAS_NO_LABELS_CODE = "meshkit-11216"
ERR_SERVICE_HAS_NO_SELECTORS_CODE = "meshkit-11217"
ERR_INVALID_DEPLOYMENT_NO_SELECTORS_LABELS_CODE = "meshkit-11218"
ERR_INVALID_DEPLOYMENT_NO_SELECTORS_CODE = "meshkit-11219"
ERR_INVALID_REPLICA_NO_SELECTORS_LABELS_CODE = "meshkit-11220"
ERR_INVALID_REPLICA_SET_NO_SELECTORS_CODE = "meshkit-11221"
ERR_NO_PORTS_FOUND_FOR_HEADLESS_RESOURCE_CODE = "meshkit-11222"
ERR_UNKNOWN_SESSION_AFFINITY_CODE = "meshkit-11223"
ERR_MATCH_EXPRESSIONS_CONVERSION_CODE = "meshkit-11224"
ERR_FAILED_TO_EXTRACT_POD_SELECTOR_CODE = "meshkit-11225"
ERR_FAILED_TO_EXTRACT_PORTS_CODE = "meshkit-11226"
ERR_FAILED_TO_EXTRACT_PROTOCOLS_CODE = "meshkit-11227"
ERR_CANNOT_EXPOSE_OBJECT_CODE = "meshkit-11228"


def _alert(*short: str, long: list[str] | None = None, cause: BaseException | None = None) -> MeshkitError:
    return MeshkitError(code="", severity=Severity.ALERT, short_description=short,
                        long_description=long or [], cause=cause)


def _make(code: str, *short: str, long: list[str] | None = None,
          cause: BaseException | None = None) -> MeshkitError:
    error = _alert(*short, long=long, cause=cause)
    error.code = code
    return error


def _kind_of(obj: Any) -> str:
    if isinstance(obj, Mapping):
        kind = obj.get("kind")
    else:
        kind = getattr(obj, "kind", None)
    return "" if kind is None else str(kind)


def err_pod_has_no_labels() -> MeshkitError:
    return _make(ERR_POD_HAS_NO_LABELS_CODE, "the pod has no labels and cannot be exposed")


def err_service_has_no_selectors() -> MeshkitError:
    return _make(ERR_SERVICE_HAS_NO_SELECTORS_CODE, "the service has no pod selector set")


def err_invalid_deployment_no_selectors_labels() -> MeshkitError:
    return _make(
        ERR_INVALID_DEPLOYMENT_NO_SELECTORS_LABELS_CODE,
        "the deployment has no labels or selectors and cannot be exposed",
    )


def err_invalid_deployment_no_selectors() -> MeshkitError:
    return _make(
        ERR_INVALID_DEPLOYMENT_NO_SELECTORS_CODE,
        "invalid deployment: no selectors, therefore cannot be exposed",
    )


def err_invalid_replica_no_selectors_labels() -> MeshkitError:
    return _make(
        ERR_INVALID_REPLICA_NO_SELECTORS_LABELS_CODE,
        "the replica set has no labels or selectors and cannot be exposed",
    )


def err_invalid_replica_set_no_selectors() -> MeshkitError:
    return _make(
        ERR_INVALID_REPLICA_SET_NO_SELECTORS_CODE,
        "invalid replicaset: no selectors, therefore cannot be exposed",
    )


def err_no_ports_found_for_headless_resource() -> MeshkitError:
    return _make(
        ERR_NO_PORTS_FOUND_FOR_HEADLESS_RESOURCE_CODE,
        "no ports found for the non headless resource",
    )


def err_unknown_session_affinity(affinity: Any) -> MeshkitError:
    value = getattr(affinity, "value", affinity)
    return _make(ERR_UNKNOWN_SESSION_AFFINITY_CODE, "unknown session affinity:", str(value))


def err_match_expressions_conversion(expressions: Any) -> MeshkitError:
    return _make(
        ERR_MATCH_EXPRESSIONS_CONVERSION_CODE,
        "couldn't convert expressions - to map-based selector format",
    )


def err_failed_to_extract_pod_selector(obj: Any) -> MeshkitError:
    return _make(
        ERR_FAILED_TO_EXTRACT_POD_SELECTOR_CODE,
        "cannot extract pod selector from ",
        _kind_of(obj),
    )


def err_failed_to_extract_ports(obj: Any) -> MeshkitError:
    return _make(ERR_FAILED_TO_EXTRACT_PORTS_CODE, "cannot extract ports from ", _kind_of(obj))


def err_failed_to_extract_protocols(obj: Any) -> MeshkitError:
    return _make(
        ERR_FAILED_TO_EXTRACT_PROTOCOLS_CODE, "cannot extract protocols from ", _kind_of(obj)
    )


def err_cannot_expose_object(group: str, kind: str) -> MeshkitError:
    group_kind = f"{kind}.{group}" if group else kind
    return _make(ERR_CANNOT_EXPOSE_OBJECT_CODE, "cannot expose a ", group_kind)


def err_expose_resource(err: BaseException) -> MeshkitError:
    return _make(ERR_EXPOSE_RESOURCE_CODE, str(err), cause=err)


def err_getting_resource(err: BaseException) -> MeshkitError:
    return _make(ERR_GETTING_RESOURCE_CODE, str(err), cause=err)


def err_traverser(err: BaseException) -> MeshkitError:
    return _make(ERR_TRAVERSER_CODE, str(err), cause=err)


def err_resource_cannot_be_exposed(err: BaseException, resource_kind: str) -> MeshkitError:
    return _make(
        ERR_RESOURCE_CANNOT_BE_EXPOSED_CODE,
        "resource type %s cannot be exposed: ",
        resource_kind,
        long=[str(err)],
        cause=err,
    )


def err_selector_based_map(err: BaseException) -> MeshkitError:
    return _make(ERR_SELECTOR_BASED_MAP_CODE, str(err), cause=err)


def err_protocol_based_map(err: BaseException) -> MeshkitError:
    return _make(ERR_PROTOCOL_BASED_MAP_CODE, str(err), cause=err)


def err_label_based_map(err: BaseException) -> MeshkitError:
    return _make(ERR_LABEL_BASED_MAP_CODE, str(err), cause=err)


def err_port_parsing(err: BaseException) -> MeshkitError:
    return _make(ERR_PORT_PARSING_CODE, str(err), cause=err)


def err_generate_service(err: BaseException) -> MeshkitError:
    return _make(ERR_GENERATE_SERVICE_CODE, str(err), cause=err)


def err_constructing_rest_helper(err: BaseException) -> MeshkitError:
    return _make(ERR_CONSTRUCTING_REST_HELPER_CODE, str(err), cause=err)


def err_creating_service(err: BaseException) -> MeshkitError:
    return _make(ERR_CREATING_SERVICE_CODE, str(err), cause=err)