import copy

import pytest

from meshtools.errors import MeshkitError
from meshtools.expose import (
    DNS1035_LABEL_MAX_LENGTH,
    ExposeConfig,
    ServiceType,
    SessionAffinity,
    build_service_for_object,
    can_be_exposed,
    generate_service,
    map_based_selector_for_object,
    ports_for_object,
    protocols_for_object,
)
from meshtools.expose_errors import (
    ERR_CANNOT_EXPOSE_OBJECT_CODE,
    ERR_FAILED_TO_EXTRACT_POD_SELECTOR_CODE,
    ERR_FAILED_TO_EXTRACT_PORTS_CODE,
    ERR_GENERATE_SERVICE_CODE,
    ERR_INVALID_DEPLOYMENT_NO_SELECTORS_CODE,
    ERR_INVALID_DEPLOYMENT_NO_SELECTORS_LABELS_CODE,
    ERR_MATCH_EXPRESSIONS_CONVERSION_CODE,
    ERR_POD_HAS_NO_LABELS_CODE,
    ERR_PORT_PARSING_CODE,
    ERR_RESOURCE_CANNOT_BE_EXPOSED_CODE,
    ERR_SELECTOR_BASED_MAP_CODE,
    ERR_SERVICE_HAS_NO_SELECTORS_CODE,
    ERR_UNKNOWN_SESSION_AFFINITY_CODE,
)


def _deployment(api_version="apps/v1"):
    return {
        "apiVersion": api_version,
        "kind": "Deployment",
        "metadata": {"name": "web", "namespace": "shop", "labels": {"tier": "front"}},
        "spec": {
            "selector": {"matchLabels": {"app": "web"}},
            "template": {
                "metadata": {"labels": {"app": "web"}},
                "spec": {
                    "containers": [
                        {"name": "main", "ports": [{"containerPort": 80}]},
                        {"name": "dns", "ports": [{"containerPort": 53, "protocol": "UDP"}]},
                    ]
                },
            },
        },
    }


def _pod(labels=None, ports=None):
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": "p", "namespace": "default", "labels": labels},
        "spec": {"containers": [{"name": "c", "ports": ports or []}]},
    }


@pytest.mark.parametrize(
    "group, kind",
    [
        ("", "ReplicationController"),
        ("", "Service"),
        ("", "Pod"),
        ("apps", "Deployment"),
        ("apps", "ReplicaSet"),
        ("extensions", "Deployment"),
        ("extensions", "ReplicaSet"),
    ],
)
def test_can_be_exposed_accepts_supported_kinds(group, kind):
    assert can_be_exposed(group, kind) is None


@pytest.mark.parametrize("group, kind", [("apps", "StatefulSet"), ("", "Deployment"), ("batch", "Job")])
def test_can_be_exposed_rejects_other_kinds(group, kind):
    with pytest.raises(MeshkitError) as info:
        can_be_exposed(group, kind)
    assert info.value.code == ERR_CANNOT_EXPOSE_OBJECT_CODE


@pytest.mark.parametrize("api_version", ["apps/v1", "apps/v1beta1", "apps/v1beta2"])
def test_selector_of_apps_deployment(api_version):
    assert map_based_selector_for_object(_deployment(api_version)) == {"app": "web"}


def test_legacy_deployment_falls_back_to_template_labels():
    obj = _deployment("extensions/v1beta1")
    del obj["spec"]["selector"]
    obj["spec"]["template"]["metadata"]["labels"] = {"role": "api"}
    assert map_based_selector_for_object(obj) == {"role": "api"}


def test_legacy_deployment_without_labels_fails():
    obj = _deployment("extensions/v1beta1")
    del obj["spec"]["selector"]
    obj["spec"]["template"]["metadata"]["labels"] = {}
    with pytest.raises(MeshkitError) as info:
        map_based_selector_for_object(obj)
    assert info.value.code == ERR_INVALID_DEPLOYMENT_NO_SELECTORS_LABELS_CODE


def test_apps_deployment_without_selector_fails():
    obj = _deployment()
    obj["spec"]["selector"] = {"matchLabels": {}}
    with pytest.raises(MeshkitError) as info:
        map_based_selector_for_object(obj)
    assert info.value.code == ERR_INVALID_DEPLOYMENT_NO_SELECTORS_CODE


def test_match_expressions_are_rejected():
    obj = _deployment()
    obj["spec"]["selector"]["matchExpressions"] = [
        {"key": "app", "operator": "In", "values": ["web"]}
    ]
    with pytest.raises(MeshkitError) as info:
        map_based_selector_for_object(obj)
    assert info.value.code == ERR_MATCH_EXPRESSIONS_CONVERSION_CODE


def test_pod_selector_is_its_labels():
    assert map_based_selector_for_object(_pod(labels={"app": "db"})) == {"app": "db"}


def test_pod_without_labels_fails():
    with pytest.raises(MeshkitError) as info:
        map_based_selector_for_object(_pod(labels=None))
    assert info.value.code == ERR_POD_HAS_NO_LABELS_CODE


def test_service_without_selector_fails():
    service = {"apiVersion": "v1", "kind": "Service", "spec": {"ports": []}}
    with pytest.raises(MeshkitError) as info:
        map_based_selector_for_object(service)
    assert info.value.code == ERR_SERVICE_HAS_NO_SELECTORS_CODE


@pytest.mark.parametrize(
    "api_version, kind",
    [("apps/v1", "StatefulSet"), ("apps/v1beta1", "ReplicaSet"), ("v2", "Pod")],
)
def test_unsupported_type_has_no_selector(api_version, kind):
    with pytest.raises(MeshkitError) as info:
        map_based_selector_for_object({"apiVersion": api_version, "kind": kind})
    assert info.value.code == ERR_FAILED_TO_EXTRACT_POD_SELECTOR_CODE


def test_protocols_default_to_tcp():
    assert protocols_for_object(_deployment()) == {"80": "TCP", "53": "UDP"}


def test_ports_in_container_order():
    assert ports_for_object(_deployment()) == ["80", "53"]


def test_service_ports_and_protocols():
    service = {
        "apiVersion": "v1",
        "kind": "Service",
        "spec": {"selector": {"a": "b"}, "ports": [{"port": 8080}, {"port": 9090, "protocol": "SCTP"}]},
    }
    assert ports_for_object(service) == ["8080", "9090"]
    assert protocols_for_object(service) == {"8080": "TCP", "9090": "SCTP"}


def test_ports_of_unsupported_type_fail():
    with pytest.raises(MeshkitError) as info:
        ports_for_object({"apiVersion": "apps/v1", "kind": "DaemonSet"})
    assert info.value.code == ERR_FAILED_TO_EXTRACT_PORTS_CODE


def test_generate_service_names_ports_when_several():
    service = generate_service(
        ExposeConfig(name="web", namespace="shop"),
        {"app": "web"},
        {"tier": "front"},
        {"53": "UDP"},
        ["80", "53"],
    )
    ports = service["spec"]["ports"]
    assert [port["name"] for port in ports] == ["port-1", "port-2"]
    assert [port["port"] for port in ports] == [80, 53]
    assert all(port["targetPort"] == port["port"] for port in ports)
    assert [port["protocol"] for port in ports] == ["TCP", "UDP"]
    assert service["kind"] == "Service"
    assert service["metadata"]["name"] == "web"
    assert service["metadata"]["labels"] == {"tier": "front"}
    assert service["spec"]["selector"] == {"app": "web"}


def test_generate_service_single_port_is_unnamed():
    service = generate_service(ExposeConfig(), {"a": "b"}, {}, {}, ["80"])
    assert "name" not in service["spec"]["ports"][0]
    assert "type" not in service["spec"]


def test_generate_service_load_balancer_ip_and_affinity():
    config = ExposeConfig(
        type=ServiceType.LOAD_BALANCER,
        load_balancer_ip="10.0.0.5",
        session_affinity=SessionAffinity.CLIENT_IP,
        cluster_ip="None",
    )
    spec = generate_service(config, {"a": "b"}, {}, {}, ["80"])["spec"]
    assert spec["type"] == "LoadBalancer"
    assert spec["loadBalancerIP"] == "10.0.0.5"
    assert spec["sessionAffinity"] == "ClientIP"
    assert spec["clusterIP"] == "None"


def test_load_balancer_ip_ignored_for_other_types():
    config = ExposeConfig(type=ServiceType.NODE_PORT, load_balancer_ip="10.0.0.5")
    spec = generate_service(config, {"a": "b"}, {}, {}, ["80"])["spec"]
    assert spec["type"] == "NodePort"
    assert "loadBalancerIP" not in spec


def test_generate_service_unknown_affinity():
    with pytest.raises(MeshkitError) as info:
        generate_service(ExposeConfig(session_affinity="Sticky"), {}, {}, {}, ["80"])
    assert info.value.code == ERR_UNKNOWN_SESSION_AFFINITY_CODE


def test_generate_service_bad_port():
    with pytest.raises(ValueError):
        generate_service(ExposeConfig(), {}, {}, {}, ["http"])


def test_build_service_takes_namespace_from_object():
    obj = _deployment()
    config = ExposeConfig(name="web-svc")
    service = build_service_for_object(obj, config)
    assert service["metadata"]["namespace"] == "shop"
    assert service["metadata"]["labels"] == {"tier": "front"}
    assert service["spec"]["selector"] == {"app": "web"}
    assert config.namespace == ""


def test_build_service_does_not_modify_object():
    obj = _deployment()
    before = copy.deepcopy(obj)
    build_service_for_object(obj, ExposeConfig(name="web"))
    assert obj == before


def test_build_service_truncates_name():
    service = build_service_for_object(_deployment(), ExposeConfig(name="x" * 100))
    assert len(service["metadata"]["name"]) == DNS1035_LABEL_MAX_LENGTH


def test_build_service_requires_ports_unless_headless():
    pod = _pod(labels={"app": "db"})
    with pytest.raises(MeshkitError) as info:
        build_service_for_object(pod, ExposeConfig(name="db"))
    assert info.value.code == ERR_PORT_PARSING_CODE
    headless = build_service_for_object(pod, ExposeConfig(name="db", cluster_ip="None"))
    assert headless["spec"]["ports"] == []
    assert headless["spec"]["clusterIP"] == "None"


def test_build_service_rejects_unexposable_kind():
    obj = _deployment()
    obj["kind"] = "StatefulSet"
    with pytest.raises(MeshkitError) as info:
        build_service_for_object(obj, ExposeConfig(name="s"))
    assert info.value.code == ERR_RESOURCE_CANNOT_BE_EXPOSED_CODE


def test_build_service_wraps_selector_errors():
    with pytest.raises(MeshkitError) as info:
        build_service_for_object(_pod(labels={}, ports=[{"containerPort": 80}]), ExposeConfig())
    assert info.value.code == ERR_SELECTOR_BASED_MAP_CODE


def test_build_service_wraps_generation_errors():
    with pytest.raises(MeshkitError) as info:
        build_service_for_object(_deployment(), ExposeConfig(session_affinity="Sticky"))
    assert info.value.code == ERR_GENERATE_SERVICE_CODE