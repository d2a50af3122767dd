"""Kinds of Kubernetes resources that can be described, and their group/kind."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from meshtools.errors import MeshkitError, Severity

ERR_GET_DESCRIBER_FUNC_CODE = "meshkit-11189"

_CORE = ""
_APPS = "apps"
_BATCH = "batch"
_CERTIFICATES = "certificates.k8s.io"
_DISCOVERY = "discovery.k8s.io"
_NETWORKING = "networking.k8s.io"
_RBAC = "rbac.authorization.k8s.io"


class DescribeType(enum.IntEnum):
    """A Kubernetes resource kind that can be described."""

    SERVICE = 0
    POD = 1
    NAMESPACE = 2
    JOB = 3
    CRON_JOB = 4
    DEPLOYMENT = 5
    DAEMON_SET = 6
    REPLICA_SET = 7
    STATEFUL_SET = 8
    SECRET = 9
    SERVICE_ACCOUNT = 10
    NODE = 11
    LIMIT_RANGE = 12
    RESOURCE_QUOTA = 13
    PERSISTENT_VOLUME = 14
    PERSISTENT_VOLUME_CLAIM = 15
    ENDPOINTS = 16
    CONFIG_MAP = 17
    PRIORITY_CLASS = 18
    INGRESS = 19
    ROLE = 20
    CLUSTER_ROLE = 21
    ROLE_BINDING = 22
    CLUSTER_ROLE_BINDING = 23
    NETWORK_POLICY = 24
    REPLICATION_CONTROLLER = 25
    CERTIFICATE_SIGNING_REQUEST = 26
    ENDPOINT_SLICE = 27


@dataclass(frozen=True)
class GroupKind:
    """An API group and a kind within it."""

    group: str
    kind: str

    def __str__(self) -> str:
        return f"{self.kind}.{self.group}" if self.group else self.kind


@dataclass
class DescriberOptions:
    """Which object to describe and how."""

    name: str = ""
    namespace: str = ""
    show_events: bool = False
    chunk_size: int = 0
    type: DescribeType = DescribeType.SERVICE


RESOURCE_MAP: dict[DescribeType, GroupKind] = {
    DescribeType.POD: GroupKind(_CORE, "Pod"),
    DescribeType.DEPLOYMENT: GroupKind(_APPS, "Deployment"),
    DescribeType.JOB: GroupKind(_BATCH, "Job"),
    DescribeType.CRON_JOB: GroupKind(_BATCH, "CronJob"),
    DescribeType.STATEFUL_SET: GroupKind(_APPS, "StatefulSet"),
    DescribeType.DAEMON_SET: GroupKind(_APPS, "DaemonSet"),
    DescribeType.REPLICA_SET: GroupKind(_APPS, "ReplicaSet"),
    DescribeType.SECRET: GroupKind(_CORE, "Secret"),
    DescribeType.SERVICE: GroupKind(_CORE, "Service"),
    DescribeType.SERVICE_ACCOUNT: GroupKind(_CORE, "ServiceAccount"),
    DescribeType.NODE: GroupKind(_CORE, "Node"),
    DescribeType.LIMIT_RANGE: GroupKind(_CORE, "LimitRange"),
    DescribeType.RESOURCE_QUOTA: GroupKind(_CORE, "ResourceQuota"),
    DescribeType.PERSISTENT_VOLUME: GroupKind(_CORE, "PersistentVolume"),
    DescribeType.PERSISTENT_VOLUME_CLAIM: GroupKind(_CORE, "PersistentVolumeClaim"),
    DescribeType.NAMESPACE: GroupKind(_CORE, "Namespace"),
    DescribeType.ENDPOINTS: GroupKind(_CORE, "Endpoints"),
    DescribeType.CONFIG_MAP: GroupKind(_CORE, "ConfigMap"),
    DescribeType.PRIORITY_CLASS: GroupKind(_CORE, "PriorityClass"),
    DescribeType.INGRESS: GroupKind(_NETWORKING, "Ingress"),
    DescribeType.ROLE: GroupKind(_RBAC, "Role"),
    DescribeType.CLUSTER_ROLE: GroupKind(_RBAC, "ClusterRole"),
    DescribeType.ROLE_BINDING: GroupKind(_RBAC, "RoleBinding"),
    DescribeType.CLUSTER_ROLE_BINDING: GroupKind(_RBAC, "ClusterRoleBinding"),
    DescribeType.NETWORK_POLICY: GroupKind(_NETWORKING, "NetworkPolicy"),
    DescribeType.REPLICATION_CONTROLLER: GroupKind(_CORE, "ReplicationController"),
    DescribeType.CERTIFICATE_SIGNING_REQUEST: GroupKind(_CERTIFICATES, "CertificateSigningRequest"),
    DescribeType.ENDPOINT_SLICE: GroupKind(_DISCOVERY, "EndpointSlice"),
}


def err_get_describer_func() -> MeshkitError:
    return MeshkitError(
        ERR_GET_DESCRIBER_FUNC_CODE,
        Severity.FATAL,
        ["Failed to get describer for the resource"],
        [
            "invalid kubernetes object type or object type not supported in meshkit",
            "Describer not found for the defined Resource",
        ],
    )


def group_kind_for(describe_type: DescribeType | int) -> GroupKind:
    """Return the group and kind of a describable resource type.

    Raises MeshkitError when the type is not one that can be described.
    """
    try:
        return RESOURCE_MAP[DescribeType(describe_type)]
    except (ValueError, KeyError) as exc:
        raise err_get_describer_func() from exc