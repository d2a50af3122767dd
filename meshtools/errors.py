"""Structured errors carrying a code, a severity and human-readable guidance."""

from __future__ import annotations

import enum
from collections.abc import Iterable

ERR_APPLY_MANIFEST_CODE = "meshkit-11190"
ERR_SERVICE_DISCOVERY_CODE = "meshkit-11191"
ERR_APPLY_HELM_CHART_CODE = "meshkit-11192"
ERR_NEW_KUBE_CLIENT_CODE = "meshkit-11193"
ERR_NEW_DYN_CLIENT_CODE = "meshkit-11194"
ERR_NEW_DISCOVERY_CODE = "meshkit-11195"
ERR_NEW_INFORMER_CODE = "meshkit-11196"
ERR_ENDPOINT_NOT_FOUND_CODE = "meshkit-11197"
ERR_INVALID_API_SERVER_CODE = "meshkit-11198"
ERR_LOAD_CONFIG_CODE = "meshkit-11199"
ERR_VALIDATE_CONFIG_CODE = "meshkit-11200"
ERR_CREATING_HELM_INDEX_CODE = "meshkit-11201"
ERR_ENTRY_WITH_APP_VERSION_NOT_EXISTS_CODE = "meshkit-11202"
ERR_HELM_REPOSITORY_NOT_FOUND_CODE = "meshkit-11203"
ERR_ENTRY_WITH_CHART_VERSION_NOT_EXISTS_CODE = "meshkit-11204"
ERR_REST_CONFIG_FROM_KUBE_CONFIG_CODE = "meshkit-11205"

_KUBECONFIG_PROBABLE = "Kubernetes config is not accessible to meshery or not valid"
_KUBECONFIG_REMEDY = (
    "Upload your kubernetes config via the settings dashboard. "
    "If uploaded, wait for a minute for it to get initialized"
)


class Severity(enum.Enum):
    """How serious an error is."""

    NONE = 0
    ALERT = 1
    CRITICAL = 2
    FATAL = 3


class MeshkitError(Exception):
    """An error with a code, a severity, descriptions, causes and remedies."""

    def __init__(
        self,
        code: str,
        severity: Severity,
        short_description: Iterable[str] = (),
        long_description: Iterable[str] = (),
        probable_cause: Iterable[str] = (),
        suggested_remediation: Iterable[str] = (),
        cause: BaseException | None = None,
    ) -> None:
        self.code = code
        self.severity = severity
        self.short_description = list(short_description)
        self.long_description = list(long_description)
        self.probable_cause = list(probable_cause)
        self.suggested_remediation = list(suggested_remediation)
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        return " ".join(self.short_description)

    def __repr__(self) -> str:
        return f"MeshkitError(code={self.code!r}, short={self.short_description!r})"


def _wrapped(
    code: str, short: str, err: BaseException, probable: str, remedy: str
) -> MeshkitError:
    return MeshkitError(
        code, Severity.ALERT, [short], [str(err)], [probable], [remedy], cause=err
    )


def err_apply_manifest(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_APPLY_MANIFEST_CODE,
        "Error Applying manifest",
        err,
        "Manifest could be invalid",
        "Make sure manifest yaml is valid",
    )


def err_service_discovery(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_SERVICE_DISCOVERY_CODE,
        "Error discovering service",
        err,
        "Network not reachable to the service",
        "Make sure the endpoint is reachable",
    )


def err_apply_helm_chart(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_APPLY_HELM_CHART_CODE,
        "Error applying helm chart",
        err,
        "Chart could be invalid",
        "Make sure to apply valid chart",
    )


def err_new_kube_client(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_NEW_KUBE_CLIENT_CODE,
        "Error creating kubernetes clientset",
        err,
        _KUBECONFIG_PROBABLE,
        _KUBECONFIG_REMEDY,
    )


def err_new_dyn_client(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_NEW_DYN_CLIENT_CODE,
        "Error creating dynamic client",
        err,
        _KUBECONFIG_PROBABLE,
        _KUBECONFIG_REMEDY,
    )


def err_new_discovery(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_NEW_DISCOVERY_CODE,
        "Error creating discovery client",
        err,
        "Discovery resource is invalid or doesnt exist",
        "Makes sure the you input valid resource for discovery",
    )


def err_new_informer(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_NEW_INFORMER_CODE,
        "Error creating informer client",
        err,
        "Informer is invalid or doesnt exist",
        "Makes sure the you input valid resource for the informer",
    )


def err_load_config(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_LOAD_CONFIG_CODE,
        "Error loading kubernetes config",
        err,
        _KUBECONFIG_PROBABLE,
        _KUBECONFIG_REMEDY,
    )


def err_validate_config(err: BaseException) -> MeshkitError:
    return _wrapped(
        ERR_VALIDATE_CONFIG_CODE,
        "Validation failed in the kubernetes config",
        err,
        _KUBECONFIG_PROBABLE,
        _KUBECONFIG_REMEDY,
    )


def err_creating_helm_index(err: BaseException) -> MeshkitError:
    return MeshkitError(
        ERR_CREATING_HELM_INDEX_CODE,
        Severity.ALERT,
        ["Error while creating Helm Index"],
        [str(err)],
        cause=err,
    )


def err_entry_with_app_version_not_exists(entry: str, app_version: str) -> MeshkitError:
    return MeshkitError(
        ERR_ENTRY_WITH_APP_VERSION_NOT_EXISTS_CODE,
        Severity.ALERT,
        ["Entry for the app version does not exist"],
        [f"entry {entry} with app version {app_version} does not exists"],
    )


def err_entry_with_chart_version_not_exists(entry: str, app_version: str) -> MeshkitError:
    return MeshkitError(
        ERR_ENTRY_WITH_CHART_VERSION_NOT_EXISTS_CODE,
        Severity.ALERT,
        ["Entry for the chart version does not exist"],
        [f"entry {entry} with chart version {app_version} does not exists"],
    )


def err_helm_repository_not_found(repo: str, err: BaseException) -> MeshkitError:
    return MeshkitError(
        ERR_HELM_REPOSITORY_NOT_FOUND_CODE,
        Severity.ALERT,
        ["Helm repo not found"],
        [f"either the repo {repo} does not exists or is corrupt: {err}"],
        cause=err,
    )


def err_rest_config_from_kube_config(err: BaseException) -> MeshkitError:
    return MeshkitError(
        ERR_REST_CONFIG_FROM_KUBE_CONFIG_CODE,
        Severity.ALERT,
        ["Failed to create REST config from kubeconfig."],
        [f"Error occured while creating REST config from kubeconfig: {err}"],
        [
            "The provided kubeconfig data might be invalid or corrupted.",
            "The kubeconfig might be incomplete or missing required fields.",
        ],
        [
            "Verify that the kubeconfig data is valid.",
            "Ensure the kubeconfig contains all necessary cluster, user, and context information.",
            "Check if the kubeconfig data was properly read and passed to the function.",
        ],
        cause=err,
    )


def err_endpoint_not_found() -> MeshkitError:
    return MeshkitError(
        ERR_ENDPOINT_NOT_FOUND_CODE,
        Severity.ALERT,
        ["Unable to discover an endpoint"],
    )


def err_invalid_api_server() -> MeshkitError:
    return MeshkitError(
        ERR_INVALID_API_SERVER_CODE,
        Severity.ALERT,
        ["Invalid API Server URL"],
    )