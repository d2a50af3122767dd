"""Validation and version checks of docker-compose files."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import yaml
from jsonschema import exceptions as _schema_exceptions
from jsonschema import validators as _schema_validators

from meshtools.errors import MeshkitError, Severity

ERR_CVRT_KOMPOSE_CODE = "meshkit-11229"
ERR_VALIDATE_DOCKER_COMPOSE_FILE_CODE = "meshkit-11230"
ERR_INCOMPATIBLE_VERSION_CODE = "meshkit-11231"
ERR_NO_VERSION_CODE = "meshkit-11232"

_MAX_SUPPORTED_VERSION = 3.9


def err_cvrt_kompose(err: BaseException) -> MeshkitError:
    return MeshkitError(
        ERR_CVRT_KOMPOSE_CODE,
        Severity.ALERT,
        ["Error converting the docker compose file into kubernetes manifests"],
        [str(err)],
        ["Could not convert docker-compose file into kubernetes manifests"],
        ["Make sure the docker-compose file is valid", ""],
        cause=err,
    )


def err_validate_docker_compose_file(err: BaseException) -> MeshkitError:
    return MeshkitError(
        ERR_VALIDATE_DOCKER_COMPOSE_FILE_CODE,
        Severity.ALERT,
        ["Invalid docker compose file"],
        [str(err)],
        [""],
        ["Make sure that the compose file is valid,", "Make sure that the schema is valid"],
        cause=err,
    )


def err_incompatible_version() -> MeshkitError:
    return MeshkitError(
        ERR_INCOMPATIBLE_VERSION_CODE,
        Severity.ALERT,
        ["This version of docker compose file is not compatible."],
        ["This docker compose file is invalid since it's version is incompatible."],
        ["docker compose file with version greater than 3.3 is probably being used"],
        ["Make sure that the compose file has version less than or equal to 3.3,", ""],
    )


def err_no_version() -> MeshkitError:
    return MeshkitError(
        ERR_NO_VERSION_CODE,
        Severity.ALERT,
        ["version not found in the docker compose file"],
        ["Version field not found"],
        [
            "Since the Docker Compose specification does not mandate the version "
            "field from version 3 onwards, most sources do not provide them."
        ],
        [
            "Make sure that the compose file has version specified,",
            "Add any version less than or equal to 3.3 if you cannot get the exact version from the source",
        ],
    )


def _load_schema(schema: Mapping[str, Any] | str | bytes) -> Any:
    if isinstance(schema, Mapping):
        return dict(schema)
    if isinstance(schema, (bytes, bytearray)):
        schema = bytes(schema).decode("utf-8")
    return json.loads(schema)


def validate_compose_file(manifest: str | bytes, schema: Mapping[str, Any] | str | bytes) -> None:
    """Validate a YAML compose manifest against a JSON schema.

    Raises MeshkitError when the schema or the manifest cannot be read or
    the manifest does not conform.
    """
    try:
        schema_doc = _load_schema(schema)
        validator_cls = _schema_validators.validator_for(schema_doc)
        validator_cls.check_schema(schema_doc)
        document = yaml.safe_load(manifest)
        validator_cls(schema_doc).validate(document)
    except (
        ValueError,
        yaml.YAMLError,
        _schema_exceptions.ValidationError,
        _schema_exceptions.SchemaError,
    ) as exc:
        raise err_validate_docker_compose_file(exc) from exc


def is_manifest_a_docker_compose(manifest: str | bytes, schema: Mapping[str, Any] | str | bytes) -> bool:
    """Return whether the manifest is a compose file valid under schema."""
    try:
        validate_compose_file(manifest, schema)
    except MeshkitError:
        return False
    return True


def _load_mapping(manifest: str | bytes) -> dict[str, Any]:
    try:
        document = yaml.safe_load(manifest)
    except yaml.YAMLError as exc:
        raise ValueError(f"cannot parse compose file: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError("compose file must be a mapping")
    return document


def _version_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def version_check(manifest: str | bytes) -> float:
    """Return the compose file's version when kompose can handle it.

    Raises MeshkitError when the version is missing or above 3.9, and
    ValueError when the file cannot be parsed or the version is not a number.
    """
    version = _version_text(_load_mapping(manifest).get("version"))
    if not version:
        raise err_no_version()
    try:
        number = float(version)
    except ValueError as exc:
        raise ValueError(f"expected type float for version, got {version!r}") from exc
    if number > _MAX_SUPPORTED_VERSION:
        raise err_incompatible_version()
    return number


def format_compose_file(manifest: str | bytes) -> bytes:
    """Return the manifest reduced to its version, written as a quoted string.

    When the manifest cannot be parsed it is returned unchanged.
    """
    original = manifest.encode("utf-8") if isinstance(manifest, str) else bytes(manifest)
    try:
        document = _load_mapping(manifest)
    except ValueError:
        return original
    version = _version_text(document.get("version"))
    data = {"version": version} if version else {}
    return yaml.safe_dump(data, default_flow_style=False).encode("utf-8")