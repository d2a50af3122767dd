"""Generation of workload definitions and JSON schemas from CRD manifests."""

from __future__ import annotations

import enum
import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from meshtools.errors import MeshkitError, Severity
from meshtools.readable import format_to_readable_string

ERR_GET_CRD_NAMES_CODE = "meshkit-11233"
ERR_GET_SCHEMAS_CODE = "meshkit-11234"
ERR_GET_API_VERSION_CODE = "meshkit-11235"
ERR_GET_API_GROUP_CODE = "meshkit-11236"
ERR_POPULATING_YAML_CODE = "meshkit-11237"
ERR_ABSENT_FILTER_CODE = "meshkit-11238"
ERR_CREATING_DIRECTORY_CODE = "meshkit-11239"
ERR_GET_RESOURCE_IDENTIFIER_CODE = "meshkit-11240"

JSON_SCHEMA_PROPS_REF = "JSONSchemaProps"

_DEFINITION_SUFFIX = ".meshery.layer5.io"
_GO_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)

Extractor = Callable[[Any], Any]


class ResourceType(enum.IntEnum):
    """Kind of resource a component is generated for."""

    SERVICE_MESH = 0
    K8S = 1
    MESHERY = 2


@dataclass
class Component:
    """Generated definitions and their matching schemas."""

    schemas: list[str] = field(default_factory=list)
    definitions: list[str] = field(default_factory=list)


@dataclass
class CrdFilter:
    """Functions that pull the parts of a parsed CRD needed for a component.

    Each extractor takes the parsed CRD and returns the value, raising
    LookupError when it is absent.
    """

    name_extractor: Extractor | None = None
    group_extractor: Extractor | None = None
    version_extractor: Extractor | None = None
    spec_extractor: Extractor | None = None
    is_json: bool = False
    identifier_extractor: Extractor | None = None


@dataclass
class Config:
    """How components are generated from a manifest.

    modify_def_schema receives a definition and a schema and returns the
    pair to use instead; extract_crds splits a manifest into single CRDs.
    """

    name: str = ""
    type: str = ""
    mesh_version: str = ""
    k8s_version: str = ""
    modify_def_schema: Callable[[str, str], tuple[str, str]] | None = None
    crd_filter: CrdFilter = field(default_factory=CrdFilter)
    extract_crds: Callable[[str], list[str]] | None = None


@dataclass
class ExtractorPaths:
    """Paths, such as ``spec.versions[0].name``, to the parts of a CRD."""

    name_path: str = ""
    group_path: str = ""
    version_path: str = ""
    spec_path: str = ""
    id_path: str = ""


def _error(code: str, short: str, err: BaseException, probable: list[str], remedy: list[str]) -> MeshkitError:
    return MeshkitError(code, Severity.ALERT, [short], [str(err)], probable, remedy, cause=err)


def err_get_resource_identifier(err: BaseException) -> MeshkitError:
    return _error(
        ERR_GET_RESOURCE_IDENTIFIER_CODE,
        "Error extracting the resource identifier name",
        err,
        ["Could not extract the value with the given filter configuration"],
        [
            "Make sure to input a valid manifest",
            "Make sure to provide the right filter configurations",
            "Make sure the filters are appropriate for the given manifest",
        ],
    )


def err_get_crd_names(err: BaseException) -> MeshkitError:
    return _error(
        ERR_GET_CRD_NAMES_CODE,
        "Error getting crd names",
        err,
        ["Could not execute kubeopenapi-jsonschema correctly"],
        ["Make sure the binary is valid and correct", "Make sure the filter passed is correct"],
    )


def err_get_schemas(err: BaseException) -> MeshkitError:
    return _error(
        ERR_GET_SCHEMAS_CODE,
        "Error getting schemas",
        err,
        ["Schemas Json could not be produced from given crd."],
        ["Make sure the filter passed is correct"],
    )


def err_get_api_version(err: BaseException) -> MeshkitError:
    return _error(
        ERR_GET_API_VERSION_CODE,
        "Error getting api version",
        err,
        ["Api version could not be parsed"],
        ["Make sure the filter passed is correct"],
    )


def err_get_api_group(err: BaseException) -> MeshkitError:
    return _error(
        ERR_GET_API_GROUP_CODE,
        "Error getting api group",
        err,
        ["Api group could not be parsed"],
        ["Make sure the filter passed is correct"],
    )


def err_populating_yaml(err: BaseException) -> MeshkitError:
    return _error(
        ERR_POPULATING_YAML_CODE,
        "Error populating yaml",
        err,
        ["Yaml could not be populated with the returned manifests"],
        [""],
    )


def err_absent_filter(err: BaseException) -> MeshkitError:
    return _error(
        ERR_ABSENT_FILTER_CODE,
        "Error with passed filters",
        err,
        ["ItrFilter or ItrSpecFilter is either not passed or empty"],
        ["Pass the correct ItrFilter and ItrSpecFilter"],
    )


def err_creating_directory(err: BaseException) -> MeshkitError:
    return _error(
        ERR_CREATING_DIRECTORY_CODE,
        "could not create directory",
        err,
        ["proper file permissions were not set"],
        ["check the appropriate file permissions"],
    )


_NAME = re.compile(r"[A-Za-z_$#][A-Za-z0-9_$]*")
_QUOTED = re.compile(r'"(?:[^"\\]|\\.)*"')
_INDEX = re.compile(r"\[\s*(\d+)\s*\]")


def _read_name(text: str, pos: int) -> tuple[str, int]:
    quoted = _QUOTED.match(text, pos)
    if quoted:
        return json.loads(quoted.group(0)), quoted.end()
    name = _NAME.match(text, pos)
    if name:
        return name.group(0), name.end()
    raise ValueError(f"invalid path {text!r} at position {pos}")


def _parse_path(text: str) -> list[str | int]:
    text = text.strip()
    selectors: list[str | int] = []
    pos = 0
    while pos < len(text):
        if selectors:
            index = _INDEX.match(text, pos)
            if index:
                selectors.append(int(index.group(1)))
                pos = index.end()
                continue
            if text[pos] != ".":
                raise ValueError(f"invalid path {text!r} at position {pos}")
            pos += 1
        name, pos = _read_name(text, pos)
        selectors.append(name)
    return selectors


def _lookup(root: Any, path: str) -> Any:
    try:
        selectors = _parse_path(path)
    except ValueError as exc:
        raise LookupError(str(exc)) from exc
    value = root
    for selector in selectors:
        if isinstance(selector, int):
            if not isinstance(value, list) or selector >= len(value):
                raise LookupError("Could not find the value")
        elif not isinstance(value, Mapping) or selector not in value:
            raise LookupError("Could not find the value")
        value = value[selector]
    return value


def _path_extractor(path: str) -> Extractor:
    return lambda root: _lookup(root, path)


def new_crd_filter(paths: ExtractorPaths, is_json: bool = False) -> CrdFilter:
    """Return a filter whose extractors look values up at the given paths."""
    return CrdFilter(
        name_extractor=_path_extractor(paths.name_path),
        group_extractor=_path_extractor(paths.group_path),
        version_extractor=_path_extractor(paths.version_path),
        spec_extractor=_path_extractor(paths.spec_path),
        is_json=is_json,
        identifier_extractor=_path_extractor(paths.id_path),
    )


def _dump(value: Any, indent: int | None = None) -> str:
    if indent is None:
        text = json.dumps(value, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    else:
        text = json.dumps(value, sort_keys=True, ensure_ascii=False, indent=indent)
    for raw, escaped in _GO_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def _string_value(
    extractor: Extractor | None, crd: Any, make_error: Callable[[BaseException], MeshkitError]
) -> str:
    try:
        if extractor is None:
            raise LookupError("no extractor configured")
        value = extractor(crd)
    except LookupError as exc:
        raise make_error(exc) from exc
    if not isinstance(value, str):
        raise make_error(TypeError(f"expected a string, got {type(value).__name__}"))
    return value


def _get_definition(crd: Any, resource: int, cfg: Config) -> str:
    crd_filter = cfg.crd_filter
    resource_id = _string_value(crd_filter.identifier_extractor, crd, err_get_resource_identifier)
    api_version = _string_value(crd_filter.version_extractor, crd, err_get_api_version)
    api_group = _string_value(crd_filter.group_extractor, crd, err_get_api_group)

    name = resource_id
    definition_ref = resource_id.lower() + _DEFINITION_SUFFIX
    k8s_api_version = f"{api_group}/{api_version}" if api_group else api_version
    metadata: dict[str, str] | None = None

    if resource == ResourceType.SERVICE_MESH:
        metadata = {
            "@type": "pattern.meshery.io/mesh/workload",
            "meshVersion": cfg.mesh_version,
            "meshName": cfg.name,
            "k8sAPIVersion": k8s_api_version,
            "k8sKind": resource_id,
        }
        definition_ref = resource_id.lower()
        if cfg.type:
            name += "." + cfg.type
            definition_ref += "." + cfg.type
        definition_ref += _DEFINITION_SUFFIX
    elif resource == ResourceType.K8S:
        metadata = {
            "@type": "pattern.meshery.io/k8s",
            "k8sAPIVersion": k8s_api_version,
            "k8sKind": resource_id,
            "version": cfg.k8s_version,
        }
        name += ".K8s"
        definition_ref = resource_id.lower() + ".k8s" + _DEFINITION_SUFFIX
    elif resource == ResourceType.MESHERY:
        metadata = {"@type": "pattern.meshery.io/core"}

    spec: dict[str, Any] = {"definitionRef": {"name": definition_ref}}
    if metadata is not None:
        spec["metadata"] = metadata
    document = {
        "apiVersion": "core.oam.dev/v1alpha1",
        "kind": "WorkloadDefinition",
        "metadata": {"name": name},
        "spec": spec,
    }
    return _dump(document, indent=1)


def _get_schema(crd: Any, cfg: Config) -> str:
    extractor = cfg.crd_filter.spec_extractor
    try:
        if extractor is None:
            raise LookupError("no spec extractor configured")
        spec = extractor(crd)
        schema = json.loads(json.dumps(spec, default=str))
    except (LookupError, TypeError, ValueError) as exc:
        raise err_get_schemas(exc) from exc
    if not isinstance(schema, dict):
        raise err_get_schemas(TypeError("schema is not a JSON object"))
    resource_id = _string_value(
        cfg.crd_filter.identifier_extractor, crd, err_get_resource_identifier
    )
    schema["title"] = format_to_readable_string(resource_id)
    return _dump(schema, indent=1)


def _parse_crd(crd: str, is_json: bool) -> Any:
    if is_json:
        return json.loads(crd)
    return yaml.safe_load(crd)


def generate_components(manifest: str, resource: int, cfg: Config) -> Component:
    """Generate a definition and a schema for each CRD in manifest.

    CRDs that cannot be parsed or lack a required value are skipped.
    Raises MeshkitError when cfg has no extract_crds function.
    """
    if cfg.extract_crds is None:
        raise err_absent_filter(ValueError("no CRD extraction function configured"))
    component = Component()
    for crd in cfg.extract_crds(manifest):
        try:
            parsed = _parse_crd(crd, cfg.crd_filter.is_json)
        except (ValueError, yaml.YAMLError):
            continue
        try:
            definition = _get_definition(parsed, resource, cfg)
            schema = _get_schema(parsed, cfg)
        except MeshkitError:
            continue
        if cfg.modify_def_schema is not None:
            definition, schema = cfg.modify_def_schema(definition, schema)
        component.definitions.append(definition)
        component.schemas.append(schema)
    return component


def remove_non_crd_values(crds: list[str]) -> list[str]:
    """Drop empty, blank and "null" entries."""
    return [crd for crd in crds if crd not in ("", " ", "null")]


def _as_object(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


class ResolveOpenApiRefs:
    """Replaces ``$ref`` entries of an OpenAPI schema with their definitions.

    A JSONSchemaProps reference met while already resolving JSONSchemaProps
    becomes ``{"$ref": "string"}`` so that the recursion ends.
    """

    def __init__(self) -> None:
        self._inside_json_schema_props = False

    def resolve_references(
        self,
        manifest: bytes | str,
        definitions: Mapping[str, Any],
        cache: dict[str, bytes] | None = None,
    ) -> bytes:
        """Return the manifest, a JSON object, with references resolved.

        Raises ValueError when the manifest or a definition is not a JSON
        object, and LookupError when a reference has no definition.
        """
        if cache is None:
            cache = {}
        document = _as_object(json.loads(manifest))
        return _dump(self._resolve(document, definitions, cache)).encode("utf-8")

    def _resolve(
        self, obj: dict[str, Any], definitions: Mapping[str, Any], cache: dict[str, bytes]
    ) -> Any:
        ref = obj.get("$ref")
        if isinstance(ref, str):
            if self._inside_json_schema_props and ref.rsplit(".", 1)[-1] == JSON_SCHEMA_PROPS_REF:
                return {**obj, "$ref": "string"}
            return self._follow(ref, definitions, cache)
        result: dict[str, Any] = {}
        for key, value in obj.items():
            if isinstance(value, list):
                value = [
                    self._resolve(item, definitions, cache) if isinstance(item, dict) else item
                    for item in value
                ]
            elif isinstance(value, dict):
                value = self._resolve(value, definitions, cache)
            result[key] = value
        return result

    def _follow(self, ref: str, definitions: Mapping[str, Any], cache: dict[str, bytes]) -> Any:
        path = ref.rsplit("/", 1)[-1]
        previous = self._inside_json_schema_props
        if ref.rsplit(".", 1)[-1] == JSON_SCHEMA_PROPS_REF:
            self._inside_json_schema_props = True
        try:
            cached = cache.get(path)
            if cached is not None:
                return json.loads(cached)
            if path not in definitions:
                raise LookupError(f"reference {path!r} not found in definitions")
            target = json.loads(json.dumps(definitions[path]))
            resolved = self._resolve(_as_object(target), definitions, cache)
            cache[path] = _dump(resolved).encode("utf-8")
            return resolved
        finally:
            self._inside_json_schema_props = previous