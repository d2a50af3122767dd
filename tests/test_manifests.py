import json

import pytest

from meshtools.errors import MeshkitError
from meshtools.manifests import (
    ERR_ABSENT_FILTER_CODE,
    ERR_GET_API_VERSION_CODE,
    ERR_GET_RESOURCE_IDENTIFIER_CODE,
    ERR_GET_SCHEMAS_CODE,
    Component,
    Config,
    CrdFilter,
    ExtractorPaths,
    ResolveOpenApiRefs,
    ResourceType,
    err_absent_filter,
    err_creating_directory,
    err_get_api_group,
    err_get_crd_names,
    err_get_resource_identifier,
    err_get_schemas,
    err_populating_yaml,
    generate_components,
    new_crd_filter,
    remove_non_crd_values,
)

KIND = "TrafficSplit"
GROUP = "split.smi-spec.io"
VERSION = "v1alpha2"

CRD_YAML = f"""\
apiVersion: apiextensions.k8s.io/v1
kind: CustomResourceDefinition
metadata:
  name: trafficsplits.{GROUP}
spec:
  group: {GROUP}
  names:
    kind: {KIND}
  versions:
    - name: {VERSION}
      schema:
        openAPIV3Schema:
          type: object
          properties:
            spec:
              type: object
"""

PATHS = ExtractorPaths(
    name_path="spec.names.kind",
    group_path="spec.group",
    version_path="spec.versions[0].name",
    spec_path="spec.versions[0].schema.openAPIV3Schema",
    id_path="spec.names.kind",
)


def _split(manifest):
    return manifest.split("\n---\n")


def _config(**kwargs):
    return Config(crd_filter=new_crd_filter(PATHS), extract_crds=_split, **kwargs)


def test_crd_filter_extracts_values():
    crd_filter = new_crd_filter(PATHS)
    doc = {"spec": {"group": GROUP, "names": {"kind": KIND}, "versions": [{"name": VERSION}]}}
    assert crd_filter.identifier_extractor(doc) == KIND
    assert crd_filter.group_extractor(doc) == GROUP
    assert crd_filter.version_extractor(doc) == VERSION
    assert crd_filter.is_json is False


def test_crd_filter_missing_value_raises_lookup_error():
    crd_filter = new_crd_filter(PATHS)
    with pytest.raises(LookupError):
        crd_filter.version_extractor({"spec": {"versions": []}})
    with pytest.raises(LookupError):
        crd_filter.group_extractor({})


def test_crd_filter_quoted_path_segment():
    crd_filter = new_crd_filter(ExtractorPaths(id_path='metadata."app.kubernetes.io/name"'), True)
    assert crd_filter.identifier_extractor({"metadata": {"app.kubernetes.io/name": "x"}}) == "x"
    assert crd_filter.is_json is True


def test_generate_k8s_component():
    component = generate_components(CRD_YAML, ResourceType.K8S, _config(k8s_version="1.29"))
    assert len(component.definitions) == 1
    definition = json.loads(component.definitions[0])
    assert definition["apiVersion"] == "core.oam.dev/v1alpha1"
    assert definition["kind"] == "WorkloadDefinition"
    assert definition["metadata"]["name"] == KIND + ".K8s"
    assert definition["spec"]["definitionRef"]["name"] == KIND.lower() + ".k8s.meshery.layer5.io"
    assert definition["spec"]["metadata"] == {
        "@type": "pattern.meshery.io/k8s",
        "k8sAPIVersion": f"{GROUP}/{VERSION}",
        "k8sKind": KIND,
        "version": "1.29",
    }


def test_generate_service_mesh_component_with_type():
    cfg = _config(name="istio", type="ISTIO", mesh_version="1.0")
    component = generate_components(CRD_YAML, ResourceType.SERVICE_MESH, cfg)
    definition = json.loads(component.definitions[0])
    assert definition["metadata"]["name"] == KIND + ".ISTIO"
    assert definition["spec"]["definitionRef"]["name"] == KIND.lower() + ".ISTIO.meshery.layer5.io"
    assert definition["spec"]["metadata"]["@type"] == "pattern.meshery.io/mesh/workload"
    assert definition["spec"]["metadata"]["meshName"] == "istio"
    assert definition["spec"]["metadata"]["meshVersion"] == "1.0"


def test_generate_meshery_component():
    component = generate_components(CRD_YAML, ResourceType.MESHERY, _config())
    definition = json.loads(component.definitions[0])
    assert definition["metadata"]["name"] == KIND
    assert definition["spec"]["metadata"] == {"@type": "pattern.meshery.io/core"}
    assert definition["spec"]["definitionRef"]["name"] == KIND.lower() + ".meshery.layer5.io"


def test_schema_has_readable_title_and_one_space_indent():
    component = generate_components(CRD_YAML, ResourceType.K8S, _config())
    schema_text = component.schemas[0]
    assert schema_text.startswith('{\n "')
    schema = json.loads(schema_text)
    assert schema["title"] == "Traffic Split"
    assert schema["properties"] == {"spec": {"type": "object"}}
    assert schema["type"] == "object"


def test_invalid_and_incomplete_crds_are_skipped():
    broken = "spec: [unclosed"
    no_kind = f"spec:\n  group: {GROUP}\n  versions:\n    - name: {VERSION}\n"
    manifest = "\n---\n".join([broken, CRD_YAML, no_kind])
    component = generate_components(manifest, ResourceType.K8S, _config())
    assert len(component.definitions) == 1
    assert len(component.schemas) == 1


def test_json_crds():
    crd = json.dumps(
        {"spec": {"group": "", "names": {"kind": KIND}, "versions": [{"name": "v1", "schema": {"openAPIV3Schema": {}}}]}}
    )
    cfg = Config(crd_filter=new_crd_filter(PATHS, True), extract_crds=lambda m: [m])
    component = generate_components(crd, ResourceType.K8S, cfg)
    definition = json.loads(component.definitions[0])
    assert definition["spec"]["metadata"]["k8sAPIVersion"] == "v1"


def test_modify_def_schema_callback_is_applied():
    cfg = _config(modify_def_schema=lambda d, s: (d.upper(), "{}"))
    component = generate_components(CRD_YAML, ResourceType.K8S, cfg)
    assert component.schemas == ["{}"]
    assert component.definitions[0] == component.definitions[0].upper()


def test_missing_extract_function_raises():
    with pytest.raises(MeshkitError) as info:
        generate_components(CRD_YAML, ResourceType.K8S, Config(crd_filter=new_crd_filter(PATHS)))
    assert info.value.code == ERR_ABSENT_FILTER_CODE


def test_missing_extractors_skip_crd():
    cfg = Config(crd_filter=CrdFilter(), extract_crds=_split)
    assert generate_components(CRD_YAML, ResourceType.K8S, cfg) == Component()


def test_remove_non_crd_values():
    assert remove_non_crd_values(["", " ", "null", "{}", "a"]) == ["{}", "a"]
    assert remove_non_crd_values([]) == []


def test_resolve_simple_reference_and_cache():
    definitions = {
        "io.k8s.Foo": {"type": "object", "properties": {"bar": {"$ref": "#/definitions/io.k8s.Bar"}}},
        "io.k8s.Bar": {"type": "string"},
    }
    cache = {}
    result = ResolveOpenApiRefs().resolve_references(
        json.dumps({"$ref": "#/definitions/io.k8s.Foo"}), definitions, cache
    )
    expected = {"type": "object", "properties": {"bar": {"type": "string"}}}
    assert json.loads(result) == expected
    assert json.loads(cache["io.k8s.Foo"]) == expected
    assert json.loads(cache["io.k8s.Bar"]) == {"type": "string"}


def test_resolve_references_in_lists():
    definitions = {"A": {"type": "integer"}}
    manifest = json.dumps({"anyOf": [{"$ref": "#/definitions/A"}, "keep"], "x": 1})
    result = json.loads(ResolveOpenApiRefs().resolve_references(manifest, definitions))
    assert result == {"anyOf": [{"type": "integer"}, "keep"], "x": 1}


def test_nested_json_schema_props_becomes_string():
    ref = "#/definitions/x.JSONSchemaProps"
    definitions = {"x.JSONSchemaProps": {"properties": {"inner": {"$ref": ref}}}}
    result = json.loads(ResolveOpenApiRefs().resolve_references(json.dumps({"$ref": ref}), definitions))
    assert result == {"properties": {"inner": {"$ref": "string"}}}


def test_missing_reference_raises():
    with pytest.raises(LookupError):
        ResolveOpenApiRefs().resolve_references(b'{"$ref": "#/definitions/Nope"}', {})


def test_non_object_manifest_raises():
    with pytest.raises(ValueError):
        ResolveOpenApiRefs().resolve_references(b"[1, 2]", {})


@pytest.mark.parametrize(
    "factory, code",
    [
        (err_get_resource_identifier, "meshkit-11240"),
        (err_get_crd_names, "meshkit-11233"),
        (err_get_schemas, "meshkit-11234"),
        (err_get_api_group, "meshkit-11236"),
        (err_populating_yaml, "meshkit-11237"),
        (err_absent_filter, "meshkit-11238"),
        (err_creating_directory, "meshkit-11239"),
    ],
)
def test_error_codes(factory, code):
    cause = ValueError("boom")
    error = factory(cause)
    assert error.code == code
    assert error.long_description == ["boom"]
    assert error.cause is cause


def test_error_code_constants_match_factories():
    assert err_get_schemas(ValueError()).code == ERR_GET_SCHEMAS_CODE
    assert err_get_resource_identifier(ValueError()).code == ERR_GET_RESOURCE_IDENTIFIER_CODE
    assert ERR_GET_API_VERSION_CODE == "meshkit-11235"