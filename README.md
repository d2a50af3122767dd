# meshtools

Small, self-contained helpers for service-mesh and Kubernetes tooling. Kubernetes objects are handled as plain mappings, as they are parsed from YAML or JSON.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Purpose |
| --- | --- |
| `meshtools.errors` | `MeshkitError` carries a code, a `Severity`, and lists of short descriptions, long descriptions, probable causes and suggested remedies. The module also has constructors for Kubernetes-related errors, such as `err_apply_manifest`, `err_load_config`, `err_endpoint_not_found` and `err_invalid_api_server`. |
| `meshtools.versions` | `sort_dotted_strings_by_digits` sorts version-like strings by their numeric parts. It understands the markers `alpha`, `beta`, `rc` and `stable`. |
| `meshtools.store` | `ThreadSafeStore` is a lock-protected string-keyed store with `set`, `get`, `delete` and `all_pairs`. |
| `meshtools.network` | Provides `HostPort`, `Endpoint` and `MockOptions`. `tcp_check` tries a TCP connection with a 5-second timeout. If it is given `MockOptions`, it compares against `desired_endpoint` instead of connecting. |
| `meshtools.svg` | `update_svg_string` sets `width` and `height` on every `svg` element and adds them where they are missing. It drops `xmlns` from all other elements. Unless `skip_header` is set, it prefixes the result with `XMLTAG`. |
| `meshtools.template` | `merge_to_template` fills `{{.field}}`, `{{.a.b}}` and `{{.}}` actions with HTML-escaped values. It also handles comments and `{{- -}}` trimming. |
| `meshtools.archive` | `is_tar_gz`, `is_zip` and `is_yaml` detect file types from the first 512 bytes. `extract_zip` and `extract_tar_gz` unpack archives and refuse entries that would escape the destination. `process_content` calls a function on a file, or on each entry of a directory. Failures raise `ArchiveError`. |
| `meshtools.patching` | `Patch` and `apply_patches` set values at dotted key paths in a copy of nested JSON-like data. |
| `meshtools.kompose` | `validate_compose_file` and `is_manifest_a_docker_compose` check a compose manifest against a JSON schema you supply. `version_check` accepts versions up to 3.9. `format_compose_file` reduces a manifest to its quoted version. |
| `meshtools.service` | `ServiceOptions`, `get_endpoint` and `get_service_endpoint` work out the internal and external endpoints of a Service manifest. |
| `meshtools.readable` | `format_to_readable_string`, `deformat_readable_string` and `remove_helm_templating_from_crd`. |
| `meshtools.manifests` | `ResourceType`, `Config`, `CrdFilter`, `ExtractorPaths`, `new_crd_filter`, `generate_components`, `remove_non_crd_values` and `ResolveOpenApiRefs`. Together they produce WorkloadDefinition JSON and schemas from CRDs, and resolve `$ref` entries. |
| `meshtools.describe` | `DescribeType`, `GroupKind`, `DescriberOptions`, `RESOURCE_MAP` and `group_kind_for`. |
| `meshtools.expose` | `can_be_exposed`, `map_based_selector_for_object`, `protocols_for_object`, `ports_for_object`, `generate_service` and `build_service_for_object`. These build a Service manifest that exposes a Pod, Service, ReplicationController, Deployment or ReplicaSet. |
| `meshtools.expose_errors` | The error constructors used by `meshtools.expose`. |

## Examples

```python
from meshtools.versions import sort_dotted_strings_by_digits

sort_dotted_strings_by_digits(["v1.12.0-rc.1", "1.12.0-beta.2", "1.12.0-beta.1"])
# ['1.12.0-beta.1', '1.12.0-beta.2', 'v1.12.0-rc.1']
```

```python
from meshtools.template import merge_to_template

merge_to_template(b"{{.namespace}}", {"namespace": "meshery"})
# b'meshery'
```

```python
from meshtools.readable import format_to_readable_string

format_to_readable_string("IPFamiliesWithIPs")
# 'IP Families With IPs'
```

```python
from meshtools.patching import Patch, apply_patches

apply_patches({"spec": {"replicas": 1}}, [Patch(path=["spec", "replicas"], value=3)])
# {'spec': {'replicas': 3}}
```

```python
from meshtools.network import MockOptions
from meshtools.service import ServiceOptions, get_endpoint

service = {
    "spec": {"clusterIP": "1.1.1.1", "ports": [{"name": "http", "port": 1000, "nodePort": 2000}]},
    "status": {"loadBalancer": {"ingress": [{"ip": "10.10.10.10"}]}},
}
opts = ServiceOptions(port_selector="http", mock=MockOptions("10.10.10.10:1000"))
get_endpoint(opts, service)
# Endpoint(name='', internal=HostPort(address='1.1.1.1', port=1000),
#          external=HostPort(address='10.10.10.10', port=1000))
```

Most failures raise `MeshkitError`, and each carries a stable `code`. Some functions raise `ValueError` or `LookupError` for malformed input instead; their docstrings say which.

## What this package does not do

- It has no Kubernetes client and does not talk to a cluster. `get_service_endpoint` accepts any object with a `read_namespaced_service(name, namespace)` method. `build_service_for_object` returns a Service manifest but does not create it.
- It does not apply or delete manifests, render Helm charts, or describe live objects. `meshtools.describe` only maps resource types to their API group and kind.
- It does not convert compose files into Kubernetes manifests, and it does not download schemas. You must pass the compose schema in.
- It provides no command-line program.