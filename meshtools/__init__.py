"""Helpers for service-mesh and Kubernetes tooling: errors, versions, SVG, templates, archives, patches, endpoints, CRD components and Service manifests."""

__version__ = "0.1.0"