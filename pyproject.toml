[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "meshtools"
version = "0.1.0"
description = "Helpers for service-mesh and Kubernetes tooling: version sorting, SVG resizing, templates, archives, JSON patching, service endpoints, CRD components, Service manifests and compose file checks."
requires-python = ">=3.10"
keywords = ["kubernetes", "service-mesh", "crd", "docker-compose", "utilities"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]
dependencies = [
    "pyyaml",
    "jsonschema",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["meshtools"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
