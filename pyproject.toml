[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hauler"
version = "0.1.0"
description = "Collect container images and files into a portable OCI layout store"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
    "requests",
]
keywords = ["oci", "container", "registry", "airgap", "cosign", "artifacts"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["hauler"]

[tool.hatch.build.targets.sdist]
include = ["hauler", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
