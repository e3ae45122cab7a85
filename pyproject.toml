[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smolvm"
version = "0.1.0"
description = "Host-side agent client, wire protocol and command-line helpers for an OCI-native microVM runtime"
requires-python = ">=3.10"
dependencies = []
keywords = ["microvm", "container", "virtualization", "oci", "vsock"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["smolvm"]

[tool.hatch.build.targets.sdist]
include = ["smolvm", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
