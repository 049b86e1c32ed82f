[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "beaconlight"
version = "0.1.0"
description = "Beacon chain light client types, SSZ encoding, update verification and content storage for a peer-to-peer beacon content network"
requires-python = ">=3.10"
dependencies = []
keywords = ["ethereum", "beacon", "light-client", "ssz", "merkle", "sync-committee"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["beaconlight"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
