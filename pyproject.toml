[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ipamcontroller"
version = "0.1.0"
description = "IP address management for IPAM custom resources, allocating addresses from static ranges kept in SQLite or from an Infoblox server."
requires-python = ">=3.10"
keywords = [
    "ipam",
    "ip-address-management",
    "custom-resource",
    "infoblox",
    "wapi",
    "sqlite",
    "controller",
]
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
    "Topic :: System :: Networking",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["ipamcontroller"]

[tool.hatch.build.targets.sdist]
include = [
    "ipamcontroller",
    "tests",
    "README.md",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
disallow_untyped_defs = false
