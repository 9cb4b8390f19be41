[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "respkit"
version = "0.1.0"
description = "Building blocks for a Redis-compatible server or client: RESP replies and parser, pub/sub, TCP serving, pooling, scheduling and helpers"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "redis",
    "resp",
    "protocol",
    "parser",
    "pubsub",
    "geohash",
    "consistent-hashing",
    "snowflake",
    "timewheel",
    "pool",
]
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
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["respkit"]

[tool.pytest.ini_options]
addopts = "-ra"
