[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "firedbproxy"
version = "0.1.0"
description = "Building blocks for a Redis-protocol proxy: RESP codec, buffered I/O and hot key, big key and slow query monitoring"
requires-python = ">=3.10"
dependencies = []
keywords = ["redis", "resp", "proxy", "hotkey", "bigkey", "slowquery", "monitoring"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["firedbproxy"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
