[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gnmiutil"
version = "0.1.0"
description = "Building blocks for gNMI collectors: path indexing, concurrent trees, subscription matching, latency statistics and per-target metadata."
requires-python = ">=3.10"
dependencies = []
keywords = ["gnmi", "openconfig", "telemetry", "network monitoring", "tree", "latency"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gnmiutil"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
