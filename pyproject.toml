[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "nodewatch"
version = "0.1.0"
description = "Telemetry receiver, SQLite store and simulated sender for small sensor nodes"
requires-python = ">=3.10"
dependencies = []
keywords = ["telemetry", "monitoring", "sensors", "iot", "sqlite", "http"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
nodewatch = "nodewatch.app:main"
nodewatch-sender = "nodewatch.sender:main"

[tool.setuptools.packages.find]
include = ["nodewatch*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
