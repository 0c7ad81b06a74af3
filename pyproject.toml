[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ormlkit"
version = "0.1.0"
description = "Graded token vesting over a lockable ledger, call weight metering and benchmark weight file generation"
requires-python = ">=3.10"
dependencies = []
keywords = ["vesting", "balances", "locks", "weights", "benchmark", "templates"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ormlkit-weight-gen = "ormlkit.weightgen:main"

[tool.hatch.build.targets.wheel]
packages = ["ormlkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
