[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hftsim"
version = "0.1.0"
description = "Tick-driven futures order matching and account simulation for strategy back-testing"
requires-python = ">=3.10"
dependencies = []
keywords = ["futures", "backtest", "simulation", "trading", "order-matching", "tick"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hftsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
