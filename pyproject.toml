[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "streamtable"
version = "0.1.0"
description = "Building blocks for stateful stream processing: group graphs, codecs, headers, emitters, callback contexts and a copartitioning rebalance strategy"
requires-python = ">=3.10"
dependencies = []
keywords = ["stream-processing", "kafka", "consumer-group", "state", "codec", "rebalance"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["streamtable"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
