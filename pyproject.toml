[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chainsim"
version = "0.1.0"
description = "Object model for simulating a Bitcoin-like network: transactions, blocks, UTXO tracking, wire payloads and packets"
requires-python = ">=3.10"
dependencies = []
keywords = ["bitcoin", "blockchain", "simulation", "utxo", "discrete-event"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["chainsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
