[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lamportlab"
version = "0.1.0"
description = "Simulated on-chain programs: lamport vaults, voting, a marketplace and a fundraiser over an in-memory account model"
requires-python = ">=3.10"
dependencies = []
keywords = ["lamports", "vault", "pda", "base58", "fundraiser", "voting", "marketplace", "simulation"]
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
    "Topic :: Office/Business :: Financial",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lamportlab"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
