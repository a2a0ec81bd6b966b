[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "axionvera"
version = "0.1.0"
description = "Chain parameter governance, node configuration, consensus voting and vault contract error and event models"
requires-python = ">=3.10"
dependencies = []
keywords = ["blockchain", "consensus", "governance", "genesis", "vault"]
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
    "Topic :: System :: Distributed Computing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["axionvera"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
