[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "featurehack"
version = "0.1.0"
description = "Building blocks for tools that run cargo across feature sets, toolchain ranges and workspace members"
requires-python = ">=3.10"
dependencies = [
    "tomlkit",
]
keywords = ["cargo", "features", "toolchain", "rustup", "workspace", "manifest", "metadata"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["featurehack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
