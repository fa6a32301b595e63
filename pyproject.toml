[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oplkit"
version = "0.1.0"
description = "Read PlayStation 2 disc images (ISO, BIN, NRG, optical drives), identify the game on them and manage per-game Open PS2 Loader configuration files"
requires-python = ">=3.10"
keywords = ["ps2", "opl", "open-ps2-loader", "iso9660", "nrg", "bin-cue", "system.cnf"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: System :: Filesystems",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["oplkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
