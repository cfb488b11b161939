[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "debugtypes"
version = "0.1.0"
description = "In-memory model of debugging-information types: compile units, tag tables, struct hole analysis and GNU build-id reading"
requires-python = ">=3.10"
dependencies = []
keywords = ["dwarf", "debuginfo", "struct layout", "holes", "elf", "build-id"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Debuggers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["debugtypes"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
