[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "automato"
version = "0.1.0"
description = "Message protocol, serial framing and remote-control node logic for Automato sensor boards"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "automato",
    "lora",
    "mesh",
    "sensor",
    "remote-control",
    "protocol",
    "serial",
]
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
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: Communications",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["automato"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"
