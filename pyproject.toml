[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tpzero"
version = "0.1.0"
description = "A small TCP client and server exchanging a handshake, a text message and a package of strings"
requires-python = ">=3.10"
dependencies = []
keywords = ["sockets", "tcp", "client", "server", "serialization", "protocol"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tpzero-server = "tpzero.server:main"
tpzero-client = "tpzero.client:main"

[tool.hatch.build.targets.wheel]
packages = ["tpzero"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
