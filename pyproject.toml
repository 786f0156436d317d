[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sigagent"
version = "0.1.0"
description = "Asyncio client for a binary-framed WebSocket signalling service used to set up WebRTC rooms"
requires-python = ">=3.10"
dependencies = [
    "websockets",
]
keywords = ["webrtc", "signalling", "websocket", "asyncio", "rooms"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Conferencing",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["sigagent"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
