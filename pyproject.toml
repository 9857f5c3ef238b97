[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "momo"
version = "0.1.0"
description = "Building blocks for a WebRTC native client: option handling, codec selection, signaling websockets, data channels and a local control server"
requires-python = ">=3.10"
keywords = ["webrtc", "sora", "ayame", "signaling", "websocket", "video", "datachannel"]
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
    "Framework :: AsyncIO",
    "Topic :: Multimedia :: Video",
    "Topic :: Communications :: Conferencing",
]
dependencies = [
    "websockets",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
momo = "momo.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["momo"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
