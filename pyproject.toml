[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wirerpc"
version = "0.1.0"
description = "RPC building blocks: message envelope, JSON and MessagePack codecs, an HTTP+SSE server transport and OpenAPI/TypeScript generation"
requires-python = ">=3.10"
keywords = ["rpc", "msgpack", "json", "sse", "openapi", "asyncio", "aiohttp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "msgpack>=1.0",
    "aiohttp>=3.9",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["wirerpc"]

[tool.hatch.build.targets.sdist]
include = ["wirerpc", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
