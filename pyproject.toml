[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mocopr_rbac"
version = "0.1.0"
description = "Role-based access control for Model Context Protocol servers"
requires-python = ">=3.10"
dependencies = []
keywords = ["mcp", "rbac", "authorization", "security", "jsonrpc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Security",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["mocopr_rbac"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
