[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "injectsvc"
version = "0.1.0"
description = "Dependency-injected user service and HTTP gateway backed by MongoDB"
requires-python = ">=3.10"
keywords = ["dependency injection", "mongodb", "redis", "gateway", "wsgi"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]
dependencies = [
    "pymongo",
    "redis",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
injectsvc = "injectsvc.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["injectsvc"]

[tool.pytest.ini_options]
addopts = "-ra"
