[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fuego"
version = "0.1.0"
description = "HTTP handler toolkit: request contexts, body deserialization, problem-style errors, middlewares and a domain scaffolding command"
requires-python = ">=3.10"
keywords = ["http", "web", "framework", "openapi", "deserialization", "scaffolding"]
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: Software Development :: Code Generators",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
fuego = "fuego.cli.main:main"

[tool.hatch.build.targets.wheel]
packages = ["fuego"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
