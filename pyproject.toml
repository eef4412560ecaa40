[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sbdb"
version = "0.1.0"
description = "Schema-driven knowledge base over markdown files with YAML records, queries and integrity hashing"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["markdown", "frontmatter", "knowledge-base", "yaml", "query", "schema"]
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
    "Topic :: Database",
    "Topic :: Text Processing :: Markup :: Markdown",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sbdb"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
