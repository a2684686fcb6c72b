[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jsonwriter"
version = "0.1.0"
description = "A buffered JSON output stream with typed value encoders"
requires-python = ">=3.10"
dependencies = []
keywords = ["json", "encoder", "serialization", "stream"]
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
    "Topic :: File Formats :: JSON",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["jsonwriter"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
