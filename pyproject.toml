[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "choreboard"
version = "0.1.0"
description = "A household chore board: routines, blueprints and chores in SQLite, served as a small JSON web application."
requires-python = ">=3.10"
dependencies = []
keywords = ["chores", "routines", "household", "scheduling", "sqlite", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Scheduling",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
choreboard = "choreboard.server:main"

[tool.hatch.build.targets.wheel]
packages = ["choreboard"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
