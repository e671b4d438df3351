[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pgschemadiff"
version = "0.1.0"
description = "Compare the schemas of two PostgreSQL databases and report the differences"
requires-python = ">=3.10"
keywords = ["postgresql", "schema", "diff", "database", "migration"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Front-Ends",
]
dependencies = [
    "sqlalchemy>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
]

[project.scripts]
schema-check = "pgschemadiff.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pgschemadiff"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
