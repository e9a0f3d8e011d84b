[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "bigspace"
version = "0.9.1"
description = "Floating origin grids for large-scale, high-precision spatial hierarchies"
requires-python = ">=3.10"
dependencies = []
keywords = ["floating-origin", "large-scale", "space", "grid", "transform", "ecs"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["bigspace*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
