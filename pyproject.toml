[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "plrkit"
version = "0.1.0"
description = "Optimal and paraoptimal piecewise linear regression with a bounded error, for learned-index research"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "piecewise linear regression",
    "learned index",
    "segmentation",
    "convex hull",
    "time series",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
plrkit-tsv = "plrkit.tsvtools:main"

[tool.hatch.build.targets.wheel]
packages = ["plrkit"]

[tool.pytest.ini_options]
addopts = "-ra"
