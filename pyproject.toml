[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zeki"
version = "0.1.0"
description = "Neural-network layers, losses and data utilities on numpy, with a JSON codec and a server-sent-events message server."
requires-python = ">=3.10"
keywords = [
    "neural-network",
    "deep-learning",
    "lstm",
    "gru",
    "attention",
    "transformer",
    "convolution",
    "server-sent-events",
    "numpy",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["zeki"]

[tool.hatch.build.targets.sdist]
include = ["zeki", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
