[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "clnet"
version = "0.1.0"
description = "Neural-network building blocks on NumPy: dense and convolutional layers, CSV data loading and training settings."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["neural network", "deep learning", "convolution", "im2col", "machine learning"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.setuptools.packages.find]
include = ["clnet*"]

[tool.pytest.ini_options]
addopts = "-ra"
