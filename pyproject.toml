[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "emgcore"
version = "0.1.0"
description = "Utilities for EMG data handling: bounds checks, ADC and unit conversions, packet integrity, timing and validation"
requires-python = ">=3.10"
dependencies = []
keywords = ["emg", "prosthetics", "biomedical", "adc", "crc", "checksum", "validation"]
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
    "Topic :: Scientific/Engineering :: Medical Science Apps.",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["emgcore"]

[tool.pytest.ini_options]
addopts = "-ra"
