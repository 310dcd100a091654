[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hlmodem"
version = "0.1.0"
description = "HL7812 cellular modem control over AT commands, with an AT response parser, a TCP client and a PCA9534 GPIO expander driver"
requires-python = ">=3.10"
dependencies = []
keywords = ["at-commands", "modem", "hl7812", "lte-m", "cellular", "tcp", "pca9534", "i2c", "gpio"]
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
    "Topic :: Communications :: Telephony",
    "Topic :: System :: Hardware",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hlmodem"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
