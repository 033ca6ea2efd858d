[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cborattr"
version = "0.1.0"
description = "Attribute-driven CBOR map decoding and encoding, with a chunked file upload and download handler"
requires-python = ">=3.10"
dependencies = []
keywords = ["cbor", "serialization", "attributes", "management", "file-transfer"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cborattr"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
