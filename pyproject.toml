[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sixpack"
version = "0.1.0"
description = "Byte-aligned LZ77 block compression and a simple chunked file archive format"
requires-python = ">=3.10"
dependencies = []
keywords = ["compression", "lz77", "fastlz", "archive", "6pack"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving :: Compression",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
6pack = "sixpack.pack:main"
6unpack = "sixpack.unpack:main"

[tool.hatch.build.targets.wheel]
packages = ["sixpack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
