[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kernsim"
version = "0.1.0"
description = "Models of a small teaching kernel: read-only filesystem image, text console, keyboard, PIC, paging and IDT"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "simulation", "filesystem", "paging", "pic", "keyboard", "console"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kernsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
