[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slscore"
version = "0.1.0"
description = "Core building blocks of an SRT live streaming server: ring buffer, publisher and relay maps, relay managers and a small HTTP status client."
requires-python = ">=3.10"
dependencies = []
keywords = ["srt", "live streaming", "relay", "ring buffer", "http client", "rwlock"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["slscore"]

[tool.pytest.ini_options]
addopts = "-ra"
