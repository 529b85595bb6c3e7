[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hamsdr"
version = "0.1.0"
description = "Amateur radio building blocks: CW keying and decoding, FT8 slot scheduling and QSO sequencing, parametric EQ, fldigi control and NTP time checks"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "ham radio",
    "amateur radio",
    "sdr",
    "morse",
    "cw",
    "ft8",
    "fldigi",
    "equalizer",
    "ntp",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Ham Radio",
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["hamsdr"]

[tool.hatch.build.targets.sdist]
include = [
    "hamsdr",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
