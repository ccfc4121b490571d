[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rvsim"
version = "0.1.0"
description = "A small RISC-V assembler, five-stage pipeline simulator and cache simulators"
requires-python = ">=3.10"
dependencies = []
keywords = ["risc-v", "assembler", "pipeline", "cpu", "cache", "simulator", "emulator"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
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
    "Topic :: Software Development :: Assemblers",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rvsim = "rvsim.cli:main"
rvsim-direct-mapped = "rvsim.direct_mapped:main"
rvsim-associative = "rvsim.associative:main"
rvsim-set-associative = "rvsim.set_associative:main"

[tool.hatch.build.targets.wheel]
packages = ["rvsim"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
