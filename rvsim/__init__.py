"""RISC-V assembler, five-stage pipeline simulator and cache simulators."""

__version__ = "0.1.0"