"""Assembler, virtual stack CPU and disassembler for a small integer instruction set."""

__version__ = "0.1.0"