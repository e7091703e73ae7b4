"""
C64 Assembler Command-Line Interface
====================================

This package provides the command-line tool for the C64 assembler:

- **c64asm**: assembles 6502 source into a .PRG file, with optional dasm
  listing, symbol table and hexdump output

The tool is a Click-based CLI application sharing the exit codes and
error formatting in c64_assembler.cli.errors.
"""

__all__ = ["c64asm"]
