"""
C64 Assembler CPU Package
=========================

CPU architecture definitions for the MOS 6502 family (the 6510 in the
Commodore 64 runs the same instruction set).

Modules:
    mos6502: Opcode table with "unused" sentinels and lookup helpers.

The table is static data; the layout resolver and both generators read it
but never modify it.

Usage:
    from c64_assembler.cpu import get_instruction_def, NO_ZEROPAGE
"""

from c64_assembler.cpu.mos6502 import (
    # Core types
    InstructionDef,
    # Sentinels
    UNUSED,
    NO_ZEROPAGE,
    NO_ZEROPAGE_X,
    NO_ZEROPAGE_Y,
    # Master instruction database
    INSTRUCTION_TABLE,
    MNEMONICS,
    BRANCH_INSTRUCTIONS,
    # Lookup functions
    get_instruction_def,
    is_valid_instruction,
    is_branch_instruction,
)

__all__ = [
    "InstructionDef",
    "UNUSED",
    "NO_ZEROPAGE",
    "NO_ZEROPAGE_X",
    "NO_ZEROPAGE_Y",
    "INSTRUCTION_TABLE",
    "MNEMONICS",
    "BRANCH_INSTRUCTIONS",
    "get_instruction_def",
    "is_valid_instruction",
    "is_branch_instruction",
]
