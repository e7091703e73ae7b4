"""
C64 Assembler - Symbolic 6502 Assembler for the Commodore 64
============================================================

This package turns a structured description of a 6502 program into bytes
for the Commodore 64. Programs are trees of modules, functions and
instructions whose operands name addresses symbolically; the assembler
lays them out, checks them and encodes them.

Main Components
---------------
- **program**: The Program Tree (Application, Module, Function, Instruction
  and the addressing modes)
- **builder**: Fluent builders producing Program Trees, with mnemonic
  shortcuts such as lda_imm() and sta_addr()
- **layout**: Assigns an address to every instruction and label
- **validator**: Unknown names, duplicates, branch range and zero page checks
- **generator**: .PRG binary and dasm source backends
- **source**: A textual front-end for the builders
- **cli**: The c64asm command-line tool

Quick Start
-----------
Build and assemble a program:
    >>> from c64_assembler import ApplicationBuilder, InstructionBuilder, ModuleBuilder, assemble
    >>> code = (InstructionBuilder()
    ...     .add_basic_header()
    ...     .label("main_entry_point")
    ...     .lda_imm(0x00)
    ...     .sta_addr("VIC2_BORDER_COLOR")
    ...     .rts()
    ...     .build())
    >>> module = ModuleBuilder().name("main").instructions(code).build()
    >>> application = (ApplicationBuilder()
    ...     .name("Set black border")
    ...     .include_vic2_defines()
    ...     .module(module)
    ...     .build())
    >>> prg = assemble(application)

Or use the command-line tool:
    $ c64asm border.c64s -o border.prg -l border.asm

Reference Documentation
-----------------------
- 6502 Instruction Set: http://www.6502.org/tutorials/6502opcodes.html
- dasm: https://dasm-assembler.github.io/
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from c64_assembler.assembler import Assembler, assemble, assemble_file, assemble_string
from c64_assembler.builder import (
    ApplicationBuilder,
    FunctionBuilder,
    InstructionBuilder,
    ModuleBuilder,
)
from c64_assembler.errors import (
    C64AssemblerError,
    AssemblerError,
    AssemblySyntaxError,
    UnknownAddressNameError,
    DuplicateAddressNameError,
    AddressingModeError,
    BranchRangeError,
    ForwardReferenceError,
    InternalCompilerError,
    SourceLocation,
)
from c64_assembler.generator import DasmGenerator, ProgramGenerator, format_hexdump
from c64_assembler.layout import Layout, resolve_layout
from c64_assembler.memory import AddressBook, AddressReference
from c64_assembler.program import Application, Define, Function, Instruction, Module
from c64_assembler.validator import validate

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "assemble",
    "assemble_file",
    "assemble_string",
    # Builders
    "ApplicationBuilder",
    "FunctionBuilder",
    "InstructionBuilder",
    "ModuleBuilder",
    # Program Tree
    "Application",
    "Define",
    "Function",
    "Instruction",
    "Module",
    # Layout and generators
    "AddressBook",
    "AddressReference",
    "Layout",
    "resolve_layout",
    "validate",
    "DasmGenerator",
    "ProgramGenerator",
    "format_hexdump",
    # Exception hierarchy
    "C64AssemblerError",
    "AssemblerError",
    "AssemblySyntaxError",
    "UnknownAddressNameError",
    "DuplicateAddressNameError",
    "AddressingModeError",
    "BranchRangeError",
    "ForwardReferenceError",
    "InternalCompilerError",
    "SourceLocation",
]
