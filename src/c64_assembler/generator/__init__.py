"""
C64 Assembler Generators
========================

Output backends for a laid-out application.

Modules:
    program: .PRG byte stream (load address header plus machine code)
    dasm: Source listing accepted by the dasm cross-assembler

Both generators walk the application through instruction_streams(), the
same traversal the layout resolver uses.

Usage:
    from c64_assembler.generator import ProgramGenerator, format_hexdump

    data = ProgramGenerator().generate(application, layout)
    print(format_hexdump(data))
"""

from c64_assembler.generator.base import Generator, format_hexdump
from c64_assembler.generator.program import ProgramGenerator
from c64_assembler.generator.dasm import DasmGenerator

__all__ = [
    "Generator",
    "ProgramGenerator",
    "DasmGenerator",
    "format_hexdump",
]
