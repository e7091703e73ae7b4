"""
Dasm Source Generator
=====================

Generates source text for the dasm cross-assembler. Operands stay
symbolic, so no address book is needed; defines are written as constant
declarations and dasm resolves everything else.

Output Structure
----------------
```
; --- Application: SET BLACK BORDER ---
; NOTE: This file is generated, do not modify

  processor 6502

VIC2_BORDER_COLOR = $D020

  org $0800

; --- Module begin: MAIN ---
  byte $00, $0C, $08     ; New basic line
  ; 10 SYS 2062
  byte $0A, $00, $9E, $20, $32, $30, $36, $32
  byte $00, $00, $00     ; End basic program

main_entry_point:
  lda #$00
  sta VIC2_BORDER_COLOR
  rts
; --- Module end: MAIN ---
```

A single short comment goes after the instruction; longer or multiple
comments are written on their own lines above it.
"""

import logging

from c64_assembler.memory import is_zeropage
from c64_assembler.generator.base import Generator
from c64_assembler.program import (
    Absolute,
    AbsoluteX,
    AbsoluteY,
    Accumulator,
    AddressMode,
    Application,
    Define,
    Function,
    Immediate,
    ImmediateByte,
    ImmediateHigh,
    ImmediateLow,
    Implied,
    IndexedIndirect,
    Indirect,
    IndirectIndexed,
    Instruction,
    Label,
    Module,
    Opcode,
    Raw,
    Relative,
)

logger = logging.getLogger(__name__)

INDENT = "  "

# Column where an inline comment starts
COMMENT_COLUMN = 25


class DasmGenerator(Generator):
    """
    Generates dasm source for an application.

    Example:
        source = DasmGenerator().generate(application)
        Path("border.asm").write_text(source)
    """

    def __init__(self):
        self._lines: list[str] = []

    def generate(self, application: Application) -> str:
        """Generate the listing; ends with a newline."""
        self._lines = []

        self._add_line(f"; --- Application: {application.name.upper()} ---")
        self._add_line("; NOTE: This file is generated, do not modify")
        self._add_line("")
        self._add_line(f"{INDENT}processor 6502")
        self._add_line("")

        if application.defines:
            for define in application.defines:
                self._add_define(define)
            self._add_line("")

        self._add_line(f"{INDENT}org ${application.entry_point:04X}")

        for module in application.modules:
            self._add_module(module)

        logger.debug(
            f"Generated dasm listing for '{application.name}' ({len(self._lines)} lines)"
        )
        return "\n".join(self._lines) + "\n"

    # =========================================================================
    # Containers
    # =========================================================================

    def _add_define(self, define: Define) -> None:
        if is_zeropage(define.address):
            self._add_line(f"{define.name} = ${define.address:02X}")
        else:
            self._add_line(f"{define.name} = ${define.address:04X}")

    def _add_module(self, module: Module) -> None:
        self._add_line("")
        self._add_line(f"; --- Module begin: {module.name.upper()} ---")
        self._add_instructions(module.instructions)
        for function in module.functions:
            self._add_function(function)
        self._add_line(f"; --- Module end: {module.name.upper()} ---")

    def _add_function(self, function: Function) -> None:
        self._add_line("")
        self._add_line(f"; --- Function begin: {function.name.upper()} ---")
        for line in function.documentation:
            self._add_line(f"; {line}")
        self._add_instructions(function.instructions)
        self._add_line(f"; --- Function end: {function.name.upper()} ---")

    def _add_instructions(self, instructions: tuple[Instruction, ...]) -> None:
        for instruction in instructions:
            self._add_instruction(instruction)

    # =========================================================================
    # Instructions
    # =========================================================================

    def _add_instruction(self, instruction: Instruction) -> None:
        operation = instruction.operation

        if isinstance(operation, Label):
            self._add_comment_lines(instruction.comments, indent="")
            self._add_line("")
            self._add_line(f"{operation.name}:")
            return

        if isinstance(operation, Raw):
            values = ", ".join(f"${byte:02X}" for byte in operation.data)
            text = f"{INDENT}byte {values}"
        else:
            text = f"{INDENT}{format_instruction(operation, instruction.address_mode)}"

        comments = instruction.comments
        if len(comments) == 1 and len(text) < COMMENT_COLUMN:
            self._add_line(f"{text.ljust(COMMENT_COLUMN)}; {comments[0]}")
        else:
            self._add_comment_lines(comments, indent=INDENT)
            self._add_line(text)

    def _add_comment_lines(self, comments: tuple[str, ...], indent: str) -> None:
        for comment in comments:
            self._add_line(f"{indent}; {comment}")

    def _add_line(self, line: str) -> None:
        self._lines.append(line)


def format_operand(mode: AddressMode) -> str:
    """Render an addressing mode in dasm operand syntax."""
    if isinstance(mode, (Implied, Accumulator)):
        return ""
    if isinstance(mode, Immediate):
        value = mode.value
        if isinstance(value, ImmediateByte):
            return f"#${value.value & 0xFF:02X}"
        if isinstance(value, ImmediateLow):
            return f"#<{value.reference}"
        if isinstance(value, ImmediateHigh):
            return f"#>{value.reference}"
    if isinstance(mode, (Absolute, Relative)):
        return str(mode.reference)
    if isinstance(mode, AbsoluteX):
        return f"{mode.reference},x"
    if isinstance(mode, AbsoluteY):
        return f"{mode.reference},y"
    if isinstance(mode, Indirect):
        return f"({mode.reference})"
    if isinstance(mode, IndexedIndirect):
        return f"({mode.reference},x)"
    if isinstance(mode, IndirectIndexed):
        return f"({mode.reference}),y"
    raise TypeError(f"unknown addressing mode {mode!r}")


def format_instruction(operation: Opcode, mode: AddressMode) -> str:
    """Render `mnemonic operand` in lower case mnemonic form."""
    operand = format_operand(mode)
    mnemonic = operation.mnemonic.lower()
    return f"{mnemonic} {operand}" if operand else mnemonic
