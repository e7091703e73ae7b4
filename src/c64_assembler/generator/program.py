"""
.PRG Byte Code Generator
========================

Generates the byte stream a C64 loader places in memory.

PRG Format
----------
```
Offset  Size  Description
------  ----  -----------
0       2     Load address (little-endian), the application entry point
2       n     Machine code
```

Emission
--------
- Label: nothing
- Raw: the literal bytes
- Opcode: opcode byte followed by the operand bytes

| Mode                     | Operand bytes                          |
|--------------------------|----------------------------------------|
| Immediate                | literal, or low/high byte of address   |
| Absolute (X/Y)           | low byte (zero page) or 16-bit LE      |
| Relative                 | signed displacement to target          |
| Indirect                 | 16-bit LE                              |
| IndexedIndirect/Indexed  | low byte                               |

The zero page form is chosen by layout.use_zeropage(), the rule the
layout resolver sized the instruction with. Every instruction's emitted
length is compared against its layout placement, so a size disagreement
fails loudly instead of shifting the rest of the program.

Branch Displacement
-------------------
    displacement = target - (entry_point + output_offset + 2)

where output_offset counts code bytes already emitted (header excluded)
and 2 is the size of a branch instruction. A displacement outside
-128..127 raises BranchRangeError; it is never truncated.
"""

from typing import Optional
import logging

from c64_assembler.cpu import UNUSED, InstructionDef, get_instruction_def
from c64_assembler.errors import BranchRangeError, InternalCompilerError
from c64_assembler.generator.base import Generator
from c64_assembler.layout import Layout, Placement, resolve_layout, use_zeropage
from c64_assembler.memory import AddressBook, high, low
from c64_assembler.program import (
    ABSOLUTE_MODES,
    Accumulator,
    AddressMode,
    Application,
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
    Opcode,
    Raw,
    Relative,
)

logger = logging.getLogger(__name__)

PROGRAM_HEADER_SIZE = 2


class ProgramGenerator(Generator):
    """
    Generates .PRG bytes for a laid-out application.

    Example:
        layout = resolve_layout(application)
        validate(application, layout)
        data = ProgramGenerator().generate(application, layout)
    """

    def __init__(self):
        self._output = bytearray()
        self._entry_point = 0
        self._book = AddressBook()

    def generate(self, application: Application, layout: Optional[Layout] = None) -> bytes:
        """
        Generate the byte stream, load address header included.

        Args:
            application: The application to encode
            layout: Result of resolve_layout(); computed when omitted

        Returns:
            Header plus machine code

        Raises:
            BranchRangeError: If a branch target is out of range
            InternalCompilerError: If an instruction has no opcode for its
                                   mode or the layout does not match
        """
        if layout is None:
            layout = resolve_layout(application)

        self._output = bytearray()
        self._entry_point = application.entry_point
        self._book = layout.address_book

        self._emit_word(application.entry_point)

        placements = iter(layout.placements)
        for instruction in application.iter_instructions():
            placement = next(placements, None)
            if placement is None or placement.instruction != instruction:
                raise InternalCompilerError(
                    "layout does not match the application being generated"
                )
            self._generate_instruction(placement)

        if next(placements, None) is not None:
            raise InternalCompilerError(
                "layout has more placements than the application has instructions"
            )

        logger.debug(
            f"Generated {len(self._output)} bytes for '{application.name}' "
            f"at ${application.entry_point:04X}"
        )
        return bytes(self._output)

    # =========================================================================
    # Instructions
    # =========================================================================

    @property
    def _pc(self) -> int:
        """Address of the next byte to be emitted."""
        return self._entry_point + len(self._output) - PROGRAM_HEADER_SIZE

    def _generate_instruction(self, placement: Placement) -> None:
        instruction = placement.instruction
        start = len(self._output)

        if self._pc != placement.address:
            raise InternalCompilerError(
                f"instruction at ${self._pc:04X} was laid out at ${placement.address:04X}"
            )

        operation = instruction.operation
        if isinstance(operation, Label):
            pass
        elif isinstance(operation, Raw):
            self._output.extend(operation.data)
        elif isinstance(operation, Opcode):
            self._emit_opcode_instruction(instruction, placement.size)
        else:
            raise InternalCompilerError(f"cannot encode operation {operation!r}")

        emitted = len(self._output) - start
        if emitted != placement.size:
            raise InternalCompilerError(
                f"'{_describe(instruction)}' emitted {emitted} bytes, "
                f"layout reserved {placement.size}"
            )

    def _emit_opcode_instruction(self, instruction: Instruction, size: int) -> None:
        mnemonic = instruction.mnemonic
        mode = instruction.address_mode
        definition = get_instruction_def(mnemonic)
        if definition is None:
            raise InternalCompilerError(f"no opcode table entry for '{mnemonic}'")

        if isinstance(mode, (Implied, Accumulator)):
            self._emit_opcode(definition, mode.encoding, mode)

        elif isinstance(mode, Immediate):
            self._emit_opcode(definition, mode.encoding, mode)
            self._emit_byte(self._immediate_value(mode))

        elif isinstance(mode, ABSOLUTE_MODES):
            address = self._book.resolve(mode.reference)
            if use_zeropage(mnemonic, mode, self._book):
                self._emit_opcode(definition, mode.zeropage_encoding, mode)
                self._emit_byte(low(address))
            else:
                self._emit_opcode(definition, mode.encoding, mode)
                self._emit_word(address)

        elif isinstance(mode, Relative):
            target = self._book.resolve(mode.reference)
            next_instruction = self._pc + size
            displacement = target - next_instruction
            if not -128 <= displacement <= 127:
                raise BranchRangeError(str(mode.reference), displacement, instruction.location)
            self._emit_opcode(definition, mode.encoding, mode)
            self._emit_byte(displacement)

        elif isinstance(mode, Indirect):
            self._emit_opcode(definition, mode.encoding, mode)
            self._emit_word(self._book.resolve(mode.reference))

        elif isinstance(mode, (IndexedIndirect, IndirectIndexed)):
            self._emit_opcode(definition, mode.encoding, mode)
            self._emit_byte(low(self._book.resolve(mode.reference)))

        else:
            raise InternalCompilerError(f"cannot encode addressing mode {mode!r}")

    def _immediate_value(self, mode: Immediate) -> int:
        value = mode.value
        if isinstance(value, ImmediateByte):
            return value.value
        if isinstance(value, ImmediateLow):
            return low(self._book.resolve(value.reference))
        if isinstance(value, ImmediateHigh):
            return high(self._book.resolve(value.reference))
        raise InternalCompilerError(f"cannot encode immediate value {value!r}")

    # =========================================================================
    # Code Emission Helpers
    # =========================================================================

    def _emit_opcode(self, definition: InstructionDef, encoding: str, mode: AddressMode) -> None:
        """Emit the opcode of an encoding, refusing the unused sentinel."""
        opcode = getattr(definition, encoding)
        if opcode == UNUSED:
            raise InternalCompilerError(
                f"'{definition.mnemonic}' has no opcode for {mode.description} addressing"
            )
        self._emit_byte(opcode)

    def _emit_byte(self, value: int) -> None:
        """Emit a single byte to the output."""
        self._output.append(value & 0xFF)

    def _emit_word(self, value: int) -> None:
        """Emit a 16-bit word to the output (little-endian)."""
        self._output.append(value & 0xFF)
        self._output.append((value >> 8) & 0xFF)


def _describe(instruction: Instruction) -> str:
    operation = instruction.operation
    if isinstance(operation, Opcode):
        return f"{operation.mnemonic} ({instruction.address_mode.description})"
    return type(operation).__name__.lower()
