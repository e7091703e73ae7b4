"""
MOS 6502 Instruction Set Definition
===================================

This module defines the documented NMOS 6502 instruction set as used by the
Commodore 64 (MOS 6510). Each mnemonic maps to an InstructionDef holding one
opcode per encoding. Encodings a mnemonic does not have carry the UNUSED
sentinel.

Encodings
---------
| Field            | Syntax      | Size | Example        |
|------------------|-------------|------|----------------|
| implied          | (none)      | 1    | RTS -> $60     |
| accumulator      | A           | 1    | ASL A -> $0A   |
| immediate        | #value      | 2    | LDA #$00 -> $A9|
| zeropage         | addr        | 2    | LDA $FB -> $A5 |
| zeropage_x / _y  | addr,X/Y    | 2    | LDA $FB,X      |
| absolute         | addr        | 3    | STA $D020 -> $8D |
| absolute_x / _y  | addr,X/Y    | 3    | LDA $C000,Y    |
| relative         | label       | 2    | BNE loop -> $D0|
| indirect         | (addr)      | 3    | JMP ($0314)    |
| indexed_indirect | (zp,X)      | 2    | LDA ($FB,X)    |
| indirect_indexed | (zp),Y      | 2    | LDA ($FB),Y    |

The 6502 is little-endian: 16-bit operands are stored low byte first.

Zero Page Discount
------------------
Addresses below $0100 can be encoded with a one byte operand when the
mnemonic has a zero page form for the requested mode. NO_ZEROPAGE,
NO_ZEROPAGE_X and NO_ZEROPAGE_Y mark the absence of that form. Note the
asymmetries: LDA has no zeropage,Y form and STX has no absolute,Y form.

Reference
---------
- MOS MCS6500 Microcomputer Family Programming Manual
- http://www.6502.org/tutorials/6502opcodes.html
"""

from dataclasses import dataclass, fields
from typing import Optional


# =============================================================================
# Sentinels
# =============================================================================

# $FF is not a documented opcode, so it can never collide with a real one.
UNUSED: int = 0xFF
NO_ZEROPAGE: int = UNUSED
NO_ZEROPAGE_X: int = UNUSED
NO_ZEROPAGE_Y: int = UNUSED


# =============================================================================
# Instruction Definition
# =============================================================================

@dataclass(frozen=True)
class InstructionDef:
    """
    Opcodes of one mnemonic, one field per encoding.

    Frozen so the table cannot be modified at runtime.
    """
    mnemonic: str
    implied: int = UNUSED
    immediate: int = UNUSED
    accumulator: int = UNUSED
    absolute: int = UNUSED
    absolute_x: int = UNUSED
    absolute_y: int = UNUSED
    zeropage: int = UNUSED
    zeropage_x: int = UNUSED
    zeropage_y: int = UNUSED
    relative: int = UNUSED
    indirect: int = UNUSED
    indexed_indirect: int = UNUSED
    indirect_indexed: int = UNUSED

    def __repr__(self) -> str:
        used = ", ".join(
            f"{name}=${value:02X}" for name, value in self.encodings().items()
        )
        return f"InstructionDef({self.mnemonic}: {used})"

    def encodings(self) -> dict[str, int]:
        """Return the encodings this mnemonic actually has."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "mnemonic" and getattr(self, f.name) != UNUSED
        }

    def supports(self, encoding: str) -> bool:
        """Check whether the named encoding exists for this mnemonic."""
        return getattr(self, encoding) != UNUSED


def _def(mnemonic: str, **opcodes: int) -> tuple[str, InstructionDef]:
    return mnemonic, InstructionDef(mnemonic, **opcodes)


# =============================================================================
# Opcode Table
# =============================================================================
# Key: lower-case mnemonic
# Value: InstructionDef with UNUSED for every missing encoding
# =============================================================================

INSTRUCTION_TABLE: dict[str, InstructionDef] = dict([
    # =========================================================================
    # Load / store
    # =========================================================================
    _def("lda", immediate=0xA9, zeropage=0xA5, zeropage_x=0xB5, absolute=0xAD,
         absolute_x=0xBD, absolute_y=0xB9, indexed_indirect=0xA1, indirect_indexed=0xB1),
    _def("ldx", immediate=0xA2, zeropage=0xA6, zeropage_y=0xB6, absolute=0xAE,
         absolute_y=0xBE),
    _def("ldy", immediate=0xA0, zeropage=0xA4, zeropage_x=0xB4, absolute=0xAC,
         absolute_x=0xBC),
    _def("sta", zeropage=0x85, zeropage_x=0x95, absolute=0x8D, absolute_x=0x9D,
         absolute_y=0x99, indexed_indirect=0x81, indirect_indexed=0x91),
    _def("stx", zeropage=0x86, zeropage_y=0x96, absolute=0x8E),
    _def("sty", zeropage=0x84, zeropage_x=0x94, absolute=0x8C),

    # =========================================================================
    # Arithmetic / logic
    # =========================================================================
    _def("adc", immediate=0x69, zeropage=0x65, zeropage_x=0x75, absolute=0x6D,
         absolute_x=0x7D, absolute_y=0x79, indexed_indirect=0x61, indirect_indexed=0x71),
    _def("sbc", immediate=0xE9, zeropage=0xE5, zeropage_x=0xF5, absolute=0xED,
         absolute_x=0xFD, absolute_y=0xF9, indexed_indirect=0xE1, indirect_indexed=0xF1),
    _def("and", immediate=0x29, zeropage=0x25, zeropage_x=0x35, absolute=0x2D,
         absolute_x=0x3D, absolute_y=0x39, indexed_indirect=0x21, indirect_indexed=0x31),
    _def("ora", immediate=0x09, zeropage=0x05, zeropage_x=0x15, absolute=0x0D,
         absolute_x=0x1D, absolute_y=0x19, indexed_indirect=0x01, indirect_indexed=0x11),
    _def("eor", immediate=0x49, zeropage=0x45, zeropage_x=0x55, absolute=0x4D,
         absolute_x=0x5D, absolute_y=0x59, indexed_indirect=0x41, indirect_indexed=0x51),
    _def("cmp", immediate=0xC9, zeropage=0xC5, zeropage_x=0xD5, absolute=0xCD,
         absolute_x=0xDD, absolute_y=0xD9, indexed_indirect=0xC1, indirect_indexed=0xD1),
    _def("cpx", immediate=0xE0, zeropage=0xE4, absolute=0xEC),
    _def("cpy", immediate=0xC0, zeropage=0xC4, absolute=0xCC),
    _def("bit", zeropage=0x24, absolute=0x2C),

    # =========================================================================
    # Read-modify-write
    # =========================================================================
    _def("asl", accumulator=0x0A, zeropage=0x06, zeropage_x=0x16, absolute=0x0E,
         absolute_x=0x1E),
    _def("lsr", accumulator=0x4A, zeropage=0x46, zeropage_x=0x56, absolute=0x4E,
         absolute_x=0x5E),
    _def("rol", accumulator=0x2A, zeropage=0x26, zeropage_x=0x36, absolute=0x2E,
         absolute_x=0x3E),
    _def("ror", accumulator=0x6A, zeropage=0x66, zeropage_x=0x76, absolute=0x6E,
         absolute_x=0x7E),
    _def("inc", zeropage=0xE6, zeropage_x=0xF6, absolute=0xEE, absolute_x=0xFE),
    _def("dec", zeropage=0xC6, zeropage_x=0xD6, absolute=0xCE, absolute_x=0xDE),

    # =========================================================================
    # Register / flag instructions
    # =========================================================================
    _def("inx", implied=0xE8),
    _def("iny", implied=0xC8),
    _def("dex", implied=0xCA),
    _def("dey", implied=0x88),
    _def("tax", implied=0xAA),
    _def("tay", implied=0xA8),
    _def("txa", implied=0x8A),
    _def("tya", implied=0x98),
    _def("tsx", implied=0xBA),
    _def("txs", implied=0x9A),
    _def("pha", implied=0x48),
    _def("pla", implied=0x68),
    _def("php", implied=0x08),
    _def("plp", implied=0x28),
    _def("clc", implied=0x18),
    _def("sec", implied=0x38),
    _def("cli", implied=0x58),
    _def("sei", implied=0x78),
    _def("cld", implied=0xD8),
    _def("sed", implied=0xF8),
    _def("clv", implied=0xB8),
    _def("nop", implied=0xEA),
    _def("brk", implied=0x00),

    # =========================================================================
    # Control flow
    # =========================================================================
    _def("jmp", absolute=0x4C, indirect=0x6C),
    _def("jsr", absolute=0x20),
    _def("rts", implied=0x60),
    _def("rti", implied=0x40),
    _def("bcc", relative=0x90),
    _def("bcs", relative=0xB0),
    _def("beq", relative=0xF0),
    _def("bne", relative=0xD0),
    _def("bmi", relative=0x30),
    _def("bpl", relative=0x10),
    _def("bvc", relative=0x50),
    _def("bvs", relative=0x70),
])


# =============================================================================
# Instruction Set Reference Lists
# =============================================================================

MNEMONICS: frozenset[str] = frozenset(INSTRUCTION_TABLE)

BRANCH_INSTRUCTIONS: frozenset[str] = frozenset(
    name for name, definition in INSTRUCTION_TABLE.items()
    if definition.supports("relative")
)


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_def(mnemonic: str) -> Optional[InstructionDef]:
    """
    Look up the definition of a mnemonic.

    Args:
        mnemonic: The instruction mnemonic, any case (e.g., "LDA")

    Returns:
        InstructionDef if known, None otherwise
    """
    return INSTRUCTION_TABLE.get(mnemonic.lower())


def is_valid_instruction(mnemonic: str) -> bool:
    """Check if a mnemonic is a documented 6502 instruction."""
    return mnemonic.lower() in MNEMONICS


def is_branch_instruction(mnemonic: str) -> bool:
    """Check if an instruction is a branch (uses relative addressing)."""
    return mnemonic.lower() in BRANCH_INSTRUCTIONS
