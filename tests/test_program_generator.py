# =============================================================================
# test_program_generator.py - .PRG Generator Tests
# =============================================================================
# Tests for the binary backend.
#
# Test coverage includes:
#   - Load address header
#   - Byte encoding of every addressing mode
#   - Zero page selection matching the layout
#   - Branch displacement encoding
#   - Failure on unencodable input (never truncated or guessed)
#   - Hexdump formatting
# =============================================================================

import pytest

from c64_assembler.builder import InstructionBuilder
from c64_assembler.errors import BranchRangeError, InternalCompilerError
from c64_assembler.generator import ProgramGenerator, format_hexdump
from c64_assembler.layout import resolve_layout
from c64_assembler.memory import AddressReference
from c64_assembler.program import (
    AbsoluteY,
    Application,
    Immediate,
    ImmediateByte,
    Instruction,
    Module,
    Opcode,
)

from conftest import BORDER_PRG, make_application


def generate(instructions, defines=None, entry_point=None) -> bytes:
    application = make_application(instructions, defines=defines, entry_point=entry_point)
    return ProgramGenerator().generate(application, resolve_layout(application))


# =============================================================================
# Header and Whole Programs
# =============================================================================

class TestPrograms:
    """Test complete programs."""

    def test_empty_program_is_header_only(self):
        assert generate(()) == bytes([0x00, 0x08])

    def test_header_uses_entry_point(self):
        assert generate(InstructionBuilder().rts().build(), entry_point=0xC000) == bytes(
            [0x00, 0xC0, 0x60]
        )

    def test_set_black_border(self, border_application):
        assert ProgramGenerator().generate(border_application) == BORDER_PRG

    def test_output_length_matches_layout(self, border_application):
        layout = resolve_layout(border_application)
        data = ProgramGenerator().generate(border_application, layout)
        assert len(data) == 2 + layout.size

    def test_generation_is_repeatable(self, border_application):
        generator = ProgramGenerator()
        assert generator.generate(border_application) == generator.generate(border_application)


# =============================================================================
# Addressing Modes
# =============================================================================

class TestAddressingModes:
    """Test operand encoding per mode."""

    def test_implied_and_accumulator(self):
        code = InstructionBuilder().nop().asl_acc().build()
        assert generate(code)[2:] == bytes([0xEA, 0x0A])

    def test_immediate_literal(self):
        assert generate(InstructionBuilder().ldx_imm(0x7F).build())[2:] == bytes([0xA2, 0x7F])

    def test_immediate_low_and_high(self):
        code = (
            InstructionBuilder()
            .lda_imm_low("irq_handler")
            .ldx_imm_high("irq_handler")
            .build()
        )
        data = generate(code, defines={"irq_handler": 0xC123})
        assert data[2:] == bytes([0xA9, 0x23, 0xA2, 0xC1])

    def test_immediate_low_with_offset(self):
        code = InstructionBuilder().lda_imm_low("table", 0x10).build()
        assert generate(code, defines={"table": 0x10F8})[2:] == bytes([0xA9, 0x08])

    def test_absolute(self):
        code = InstructionBuilder().sta_addr("VIC2_BORDER_COLOR").build()
        data = generate(code, defines={"VIC2_BORDER_COLOR": 0xD020})
        assert data[2:] == bytes([0x8D, 0x20, 0xD0])

    def test_absolute_with_offset(self):
        code = InstructionBuilder().sta_addr_offs("VIC2_SPRITE_0_X", 1).build()
        data = generate(code, defines={"VIC2_SPRITE_0_X": 0xD000})
        assert data[2:] == bytes([0x8D, 0x01, 0xD0])

    def test_absolute_indexed(self):
        code = (
            InstructionBuilder()
            .lda_addr_x("table")
            .sta_addr_y("table")
            .lda_addr_offs_y("table", 2)
            .build()
        )
        data = generate(code, defines={"table": 0x1000})
        assert data[2:] == bytes([0xBD, 0x00, 0x10, 0x99, 0x00, 0x10, 0xB9, 0x02, 0x10])

    def test_zeropage_forms(self):
        code = (
            InstructionBuilder()
            .lda_addr("zp")
            .sta_addr_x("zp")
            .ldx_addr_y("zp")
            .lda_addr_y("zp")
            .build()
        )
        data = generate(code, defines={"zp": 0xFB})
        assert data[2:] == bytes([0xA5, 0xFB, 0x95, 0xFB, 0xB6, 0xFB, 0xB9, 0xFB, 0x00])

    def test_indirect(self):
        code = InstructionBuilder().jmp_ind("vector").build()
        assert generate(code, defines={"vector": 0x0314})[2:] == bytes([0x6C, 0x14, 0x03])

    def test_indexed_indirect_and_indirect_indexed(self):
        code = InstructionBuilder().lda_ind_x("ptr").sta_ind_y("ptr").build()
        assert generate(code, defines={"ptr": 0xFB})[2:] == bytes([0xA1, 0xFB, 0x91, 0xFB])

    def test_raw_bytes(self):
        code = InstructionBuilder().raw(b"\x01\x02").raw([3]).build()
        assert generate(code)[2:] == bytes([0x01, 0x02, 0x03])

    def test_labels_emit_nothing(self):
        code = InstructionBuilder().label("first").label("second").build()
        assert generate(code) == bytes([0x00, 0x08])


# =============================================================================
# Label Resolution
# =============================================================================

class TestLabelResolution:
    """Test the byte sequences of label-based programs."""

    def test_forward_absolute_y(self):
        code = InstructionBuilder().lda_addr_y("label_a").label("label_a").build()
        assert generate(code) == bytes([0x00, 0x08, 0xB9, 0x03, 0x08])

    def test_ldx_zeropage_y(self):
        code = InstructionBuilder().ldx_addr_y("zp").label("label_a").build()
        application = make_application(code, defines={"zp": 0xFE})
        layout = resolve_layout(application)
        data = ProgramGenerator().generate(application, layout)

        assert data == bytes([0x00, 0x08, 0xB6, 0xFE])
        assert layout.address_book.lookup("label_a") == 0x0802

    def test_forward_branch(self):
        code = InstructionBuilder().bne_addr("jump").rts().label("jump").build()
        assert generate(code) == bytes([0x00, 0x08, 0xD0, 0x01, 0x60])

    def test_backward_branch(self):
        code = InstructionBuilder().label("loop").dex().bne_addr("loop").build()
        assert generate(code)[2:] == bytes([0xCA, 0xD0, 0xFD])

    def test_jsr_forward(self):
        code = (
            InstructionBuilder()
            .jsr_addr("sub")
            .rts()
            .label("sub")
            .rts()
            .build()
        )
        assert generate(code)[2:] == bytes([0x20, 0x04, 0x08, 0x60, 0x60])


# =============================================================================
# Failures
# =============================================================================

class TestFailures:
    """Test refusal to produce wrong bytes."""

    def test_branch_out_of_range_not_truncated(self):
        code = InstructionBuilder().bne_addr("far").raw(bytes(200)).label("far").build()
        with pytest.raises(BranchRangeError) as exc_info:
            generate(code)
        assert exc_info.value.offset == 200

    def test_unused_opcode_raises(self):
        """An instruction assembled without the builder can carry any mode."""
        instruction = Instruction(Opcode("sta"), Immediate(ImmediateByte(1)))
        application = Application(modules=(Module("main", (instruction,)),))
        with pytest.raises(InternalCompilerError):
            ProgramGenerator().generate(application)

    def test_zeropage_only_form_outside_zero_page_raises(self):
        instruction = Instruction(Opcode("stx"), AbsoluteY(AddressReference("table")))
        application = make_application((instruction,), defines={"table": 0x1000})
        with pytest.raises(InternalCompilerError):
            ProgramGenerator().generate(application)

    def test_unknown_mnemonic_raises(self):
        instruction = Instruction(Opcode("xyz"))
        application = Application(modules=(Module("main", (instruction,)),))
        with pytest.raises(InternalCompilerError):
            ProgramGenerator().generate(application)

    def test_layout_of_other_application_raises(self, border_application):
        other = make_application(InstructionBuilder().rts().build())
        with pytest.raises(InternalCompilerError):
            ProgramGenerator().generate(border_application, resolve_layout(other))

    def test_forward_reference_into_zero_page_detected(self):
        """Without validation the size mismatch is caught at generation."""
        code = InstructionBuilder().lda_addr("data").rts().label("data").build()
        application = make_application(code, entry_point=0x0010)
        with pytest.raises(InternalCompilerError):
            ProgramGenerator().generate(application)


# =============================================================================
# Hexdump
# =============================================================================

class TestHexdump:
    """Test hexdump formatting."""

    def test_border_program(self):
        assert format_hexdump(BORDER_PRG) == (
            "0000:  00 08 00 0C  08 0A 00 9E  20 32 30 36  32 00 00 00\n"
            "0010:  A9 00 8D 20  D0 60"
        )

    def test_start_offset(self):
        assert format_hexdump(bytes([1, 2]), start=0x0800) == "0800:  01 02"

    def test_empty(self):
        assert format_hexdump(b"") == ""
