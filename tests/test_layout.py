# =============================================================================
# test_layout.py - Layout Resolver Tests
# =============================================================================
# Tests for address assignment and instruction sizing.
#
# Test coverage includes:
#   - Label addresses and running counter
#   - Size per addressing mode
#   - Zero page discount rules
#   - Forward reference recording
#   - Frozen address book and layout result
# =============================================================================

import pytest

from c64_assembler.builder import FunctionBuilder, InstructionBuilder, ModuleBuilder, ApplicationBuilder
from c64_assembler.errors import InternalCompilerError
from c64_assembler.layout import instruction_size, resolve_layout, use_zeropage
from c64_assembler.memory import AddressBook, AddressReference
from c64_assembler.program import Absolute, AbsoluteY, Instruction, Opcode

from conftest import make_application


def sizes(layout):
    return [placement.size for placement in layout.placements]


# =============================================================================
# Addresses
# =============================================================================

class TestAddresses:
    """Test label address assignment."""

    def test_labels_get_running_address(self):
        code = (
            InstructionBuilder()
            .label("start")
            .nop()
            .label("middle")
            .lda_imm(1)
            .label("end")
            .build()
        )
        layout = resolve_layout(make_application(code))
        book = layout.address_book

        assert book.lookup("start") == 0x0800
        assert book.lookup("middle") == 0x0801
        assert book.lookup("end") == 0x0803

    def test_entry_point(self):
        code = InstructionBuilder().label("start").rts().build()
        layout = resolve_layout(make_application(code, entry_point=0xC000))
        assert layout.address_book.lookup("start") == 0xC000
        assert layout.entry_point == 0xC000
        assert layout.end_address == 0xC001
        assert layout.size == 1

    def test_basic_header_places_entry_at_080e(self, border_application):
        layout = resolve_layout(border_application)
        assert layout.address_book.lookup("main_entry_point") == 0x080E

    def test_consecutive_labels_share_address(self):
        code = InstructionBuilder().label("first").label("second").rts().build()
        book = resolve_layout(make_application(code)).address_book
        assert book.lookup("first") == book.lookup("second") == 0x0800

    def test_labels_in_functions(self):
        function = (
            FunctionBuilder()
            .name("helper")
            .instructions(InstructionBuilder().label("helper").rts().build())
            .build()
        )
        module = (
            ModuleBuilder()
            .name("main")
            .instructions(InstructionBuilder().jsr_addr("helper").rts().build())
            .function(function)
            .build()
        )
        layout = resolve_layout(ApplicationBuilder().module(module).build())
        assert layout.address_book.lookup("helper") == 0x0804

    def test_defines_in_book(self):
        code = InstructionBuilder().rts().build()
        layout = resolve_layout(make_application(code, defines={"screen": 0x0400}))
        assert layout.address_book.lookup("screen") == 0x0400

    def test_symbols_are_labels_only(self):
        code = InstructionBuilder().label("start").rts().build()
        layout = resolve_layout(make_application(code, defines={"screen": 0x0400}))
        assert layout.symbols() == {"start": 0x0800}

    def test_book_is_frozen(self):
        layout = resolve_layout(make_application(InstructionBuilder().rts().build()))
        assert layout.address_book.frozen
        with pytest.raises(InternalCompilerError):
            layout.address_book.define("late", 0x1000)


# =============================================================================
# Sizes
# =============================================================================

class TestSizes:
    """Test instruction sizes per addressing mode."""

    def test_fixed_sizes(self):
        code = (
            InstructionBuilder()
            .label("loop")
            .rts()                      # implied
            .asl_acc()                  # accumulator
            .lda_imm(1)                 # immediate
            .lda_imm_low("loop")        # immediate low
            .bne_addr("loop")           # relative
            .jmp_ind("vector")          # indirect
            .lda_ind_x("pointer")       # (zp,x)
            .lda_ind_y("pointer")       # (zp),y
            .raw(b"\x01\x02\x03")       # raw
            .build()
        )
        layout = resolve_layout(
            make_application(code, defines={"vector": 0x0314, "pointer": 0xFB})
        )
        assert sizes(layout) == [0, 1, 1, 2, 2, 2, 3, 2, 2, 3]

    def test_absolute_sizes(self):
        code = (
            InstructionBuilder()
            .sta_addr("VIC2_BORDER_COLOR")  # absolute
            .lda_addr("zp")                 # zeropage
            .lda_addr_x("zp")               # zeropage,x
            .lda_addr_y("zp")               # no zeropage,y for lda
            .ldx_addr_y("zp")               # zeropage,y
            .jmp_addr("zp")                 # no zeropage for jmp
            .lda_addr_offs("zp", 0x10)      # still in zero page
            .lda_addr_offs("zp", 0x100)     # pushed out of zero page
            .build()
        )
        layout = resolve_layout(
            make_application(code, defines={"VIC2_BORDER_COLOR": 0xD020, "zp": 0xFB - 0x10})
        )
        assert sizes(layout) == [3, 2, 2, 3, 2, 3, 2, 3]

    def test_backward_label_in_zero_page(self):
        """A label already placed below $0100 gets the short form."""
        code = InstructionBuilder().label("here").lda_addr("here").build()
        layout = resolve_layout(make_application(code, entry_point=0x0010))
        assert sizes(layout) == [0, 2]
        assert layout.forward_references == ()

    def test_instruction_size_unknown_name_is_long(self):
        instruction = Instruction(Opcode("lda"), Absolute(AddressReference("later")))
        assert instruction_size(instruction, AddressBook()) == 3


# =============================================================================
# Zero Page Rule
# =============================================================================

class TestUseZeropage:
    """Test the shared zero page decision."""

    def test_requires_known_name(self):
        mode = Absolute(AddressReference("later"))
        assert not use_zeropage("lda", mode, AddressBook())

    def test_requires_zeropage_form(self):
        book = AddressBook({"zp": 0xFB})
        assert not use_zeropage("lda", AbsoluteY(AddressReference("zp")), book)
        assert use_zeropage("ldx", AbsoluteY(AddressReference("zp")), book)

    def test_requires_low_address(self):
        book = AddressBook({"io": 0xD020})
        assert not use_zeropage("lda", Absolute(AddressReference("io")), book)

    def test_other_modes_never_use_zeropage(self):
        from c64_assembler.program import Indirect
        book = AddressBook({"zp": 0xFB})
        assert not use_zeropage("jmp", Indirect(AddressReference("zp")), book)


# =============================================================================
# Forward References
# =============================================================================

class TestForwardReferences:
    """Test forward reference recording."""

    def test_forward_reference_recorded(self):
        code = InstructionBuilder().lda_addr_y("label_a").label("label_a").build()
        layout = resolve_layout(make_application(code))

        assert sizes(layout) == [3, 0]
        assert len(layout.forward_references) == 1
        forward = layout.forward_references[0]
        assert forward.name == "label_a"
        assert forward.address == 0x0800

    def test_backward_reference_not_recorded(self):
        code = InstructionBuilder().label("loop").jmp_addr("loop").build()
        layout = resolve_layout(make_application(code))
        assert layout.forward_references == ()

    def test_branches_are_not_forward_references(self):
        code = InstructionBuilder().bne_addr("done").label("done").rts().build()
        layout = resolve_layout(make_application(code))
        assert layout.forward_references == ()

    def test_resolver_does_not_fail_on_unknown_names(self):
        code = InstructionBuilder().lda_addr("unknown_label").build()
        layout = resolve_layout(make_application(code))
        assert sizes(layout) == [3]
