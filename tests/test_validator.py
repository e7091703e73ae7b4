# =============================================================================
# test_validator.py - Validator Tests
# =============================================================================
# Tests for the checks run between layout and encoding.
#
# Test coverage includes:
#   - Unknown address names with suggestions
#   - Duplicate labels and defines
#   - Branch range limits (-128..127)
#   - Zero page pointer operands
#   - Forward references resolving into the zero page
#   - Error ordering and collection policy
# =============================================================================

import pytest

from c64_assembler.builder import FunctionBuilder, InstructionBuilder, ModuleBuilder, ApplicationBuilder
from c64_assembler.errors import (
    AddressingModeError,
    BranchRangeError,
    DuplicateAddressNameError,
    ForwardReferenceError,
    UnknownAddressNameError,
)
from c64_assembler.layout import resolve_layout
from c64_assembler.validator import Validator, find_errors, validate

from conftest import make_application


def check(application):
    """Lay out and validate an application."""
    validate(application, resolve_layout(application))


def collect(application):
    return find_errors(application, resolve_layout(application))


# =============================================================================
# Reference Existence
# =============================================================================

class TestUnknownNames:
    """Test detection of undeclared address names."""

    def test_unknown_label(self):
        code = InstructionBuilder().lda_addr("unknown_label").build()
        with pytest.raises(UnknownAddressNameError) as exc_info:
            check(make_application(code))
        assert exc_info.value.name == "unknown_label"
        assert "unknown address name 'unknown_label'" in str(exc_info.value)

    def test_unknown_name_in_immediate(self):
        code = InstructionBuilder().lda_imm_high("missing").build()
        with pytest.raises(UnknownAddressNameError):
            check(make_application(code))

    def test_unknown_branch_target(self):
        code = InstructionBuilder().bne_addr("nowhere").build()
        with pytest.raises(UnknownAddressNameError):
            check(make_application(code))

    def test_suggests_similar_names(self):
        code = InstructionBuilder().sta_addr("VIC2_BORDR_COLOR").build()
        application = (
            ApplicationBuilder()
            .include_vic2_defines()
            .module(ModuleBuilder().name("main").instructions(code).build())
            .build()
        )
        with pytest.raises(UnknownAddressNameError) as exc_info:
            check(application)
        assert "VIC2_BORDER_COLOR" in exc_info.value.similar_names
        assert "did you mean" in str(exc_info.value)

    def test_known_names_pass(self, border_application):
        check(border_application)


# =============================================================================
# Name Uniqueness
# =============================================================================

class TestDuplicateNames:
    """Test the flat, application-wide namespace."""

    def test_duplicate_label_in_module(self):
        code = InstructionBuilder().label("loop").nop().label("loop").rts().build()
        with pytest.raises(DuplicateAddressNameError) as exc_info:
            check(make_application(code))
        assert exc_info.value.name == "loop"

    def test_duplicate_label_across_functions(self):
        def function(name):
            code = InstructionBuilder().label("shared").rts().build()
            return FunctionBuilder().name(name).instructions(code).build()

        module = ModuleBuilder().name("main").function(function("f1")).function(function("f2")).build()
        with pytest.raises(DuplicateAddressNameError):
            check(ApplicationBuilder().module(module).build())

    def test_duplicate_label_across_modules(self):
        def module(name):
            code = InstructionBuilder().label("start").rts().build()
            return ModuleBuilder().name(name).instructions(code).build()

        application = ApplicationBuilder().module(module("a")).module(module("b")).build()
        with pytest.raises(DuplicateAddressNameError):
            check(application)

    def test_duplicate_define(self):
        application = (
            ApplicationBuilder()
            .define_address("screen", 0x0400)
            .define_address("screen", 0x0800)
            .module(ModuleBuilder().name("main").instructions(InstructionBuilder().rts().build()).build())
            .build()
        )
        with pytest.raises(DuplicateAddressNameError):
            check(application)

    def test_label_reusing_define_name(self):
        code = InstructionBuilder().label("screen").rts().build()
        with pytest.raises(DuplicateAddressNameError):
            check(make_application(code, defines={"screen": 0x0400}))

    def test_same_define_included_twice(self):
        application = (
            ApplicationBuilder()
            .include_sid_defines()
            .include_sid_defines()
            .module(ModuleBuilder().name("main").instructions(InstructionBuilder().rts().build()).build())
            .build()
        )
        errors = collect(application)
        assert errors.error_count() == 30


# =============================================================================
# Branch Range
# =============================================================================

class TestBranchRange:
    """Test the signed byte displacement limit."""

    @staticmethod
    def forward_branch(padding: int):
        return (
            InstructionBuilder()
            .bne_addr("target")
            .raw(bytes(padding))
            .label("target")
            .rts()
            .build()
        )

    @staticmethod
    def backward_branch(padding: int):
        return (
            InstructionBuilder()
            .label("target")
            .raw(bytes(padding))
            .bne_addr("target")
            .build()
        )

    def test_forward_127_is_valid(self):
        check(make_application(self.forward_branch(127)))

    def test_forward_128_is_invalid(self):
        with pytest.raises(BranchRangeError) as exc_info:
            check(make_application(self.forward_branch(128)))
        assert exc_info.value.target == "target"
        assert exc_info.value.offset == 128

    def test_backward_128_is_valid(self):
        # displacement = -(padding + 2)
        check(make_application(self.backward_branch(126)))

    def test_backward_129_is_invalid(self):
        with pytest.raises(BranchRangeError) as exc_info:
            check(make_application(self.backward_branch(127)))
        assert exc_info.value.offset == -129

    def test_branch_to_itself(self):
        code = InstructionBuilder().label("self").beq_addr("self").build()
        check(make_application(code))


# =============================================================================
# Zero Page Operands
# =============================================================================

class TestZeropageOperands:
    """Test operands that must live in the zero page."""

    def test_indirect_indexed_in_zero_page(self):
        code = InstructionBuilder().lda_ind_y("pointer").build()
        check(make_application(code, defines={"pointer": 0xFB}))

    def test_indirect_indexed_outside_zero_page(self):
        code = InstructionBuilder().lda_ind_y("pointer").build()
        with pytest.raises(AddressingModeError) as exc_info:
            check(make_application(code, defines={"pointer": 0x0400}))
        assert "not in the zero page" in str(exc_info.value)

    def test_indexed_indirect_outside_zero_page(self):
        code = InstructionBuilder().sta_ind_x("pointer").build()
        with pytest.raises(AddressingModeError):
            check(make_application(code, defines={"pointer": 0x0100}))

    def test_zeropage_only_instruction_outside_zero_page(self):
        """STX name,Y has no absolute form."""
        code = InstructionBuilder().stx_addr_y("table").build()
        with pytest.raises(AddressingModeError):
            check(make_application(code, defines={"table": 0x1000}))

    def test_zeropage_only_instruction_in_zero_page(self):
        code = InstructionBuilder().stx_addr_y("table").build()
        check(make_application(code, defines={"table": 0x10}))


# =============================================================================
# Forward References
# =============================================================================

class TestForwardReferences:
    """Test forward references that would change size."""

    def test_forward_reference_above_zero_page(self):
        code = InstructionBuilder().lda_addr_y("label_a").label("label_a").build()
        check(make_application(code))

    def test_forward_reference_into_zero_page(self):
        code = InstructionBuilder().lda_addr("data").rts().label("data").build()
        with pytest.raises(ForwardReferenceError) as exc_info:
            check(make_application(code, entry_point=0x0010))
        assert exc_info.value.name == "data"
        assert exc_info.value.address == 0x0014

    def test_forward_reference_without_zeropage_form(self):
        """JMP has no zero page form, so the 3 byte layout stays correct."""
        code = InstructionBuilder().jmp_addr("done").label("done").rts().build()
        check(make_application(code, entry_point=0x0010))


# =============================================================================
# Error Policy
# =============================================================================

class TestErrorPolicy:
    """Test error ordering and collection."""

    def test_unknown_name_reported_before_duplicate(self):
        code = (
            InstructionBuilder()
            .label("loop")
            .label("loop")
            .lda_addr("missing")
            .build()
        )
        with pytest.raises(UnknownAddressNameError):
            check(make_application(code))

    def test_find_errors_collects_all(self):
        code = (
            InstructionBuilder()
            .label("loop")
            .label("loop")
            .lda_addr("missing")
            .sta_addr("also_missing")
            .build()
        )
        errors = collect(make_application(code))
        kinds = [type(e) for e in errors.errors]
        assert kinds == [
            UnknownAddressNameError,
            UnknownAddressNameError,
            DuplicateAddressNameError,
        ]

    def test_range_checks_skipped_after_unknown_name(self):
        code = (
            InstructionBuilder()
            .lda_ind_y("missing")
            .lda_ind_y("pointer")
            .build()
        )
        errors = collect(make_application(code, defines={"pointer": 0x0400}))
        assert errors.error_count() == 1
        assert isinstance(errors.first(), UnknownAddressNameError)

    def test_max_errors_stops_collection(self):
        builder = InstructionBuilder()
        for index in range(10):
            builder.lda_addr(f"missing_{index}")
        application = make_application(builder.build())
        errors = Validator(application, resolve_layout(application), max_errors=3).find_errors()
        assert errors.error_count() == 3

    def test_validation_does_not_mutate(self, border_application):
        layout = resolve_layout(border_application)
        before = dict(layout.address_book.items())
        validate(border_application, layout)
        assert dict(layout.address_book.items()) == before
