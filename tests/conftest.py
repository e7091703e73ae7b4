# =============================================================================
# conftest.py - Shared Test Fixtures
# =============================================================================
# Fixtures and helpers used across the assembler test suite.
# =============================================================================

import pytest

from c64_assembler.builder import ApplicationBuilder, InstructionBuilder, ModuleBuilder
from c64_assembler.program import Application


def make_application(instructions, defines=None, entry_point=None, name="test") -> Application:
    """
    Build a single-module application around an instruction stream.

    Args:
        instructions: Built instruction tuple (InstructionBuilder().build())
        defines: Optional dict of name -> address
        entry_point: Optional load address (default $0800)
    """
    builder = ApplicationBuilder().name(name)
    if entry_point is not None:
        builder.entry_point(entry_point)
    for define_name, address in (defines or {}).items():
        builder.define_address(define_name, address)
    module = ModuleBuilder().name("main").instructions(instructions).build()
    return builder.module(module).build()


@pytest.fixture
def border_application() -> Application:
    """The classic 'set black border' program with a BASIC header."""
    code = (
        InstructionBuilder()
        .add_basic_header()
        .label("main_entry_point")
        .lda_imm(0x00)
        .comment("Load black color")
        .sta_addr("VIC2_BORDER_COLOR")
        .rts()
        .build()
    )
    module = ModuleBuilder().name("main").instructions(code).build()
    return (
        ApplicationBuilder()
        .name("Set black border")
        .include_vic2_defines()
        .module(module)
        .build()
    )


BORDER_PRG = bytes([
    0x00, 0x08,                                      # load address $0800
    0x00, 0x0C, 0x08,                                # new basic line
    0x0A, 0x00, 0x9E, 0x20, 0x32, 0x30, 0x36, 0x32,  # 10 SYS 2062
    0x00, 0x00, 0x00,                                # end basic program
    0xA9, 0x00,                                      # lda #$00
    0x8D, 0x20, 0xD0,                                # sta $D020
    0x60,                                            # rts
])


BORDER_SOURCE = """\
; Set the border color to black
.application "Set black border"
.include_vic2_defines

.module "main"
.basic_header
main_entry_point:
    "Load black color"
    lda #$00
    sta VIC2_BORDER_COLOR
    rts
"""
