"""
Program Builders
================

Fluent construction of the program tree. Every setter returns the builder
so calls can be chained; build() returns the frozen tree value.

Example
-------
    application = (
        ApplicationBuilder()
        .name("Set black border")
        .include_vic2_defines()
        .module(
            ModuleBuilder()
            .name("main")
            .instructions(
                InstructionBuilder()
                .add_basic_header()
                .label("main_entry_point")
                .lda_imm(0x00)
                .comment("Load black color")
                .sta_addr("VIC2_BORDER_COLOR")
                .rts()
                .build()
            )
            .build()
        )
        .build()
    )

Instruction Shortcuts
---------------------
InstructionBuilder accepts `<mnemonic>[_<mode>]` method names for every
mnemonic of the opcode table:

| Suffix         | Arguments      | Mode                              |
|----------------|----------------|-----------------------------------|
| (none)         | -              | Implied                           |
| _acc           | -              | Accumulator                       |
| _imm           | byte           | Immediate literal                 |
| _imm_low/_high | name           | Immediate low/high byte of name   |
| _addr          | name           | Absolute (Relative for branches)  |
| _addr_offs     | name, offset   | Absolute with offset              |
| _addr_x / _y   | name           | AbsoluteX / AbsoluteY             |
| _addr_offs_x/y | name, offset   | AbsoluteX / AbsoluteY with offset |
| _ind           | name           | Indirect                          |
| _ind_x         | name           | IndexedIndirect (name,x)          |
| _ind_y         | name           | IndirectIndexed (name),y          |

    InstructionBuilder().lda_addr_offs_y("table", 2).bne_addr("loop")

A mode the mnemonic does not support raises AddressingModeError right
away; an unknown mnemonic raises AttributeError.
"""

from typing import Callable, Iterable, Optional, Union

from c64_assembler.cpu import get_instruction_def, is_branch_instruction
from c64_assembler.defines import SID_DEFINES, VIC2_DEFINES, RegisterDefine
from c64_assembler.errors import AddressingModeError, SourceLocation
from c64_assembler.memory import Address, AddressReference
from c64_assembler.program import (
    ABSOLUTE_MODES,
    DEFAULT_ENTRY_POINT,
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


# =============================================================================
# BASIC Header
# =============================================================================
# Loaded at $0800 this is the BASIC program `10 SYS 2062`, which jumps to
# the byte right after the header ($080E).
# =============================================================================

BASIC_HEADER: tuple[tuple[bytes, str], ...] = (
    (bytes([0x00, 0x0C, 0x08]), "New basic line"),
    (bytes([0x0A, 0x00, 0x9E, 0x20, 0x32, 0x30, 0x36, 0x32]), "10 SYS 2062"),
    (bytes([0x00, 0x00, 0x00]), "End basic program"),
)


# Operand syntax reserves the register names, so they cannot name addresses
REGISTER_NAMES = frozenset({"a", "x", "y"})


# =============================================================================
# Instruction Builder
# =============================================================================

def _check_name(name: str) -> None:
    if name.lower() in REGISTER_NAMES:
        raise ValueError(f"register name '{name}' cannot be used as an address name")


def _reference(name: str, offset: int = 0) -> AddressReference:
    return AddressReference(name, offset)


def _immediate(value: int) -> Immediate:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"immediate value {value} does not fit in a byte")
    return Immediate(ImmediateByte(value))


# Shortcut suffix -> factory taking (mnemonic, *args)
_SHORTCUTS: dict[str, Callable[..., AddressMode]] = {
    "": lambda mnemonic: Implied(),
    "acc": lambda mnemonic: Accumulator(),
    "imm": lambda mnemonic, value: _immediate(value),
    "imm_low": lambda mnemonic, name, offset=0: Immediate(ImmediateLow(_reference(name, offset))),
    "imm_high": lambda mnemonic, name, offset=0: Immediate(ImmediateHigh(_reference(name, offset))),
    "addr": lambda mnemonic, name: (
        Relative(_reference(name)) if is_branch_instruction(mnemonic)
        else Absolute(_reference(name))
    ),
    "addr_offs": lambda mnemonic, name, offset: Absolute(_reference(name, offset)),
    "addr_x": lambda mnemonic, name: AbsoluteX(_reference(name)),
    "addr_offs_x": lambda mnemonic, name, offset: AbsoluteX(_reference(name, offset)),
    "addr_y": lambda mnemonic, name: AbsoluteY(_reference(name)),
    "addr_offs_y": lambda mnemonic, name, offset: AbsoluteY(_reference(name, offset)),
    "ind": lambda mnemonic, name: Indirect(_reference(name)),
    "ind_x": lambda mnemonic, name: IndexedIndirect(_reference(name)),
    "ind_y": lambda mnemonic, name: IndirectIndexed(_reference(name)),
}


class InstructionBuilder:
    """
    Builds an instruction stream.

    Besides the generic methods below, any `<mnemonic>_<suffix>` shortcut
    from the module docstring is available.
    """

    def __init__(self):
        self._instructions: list[Instruction] = []
        self._pending_comments: list[str] = []

    # =========================================================================
    # Generic Construction
    # =========================================================================

    def instruction(
        self,
        mnemonic: str,
        mode: Optional[AddressMode] = None,
        location: Optional[SourceLocation] = None,
    ) -> "InstructionBuilder":
        """
        Add an opcode instruction.

        Raises:
            AttributeError: If the mnemonic is not a 6502 instruction
            AddressingModeError: If the mnemonic has no opcode for the mode
        """
        mode = mode if mode is not None else Implied()
        mnemonic = mnemonic.lower()
        definition = get_instruction_def(mnemonic)
        if definition is None:
            raise AttributeError(f"unknown 6502 instruction '{mnemonic}'")

        supported = definition.supports(mode.encoding)
        if isinstance(mode, ABSOLUTE_MODES):
            supported = supported or definition.supports(mode.zeropage_encoding)
        if not supported:
            raise AddressingModeError(
                mnemonic,
                mode.description,
                location,
                valid_modes=list(definition.encodings()),
            )

        return self._add(Instruction(Opcode(mnemonic), mode, location=location))

    def implied(self, mnemonic: str) -> "InstructionBuilder":
        return self.instruction(mnemonic, Implied())

    def accumulator(self, mnemonic: str) -> "InstructionBuilder":
        return self.instruction(mnemonic, Accumulator())

    def immediate(self, mnemonic: str, value: int) -> "InstructionBuilder":
        return self.instruction(mnemonic, _immediate(value))

    def immediate_low(self, mnemonic: str, name: str, offset: int = 0) -> "InstructionBuilder":
        return self.instruction(mnemonic, Immediate(ImmediateLow(_reference(name, offset))))

    def immediate_high(self, mnemonic: str, name: str, offset: int = 0) -> "InstructionBuilder":
        return self.instruction(mnemonic, Immediate(ImmediateHigh(_reference(name, offset))))

    def absolute(self, mnemonic: str, name: str, offset: int = 0) -> "InstructionBuilder":
        return self.instruction(mnemonic, Absolute(_reference(name, offset)))

    def absolute_x(self, mnemonic: str, name: str, offset: int = 0) -> "InstructionBuilder":
        return self.instruction(mnemonic, AbsoluteX(_reference(name, offset)))

    def absolute_y(self, mnemonic: str, name: str, offset: int = 0) -> "InstructionBuilder":
        return self.instruction(mnemonic, AbsoluteY(_reference(name, offset)))

    def relative(self, mnemonic: str, name: str) -> "InstructionBuilder":
        return self.instruction(mnemonic, Relative(_reference(name)))

    def indirect(self, mnemonic: str, name: str) -> "InstructionBuilder":
        return self.instruction(mnemonic, Indirect(_reference(name)))

    def indexed_indirect(self, mnemonic: str, name: str) -> "InstructionBuilder":
        return self.instruction(mnemonic, IndexedIndirect(_reference(name)))

    def indirect_indexed(self, mnemonic: str, name: str) -> "InstructionBuilder":
        return self.instruction(mnemonic, IndirectIndexed(_reference(name)))

    # =========================================================================
    # Labels, Data and Comments
    # =========================================================================

    def label(self, name: str, location: Optional[SourceLocation] = None) -> "InstructionBuilder":
        """Bind `name` to the address of the next instruction."""
        _check_name(name)
        return self._add(Instruction(Label(name), location=location))

    def raw(
        self,
        data: Union[bytes, Iterable[int]],
        location: Optional[SourceLocation] = None,
    ) -> "InstructionBuilder":
        """Splice literal bytes into the output."""
        data = bytes(data)
        if not data:
            raise ValueError("raw data must contain at least one byte")
        return self._add(Instruction(Raw(data), location=location))

    def comment(self, text: str) -> "InstructionBuilder":
        """
        Attach a comment to the last instruction.

        When nothing was added yet the comment goes to the next instruction.
        """
        if self._instructions:
            self._instructions[-1] = self._instructions[-1].with_comment(text)
        else:
            self._pending_comments.append(text)
        return self

    def add_basic_header(self) -> "InstructionBuilder":
        """
        Add the BASIC stub `10 SYS 2062`.

        Only meaningful with the default entry point $0800.
        """
        for data, text in BASIC_HEADER:
            self.raw(data).comment(text)
        return self

    def extend(self, instructions: Iterable[Instruction]) -> "InstructionBuilder":
        """Append already built instructions."""
        for instruction in instructions:
            self._add(instruction)
        return self

    def build(self) -> tuple[Instruction, ...]:
        """
        Return the instruction stream.

        Raises:
            ValueError: If comments are still waiting for an instruction
        """
        if self._pending_comments:
            raise ValueError(
                f"comment '{self._pending_comments[0]}' is not followed by an instruction"
            )
        return tuple(self._instructions)

    def __len__(self) -> int:
        return len(self._instructions)

    def _add(self, instruction: Instruction) -> "InstructionBuilder":
        for text in self._pending_comments:
            instruction = instruction.with_comment(text)
        self._pending_comments.clear()
        self._instructions.append(instruction)
        return self

    # =========================================================================
    # Mnemonic Shortcuts
    # =========================================================================

    def __getattr__(self, name: str) -> Callable[..., "InstructionBuilder"]:
        if name.startswith("_"):
            raise AttributeError(name)

        mnemonic, _, suffix = name.partition("_")
        factory = _SHORTCUTS.get(suffix)
        if factory is None or get_instruction_def(mnemonic) is None:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )

        def shortcut(*args) -> "InstructionBuilder":
            return self.instruction(mnemonic, factory(mnemonic, *args))

        shortcut.__name__ = name
        return shortcut


# =============================================================================
# Container Builders
# =============================================================================

class FunctionBuilder:
    """Builds a Function."""

    def __init__(self):
        self._name = ""
        self._documentation: list[str] = []
        self._instructions: tuple[Instruction, ...] = ()

    def name(self, name: str) -> "FunctionBuilder":
        self._name = name
        return self

    def doc(self, documentation: Union[str, Iterable[str]]) -> "FunctionBuilder":
        """Add documentation lines (emitted as comments in listings)."""
        if isinstance(documentation, str):
            documentation = [documentation]
        self._documentation.extend(documentation)
        return self

    def instructions(self, instructions: Iterable[Instruction]) -> "FunctionBuilder":
        self._instructions = tuple(instructions)
        return self

    def build(self) -> Function:
        return Function(self._name, self._instructions, tuple(self._documentation))


class ModuleBuilder:
    """Builds a Module."""

    def __init__(self):
        self._name = ""
        self._instructions: tuple[Instruction, ...] = ()
        self._functions: list[Function] = []

    def name(self, name: str) -> "ModuleBuilder":
        self._name = name
        return self

    def instructions(self, instructions: Iterable[Instruction]) -> "ModuleBuilder":
        self._instructions = tuple(instructions)
        return self

    def function(self, function: Function) -> "ModuleBuilder":
        self._functions.append(function)
        return self

    def build(self) -> Module:
        return Module(self._name, self._instructions, tuple(self._functions))


class ApplicationBuilder:
    """
    Builds an Application.

    Defines keep their declaration order; declaring a name twice is
    reported by the validator, not here.
    """

    def __init__(self):
        self._name = ""
        self._entry_point: Address = DEFAULT_ENTRY_POINT
        self._defines: list[Define] = []
        self._modules: list[Module] = []

    def name(self, name: str) -> "ApplicationBuilder":
        self._name = name
        return self

    def entry_point(self, entry_point: Address) -> "ApplicationBuilder":
        """
        Set the load address of the first byte.

        Keep the default $0800 when using add_basic_header(); the stub
        jumps to a fixed address.
        """
        if not 0 <= entry_point <= 0xFFFF:
            raise ValueError(f"entry point ${entry_point:X} is outside the 16-bit address space")
        self._entry_point = entry_point
        return self

    def define_address(self, name: str, address: Address) -> "ApplicationBuilder":
        """Declare a named constant address."""
        _check_name(name)
        if not 0 <= address <= 0xFFFF:
            raise ValueError(f"address ${address:X} of '{name}' is outside the 16-bit address space")
        self._defines.append(Define(name, address))
        return self

    def include_vic2_defines(self) -> "ApplicationBuilder":
        """Declare the VIC-II registers (VIC2_BORDER_COLOR, ...)."""
        return self._include(VIC2_DEFINES)

    def include_sid_defines(self) -> "ApplicationBuilder":
        """Declare the SID registers (SID_VOLUME_FC, ...)."""
        return self._include(SID_DEFINES)

    def module(self, module: Module) -> "ApplicationBuilder":
        self._modules.append(module)
        return self

    def build(self) -> Application:
        return Application(
            name=self._name,
            entry_point=self._entry_point,
            modules=tuple(self._modules),
            defines=tuple(self._defines),
        )

    def _include(self, defines: Iterable[RegisterDefine]) -> "ApplicationBuilder":
        for define in defines:
            self.define_address(define.name, define.address)
        return self
