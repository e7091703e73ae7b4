"""
Program Tree
============

The in-memory description of a C64 program. The tree is produced by the
builders (or by the textual front-end) and is never modified afterwards:
every class here is a frozen dataclass holding tuples.

Structure
---------
    Application
    ├── defines: named constant addresses
    └── modules
        ├── instructions      (module-private helper code)
        └── functions
            └── instructions

Traversal Order
---------------
Addresses are assigned in this order, and every consumer (layout,
validator, generators) walks the tree through instruction_streams() so the
order can never diverge:

    for module in modules:
        module.instructions
        for function in module.functions:
            function.instructions

Addressing Modes
----------------
Each mode is its own class carrying only what it needs:

| Class           | Syntax      | Payload                        |
|-----------------|-------------|--------------------------------|
| Implied         | rts         | -                              |
| Accumulator     | asl         | -                              |
| Immediate       | #$00 #<n #>n| ImmediateByte/Low/High         |
| Absolute        | n           | AddressReference               |
| AbsoluteX       | n,x         | AddressReference               |
| AbsoluteY       | n,y         | AddressReference               |
| Relative        | bne n       | AddressReference               |
| Indirect        | (n)         | AddressReference               |
| IndexedIndirect | (n,x)       | AddressReference (zero page)   |
| IndirectIndexed | (n),y       | AddressReference (zero page)   |
"""

from dataclasses import dataclass, field
from typing import ClassVar, Iterator, Optional, Union

from c64_assembler.errors import SourceLocation
from c64_assembler.memory import Address, AddressReference


# =============================================================================
# Addressing Modes
# =============================================================================

class AddressMode:
    """
    Base class of all addressing modes.

    Class attributes:
        description: Human readable name for messages
        encoding: InstructionDef field holding the opcode
        zeropage_encoding: InstructionDef field of the discounted form, if
                           the mode has one
    """
    description: ClassVar[str] = ""
    encoding: ClassVar[str] = ""
    zeropage_encoding: ClassVar[Optional[str]] = None

    def references(self) -> tuple[AddressReference, ...]:
        """Address references used by this operand."""
        return ()


@dataclass(frozen=True)
class Implied(AddressMode):
    description: ClassVar[str] = "implied"
    encoding: ClassVar[str] = "implied"


@dataclass(frozen=True)
class Accumulator(AddressMode):
    description: ClassVar[str] = "accumulator"
    encoding: ClassVar[str] = "accumulator"


@dataclass(frozen=True)
class ImmediateByte:
    """Literal byte operand: #$00."""
    value: int


@dataclass(frozen=True)
class ImmediateLow:
    """Low byte of a resolved address: #<name."""
    reference: AddressReference


@dataclass(frozen=True)
class ImmediateHigh:
    """High byte of a resolved address: #>name."""
    reference: AddressReference


ImmediateValue = Union[ImmediateByte, ImmediateLow, ImmediateHigh]


@dataclass(frozen=True)
class Immediate(AddressMode):
    value: ImmediateValue

    description: ClassVar[str] = "immediate"
    encoding: ClassVar[str] = "immediate"

    def references(self) -> tuple[AddressReference, ...]:
        if isinstance(self.value, (ImmediateLow, ImmediateHigh)):
            return (self.value.reference,)
        return ()


@dataclass(frozen=True)
class _ReferenceMode(AddressMode):
    reference: AddressReference

    def references(self) -> tuple[AddressReference, ...]:
        return (self.reference,)


@dataclass(frozen=True)
class Absolute(_ReferenceMode):
    description: ClassVar[str] = "absolute"
    encoding: ClassVar[str] = "absolute"
    zeropage_encoding: ClassVar[Optional[str]] = "zeropage"


@dataclass(frozen=True)
class AbsoluteX(_ReferenceMode):
    description: ClassVar[str] = "absolute,x"
    encoding: ClassVar[str] = "absolute_x"
    zeropage_encoding: ClassVar[Optional[str]] = "zeropage_x"


@dataclass(frozen=True)
class AbsoluteY(_ReferenceMode):
    description: ClassVar[str] = "absolute,y"
    encoding: ClassVar[str] = "absolute_y"
    zeropage_encoding: ClassVar[Optional[str]] = "zeropage_y"


@dataclass(frozen=True)
class Relative(_ReferenceMode):
    description: ClassVar[str] = "relative"
    encoding: ClassVar[str] = "relative"


@dataclass(frozen=True)
class Indirect(_ReferenceMode):
    description: ClassVar[str] = "indirect"
    encoding: ClassVar[str] = "indirect"


@dataclass(frozen=True)
class IndexedIndirect(_ReferenceMode):
    description: ClassVar[str] = "(indirect,x)"
    encoding: ClassVar[str] = "indexed_indirect"


@dataclass(frozen=True)
class IndirectIndexed(_ReferenceMode):
    description: ClassVar[str] = "(indirect),y"
    encoding: ClassVar[str] = "indirect_indexed"


# Modes with a zero page discount
ABSOLUTE_MODES = (Absolute, AbsoluteX, AbsoluteY)

# Modes whose pointer operand must live in the zero page
ZEROPAGE_POINTER_MODES = (IndexedIndirect, IndirectIndexed)


# =============================================================================
# Operations
# =============================================================================

@dataclass(frozen=True)
class Opcode:
    """A real CPU instruction, looked up in the opcode table."""
    mnemonic: str


@dataclass(frozen=True)
class Label:
    """Zero-size marker binding a name to the current address."""
    name: str


@dataclass(frozen=True)
class Raw:
    """Literal bytes spliced into the output."""
    data: bytes


Operation = Union[Opcode, Label, Raw]


# =============================================================================
# Instructions and Containers
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    Operation plus addressing mode.

    Attributes:
        operation: Opcode, Label or Raw
        address_mode: Operand encoding (Implied for labels and raw data)
        comments: Free text, only used by the listing generator
        location: Source position when read from text (not compared)
    """
    operation: Operation
    address_mode: AddressMode = field(default_factory=Implied)
    comments: tuple[str, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False)

    @property
    def mnemonic(self) -> Optional[str]:
        if isinstance(self.operation, Opcode):
            return self.operation.mnemonic
        return None

    def with_comment(self, comment: str) -> "Instruction":
        return Instruction(
            self.operation,
            self.address_mode,
            self.comments + (comment,),
            self.location,
        )


@dataclass(frozen=True)
class Function:
    """
    Replaceable public part of a module.

    A module can be assembled with different variations of a function
    (size optimized, speed optimized, work in progress...).
    """
    name: str = ""
    instructions: tuple[Instruction, ...] = ()
    documentation: tuple[str, ...] = ()


@dataclass(frozen=True)
class Module:
    """Reusable group of code, shared between applications."""
    name: str = ""
    instructions: tuple[Instruction, ...] = ()
    functions: tuple[Function, ...] = ()


@dataclass(frozen=True)
class Define:
    """Named constant address."""
    name: str
    address: Address


@dataclass(frozen=True)
class InstructionStream:
    """One stream in traversal order, with the containers it belongs to."""
    module: Module
    function: Optional[Function]
    instructions: tuple[Instruction, ...]


DEFAULT_ENTRY_POINT: Address = 0x0800


@dataclass(frozen=True)
class Application:
    """
    Root of the program tree.

    Attributes:
        name: Only used in listing comments
        entry_point: Load address of the first byte (default $0800, the
                     start of BASIC memory)
        modules: Modules in layout order
        defines: Named constant addresses
    """
    name: str = ""
    entry_point: Address = DEFAULT_ENTRY_POINT
    modules: tuple[Module, ...] = ()
    defines: tuple[Define, ...] = ()

    def instruction_streams(self) -> Iterator[InstructionStream]:
        """Yield every instruction stream in layout order."""
        for module in self.modules:
            yield InstructionStream(module, None, module.instructions)
            for function in module.functions:
                yield InstructionStream(module, function, function.instructions)

    def iter_instructions(self) -> Iterator[Instruction]:
        """Yield every instruction in layout order."""
        for stream in self.instruction_streams():
            yield from stream.instructions
