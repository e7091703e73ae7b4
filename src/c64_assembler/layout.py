"""
Layout Resolver
===============

Assigns an address to every label and a size to every instruction.

The resolver makes a single left-to-right scan over the application in
traversal order (see program.Application.instruction_streams) with a
running address counter starting at the entry point:

- Label: record `name -> counter` in the address book, size 0
- Raw: size is the number of literal bytes
- Opcode: size follows from the addressing mode

Instruction Sizes
-----------------
| Mode                              | Size |
|-----------------------------------|------|
| Implied, Accumulator              | 1    |
| Immediate, Relative               | 2    |
| IndexedIndirect, IndirectIndexed  | 2    |
| Indirect                          | 3    |
| Absolute, AbsoluteX, AbsoluteY    | 2/3  |

An absolute-family instruction takes the 2 byte zero page form only when
its operand address is already known, lies below $0100 and the opcode
table has the matching zero page opcode. The binary generator applies the
same rule through use_zeropage(), so layout sizes and emitted sizes agree.

Forward References
------------------
A label used by an absolute-family operand before its declaration is not
in the book yet. Such operands are laid out with the 3 byte form and
recorded in Layout.forward_references. Code labels sit at or above the
entry point, so they can only end up in the zero page when the entry
point itself is there; the validator rejects that case.

The resolver never fails. Unknown names, duplicates and branch ranges are
the validator's business.
"""

from dataclasses import dataclass, field
import logging

from c64_assembler.cpu import get_instruction_def
from c64_assembler.memory import Address, AddressBook, is_zeropage
from c64_assembler.program import (
    ABSOLUTE_MODES,
    Absolute,
    AbsoluteX,
    AbsoluteY,
    Accumulator,
    AddressMode,
    Application,
    Immediate,
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


# =============================================================================
# Layout Result
# =============================================================================

@dataclass(frozen=True)
class Placement:
    """Address and encoded size of one instruction."""
    instruction: Instruction
    address: Address
    size: int

    @property
    def next_address(self) -> Address:
        return self.address + self.size


@dataclass(frozen=True)
class ForwardReference:
    """Absolute-family operand naming a label not yet declared at scan time."""
    name: str
    instruction: Instruction
    address: Address


@dataclass(frozen=True)
class Layout:
    """
    Result of the layout pass.

    Attributes:
        address_book: Frozen book holding defines and label addresses
        placements: One entry per instruction, in traversal order
        forward_references: Absolute-family operands laid out before their
                            label was known
        entry_point: Address of the first byte
        end_address: Address one past the last byte
    """
    address_book: AddressBook
    placements: tuple[Placement, ...] = ()
    forward_references: tuple[ForwardReference, ...] = ()
    entry_point: Address = 0
    end_address: Address = 0
    labels: tuple[str, ...] = field(default=(), compare=False)

    @property
    def size(self) -> int:
        """Number of code bytes, without the load address header."""
        return self.end_address - self.entry_point

    def symbols(self) -> dict[str, Address]:
        """Label addresses in declaration order."""
        return {name: self.address_book.lookup(name) for name in self.labels}


# =============================================================================
# Size Rules
# =============================================================================

FIXED_SIZES: dict[type, int] = {
    Implied: 1,
    Accumulator: 1,
    Immediate: 2,
    Relative: 2,
    IndexedIndirect: 2,
    IndirectIndexed: 2,
    Indirect: 3,
}


def use_zeropage(mnemonic: str, mode: AddressMode, book: AddressBook) -> bool:
    """
    Decide whether an instruction takes its zero page form.

    True only for absolute-family modes whose operand is in the book,
    resolves below $0100 and whose mnemonic has the zero page opcode.
    """
    if not isinstance(mode, ABSOLUTE_MODES):
        return False
    definition = get_instruction_def(mnemonic)
    if definition is None or not definition.supports(mode.zeropage_encoding):
        return False
    if mode.reference.name not in book:
        return False
    return is_zeropage(book.resolve(mode.reference))


def instruction_size(instruction: Instruction, book: AddressBook) -> int:
    """Encoded size of an instruction given the names known so far."""
    operation = instruction.operation
    if isinstance(operation, Label):
        return 0
    if isinstance(operation, Raw):
        return len(operation.data)

    mode = instruction.address_mode
    if isinstance(mode, ABSOLUTE_MODES):
        return 2 if use_zeropage(operation.mnemonic, mode, book) else 3
    try:
        return FIXED_SIZES[type(mode)]
    except KeyError:
        raise TypeError(f"unknown addressing mode {mode!r}") from None


# =============================================================================
# Resolver
# =============================================================================

class LayoutResolver:
    """
    Single pass layout of an application.

    Example:
        resolver = LayoutResolver(application)
        layout = resolver.resolve()
        layout.address_book.lookup("main_loop")
    """

    def __init__(self, application: Application):
        self._application = application
        self._book = AddressBook()
        self._pc: Address = application.entry_point
        self._placements: list[Placement] = []
        self._forward: list[ForwardReference] = []
        self._labels: list[str] = []

    def resolve(self) -> Layout:
        """Run the scan and return the frozen layout."""
        application = self._application
        for define in application.defines:
            self._book.define(define.name, define.address)

        for stream in application.instruction_streams():
            for instruction in stream.instructions:
                self._place(instruction)

        layout = Layout(
            address_book=self._book.freeze(),
            placements=tuple(self._placements),
            forward_references=tuple(self._forward),
            entry_point=application.entry_point,
            end_address=self._pc,
            labels=tuple(dict.fromkeys(self._labels)),
        )
        logger.debug(
            f"Layout of '{application.name}': ${layout.entry_point:04X}-"
            f"${layout.end_address:04X} ({layout.size} bytes, "
            f"{len(self._labels)} labels, {len(self._forward)} forward references)"
        )
        return layout

    def _place(self, instruction: Instruction) -> None:
        operation = instruction.operation

        if isinstance(operation, Label):
            self._book.define(operation.name, self._pc)
            self._labels.append(operation.name)
        elif isinstance(operation, Opcode):
            self._note_forward_reference(instruction)

        size = instruction_size(instruction, self._book)
        self._placements.append(Placement(instruction, self._pc, size))
        self._pc += size

    def _note_forward_reference(self, instruction: Instruction) -> None:
        mode = instruction.address_mode
        if isinstance(mode, (Absolute, AbsoluteX, AbsoluteY)):
            name = mode.reference.name
            if name not in self._book:
                self._forward.append(ForwardReference(name, instruction, self._pc))


def resolve_layout(application: Application) -> Layout:
    """Lay out an application; see LayoutResolver."""
    return LayoutResolver(application).resolve()
