"""
Validator
=========

Checks a laid-out application before any byte is emitted. Validation only
observes: neither the application nor the address book is modified.

Checks
------
Run application-wide, in this order:

1. Reference existence: every AddressReference names an entry of the
   address book (UnknownAddressNameError).
2. Name uniqueness: labels and defines share one flat namespace across
   all modules and functions. A second declaration of any name is an
   error (DuplicateAddressNameError).
3. Branch range: the displacement from the instruction after a branch to
   its target fits in a signed byte (BranchRangeError).
4. Zero page operands: (zp,X) and (zp),Y operands resolve below $0100,
   and so do absolute-family operands of instructions that only have a
   zero page form, like STX name,Y (AddressingModeError).
5. Forward references: an absolute-family operand laid out as 3 bytes
   before its label was known must not resolve into the zero page
   (ForwardReferenceError).

Checks 3 to 5 need resolved addresses and are skipped when check 1 found
unknown names.

Error Policy
------------
find_errors() runs every check and returns an ErrorCollector with all
violations in check order. validate() raises the first one, so a program
with both an unknown name and a duplicate label always reports the unknown
name.
"""

import difflib
import logging
from typing import Optional

from c64_assembler.errors import (
    AddressingModeError,
    BranchRangeError,
    DuplicateAddressNameError,
    ErrorCollector,
    ForwardReferenceError,
    SourceLocation,
    TooManyErrors,
    UnknownAddressNameError,
)
from c64_assembler.cpu import get_instruction_def
from c64_assembler.layout import Layout, use_zeropage
from c64_assembler.memory import is_zeropage
from c64_assembler.program import (
    ABSOLUTE_MODES,
    ZEROPAGE_POINTER_MODES,
    Application,
    Instruction,
    Label,
    Relative,
)

logger = logging.getLogger(__name__)

BRANCH_MIN = -128
BRANCH_MAX = 127


class Validator:
    """
    Runs the checks against an application and its layout.

    Example:
        layout = resolve_layout(application)
        Validator(application, layout).validate()
    """

    def __init__(self, application: Application, layout: Layout, max_errors: int = 100):
        self._application = application
        self._layout = layout
        self._book = layout.address_book
        self._max_errors = max_errors

    def validate(self) -> None:
        """
        Raise the first violation found.

        Raises:
            AssemblerError: The first collected error, in check order
        """
        errors = self.find_errors()
        first = errors.first()
        if first is not None:
            raise first

    def find_errors(self) -> ErrorCollector:
        """Run every check and collect all violations."""
        errors = ErrorCollector(max_errors=self._max_errors)
        try:
            self._check_references_exist(errors)
            names_resolve = not errors.has_errors()
            self._check_names_unique(errors)
            if names_resolve:
                self._check_branch_ranges(errors)
                self._check_zeropage_operands(errors)
                self._check_forward_references(errors)
        except TooManyErrors:
            logger.warning(
                f"Stopped validating after {self._max_errors} errors"
            )

        logger.debug(
            f"Validated '{self._application.name}': {errors.error_count()} errors"
        )
        return errors

    # =========================================================================
    # Checks
    # =========================================================================

    def _check_references_exist(self, errors: ErrorCollector) -> None:
        known = self._book.names()
        for instruction in self._application.iter_instructions():
            for reference in instruction.address_mode.references():
                if reference.name in self._book:
                    continue
                similar = difflib.get_close_matches(reference.name, known, n=3)
                errors.add(
                    UnknownAddressNameError(
                        reference.name, instruction.location, similar_names=similar
                    )
                )

    def _check_names_unique(self, errors: ErrorCollector) -> None:
        declared: dict[str, Optional[SourceLocation]] = {}

        for define in self._application.defines:
            if define.name in declared:
                errors.add(DuplicateAddressNameError(define.name))
            else:
                declared[define.name] = None

        for instruction in self._application.iter_instructions():
            operation = instruction.operation
            if not isinstance(operation, Label):
                continue
            if operation.name in declared:
                errors.add(
                    DuplicateAddressNameError(
                        operation.name,
                        instruction.location,
                        original_location=declared[operation.name],
                    )
                )
            else:
                declared[operation.name] = instruction.location

    def _check_branch_ranges(self, errors: ErrorCollector) -> None:
        for placement in self._layout.placements:
            mode = placement.instruction.address_mode
            if not isinstance(mode, Relative):
                continue
            offset = self._book.resolve(mode.reference) - placement.next_address
            if not BRANCH_MIN <= offset <= BRANCH_MAX:
                errors.add(
                    BranchRangeError(
                        str(mode.reference), offset, placement.instruction.location
                    )
                )

    def _check_zeropage_operands(self, errors: ErrorCollector) -> None:
        for instruction in self._application.iter_instructions():
            mode = instruction.address_mode
            if isinstance(mode, ZEROPAGE_POINTER_MODES):
                what = "pointer"
            elif isinstance(mode, ABSOLUTE_MODES) and not self._has_long_form(instruction):
                what = "operand"
            else:
                continue

            address = self._book.resolve(mode.reference)
            if is_zeropage(address):
                continue
            errors.add(
                AddressingModeError(
                    instruction.mnemonic or "?",
                    mode.description,
                    instruction.location,
                    reason=(
                        f"{what} '{mode.reference}' at ${address:04X} "
                        f"is not in the zero page"
                    ),
                )
            )

    @staticmethod
    def _has_long_form(instruction: Instruction) -> bool:
        definition = get_instruction_def(instruction.mnemonic or "")
        return definition is None or definition.supports(instruction.address_mode.encoding)

    def _check_forward_references(self, errors: ErrorCollector) -> None:
        for forward in self._layout.forward_references:
            instruction = forward.instruction
            if use_zeropage(instruction.mnemonic, instruction.address_mode, self._book):
                errors.add(
                    ForwardReferenceError(
                        forward.name,
                        self._book.resolve(instruction.address_mode.reference),
                        instruction.location,
                    )
                )


def find_errors(application: Application, layout: Layout) -> ErrorCollector:
    """Collect every violation; see Validator.find_errors."""
    return Validator(application, layout).find_errors()


def validate(application: Application, layout: Layout) -> None:
    """Raise the first violation; see Validator.validate."""
    Validator(application, layout).validate()
