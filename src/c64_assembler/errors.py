"""
C64 Assembler Error Hierarchy
=============================

This module defines the exception hierarchy for the whole assembler.
All exceptions inherit from C64AssemblerError, allowing callers to catch
every assembler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
C64AssemblerError (base)
├── AssemblerError (user-facing problems in the program)
│   ├── AssemblySyntaxError - syntax errors in textual source
│   ├── UnknownAddressNameError - reference to an undeclared address name
│   ├── DuplicateAddressNameError - address name declared multiple times
│   ├── AddressingModeError - mode not usable for an instruction/operand
│   ├── BranchRangeError - relative branch target too far away
│   ├── ForwardReferenceError - forward reference laid out with the wrong size
│   └── TooManyErrors - error collection limit reached
└── InternalCompilerError - defect in the opcode table or program model

Design Philosophy
-----------------
User-facing errors capture the offending name and, when the program was
read from text, the source location. InternalCompilerError is deliberately
outside of AssemblerError: it signals a bug in the assembler or in the
data handed to it, never a mistake in the user's program.

Error messages follow this format:
    filename:line:column: error: description
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class C64AssemblerError(Exception):
    """
    Base exception for all assembler errors.

        try:
            Assembler().assemble(application)
        except C64AssemblerError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source text for error reporting.

    Only instructions read through the textual front-end carry a location;
    programs built with the builders have none.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(C64AssemblerError):
    """
    Base exception for problems found in the user's program.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            border.c64s:7:9: error: unknown address name 'VIC2_BORDR_COLOR'
                sta VIC2_BORDR_COLOR
                    ^
            hint: did you mean 'VIC2_BORDER_COLOR'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in textual assembler source.

    Examples:
        - Invalid character in source
        - Unterminated string literal
        - Unknown mnemonic or directive
        - Numeric literal used where an address name is required
    """
    pass


class UnknownAddressNameError(AssemblerError):
    """
    An address reference names a symbol absent from the address book.

    Raised by the validator before any encoding is attempted. The
    validator passes the names it knows so typos get a suggestion.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        similar_names: Optional[list[str]] = None,
    ):
        self.name = name
        self.similar_names = similar_names or []

        hint = None
        if self.similar_names:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_names[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown address name '{name}'",
            location=location,
            hint=hint,
        )


class DuplicateAddressNameError(AssemblerError):
    """
    An address name is declared more than once in the application.

    Labels live in one flat namespace across all modules and functions,
    shared with the application's defines.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
    ):
        self.name = name
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{name}' was first declared at {original_location}"

        super().__init__(
            f"duplicate address name '{name}'",
            location=location,
            hint=hint,
        )


class AddressingModeError(AssemblerError):
    """
    Addressing mode cannot be used.

    Raised when an instruction is built with a mode the 6502 does not
    support for its mnemonic (STA with an immediate operand), or when a
    pointer operand of an indexed-indirect / indirect-indexed instruction
    does not live in the zero page.
    """

    def __init__(
        self,
        mnemonic: str,
        mode: str,
        location: Optional[SourceLocation] = None,
        valid_modes: Optional[list[str]] = None,
        reason: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.mode = mode
        self.valid_modes = valid_modes or []

        hint = None
        if self.valid_modes:
            hint = f"{mnemonic} supports: {', '.join(self.valid_modes)}"

        message = reason or f"'{mnemonic}' does not support {mode} addressing mode"
        super().__init__(message, location=location, hint=hint)


class BranchRangeError(AssemblerError):
    """
    Branch target is out of range.

    6502 branch instructions use PC-relative addressing with a signed
    8-bit displacement, limiting the range to -128 to +127 bytes from the
    instruction following the branch. A truncated displacement would jump
    somewhere else silently, so this is always reported.

    Workaround is an inverted branch over a JMP:
           BNE skip
           JMP far_target
       skip:
    """

    def __init__(
        self,
        target: str,
        offset: int,
        location: Optional[SourceLocation] = None,
    ):
        self.target = target
        self.offset = offset

        direction = "forward" if offset > 0 else "backward"
        hint = (
            f"branch offset is {offset}, but range is -128 to +127; "
            f"consider using JMP for {direction} references"
        )

        super().__init__(
            f"branch target '{target}' is out of range (offset: {offset})",
            location=location,
            hint=hint,
        )


class ForwardReferenceError(AssemblerError):
    """
    A forward reference resolved to a zero-page address.

    The layout pass sizes absolute operands whose label is not declared
    yet as 3-byte instructions. When such a label ends up below $0100
    (only possible with an entry point inside the zero page) the encoder
    would pick the 2-byte form and shift every following address.
    """

    def __init__(
        self,
        name: str,
        address: int,
        location: Optional[SourceLocation] = None,
    ):
        self.name = name
        self.address = address

        super().__init__(
            f"forward reference to '{name}' resolves to zero page address ${address:04X}",
            location=location,
            hint="declare the label before its first use or move the entry point above $00FF",
        )


class InternalCompilerError(C64AssemblerError):
    """
    The assembler reached a state it cannot encode.

    Indicates a defect in the opcode table or in the program data model
    (for example an operation/mode pair without an opcode), not a user
    error. Never swallowed: corrupt output is worse than no output.
    """
    pass


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    The validator uses this to run every check and report all problems
    together, which helps users fix several issues in one go.

    Example:
        collector = ErrorCollector(max_errors=100)
        collector.add(UnknownAddressNameError("missing"))

        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.errors: list[AssemblerError] = []
        self.max_errors = max_errors

    def add(self, error: AssemblerError) -> None:
        """
        Add an error to the collection.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.errors.append(error)
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(f"Too many errors ({self.max_errors}), stopping")

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def first(self) -> Optional[AssemblerError]:
        """Return the first collected error, if any."""
        return self.errors[0] if self.errors else None

    def report(self) -> str:
        """Format all errors for display."""
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        error_word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {error_word}")

        return "\n".join(lines)


class TooManyErrors(AssemblerError):
    """Raised when too many errors have been encountered."""

    def __init__(self, message: str = "Too many errors"):
        super().__init__(message)
