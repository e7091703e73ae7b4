"""
C64 Assembler - Main Interface
==============================

The Assembler class runs the whole pipeline for one application:

    source text --parse--> Application --layout--> Layout
                --validate--> --generate--> .PRG bytes / dasm listing

Example Usage
-------------
>>> from c64_assembler import Assembler
>>>
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... .include_vic2_defines
... .module "main"
...     lda #$00
...     sta VIC2_BORDER_COLOR
...     rts
... ''')
>>> code.hex()
'0008a9008d20d060'
>>> asm.write_prg("border.prg")

Applications built with the builders are assembled with assemble().

Command-Line Usage
------------------
    $ c64asm border.c64s -o border.prg -l border.asm -s border.sym

See c64_assembler.cli.c64asm for all options.
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional, Union
import logging

from c64_assembler.errors import AssemblerError, ErrorCollector
from c64_assembler.generator import DasmGenerator, ProgramGenerator, format_hexdump
from c64_assembler.layout import Layout, resolve_layout
from c64_assembler.memory import Address
from c64_assembler.program import Application, Define
from c64_assembler.source import parse_source
from c64_assembler.validator import Validator

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main C64 assembler class.

    Attributes:
        defines: Extra named addresses added to every application
        entry_point: Overrides the application's entry point when set
    """

    def __init__(
        self,
        defines: Optional[dict[str, Address]] = None,
        entry_point: Optional[Address] = None,
        max_errors: int = 100,
    ):
        """
        Initialize the assembler.

        Args:
            defines: Named addresses declared before the application's own
            entry_point: Load address overriding the application's
            max_errors: Validation errors collected before giving up
        """
        self.defines: dict[str, Address] = dict(defines or {})
        self.entry_point = entry_point
        self._max_errors = max_errors

        self._application: Optional[Application] = None
        self._layout: Optional[Layout] = None
        self._code: bytes = b""
        self._errors = ErrorCollector(max_errors=max_errors)

    def define_symbol(self, name: str, address: Address) -> None:
        """Pre-define a named address."""
        self.defines[name] = address

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble(self, application: Application) -> bytes:
        """
        Lay out, validate and encode an application.

        Args:
            application: Program tree built with the builders or the parser

        Returns:
            .PRG bytes, load address header included

        Raises:
            AssemblerError: The first validation error (all of them are
                            available through get_error_report())
            InternalCompilerError: If the program tree cannot be encoded
        """
        self._reset()
        application = self._configure(application)
        self._application = application

        layout = resolve_layout(application)
        self._layout = layout

        self._errors = Validator(application, layout, self._max_errors).find_errors()
        if self._errors.has_errors():
            logger.debug(f"Validation failed with {self._errors.error_count()} errors")
            raise self._errors.first()

        self._code = ProgramGenerator().generate(application, layout)
        logger.info(
            f"Assembled '{application.name}': {len(self._code)} bytes "
            f"at ${application.entry_point:04X}"
        )
        return self._code

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Parse and assemble source text.

        Raises:
            AssemblySyntaxError: If the source is malformed
            AssemblerError: If validation fails
        """
        self._reset()
        application = parse_source(source, filename)
        return self.assemble(application)

    def assemble_file(self, filepath: Union[str, Path]) -> bytes:
        """
        Parse and assemble a source file.

        Raises:
            FileNotFoundError: If the source file does not exist
        """
        filepath = Path(filepath)
        logger.debug(f"Assembling {filepath}")
        source = filepath.read_text(encoding="utf-8")
        return self.assemble_string(source, str(filepath))

    def _reset(self) -> None:
        """Forget the results of the previous run."""
        self._application = None
        self._layout = None
        self._code = b""
        self._errors = ErrorCollector(max_errors=self._max_errors)

    def _configure(self, application: Application) -> Application:
        """Apply the assembler's defines and entry point override."""
        if self.defines:
            extra = tuple(Define(name, address) for name, address in self.defines.items())
            application = replace(application, defines=extra + application.defines)
        if self.entry_point is not None:
            application = replace(application, entry_point=self.entry_point)
        return application

    # =========================================================================
    # Results
    # =========================================================================

    def _require_application(self) -> Application:
        if self._application is None:
            raise AssemblerError("nothing has been assembled yet")
        return self._application

    def get_code(self) -> bytes:
        """The .PRG bytes of the last successful assembly."""
        return self._code

    def get_layout(self) -> Optional[Layout]:
        """Layout of the last assembled application."""
        return self._layout

    def get_symbols(self) -> dict[str, Address]:
        """All named addresses: defines and labels."""
        if self._layout is None:
            return {}
        return dict(self._layout.address_book.items())

    def get_listing(self) -> str:
        """Dasm source for the last assembled application."""
        return DasmGenerator().generate(self._require_application())

    def get_hexdump(self) -> str:
        """Hexdump of the .PRG bytes."""
        return format_hexdump(self._code)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def write_prg(self, filepath: Union[str, Path]) -> None:
        """Write the .PRG file (load address + machine code)."""
        Path(filepath).write_bytes(self._code)
        logger.info(f"Wrote {len(self._code)} bytes to {filepath}")

    def write_listing(self, filepath: Union[str, Path]) -> None:
        """Write the dasm source listing."""
        Path(filepath).write_text(self.get_listing(), encoding="utf-8")
        logger.info(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: Union[str, Path]) -> None:
        """
        Write the symbol table.

        Format: name address (one per line, sorted by name)
        """
        with open(filepath, "w", encoding="utf-8") as f:
            f.write("# Symbol table\n")
            f.write("# Generated by c64asm\n")
            for name, address in sorted(self.get_symbols().items()):
                f.write(f"{name} ${address:04X}\n")
        logger.info(f"Wrote symbols to {filepath}")

    # =========================================================================
    # Error Handling
    # =========================================================================

    def has_errors(self) -> bool:
        """Check if the last assembly produced validation errors."""
        return self._errors.has_errors()

    def get_error_report(self) -> str:
        """Formatted report of every validation error."""
        return self._errors.report()


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(application: Application) -> bytes:
    """
    Convenience function to assemble an application.

    Raises:
        AssemblerError: If validation fails
    """
    return Assembler().assemble(application)


def assemble_string(source: str, filename: str = "<input>") -> bytes:
    """Convenience function to assemble source text."""
    return Assembler().assemble_string(source, filename)


def assemble_file(filepath: Union[str, Path]) -> bytes:
    """Convenience function to assemble a source file."""
    return Assembler().assemble_file(filepath)
