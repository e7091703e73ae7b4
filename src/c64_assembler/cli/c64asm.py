"""
c64asm - C64 Assembler Command-Line Interface
=============================================

This module implements the command-line interface for the 6502 assembler.
It assembles Commodore 64 programs from the terminal into .PRG files that
load at the program's entry point.

Usage Examples
--------------
Basic assembly:
    $ c64asm border.c64s

With output file:
    $ c64asm border.c64s -o border.prg

Generate all output files:
    $ c64asm border.c64s -o border.prg -l border.asm -s border.sym

With defines and another load address:
    $ c64asm -D SCREEN=$0400 -e $C000 program.c64s

Verbose mode:
    $ c64asm -v border.c64s
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from c64_assembler import __version__
from c64_assembler.assembler import Assembler
from c64_assembler.cli.errors import ExitCode, handle_cli_exception
from c64_assembler.errors import AssemblerError


# =============================================================================
# Argument Parsing Helpers
# =============================================================================

def parse_number(text: str) -> int:
    """
    Parse a numeric argument.

    Accepts $FF, 0xFF or decimal.

    Raises:
        ValueError: If the text is not a number
    """
    text = text.strip()
    if text.startswith("$"):
        return int(text[1:], 16)
    if text.lower().startswith("0x"):
        return int(text[2:], 16)
    return int(text)


def parse_address(text: str) -> int:
    """Parse a numeric argument that must fit in the 16-bit address space."""
    value = parse_number(text)
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"${value:X} is outside the 16-bit address space")
    return value


def _entry_point_callback(ctx, param, value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_address(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _defines_callback(ctx, param, values: tuple[str, ...]) -> dict[str, int]:
    defines: dict[str, int] = {}
    for defn in values:
        if "=" not in defn:
            raise click.BadParameter(f"expected NAME=VALUE, got '{defn}'")
        name, value_str = defn.split("=", 1)
        try:
            defines[name.strip()] = parse_address(value_str)
        except ValueError as e:
            raise click.BadParameter(f"invalid value in '{defn}': {e}") from e
    return defines


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output PRG file (default: input.prg)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate dasm source listing",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-D", "--define",
    multiple=True,
    callback=_defines_callback,
    help="Define address (format: NAME=VALUE, can be repeated)",
)
@click.option(
    "-e", "--entry-point",
    callback=_entry_point_callback,
    help="Load address of the program (default: $0800)",
)
@click.option(
    "--hexdump",
    is_flag=True,
    help="Print a hexdump of the PRG bytes",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c64asm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    define: dict[str, int],
    entry_point: Optional[int],
    hexdump: bool,
    verbose: bool,
) -> None:
    """
    Assemble 6502 source code for the Commodore 64.

    INPUT_FILE is the assembly source file to assemble.

    The assembler produces a .PRG file: a 2-byte load address followed by
    the machine code, ready for an emulator or a real C64.

    \b
    Examples:
        c64asm border.c64s               # Outputs border.prg
        c64asm border.c64s -o out.prg    # Specify output file
        c64asm -D SCREEN=$0400 a.c64s    # Define address
        c64asm -e $C000 a.c64s           # Load at $C000
    """
    setup_logging(verbose)

    output_file = output if output is not None else input_file.with_suffix(".prg")
    asm = Assembler(defines=define, entry_point=entry_point)

    try:
        if verbose:
            click.echo(f"Assembling {input_file}...")

        try:
            asm.assemble_file(input_file)
        except AssemblerError:
            if asm.has_errors():
                click.echo(asm.get_error_report(), err=True)
                sys.exit(ExitCode.BUILD_ERROR)
            raise

        asm.write_prg(output_file)

        if listing:
            asm.write_listing(listing)

        if symbols:
            asm.write_symbols(symbols)

        if hexdump:
            click.echo(asm.get_hexdump())

        if verbose:
            layout = asm.get_layout()
            code = asm.get_code()
            click.echo(f"Assembly complete: {len(code)} bytes at ${layout.entry_point:04X}")
            click.echo(f"Defined {len(asm.get_symbols())} symbols")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
