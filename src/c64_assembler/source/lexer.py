"""
C64 Assembler Source Lexer
==========================

Converts assembler source text into tokens for the parser.

Token Types
-----------
- IDENTIFIER: Mnemonics, labels, address names
- DIRECTIVE: Names starting with a dot (.module, .byte, ...)
- NUMBER: Decimal, hex ($FF/0xFF) and binary (%1010/0b1010)
- STRING: Double-quoted strings ("main")
- Delimiters: # < > + - , : ( ) =
- NEWLINE / EOF

Number Formats
--------------
| Format      | Prefix   | Example   | Value |
|-------------|----------|-----------|-------|
| Decimal     | (none)   | 123       | 123   |
| Hexadecimal | $ or 0x  | $7F, 0x7F | 127   |
| Binary      | % or 0b  | %1010     | 10    |

Comments start with a semicolon and run to the end of the line.

Example
-------
>>> from c64_assembler.source.lexer import Lexer
>>> for token in Lexer("loop: lda #$41 ; load 'A'").tokenize():
...     print(token)
Token(IDENTIFIER, 'loop', 1:1)
Token(COLON, ':', 1:5)
Token(IDENTIFIER, 'lda', 1:7)
Token(HASH, '#', 1:11)
Token(NUMBER, $41, 1:12)
Token(EOF, 1:26)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Union
import string

from c64_assembler.errors import AssemblySyntaxError, SourceLocation


# =============================================================================
# Tokens
# =============================================================================

class TokenType(Enum):
    """Lexical categories of the source language."""

    NEWLINE = auto()
    EOF = auto()

    IDENTIFIER = auto()
    DIRECTIVE = auto()
    NUMBER = auto()
    STRING = auto()

    HASH = auto()        # immediate operand
    LT = auto()          # low byte
    GT = auto()          # high byte
    PLUS = auto()
    MINUS = auto()
    COMMA = auto()
    COLON = auto()
    LPAREN = auto()
    RPAREN = auto()
    EQUALS = auto()


@dataclass(frozen=True)
class Token:
    """
    A single token with its source position.

    Attributes:
        type: The TokenType classification
        value: String for names and strings, int for numbers
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: Union[str, int, None]
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, ${self.value:X}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer
# =============================================================================

class Lexer:
    """
    Tokenizes assembler source.

    Usage:
        tokens = list(Lexer(source_text, "border.c64s").tokenize())
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    SINGLE_CHAR_TOKENS = {
        "#": TokenType.HASH,
        "<": TokenType.LT,
        ">": TokenType.GT,
        "+": TokenType.PLUS,
        "-": TokenType.MINUS,
        ",": TokenType.COMMA,
        ":": TokenType.COLON,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
        "=": TokenType.EQUALS,
    }

    ESCAPE_SEQUENCES = {
        "n": "\n",
        "t": "\t",
        "\\": "\\",
        '"': '"',
    }

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Args:
            source: The source text to tokenize
            filename: Name of the source file (for error messages)
        """
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source text.

        Raises:
            AssemblySyntaxError: If invalid syntax is encountered
        """
        while not self._at_end():
            char = self._peek()
            if char in " \t\r":
                self._advance()
                continue
            if char == ";":
                self._skip_comment()
                continue
            yield self._scan_token()

        yield self._make_token(TokenType.EOF, None)

    def source_line(self, line: int) -> str:
        """Return the text of a source line (1-indexed)."""
        lines = self.source.splitlines()
        if 1 <= line <= len(lines):
            return lines[line - 1]
        return ""

    # =========================================================================
    # Character Access
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, empty at end of source."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1
        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1
        return char

    def _skip_comment(self) -> None:
        while not self._at_end() and self._peek() != "\n":
            self._advance()

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: Union[str, int, None],
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
        )

    def _error(self, message: str) -> AssemblySyntaxError:
        """Syntax error at the current position, with the line for context."""
        location = SourceLocation(self.filename, self._line, self._column)
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        source_line = self.source[self._line_start_pos:line_end]
        return AssemblySyntaxError(message, location, source_line=source_line)

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_line = self._line
        start_column = self._column
        char = self._peek()

        if char == "\n":
            self._advance()
            return self._make_token(TokenType.NEWLINE, None, start_line, start_column)

        if char in self.IDENT_START:
            name = self._scan_name()
            return self._make_token(TokenType.IDENTIFIER, name, start_line, start_column)

        if char == ".":
            self._advance()
            if not self._peek() or self._peek() not in self.IDENT_START:
                raise self._error("expected directive name after '.'")
            name = self._scan_name()
            return self._make_token(TokenType.DIRECTIVE, name.lower(), start_line, start_column)

        if char.isdigit():
            value = self._scan_decimal_number()
            return self._make_token(TokenType.NUMBER, value, start_line, start_column)

        if char == "$":
            self._advance()
            value = self._scan_digits(string.hexdigits, 16, "hexadecimal")
            return self._make_token(TokenType.NUMBER, value, start_line, start_column)

        if char == "%":
            self._advance()
            value = self._scan_digits("01", 2, "binary")
            return self._make_token(TokenType.NUMBER, value, start_line, start_column)

        if char == '"':
            value = self._scan_string()
            return self._make_token(TokenType.STRING, value, start_line, start_column)

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(
                self.SINGLE_CHAR_TOKENS[char], char, start_line, start_column
            )

        raise self._error(f"unexpected character '{char}'")

    def _scan_name(self) -> str:
        chars = []
        # '' is in every string, so check for end of source first
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        return "".join(chars)

    def _scan_decimal_number(self) -> int:
        """Decimal number, or hex/binary with a 0x/0b prefix."""
        if self._peek() == "0":
            prefix = self._peek(1).lower()
            if prefix == "x":
                self._advance()
                self._advance()
                return self._scan_digits(string.hexdigits, 16, "hexadecimal")
            if prefix == "b":
                self._advance()
                self._advance()
                return self._scan_digits("01", 2, "binary")

        return self._scan_digits(string.digits, 10, "decimal")

    def _scan_digits(self, digits: str, base: int, kind: str) -> int:
        chars = []
        while self._peek() and self._peek() in digits:
            chars.append(self._advance())
        if not chars:
            raise self._error(f"expected {kind} digits")
        if self._peek() and self._peek() in self.IDENT_CHARS:
            raise self._error(f"invalid character '{self._peek()}' in {kind} number")
        return int("".join(chars), base)

    def _scan_string(self) -> str:
        self._advance()  # opening "

        chars = []
        while not self._at_end():
            char = self._peek()
            if char == '"':
                self._advance()
                return "".join(chars)
            if char == "\n":
                break
            if char == "\\":
                self._advance()
                escaped = self._advance()
                chars.append(self.ESCAPE_SEQUENCES.get(escaped, escaped))
            else:
                chars.append(self._advance())

        raise self._error("unterminated string literal")
