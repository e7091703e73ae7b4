# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the assembler source tokenizer.
#
# Test coverage includes:
#   - Number formats: decimal, hexadecimal ($ and 0x), binary (% and 0b)
#   - String literals with escape sequences
#   - Identifiers, directives and delimiters
#   - Comments and whitespace handling
#   - Position tracking
#   - Error conditions
# =============================================================================

import pytest

from c64_assembler.errors import AssemblySyntaxError
from c64_assembler.source.lexer import Lexer, TokenType


# =============================================================================
# Helper Function
# =============================================================================

def tokenize(source: str) -> list:
    """Tokenize and drop the trailing EOF token."""
    return [t for t in Lexer(source, "<test>").tokenize() if t.type != TokenType.EOF]


def types(source: str) -> list:
    return [t.type for t in tokenize(source)]


# =============================================================================
# Numbers
# =============================================================================

class TestNumbers:
    """Test numeric literal formats."""

    @pytest.mark.parametrize("text,value", [
        ("0", 0),
        ("123", 123),
        ("$FF", 0xFF),
        ("$d020", 0xD020),
        ("0x7F", 0x7F),
        ("0XAB", 0xAB),
        ("%1010", 0b1010),
        ("0b11", 0b11),
    ])
    def test_number_formats(self, text, value):
        tokens = tokenize(text)
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == value

    def test_missing_hex_digits(self):
        with pytest.raises(AssemblySyntaxError):
            tokenize("$")

    def test_invalid_digit(self):
        with pytest.raises(AssemblySyntaxError):
            tokenize("12abc")

    def test_invalid_binary_digit(self):
        with pytest.raises(AssemblySyntaxError):
            tokenize("%102")


# =============================================================================
# Strings
# =============================================================================

class TestStrings:
    """Test string literals."""

    def test_simple_string(self):
        token = tokenize('"main"')[0]
        assert token.type == TokenType.STRING
        assert token.value == "main"

    def test_escape_sequences(self):
        assert tokenize(r'"a\"b\\c\n"')[0].value == 'a"b\\c\n'

    def test_semicolon_inside_string(self):
        assert tokenize('"a ; b"')[0].value == "a ; b"

    def test_unterminated_string(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            tokenize('"open\nnext')
        assert "unterminated" in str(exc_info.value)


# =============================================================================
# Names and Delimiters
# =============================================================================

class TestNamesAndDelimiters:
    """Test identifiers, directives and punctuation."""

    def test_identifier(self):
        token = tokenize("VIC2_BORDER_COLOR")[0]
        assert token.type == TokenType.IDENTIFIER
        assert token.value == "VIC2_BORDER_COLOR"

    def test_directive_is_lower_cased(self):
        token = tokenize(".MODULE")[0]
        assert token.type == TokenType.DIRECTIVE
        assert token.value == "module"

    def test_lone_dot_is_error(self):
        with pytest.raises(AssemblySyntaxError):
            tokenize(". module")

    def test_operand_delimiters(self):
        assert types("#<>+-,:()=") == [
            TokenType.HASH,
            TokenType.LT,
            TokenType.GT,
            TokenType.PLUS,
            TokenType.MINUS,
            TokenType.COMMA,
            TokenType.COLON,
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.EQUALS,
        ]

    def test_indirect_indexed_operand(self):
        assert types("lda (ptr),y") == [
            TokenType.IDENTIFIER,
            TokenType.LPAREN,
            TokenType.IDENTIFIER,
            TokenType.RPAREN,
            TokenType.COMMA,
            TokenType.IDENTIFIER,
        ]

    def test_unexpected_character(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            tokenize("lda @")
        assert exc_info.value.location.column == 5
        assert exc_info.value.source_line == "lda @"


# =============================================================================
# Comments, Lines and Positions
# =============================================================================

class TestLinesAndPositions:
    """Test comments, newlines and source positions."""

    def test_comment_skipped(self):
        assert types("nop ; do nothing") == [TokenType.IDENTIFIER]

    def test_comment_only_line(self):
        assert types("; header\nrts") == [TokenType.NEWLINE, TokenType.IDENTIFIER]

    def test_newlines_are_tokens(self):
        assert types("nop\nrts\n") == [
            TokenType.IDENTIFIER,
            TokenType.NEWLINE,
            TokenType.IDENTIFIER,
            TokenType.NEWLINE,
        ]

    def test_positions(self):
        tokens = tokenize("loop:\n    dex")
        assert (tokens[0].line, tokens[0].column) == (1, 1)
        assert (tokens[1].line, tokens[1].column) == (1, 5)
        assert (tokens[3].line, tokens[3].column) == (2, 5)

    def test_location_property(self):
        token = tokenize("rts")[0]
        assert str(token.location) == "<test>:1:1"

    def test_eof_token(self):
        tokens = list(Lexer("").tokenize())
        assert [t.type for t in tokens] == [TokenType.EOF]

    def test_source_line(self):
        lexer = Lexer("nop\nrts")
        assert lexer.source_line(2) == "rts"
        assert lexer.source_line(5) == ""

    def test_repr(self):
        assert repr(tokenize("$41")[0]) == "Token(NUMBER, $41, 1:1)"
