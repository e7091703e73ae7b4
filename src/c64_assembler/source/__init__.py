"""
C64 Assembler Source Front-End
==============================

Line-oriented assembler source that expands into builder calls.

Modules:
    lexer: Tokenizer for the source language
    parser: Builds an Application from tokens

Usage:
    from c64_assembler.source import parse_source

    application = parse_source(text, "border.c64s")
"""

from c64_assembler.source.lexer import Lexer, Token, TokenType
from c64_assembler.source.parser import Parser, parse_source

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "Parser",
    "parse_source",
]
