"""
C64 Assembler Source Parser
===========================

Parses assembler source text into an Application by driving the builders.
Every instruction keeps its SourceLocation so validation errors point back
at the source line.

Source Layout
-------------
```asm
.application "Set black border"
.entry_point $0800
.include_vic2_defines
.define SCREEN_PTR $FB
COUNTER = $02

.module "main"
.basic_header
main_entry_point:
    "Load black color"
    lda #$00
    sta VIC2_BORDER_COLOR
    rts

.function "clear"
.doc "Fill the screen with spaces"
    lda #<SCREEN_PTR
    ...
```

Statements
----------
| Statement                 | Meaning                                   |
|---------------------------|-------------------------------------------|
| .application "name"       | Application name                          |
| .entry_point value        | Load address of the first byte            |
| .define NAME value        | Named constant address (also NAME = value)|
| .include_vic2_defines     | VIC-II register names                     |
| .include_sid_defines      | SID register names                        |
| .module "name"            | Start a module                            |
| .function "name"          | Start a function in the current module    |
| .doc "text"               | Documentation line of the function        |
| .basic_header             | BASIC stub `10 SYS 2062`                  |
| .byte v, v, ...           | Raw bytes                                 |
| name:                     | Label                                     |
| "text"                    | Comment for the next instruction          |

Instructions before the first .module go to an implicit module "main".
Instructions of a module come before its functions in the layout, so a
module's own code has to precede its first .function.

Operands
--------
| Syntax     | Mode            |
|------------|-----------------|
| (none)     | Implied         |
| a          | Accumulator     |
| #$00       | Immediate byte  |
| #<name     | Immediate low   |
| #>name     | Immediate high  |
| name+2     | Absolute        |
| name,x     | AbsoluteX       |
| name,y     | AbsoluteY       |
| name       | Relative (branch instructions) |
| (name)     | Indirect        |
| (name,x)   | IndexedIndirect |
| (name),y   | IndirectIndexed |

Addresses are always symbolic. A numeric address operand is a syntax
error; declare it with .define instead.
"""

from typing import Optional, Union
import logging

from c64_assembler.builder import (
    REGISTER_NAMES,
    ApplicationBuilder,
    FunctionBuilder,
    InstructionBuilder,
    ModuleBuilder,
)
from c64_assembler.cpu import is_branch_instruction, is_valid_instruction
from c64_assembler.errors import AssemblySyntaxError
from c64_assembler.memory import AddressReference
from c64_assembler.program import (
    Absolute,
    AbsoluteX,
    AbsoluteY,
    Accumulator,
    AddressMode,
    Application,
    Immediate,
    ImmediateByte,
    ImmediateHigh,
    ImmediateLow,
    Implied,
    IndexedIndirect,
    Indirect,
    IndirectIndexed,
    Relative,
)
from c64_assembler.source.lexer import Lexer, Token, TokenType

logger = logging.getLogger(__name__)

DEFAULT_MODULE_NAME = "main"


class Parser:
    """
    Parses a token stream into an Application.

    Usage:
        lexer = Lexer(source, filename)
        parser = Parser(list(lexer.tokenize()), filename, lexer)
        application = parser.parse()
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        lexer: Optional[Lexer] = None,
    ):
        """
        Args:
            tokens: List of tokens from the lexer
            filename: Source filename for error reporting
            lexer: Lexer that produced the tokens, used to quote source
                   lines in error messages
        """
        self._tokens = tokens
        self._filename = filename
        self._lexer = lexer
        self._pos = 0

        self._application = ApplicationBuilder()

        self._module: Optional[ModuleBuilder] = None
        self._module_code: Optional[InstructionBuilder] = None
        self._function: Optional[FunctionBuilder] = None
        self._function_code: Optional[InstructionBuilder] = None
        self._pending_comments: list[Token] = []

    def parse(self) -> Application:
        """
        Parse every line and build the application.

        Raises:
            AssemblySyntaxError: If the source is malformed
            AddressingModeError: If an instruction uses a mode its
                                 mnemonic does not support
        """
        while not self._check(TokenType.EOF):
            if self._match(TokenType.NEWLINE):
                continue
            self._parse_line()

        if self._pending_comments:
            self._attach_trailing_comments()

        self._close_module()

        application = self._application.build()
        logger.debug(
            f"Parsed {self._filename}: {len(application.modules)} modules, "
            f"{len(application.defines)} defines"
        )
        return application

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        return self._tokens[min(self._pos, len(self._tokens) - 1)]

    def _peek(self, offset: int = 0) -> Token:
        return self._tokens[min(self._pos + offset, len(self._tokens) - 1)]

    def _advance(self) -> Token:
        token = self._current()
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if not self._check(token_type):
            raise self._error(message, self._current())
        return self._advance()

    def _expect_end_of_line(self) -> None:
        if not self._check(TokenType.NEWLINE, TokenType.EOF):
            token = self._current()
            raise self._error(f"unexpected '{token.value}' at end of statement", token)
        self._match(TokenType.NEWLINE)

    def _error(
        self, message: str, token: Token, hint: Optional[str] = None
    ) -> AssemblySyntaxError:
        source_line = None
        if self._lexer is not None:
            source_line = self._lexer.source_line(token.line) or None
        return AssemblySyntaxError(
            message, token.location, hint=hint, source_line=source_line
        )

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _parse_line(self) -> None:
        token = self._current()

        if token.type == TokenType.DIRECTIVE:
            self._parse_directive()
            return

        if token.type == TokenType.STRING:
            self._advance()
            self._pending_comments.append(token)
            self._expect_end_of_line()
            return

        if token.type != TokenType.IDENTIFIER:
            raise self._error(f"unexpected '{token.value}' at start of statement", token)

        # NAME = value
        if self._peek(1).type == TokenType.EQUALS:
            self._advance()
            self._advance()
            self._check_name(token, "define")
            self._application.define_address(token.value, self._parse_address("define"))
            self._expect_end_of_line()
            return

        # label: [instruction]
        if self._peek(1).type == TokenType.COLON:
            self._advance()
            self._advance()
            self._add_label(token)
            if self._check(TokenType.NEWLINE, TokenType.EOF):
                self._match(TokenType.NEWLINE)
                return
            token = self._current()
            if token.type != TokenType.IDENTIFIER:
                raise self._error("expected instruction after label", token)

        self._parse_instruction()

    def _add_label(self, token: Token) -> None:
        self._check_name(token, "label")
        self._code().label(token.value, location=token.location)
        self._attach_pending_comments()

    def _parse_instruction(self) -> None:
        token = self._advance()
        mnemonic = str(token.value).lower()
        if not is_valid_instruction(mnemonic):
            raise self._error(f"unknown instruction '{token.value}'", token)

        mode = self._parse_operand(mnemonic)
        self._code().instruction(mnemonic, mode, location=token.location)
        self._attach_pending_comments()
        self._expect_end_of_line()

    def _attach_pending_comments(self) -> None:
        code = self._code()
        for comment in self._pending_comments:
            code.comment(comment.value)
        self._pending_comments.clear()

    def _attach_trailing_comments(self) -> None:
        # Comments after the last statement go on the last instruction
        code = self._function_code if self._function_code is not None else self._module_code
        if code is None or len(code) == 0:
            raise self._error(
                "comment is not followed by an instruction",
                self._pending_comments[0],
                hint="comments belong to the instruction after them",
            )
        for comment in self._pending_comments:
            code.comment(comment.value)
        self._pending_comments.clear()

    def _check_name(self, token: Token, kind: str) -> None:
        if str(token.value).lower() in REGISTER_NAMES:
            raise self._error(
                f"register name '{token.value}' cannot be used as a {kind} name", token
            )

    # =========================================================================
    # Operands
    # =========================================================================

    def _parse_operand(self, mnemonic: str) -> AddressMode:
        if self._check(TokenType.NEWLINE, TokenType.EOF):
            return Implied()

        token = self._current()

        if (
            token.type == TokenType.IDENTIFIER
            and str(token.value).lower() == "a"
            and self._peek(1).type in (TokenType.NEWLINE, TokenType.EOF)
        ):
            self._advance()
            return Accumulator()

        if self._match(TokenType.HASH):
            return Immediate(self._parse_immediate())

        if self._match(TokenType.LPAREN):
            reference = self._parse_reference()
            if self._match(TokenType.COMMA):
                self._expect_register("x")
                self._expect(TokenType.RPAREN, "expected ')' after ',x'")
                return IndexedIndirect(reference)
            self._expect(TokenType.RPAREN, "expected ')'")
            if self._match(TokenType.COMMA):
                self._expect_register("y")
                return IndirectIndexed(reference)
            return Indirect(reference)

        reference = self._parse_reference()
        if self._match(TokenType.COMMA):
            register = self._expect_register("x", "y")
            return AbsoluteX(reference) if register == "x" else AbsoluteY(reference)
        if is_branch_instruction(mnemonic):
            if reference.offset:
                raise self._error("branch targets cannot have an offset", token)
            return Relative(reference)
        return Absolute(reference)

    def _parse_immediate(self) -> Union[ImmediateByte, ImmediateLow, ImmediateHigh]:
        if self._match(TokenType.LT):
            return ImmediateLow(self._parse_reference())
        if self._match(TokenType.GT):
            return ImmediateHigh(self._parse_reference())

        token = self._current()
        if token.type != TokenType.NUMBER:
            raise self._error(
                "expected a number, '<name' or '>name' after '#'", token
            )
        value = self._parse_number()
        if not 0 <= value <= 0xFF:
            raise self._error(f"immediate value {value} does not fit in a byte", token)
        return ImmediateByte(value)

    def _parse_reference(self) -> AddressReference:
        token = self._current()
        if token.type == TokenType.NUMBER:
            raise self._error(
                f"numeric address ${token.value:X} used as operand",
                token,
                hint="declare the address with .define and use its name",
            )
        name = self._expect(TokenType.IDENTIFIER, "expected an address name").value

        offset = 0
        if self._check(TokenType.PLUS, TokenType.MINUS):
            sign = -1 if self._advance().type == TokenType.MINUS else 1
            offset = sign * self._parse_number()
        return AddressReference(name, offset)

    def _expect_register(self, *registers: str) -> str:
        token = self._current()
        value = str(token.value).lower() if token.type == TokenType.IDENTIFIER else None
        if value not in registers:
            expected = " or ".join(f"'{r}'" for r in registers)
            raise self._error(f"expected index register {expected}", token)
        self._advance()
        return value

    def _parse_number(self) -> int:
        token = self._expect(TokenType.NUMBER, "expected a number")
        return token.value

    def _parse_string(self, directive: str) -> str:
        return self._expect(TokenType.STRING, f"expected a quoted string after '.{directive}'").value

    # =========================================================================
    # Directives
    # =========================================================================

    def _parse_directive(self) -> None:
        token = self._advance()
        name = token.value

        if name == "application":
            self._application.name(self._parse_string(name))
        elif name == "entry_point":
            self._application.entry_point(self._parse_address(name))
        elif name == "define":
            define_token = self._expect(TokenType.IDENTIFIER, "expected a name after '.define'")
            self._check_name(define_token, "define")
            self._match(TokenType.EQUALS)
            self._application.define_address(define_token.value, self._parse_address(name))
        elif name == "include_vic2_defines":
            self._application.include_vic2_defines()
        elif name == "include_sid_defines":
            self._application.include_sid_defines()
        elif name == "module":
            self._close_module()
            self._open_module(self._parse_string(name))
        elif name == "function":
            function_name = self._parse_string(name)
            self._close_function()
            if self._module is None:
                self._open_module(DEFAULT_MODULE_NAME)
            self._function = FunctionBuilder().name(function_name)
            self._function_code = InstructionBuilder()
        elif name == "doc":
            if self._function is None:
                raise self._error("'.doc' outside of a function", token)
            self._function.doc(self._parse_string(name))
        elif name == "basic_header":
            self._code().add_basic_header()
        elif name == "byte":
            self._parse_byte_directive(token)
        else:
            raise self._error(f"unknown directive '.{name}'", token)

        self._expect_end_of_line()

    def _parse_address(self, directive: str) -> int:
        token = self._current()
        value = self._parse_number()
        if not 0 <= value <= 0xFFFF:
            raise self._error(
                f"'.{directive}' value ${value:X} is outside the 16-bit address space", token
            )
        return value

    def _parse_byte_directive(self, directive: Token) -> None:
        values = []
        while True:
            token = self._current()
            value = self._parse_number()
            if not 0 <= value <= 0xFF:
                raise self._error(f"byte value {value} does not fit in a byte", token)
            values.append(value)
            if not self._match(TokenType.COMMA):
                break
        self._code().raw(bytes(values), location=directive.location)
        self._attach_pending_comments()

    # =========================================================================
    # Module / Function State
    # =========================================================================

    def _code(self) -> InstructionBuilder:
        """Instruction stream statements currently go to."""
        if self._function_code is not None:
            return self._function_code
        if self._module_code is None:
            self._open_module(DEFAULT_MODULE_NAME)
        return self._module_code

    def _open_module(self, name: str) -> None:
        self._module = ModuleBuilder().name(name)
        self._module_code = InstructionBuilder()

    def _close_function(self) -> None:
        if self._function is not None:
            self._module.function(
                self._function.instructions(self._function_code.build()).build()
            )
        self._function = None
        self._function_code = None

    def _close_module(self) -> None:
        self._close_function()
        if self._module is not None:
            self._application.module(
                self._module.instructions(self._module_code.build()).build()
            )
        self._module = None
        self._module_code = None


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> Application:
    """Parse source text into an Application."""
    lexer = Lexer(source, filename)
    return Parser(list(lexer.tokenize()), filename, lexer).parse()
