"""Path expression parser: string → StepReference / segment list

Parses step references used by argument mappings:
- "$steps[0].result.items[0].id"
- "$steps[2].response.content[0].text"
- "$steps[1].result"

and the relative paths used by assertions:
- "items[0].name"
- "status"
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, List, Optional

from chainprobe.core.exceptions import PathSyntaxError
from chainprobe.execution.types import PathRoot, Segment, StepReference

STEPS_KEYWORD = "$steps"
EXPECTED_FORMAT = "$steps[N].result.path.to.value"


class TokenType(Enum):
    """Token types for lexical analysis"""
    WORD = auto()
    NUMBER = auto()

    DOT = auto()
    LBRACKET = auto()
    RBRACKET = auto()

    # End of input
    EOF = auto()


@dataclass
class Token:
    """A lexical token"""
    type: TokenType
    value: Any
    position: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, pos={self.position})"


class _SyntaxProblem(Exception):
    """Internal parse failure, re-raised as PathSyntaxError with the expression"""

    def __init__(self, detail: str, position: int):
        super().__init__(detail)
        self.detail = detail
        self.position = position


_PUNCTUATION = {
    ".": TokenType.DOT,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}


class Lexer:
    """Tokenize path expressions"""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.current_char: Optional[str] = text[0] if text else None

    def advance(self) -> None:
        """Move to next character"""
        self.pos += 1
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def read_word(self) -> Token:
        """Read a field name, keyword or integer"""
        start_pos = self.pos
        word = ""
        while (
            self.current_char is not None
            and self.current_char not in _PUNCTUATION
            and not self.current_char.isspace()
        ):
            word += self.current_char
            self.advance()

        if word.isascii() and word.isdigit():
            return Token(TokenType.NUMBER, int(word), start_pos)
        return Token(TokenType.WORD, word, start_pos)

    def get_next_token(self) -> Token:
        """Get next token from input"""
        if self.current_char is None:
            return Token(TokenType.EOF, None, self.pos)

        if self.current_char.isspace():
            raise _SyntaxProblem(f"unexpected whitespace at position {self.pos}", self.pos)

        if self.current_char in _PUNCTUATION:
            token = Token(_PUNCTUATION[self.current_char], self.current_char, self.pos)
            self.advance()
            return token

        return self.read_word()

    def tokenize(self) -> List[Token]:
        """Tokenize entire input string"""
        tokens = []
        while True:
            token = self.get_next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens


class Parser:
    """Parse tokens into a path AST using recursive descent"""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.current_token = tokens[0] if tokens else Token(TokenType.EOF, None, 0)

    def advance(self) -> None:
        """Move to next token"""
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current_token = self.tokens[self.pos]
        else:
            self.current_token = Token(TokenType.EOF, None, self.pos)

    def expect(self, token_type: TokenType) -> Token:
        """Consume token of expected type or raise error"""
        if self.current_token.type != token_type:
            raise _SyntaxProblem(
                f"expected {token_type.name}, got {self.current_token.type.name} "
                f"at position {self.current_token.position}",
                self.current_token.position,
            )
        token = self.current_token
        self.advance()
        return token

    def expect_end(self) -> None:
        if self.current_token.type != TokenType.EOF:
            raise _SyntaxProblem(
                f"unexpected token {self.current_token.type.name} "
                f"at position {self.current_token.position}",
                self.current_token.position,
            )

    def parse_reference(self) -> StepReference:
        """Parse a step reference

        reference := '$steps' '[' NUMBER ']' '.' root ('.' segment)*
        root := 'result' | 'response'
        """
        head = self.expect(TokenType.WORD)
        if head.value != STEPS_KEYWORD:
            raise _SyntaxProblem(f"expected '{STEPS_KEYWORD}' at position {head.position}", head.position)
        self.expect(TokenType.LBRACKET)
        step_index = self.expect(TokenType.NUMBER).value
        self.expect(TokenType.RBRACKET)
        self.expect(TokenType.DOT)

        root_token = self.expect(TokenType.WORD)
        try:
            root = PathRoot(root_token.value)
        except ValueError:
            raise _SyntaxProblem(
                f"path must start with 'result' or 'response', got '{root_token.value}'",
                root_token.position,
            )

        segments: List[Segment] = []
        while self.current_token.type == TokenType.DOT:
            self.advance()
            segments.append(self.parse_segment())

        self.expect_end()
        return StepReference(step_index=step_index, root=root, segments=tuple(segments))

    def parse_relative(self) -> List[Segment]:
        """Parse a relative path

        relative := segment ('.' segment)*
        """
        segments = [self.parse_segment()]
        while self.current_token.type == TokenType.DOT:
            self.advance()
            segments.append(self.parse_segment())
        self.expect_end()
        return segments

    def parse_segment(self) -> Segment:
        """Parse one segment

        segment := (WORD | NUMBER) ('[' NUMBER ']')?
        """
        if self.current_token.type not in (TokenType.WORD, TokenType.NUMBER):
            raise _SyntaxProblem(
                f"expected field name, got {self.current_token.type.name} "
                f"at position {self.current_token.position}",
                self.current_token.position,
            )
        name = str(self.current_token.value)
        self.advance()

        index: Optional[int] = None
        if self.current_token.type == TokenType.LBRACKET:
            self.advance()
            index = self.expect(TokenType.NUMBER).value
            self.expect(TokenType.RBRACKET)

        return Segment(name=name, index=index)


def parse_step_reference(expression: str) -> StepReference:
    """Parse an argument-mapping expression into a StepReference

    Args:
        expression: Mapping string (e.g., "$steps[0].result.items[0].id")

    Returns:
        Parsed reference

    Raises:
        PathSyntaxError: If the expression does not match the grammar

    Examples:
        >>> ref = parse_step_reference("$steps[0].result.items[0].id")
        >>> ref.step_index, ref.root.value, ref.source_path
        (0, 'result', 'result.items[0].id')
    """
    if not isinstance(expression, str) or not expression.strip():
        raise PathSyntaxError(
            f"Invalid path expression: {expression!r}. Expected format: {EXPECTED_FORMAT}",
            context={"expression": expression},
        )
    try:
        tokens = Lexer(expression).tokenize()
        return Parser(tokens).parse_reference()
    except _SyntaxProblem as e:
        raise PathSyntaxError(
            f"Invalid path expression: {expression}. Expected format: {EXPECTED_FORMAT} ({e.detail})",
            context={"expression": expression, "position": e.position},
        ) from None


def parse_relative_path(path: str) -> List[Segment]:
    """Parse an assertion path (no step selector) into segments

    Raises:
        PathSyntaxError: If the path is empty or malformed
    """
    if not isinstance(path, str) or not path.strip():
        raise PathSyntaxError(f"Invalid path: {path!r}", context={"path": path})
    try:
        tokens = Lexer(path).tokenize()
        return Parser(tokens).parse_relative()
    except _SyntaxProblem as e:
        raise PathSyntaxError(
            f"Invalid path: {path} ({e.detail})",
            context={"path": path, "position": e.position},
        ) from None


def is_step_reference(expression: str) -> bool:
    """Whether the expression matches the step-reference grammar"""
    try:
        parse_step_reference(expression)
    except PathSyntaxError:
        return False
    return True
