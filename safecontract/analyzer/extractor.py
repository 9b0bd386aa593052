"""Source model extractor — raw Solidity text → ``Contract``.

The compiler version, ``unchecked`` flag and state variables are read with
plain regexes over the whole file. Function declarations are found with a
small tokenizer and a one-pass brace-depth scanner, so bodies of any nesting
depth are returned whole. String literals and comments are skipped while
matching braces, but the body handed downstream is always the verbatim source
text between the function's braces.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

from safecontract.core.types import Contract, FunctionDef, Parameter

logger = logging.getLogger(__name__)


_PRAGMA_RE = re.compile(r"pragma\s+solidity\s+[\^>=]*(\d+)\.(\d+)")

_STATE_VAR_RE = re.compile(
    r"(?:mapping\s*\([^()]+\)|uint\d*|int\d*|address|bool|string|bytes\d*)"
    r"\s+(?:public\s+|private\s+|internal\s+)?(\w+)\s*(?:=|;)"
)


# ── Tokenizer ────────────────────────────────────────────────────────────────


class TokenType(Enum):
    COMMENT = auto()
    STRING = auto()
    IDENT = auto()
    NUMBER = auto()
    WHITESPACE = auto()
    PUNCT = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    start: int
    end: int


_TOKEN_RE = re.compile(
    r"""
    (?P<COMMENT>//[^\n]*|/\*.*?(?:\*/|\Z))
  | (?P<STRING>"(?:[^"\\\n]|\\.)*"?|'(?:[^'\\\n]|\\.)*'?)
  | (?P<IDENT>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<NUMBER>\d[\w.]*)
  | (?P<WHITESPACE>\s+)
  | (?P<PUNCT>.)
    """,
    re.VERBOSE | re.DOTALL,
)


def tokenize(source: str) -> Iterator[Token]:
    """Yield tokens covering ``source`` end to end.

    Unterminated comments and strings run to the end of the input (strings
    stop at the end of the line).
    """
    for match in _TOKEN_RE.finditer(source):
        # Every alternative is a named group, so lastgroup is always set
        kind = TokenType[match.lastgroup or "PUNCT"]
        yield Token(kind, match.group(), match.start(), match.end())


_TRIVIA = (TokenType.COMMENT, TokenType.WHITESPACE)


class _TokenStream:
    """Cursor over significant tokens (comments and whitespace dropped)."""

    def __init__(self, source: str) -> None:
        self._tokens = [t for t in tokenize(source) if t.type not in _TRIVIA]
        self._pos = 0

    def peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def next(self) -> Token | None:
        token = self.peek()
        if token is not None:
            self._pos += 1
        return token

    def skip_balanced(self, open_char: str, close_char: str) -> Token | None:
        """Consume tokens up to the close matching an already-consumed open.

        Returns the closing token, or ``None`` if the input ran out first.
        """
        depth = 1
        while (token := self.next()) is not None:
            if token.type is not TokenType.PUNCT:
                continue
            if token.value == open_char:
                depth += 1
            elif token.value == close_char:
                depth -= 1
                if depth == 0:
                    return token
        return None


# ── Extraction ───────────────────────────────────────────────────────────────


def parse_version(source: str) -> tuple[int, int] | None:
    """Return (major, minor) from the first ``pragma solidity`` line."""
    match = _PRAGMA_RE.search(source)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def extract_state_variables(source: str) -> list[str]:
    """Names of declared variables of common value types.

    Locals declared inside function bodies match too.
    """
    return [m.group(1) for m in _STATE_VAR_RE.finditer(source)]


def parse_parameters(params: str) -> list[Parameter]:
    """Split a parameter list: first token is the type, last is the name.

    Data-location keywords between them (``memory``, ``calldata``) are dropped.
    """
    result: list[Parameter] = []
    for entry in params.split(","):
        parts = entry.split()
        if not parts:
            continue
        result.append(Parameter(type=parts[0], name=parts[-1]))
    return result


def extract_functions(source: str) -> list[FunctionDef]:
    """Find every ``function NAME(PARAMS) ... { BODY }`` declaration.

    Declarations without a body (interface members, abstract functions) are
    skipped. A body left open at end of input runs to the end of the text.
    """
    functions: list[FunctionDef] = []
    stream = _TokenStream(source)

    while (token := stream.next()) is not None:
        if token.type is not TokenType.IDENT or token.value != "function":
            continue

        name_tok = stream.peek()
        if name_tok is None or name_tok.type is not TokenType.IDENT:
            # function-type expression such as ``function (uint) external``
            continue
        stream.next()

        open_paren = stream.peek()
        if open_paren is None or open_paren.value != "(":
            continue
        stream.next()
        close_paren = stream.skip_balanced("(", ")")
        if close_paren is None:
            break
        params = source[open_paren.end:close_paren.start]

        # Header: visibility, mutability, modifiers, returns (...)
        return_type: str | None = None
        body_open: Token | None = None
        while (tok := stream.next()) is not None:
            if tok.type is TokenType.PUNCT and tok.value in ("{", ";"):
                body_open = tok if tok.value == "{" else None
                break
            if tok.type is TokenType.PUNCT and tok.value == "(":
                stream.skip_balanced("(", ")")
            elif tok.type is TokenType.IDENT and tok.value == "returns":
                ret_open = stream.peek()
                if ret_open is not None and ret_open.value == "(":
                    stream.next()
                    ret_close = stream.skip_balanced("(", ")")
                    end = ret_close.start if ret_close is not None else len(source)
                    return_type = source[ret_open.end:end].strip() or None

        if body_open is None:
            logger.debug("Skipping bodiless declaration of %s()", name_tok.value)
            continue

        body_close = stream.skip_balanced("{", "}")
        body_end = body_close.start if body_close is not None else len(source)

        functions.append(FunctionDef(
            name=name_tok.value,
            parameters=parse_parameters(params),
            return_type=return_type,
            body=source[body_open.end:body_end],
        ))

    return functions


def extract(source: str) -> Contract:
    """Build the structural model of ``source``.

    A missing version pragma yields version 0.0, which is treated as lacking
    built-in overflow protection. Finding no functions is not an error.
    """
    version = parse_version(source)
    major, minor = version if version else (0, 0)

    contract = Contract(
        functions=extract_functions(source),
        state_variables=extract_state_variables(source),
        compiler_version_major=major,
        compiler_version_minor=minor,
        solidity_version=f"{major}.{minor}" if version else "unknown",
        has_builtin_overflow_protection=major > 0 or minor >= 8,
        # Whole-file check, not scoped to a function
        has_unchecked_block="unchecked" in source,
    )

    logger.debug(
        "Extracted %d functions, %d state variables (solidity %s)",
        len(contract.functions),
        len(contract.state_variables),
        contract.solidity_version,
    )
    return contract
