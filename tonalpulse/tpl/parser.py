"""
Written-form parser.

Turns a written form such as "a/ aAi eAa" into tokens. Parsing never
fails: characters outside the alphabet are dropped, so partially
corrupted forms recovered from noisy audio still parse as far as
possible. Grammar is not checked here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .constants import SYMBOL_CHARS, LINK_CHAR, WORD_GAP_CHAR, PREFIX_CHAR


class TokenKind(Enum):
    """Kinds of written-form tokens."""
    SYMBOL = 'symbol'
    WORD_GAP = 'wordgap'
    LINK = 'link'
    PREFIX = 'prefix'


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    char: Optional[str] = None


WORD_GAP = Token(TokenKind.WORD_GAP)
LINK = Token(TokenKind.LINK)
PREFIX = Token(TokenKind.PREFIX)


def parse(text: str) -> List[Token]:
    """
    Parse a written form into tokens.

    A '/' yields a PREFIX token followed by its own WORD_GAP, so
    "a/ x" holds two consecutive gaps.
    """
    tokens = []
    for char in text:
        if char == WORD_GAP_CHAR:
            tokens.append(WORD_GAP)
        elif char == LINK_CHAR:
            tokens.append(LINK)
        elif char == PREFIX_CHAR:
            tokens.append(PREFIX)
            tokens.append(WORD_GAP)
        elif char in SYMBOL_CHARS:
            tokens.append(Token(TokenKind.SYMBOL, char))
    return tokens
