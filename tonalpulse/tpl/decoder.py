"""
Written form to text.

Decoding is total: whatever arrives, something readable comes out.
Codes not in the vocabulary are shown in brackets instead of dropped,
because receiver output is inherently noisy.
"""

import re
from typing import List

from .constants import LINK_CHAR, LINK_MARKER
from .vocabulary import get_code_word, get_prefix_by_code

# a run of symbols closed by '/' at the very start, plus any gap after it
_PREFIX_PATTERN = re.compile(r'^([aAeEiIoO]+)/\s*')


def split_codes(body: str) -> List[str]:
    """Split on whitespace, pulling any '~' out as a token of its own."""
    tokens = []
    for chunk in body.split():
        for part in re.split(r'(~)', chunk):
            if part:
                tokens.append(part)
    return tokens


def render_code(code: str) -> str:
    if code == LINK_CHAR:
        return LINK_MARKER
    word = get_code_word(code)
    return word if word is not None else f'[{code}]'


def decode(written: str) -> str:
    """
    Decode a written form to readable text.

    Examples:
        "a/ aAi eAa"  -> "[Command] motor start"
        "aAi ~ xyz"   -> "motor → [xyz]"
    """
    label = ''
    body = written
    match = _PREFIX_PATTERN.match(written)
    if match:
        code = match.group(1)
        prefix = get_prefix_by_code(code)
        label = f"[{prefix['label']}] " if prefix else f'[{code}/] '
        body = written[match.end():]

    return label + ' '.join(render_code(code) for code in split_codes(body))
