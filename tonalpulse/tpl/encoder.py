"""
Text to written form.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List

from .vocabulary import DEFAULT_PREFIX, get_prefix, get_word_code
from .constants import PREFIX_CHAR

logger = logging.getLogger(__name__)

# everything but lowercase letters, digits and whitespace is dropped
_STRIP_PATTERN = re.compile(r'[^a-z0-9\s]')


@dataclass
class EncodeResult:
    """Outcome of encoding free text."""
    written_form: str
    unknown_words: List[str] = field(default_factory=list)
    matched_count: int = 0

    @property
    def is_empty(self) -> bool:
        """True when only the prefix marker was produced: nothing to transmit."""
        return self.matched_count == 0

    def to_dict(self) -> dict:
        return {
            'written': self.written_form,
            'unknown': self.unknown_words,
            'word_count': self.matched_count,
        }


def normalize(text: str) -> List[str]:
    """Lowercase, strip punctuation and split on whitespace."""
    return _STRIP_PATTERN.sub('', text.lower()).split()


def encode(text: str, prefix_key: str = DEFAULT_PREFIX) -> EncodeResult:
    """
    Encode free text to a written form.

    Words missing from the vocabulary are left out of the output and
    reported in unknown_words; they never abort encoding.

    Args:
        text: Free text, e.g. "Motor, start left fast!"
        prefix_key: Sentence prefix key (COMMAND, QUESTION, ...)

    Returns:
        EncodeResult whose written form starts with "<prefix>/ "
    """
    prefix = get_prefix(prefix_key)

    codes = []
    unknown = []
    for word in normalize(text):
        code = get_word_code(word)
        if code:
            codes.append(code)
        else:
            unknown.append(word)

    if unknown:
        logger.debug("Unknown words skipped: %s", ', '.join(unknown))

    written = f"{prefix['code']}{PREFIX_CHAR} " + ' '.join(codes)
    return EncodeResult(written_form=written, unknown_words=unknown, matched_count=len(codes))
