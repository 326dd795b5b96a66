"""
TPL vocabulary and sentence prefixes.

Every word maps to a 3-symbol code and every code to exactly one word.
The tables do not depend on the frequency profile; only the audible
frequencies do.

Categories:
- Systems, Properties: things that can be addressed
- Actions, Verbs: what to do
- Directions, Numbers, Values, Time: arguments
- Social, Pronouns, Questions: conversational glue
"""

from types import MappingProxyType
from typing import Dict, List, Optional, Tuple

from .constants import SYMBOL_CHARS

PREFIXES = {
    'COMMAND': {'code': 'a', 'label': 'Command'},
    'QUESTION': {'code': 'e', 'label': 'Question'},
    'URGENT': {'code': 'i', 'label': 'Urgent'},
    'NEGATE': {'code': 'aa', 'label': 'Negate'},
    'CONDITION': {'code': 'ae', 'label': 'Conditional'},
    'SCHEDULE': {'code': 'ai', 'label': 'Schedule'},
    'BROADCAST': {'code': 'ee', 'label': 'Broadcast'},
    'EMERGENCY': {'code': 'ii', 'label': 'Emergency'},
}

DEFAULT_PREFIX = 'COMMAND'

VOCABULARY = {
    'Systems': {
        'system': 'aAe', 'motor': 'aAi', 'sensor': 'aAo', 'network': 'aEa',
        'power': 'aEe', 'light': 'aEi', 'camera': 'aEo', 'door': 'aIa',
        'alarm': 'aIe', 'display': 'aIi', 'speaker': 'aIo', 'fan': 'aOa',
        'pump': 'aOe', 'valve': 'aOi', 'robot': 'aOo', 'drone': 'Aae',
        'vehicle': 'Aai',
    },
    'Properties': {
        'temperature': 'Aao', 'pressure': 'Aea', 'humidity': 'Aee', 'battery': 'Aei',
        'signal': 'Aeo', 'data': 'Aia', 'message': 'Aie', 'file': 'Aii',
        'device': 'Aio', 'unit': 'Aoa', 'zone': 'Aoe', 'group': 'Aoi',
        'all': 'Aoo',
    },
    'Actions': {
        'start': 'eAa', 'stop': 'eAe', 'send': 'eAi', 'report': 'eAo',
        'rotate': 'eEa', 'move': 'eEe', 'set': 'eEi', 'wait': 'eEo',
        'open': 'eIa', 'close': 'eIe', 'increase': 'eIi', 'decrease': 'eIo',
        'toggle': 'eOa', 'scan': 'eOe', 'connect': 'eOi', 'disconnect': 'eOo',
        'save': 'Eae', 'load': 'Eai', 'reset': 'Eao', 'update': 'Eea',
        'read': 'Eei', 'write': 'Eeo', 'enable': 'Eia', 'disable': 'Eie',
        'lock': 'Eii', 'unlock': 'Eio', 'alert': 'Eoa', 'confirm': 'Eoe',
        'deny': 'Eoi', 'ping': 'Eoo',
    },
    'Directions': {
        'left': 'iAa', 'right': 'iAe', 'up': 'iAi', 'down': 'iAo',
        'forward': 'iEa', 'backward': 'iEe', 'north': 'iEi', 'south': 'iEo',
        'east': 'iIa', 'west': 'iIe', 'center': 'iIi', 'edge': 'iIo',
        'inside': 'iOa', 'outside': 'iOe', 'here': 'iOi', 'there': 'iOo',
    },
    'Numbers': {
        'one': 'Iae', 'two': 'Iai', 'three': 'Iao', 'four': 'Iea',
        'five': 'Iee', 'six': 'Ieo', 'seven': 'Iia', 'eight': 'Iie',
        'nine': 'Iio', 'ten': 'Ioa', 'hundred': 'Ioe', 'thousand': 'Ioi',
    },
    'Values': {
        'low': 'oAa', 'medium': 'oAe', 'high': 'oAi', 'max': 'oAo',
        'min': 'oEa', 'on': 'oEe', 'off': 'oEi', 'fast': 'oEo',
        'slow': 'oIa', 'hot': 'oIe', 'cold': 'oIi', 'full': 'oIo',
        'empty': 'oOa', 'yes': 'oOe', 'no': 'oOi', 'ok': 'oOo',
        'error': 'Oae', 'ready': 'Oai', 'busy': 'Oao', 'degrees': 'Oea',
        'percent': 'Oee', 'seconds': 'Oeo', 'meters': 'Oia', 'critical': 'Oie',
        'normal': 'Oii', 'warning': 'Oio',
    },
    'Social': {
        'hello': 'Ooa', 'hey': 'OAa', 'hi': 'OAe', 'goodbye': 'Ooe',
        'thanks': 'Ooi', 'help': 'Ooo', 'please': 'OAi', 'sorry': 'OAo',
        'good': 'OOa', 'bad': 'OOe', 'done': 'OOi',
    },
    'Pronouns': {
        'me': 'EOa', 'you': 'EOe', 'we': 'EOi', 'they': 'EOo',
        'it': 'EIi', 'them': 'EIo', 'my': 'EIa', 'your': 'EIe',
        'and': 'EAe', 'or': 'EAi', 'but': 'EAo', 'if': 'EEa',
        'then': 'EEe', 'so': 'EEi', 'not': 'EAa', 'very': 'EEo',
    },
    'Questions': {
        'what': 'OEa', 'where': 'OEe', 'when': 'OEi', 'who': 'OEo',
        'why': 'OIa', 'how': 'OIe', 'this': 'OIi', 'that': 'OIo',
    },
    'Verbs': {
        'want': 'AAa', 'need': 'OOo', 'have': 'AAe', 'go': 'AAi',
        'come': 'AAo', 'give': 'AEa', 'take': 'AEe', 'know': 'AEi',
        'see': 'AEo', 'am': 'AOa', 'is': 'AOe', 'are': 'AOi',
        'was': 'AOo',
    },
    'Time': {
        'now': 'AIa', 'later': 'AIe', 'again': 'AIi', 'never': 'AIo',
    },
}

EXAMPLE_SENTENCES = [
    'hey there', 'hello', 'motor start left fast', 'sensor report temperature high',
    'please help me now', 'what is temperature', 'door open', 'alarm stop',
    'robot move forward', 'system reset', 'good thanks', 'we need help now',
    'fan set max', 'you know what I want', 'if hot then fan start',
]


def _build_tables(vocabulary: Dict[str, Dict[str, str]]) -> Tuple[Dict[str, str], Dict[str, str], Dict[str, str]]:
    """
    Flatten the categorized vocabulary into forward and reverse maps.

    Raises ValueError on a duplicate word, a duplicate code, or a code
    that is not three alphabet symbols. Runs once at import.
    """
    word_codes = {}
    code_words = {}
    word_categories = {}
    for category, entries in vocabulary.items():
        for word, code in entries.items():
            if len(code) != 3 or any(c not in SYMBOL_CHARS for c in code):
                raise ValueError(f"Invalid code {code!r} for word {word!r}")
            if word in word_codes:
                raise ValueError(f"Duplicate vocabulary word: {word}")
            if code in code_words:
                raise ValueError(
                    f"Duplicate vocabulary code {code}: {code_words[code]!r} and {word!r}"
                )
            word_codes[word] = code
            code_words[code] = word
            word_categories[word] = category
    return word_codes, code_words, word_categories


def _validate_prefixes(prefixes: Dict[str, Dict[str, str]]) -> Dict[str, str]:
    """Check prefix codes are unique 1-2 symbol codes; return code -> key."""
    by_code = {}
    for key, info in prefixes.items():
        code = info['code']
        if not 1 <= len(code) <= 2 or any(c not in SYMBOL_CHARS for c in code):
            raise ValueError(f"Invalid prefix code {code!r} for {key}")
        if code in by_code:
            raise ValueError(f"Duplicate prefix code {code}: {by_code[code]} and {key}")
        by_code[code] = key
    return by_code


_word_codes, _code_words, _word_categories = _build_tables(VOCABULARY)

# read-only views; the tables never change after import
WORD_CODES = MappingProxyType(_word_codes)
CODE_WORDS = MappingProxyType(_code_words)
WORD_CATEGORIES = MappingProxyType(_word_categories)
PREFIX_CODES = MappingProxyType(_validate_prefixes(PREFIXES))


def get_word_code(word: str) -> Optional[str]:
    """Get the code for a word, or None if it is not in the vocabulary."""
    return WORD_CODES.get(word.lower())


def get_code_word(code: str) -> Optional[str]:
    """Get the word for a code (case-sensitive), or None."""
    return CODE_WORDS.get(code)


def get_prefix(key: str) -> dict:
    """Get a prefix entry by key (COMMAND, QUESTION, ...)."""
    key = key.upper()
    if key not in PREFIXES:
        raise ValueError(f"Unknown prefix: {key}")
    return PREFIXES[key]


def get_prefix_by_code(code: str) -> Optional[dict]:
    """Get a prefix entry by its written code, or None."""
    key = PREFIX_CODES.get(code)
    if key is None:
        return None
    return {'key': key, **PREFIXES[key]}


def get_words_by_category(category: str) -> dict:
    """Get all words and codes for a category."""
    for name, entries in VOCABULARY.items():
        if name.lower() == category.lower():
            return dict(entries)
    return {}


def search_vocabulary(query: str = '', category: Optional[str] = None) -> List[dict]:
    """
    Search words and codes.

    A word matches when it contains the query; a code matches only
    when it equals the query exactly, since codes are case-sensitive.
    """
    query = query.strip()
    results = []
    for word, code in WORD_CODES.items():
        word_category = WORD_CATEGORIES[word]
        if category and word_category.lower() != category.lower():
            continue
        if query and query.lower() not in word and query != code:
            continue
        results.append({'word': word, 'code': code, 'category': word_category})
    return results
