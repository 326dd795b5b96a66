# TPL (Tonal Pulse Language) codec: alphabet, vocabulary, text and audio encoding
from .alphabet import Alphabet, FrequencyProfile, FrequencyBin, Symbol
from .profiles import FREQUENCY_PRESETS, DEFAULT_PRESET, get_profile, get_alphabet
from .parser import Token, TokenKind, parse
from .encoder import EncodeResult, encode
from .decoder import decode
from .synthesizer import Synthesizer, Synthesis, ToneEvent, estimate_duration
from .wav import serialize, read_wav, write_wav

__all__ = [
    'Alphabet', 'FrequencyProfile', 'FrequencyBin', 'Symbol',
    'FREQUENCY_PRESETS', 'DEFAULT_PRESET', 'get_profile', 'get_alphabet',
    'Token', 'TokenKind', 'parse',
    'EncodeResult', 'encode', 'decode',
    'Synthesizer', 'Synthesis', 'ToneEvent', 'estimate_duration',
    'serialize', 'read_wav', 'write_wav',
]
