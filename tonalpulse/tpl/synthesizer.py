"""
TPL tone synthesizer.

Walks a parsed written form and schedules one tone per symbol or link
on a millisecond cursor:

    lead-in 50 ms
    symbol   tone (100/200 ms) + 50 ms gap
    wordgap  200 ms silence
    link     100 ms tone on the link frequency + 200 ms gap
    prefix   50 ms silence

followed by a 300 ms trailing pad. Every tone is shaped with a 10 ms
linear fade-in and fade-out; hard edges smear into neighbouring
spectrum frames and throw off the receiver's peak estimate.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .alphabet import Alphabet
from .constants import (
    SAMPLE_RATE, SHORT_MS, LONG_MS,
    LEAD_IN_MS, GAP_SYMBOL_MS, GAP_WORD_MS, TRAILING_PAD_MS,
    FADE_MS, SYMBOL_AMPLITUDE, LINK_AMPLITUDE, LINK_CHAR,
)
from .parser import Token, TokenKind, parse
from .profiles import DEFAULT_PRESET, get_alphabet
from . import wav

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToneEvent:
    """A single scheduled tone. Times are seconds from the start of the signal."""
    frequency: float
    start: float
    duration: float
    amplitude: float
    symbol: str
    fade: float = FADE_MS / 1000

    @property
    def end(self) -> float:
        return self.start + self.duration

    def envelope(self) -> List[Tuple[float, float]]:
        """Gain breakpoints: ramp up, hold the plateau, ramp down."""
        return [
            (self.start, 0.0),
            (self.start + self.fade, self.amplitude),
            (self.end - self.fade, self.amplitude),
            (self.end, 0.0),
        ]

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'frequency': self.frequency,
            'start': round(self.start, 3),
            'duration': round(self.duration, 3),
            'amplitude': self.amplitude,
        }


@dataclass(frozen=True)
class Synthesis:
    """Result of one synthesis pass."""
    written_form: str
    events: Tuple[ToneEvent, ...]
    total_duration: float

    @property
    def tone_time(self) -> float:
        """Seconds during which a tone is sounding."""
        return sum(event.duration for event in self.events)


def symbol_duration_ms(char: str) -> int:
    return LONG_MS if char.isupper() else SHORT_MS


def token_advance_ms(token: Token) -> int:
    """How far one token moves the cursor, tone included."""
    if token.kind == TokenKind.SYMBOL:
        return symbol_duration_ms(token.char) + GAP_SYMBOL_MS
    if token.kind == TokenKind.WORD_GAP:
        return GAP_WORD_MS
    if token.kind == TokenKind.LINK:
        return SHORT_MS + GAP_WORD_MS
    # prefix terminator
    return GAP_SYMBOL_MS


def estimate_duration(written: str) -> float:
    """
    Total signal length in seconds, trailing pad included.

    Uses the same per-token rules as Synthesizer.synthesize, without
    building any events, so an output buffer can be sized up front.
    """
    cursor_ms = LEAD_IN_MS + sum(token_advance_ms(token) for token in parse(written))
    return (cursor_ms + TRAILING_PAD_MS) / 1000


class Synthesizer:
    """
    Turns written forms into tone events and audio samples.

    The alphabet is fixed for the life of the instance; build a new
    synthesizer to change profile.
    """

    def __init__(self, alphabet: Alphabet = None, sample_rate: int = SAMPLE_RATE):
        self.alphabet = alphabet if alphabet is not None else get_alphabet(DEFAULT_PRESET)
        self.sample_rate = sample_rate

    def synthesize(self, written: str) -> Synthesis:
        """
        Schedule tone events for a written form.

        Args:
            written: Written form, e.g. "a/ aAi eAa"

        Returns:
            Synthesis with events in time order and the padded total duration
        """
        events = []
        cursor_ms = LEAD_IN_MS

        for token in parse(written):
            if token.kind == TokenKind.SYMBOL:
                symbol = self.alphabet.symbols[token.char]
                events.append(ToneEvent(
                    frequency=symbol.frequency,
                    start=cursor_ms / 1000,
                    duration=symbol.duration_ms / 1000,
                    amplitude=SYMBOL_AMPLITUDE,
                    symbol=token.char,
                ))
            elif token.kind == TokenKind.LINK:
                events.append(ToneEvent(
                    frequency=self.alphabet.link_frequency,
                    start=cursor_ms / 1000,
                    duration=SHORT_MS / 1000,
                    amplitude=LINK_AMPLITUDE,
                    symbol=LINK_CHAR,
                ))
            cursor_ms += token_advance_ms(token)

        total = (cursor_ms + TRAILING_PAD_MS) / 1000
        logger.debug("Synthesized %d tones, %.3fs for %r", len(events), total, written)
        return Synthesis(written_form=written, events=tuple(events), total_duration=total)

    def _generate_tone(self, event: ToneEvent) -> np.ndarray:
        """Generate one enveloped sine tone, starting at phase zero."""
        n_samples = int(round(event.duration * self.sample_rate))
        t = np.arange(n_samples) / self.sample_rate
        envelope = np.interp(
            t,
            [0.0, event.fade, event.duration - event.fade, event.duration],
            [0.0, event.amplitude, event.amplitude, 0.0],
        )
        return envelope * np.sin(2 * np.pi * event.frequency * t)

    def render(self, synthesis: Synthesis) -> np.ndarray:
        """
        Render a synthesis pass into mono float samples.

        The buffer is sized from total_duration before any tone is
        written; tones are mixed in at their start sample.
        """
        n_samples = int(math.ceil(self.sample_rate * synthesis.total_duration))
        signal = np.zeros(n_samples, dtype=np.float64)

        for event in synthesis.events:
            tone = self._generate_tone(event)
            start = int(round(event.start * self.sample_rate))
            end = min(start + len(tone), n_samples)
            signal[start:end] += tone[:end - start]

        return signal

    def render_written(self, written: str) -> np.ndarray:
        """Synthesize and render in one step."""
        return self.render(self.synthesize(written))

    def to_wav(self, written: str, filename: str):
        """Render a written form straight to a WAV file."""
        wav.write_wav(filename, self.render_written(written), self.sample_rate)

    def to_bytes(self, written: str) -> bytes:
        """Render a written form to WAV bytes (for web streaming)."""
        return wav.serialize(self.render_written(written), self.sample_rate)
