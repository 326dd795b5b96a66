"""
TPL demodulator.

Consumes one spectrum frame per tick and rebuilds a written form.

Per tick:
    1. level meters for the five profile frequencies (display only)
    2. find the strongest spectrum bin
    3. peak above -40 dB: classify it into a band. A band that differs
       from the previous one is recorded once (debounce); a sustained
       tone is only recorded at its onset.
    4. otherwise count a silent tick. After 5 silent ticks the same
       band may be recorded again; at 15 the buffered bands are flushed
       to the output as one space-separated group.

State machine
-------------
    IDLE --tone--> TONE_ACTIVE --silence--> FLUSHING --15 ticks--> IDLE
                        ^                       |
                        +---------tone----------+

Bands flush as a e i o ~. Short and long symbols sound on the same
frequency, so a frequency-only receiver emits lowercase letters. With
resolve_duration enabled the length of each tone run is measured and
runs of at least long_threshold seconds flush as uppercase.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Deque, Dict, List, Optional, Tuple

import numpy as np

from ..tpl.alphabet import Alphabet
from ..tpl.constants import (
    POWER_THRESHOLD_DB, POWER_FLOOR_DB,
    SILENCE_RELEASE_TICKS, SILENCE_FLUSH_TICKS,
    HISTORY_SIZE, LONG_THRESHOLD_S, FRAME_RATE,
    FLUSH_LETTERS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionFrame:
    """One spectrum snapshot: power in dB at each analysed frequency."""
    frequencies: np.ndarray
    powers: np.ndarray

    def power_at(self, frequency: float) -> float:
        """Power of the analysed frequency nearest to frequency."""
        index = int(np.argmin(np.abs(self.frequencies - frequency)))
        return float(self.powers[index])

    def peak(self) -> Tuple[float, float]:
        """(frequency, power) of the strongest bin."""
        index = int(np.argmax(self.powers))
        return float(self.frequencies[index]), float(self.powers[index])


class ReceiverState(Enum):
    IDLE = auto()
    TONE_ACTIVE = auto()
    FLUSHING = auto()  # silent, with buffered bands waiting for the flush


class EventKind(Enum):
    TONE = auto()
    FLUSH = auto()


@dataclass(frozen=True)
class DetectedTone:
    band: str
    frequency: float
    tick: int


@dataclass(frozen=True)
class ReceiverEvent:
    kind: EventKind
    payload: object = None


class Demodulator:
    """
    Frame-by-frame tone detector.

    Holds only bounded state: the tone buffer, the silence counter and
    the last recorded band. Each tick returns the events it produced.
    """

    def __init__(
        self,
        alphabet: Alphabet,
        threshold_db: float = POWER_THRESHOLD_DB,
        release_ticks: int = SILENCE_RELEASE_TICKS,
        flush_ticks: int = SILENCE_FLUSH_TICKS,
        resolve_duration: bool = False,
        frame_period: float = 1 / FRAME_RATE,
        long_threshold: float = LONG_THRESHOLD_S,
    ):
        self.alphabet = alphabet
        self.threshold_db = threshold_db
        self.release_ticks = release_ticks
        self.flush_ticks = flush_ticks
        self.resolve_duration = resolve_duration
        self.frame_period = frame_period
        self.long_threshold = long_threshold

        self.history: Deque[DetectedTone] = deque(maxlen=HISTORY_SIZE)
        self.levels: Dict[float, float] = {}
        self._output = ''
        self._buffer: List[List] = []  # [band, is_long]
        self.reset()

    def reset(self):
        """Start a fresh session: clears output, history and in-flight state."""
        self._output = ''
        self.history.clear()
        self.levels = {}
        self._ticks = 0
        self.cancel()

    def cancel(self):
        """Drop unflushed tones. Already flushed output is kept."""
        if self._buffer:
            logger.debug("Discarding %d unflushed tones", len(self._buffer))
        self._buffer = []
        self._last_band: Optional[str] = None
        self._silence = 0
        self._run_ticks = 0
        self._run_open = False
        self._state = ReceiverState.IDLE

    @property
    def state(self) -> ReceiverState:
        return self._state

    @property
    def active_band(self) -> Optional[str]:
        return self._last_band if self._state == ReceiverState.TONE_ACTIVE else None

    @property
    def written_form(self) -> str:
        """Everything flushed so far."""
        return self._output

    @property
    def pending(self) -> str:
        """Buffered letters not yet flushed."""
        return self._letters()

    def _letters(self) -> str:
        letters = []
        for band, is_long in self._buffer:
            letter = FLUSH_LETTERS.get(band, '?')
            letters.append(letter.upper() if is_long else letter)
        return ''.join(letters)

    def _close_run(self):
        """A tone run just ended; mark its buffered band long if it lasted."""
        if not self._run_open:
            return
        self._run_open = False
        if not self.resolve_duration or not self._buffer:
            return
        if self._buffer[-1][0] == 'LINK':
            return
        if self._run_ticks * self.frame_period >= self.long_threshold:
            self._buffer[-1][1] = True

    def _flush(self) -> str:
        group = self._letters()
        self._output = f'{self._output} {group}' if self._output else group
        self._buffer = []
        logger.debug("Flushed tone group %r", group)
        return group

    def tick(self, frame: DetectionFrame) -> List[ReceiverEvent]:
        """Process one frame and return the events it produced."""
        self._ticks += 1
        events = []

        self.levels = {
            freq: max(0.0, frame.power_at(freq) - POWER_FLOOR_DB)
            for freq in self.alphabet.profile.freqs
        }

        peak_freq, peak_power = frame.peak()

        if peak_power > self.threshold_db:
            band = self.alphabet.classify(peak_freq)
            if band:
                self._silence = 0
                if band != self._last_band:
                    self._close_run()
                    self._last_band = band
                    self._buffer.append([band, False])
                    self._run_ticks = 0
                    self._run_open = True
                    detected = DetectedTone(band=band, frequency=round(peak_freq), tick=self._ticks)
                    self.history.append(detected)
                    events.append(ReceiverEvent(EventKind.TONE, detected))
                    logger.debug("Tone %s at %.0f Hz (%.1f dB)", band, peak_freq, peak_power)
                if self._run_open:
                    self._run_ticks += 1
                self._state = ReceiverState.TONE_ACTIVE
        else:
            self._close_run()
            self._silence += 1
            if self._silence > self.release_ticks:
                self._last_band = None
            if self._silence == self.flush_ticks and self._buffer:
                events.append(ReceiverEvent(EventKind.FLUSH, self._flush()))
            self._state = ReceiverState.FLUSHING if self._buffer else ReceiverState.IDLE

        return events
