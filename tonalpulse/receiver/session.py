"""
Receiver sessions: drive a Demodulator from a frame source until the
source ends or the session is stopped.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

import numpy as np

from ..tpl.alphabet import Alphabet
from ..tpl.constants import FFT_SIZE, FRAME_RATE, SILENCE_FLUSH_TICKS, LONG_THRESHOLD_S
from ..tpl.decoder import decode
from ..tpl import wav
from .demodulator import Demodulator, DetectionFrame, DetectedTone, EventKind
from .spectrum import hop_size, spectrum_frames

logger = logging.getLogger(__name__)


@dataclass
class ReceiveResult:
    """What a finished session heard."""
    written_form: str
    detections: List[DetectedTone] = field(default_factory=list)
    cancelled: bool = False

    @property
    def text(self) -> str:
        return decode(self.written_form)

    def to_dict(self) -> dict:
        return {
            'written': self.written_form,
            'text': self.text,
            'detections': [
                {'band': d.band, 'freq': d.frequency, 'tick': d.tick}
                for d in self.detections
            ],
            'cancelled': self.cancelled,
        }


class ReceiverSession:
    """
    Cooperative detection loop.

    One frame in, one tick, then back to the source; nothing blocks
    inside a tick. stop() may be called from another thread; the loop
    notices before the next tick and discards unflushed tones.
    """

    def __init__(
        self,
        demodulator: Demodulator,
        on_tone: Optional[Callable[[DetectedTone], None]] = None,
        on_flush: Optional[Callable[[str], None]] = None,
    ):
        self.demodulator = demodulator
        self.on_tone = on_tone
        self.on_flush = on_flush
        self._stop = threading.Event()
        self._detections: List[DetectedTone] = []

    def stop(self):
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self, frames: Iterable[DetectionFrame]) -> ReceiveResult:
        """
        Consume frames until exhausted or stopped.

        Unflushed tones are discarded on stop and when the frame source
        or a callback raises; the exception is re-raised.
        """
        self._stop.clear()
        self._detections = []
        cancelled = False

        try:
            for frame in frames:
                if self._stop.is_set():
                    cancelled = True
                    break
                for event in self.demodulator.tick(frame):
                    if event.kind == EventKind.TONE:
                        self._detections.append(event.payload)
                        if self.on_tone:
                            self.on_tone(event.payload)
                    elif event.kind == EventKind.FLUSH and self.on_flush:
                        self.on_flush(event.payload)
        except BaseException:
            # interrupted or failing source: unflushed tones are dropped
            self.demodulator.cancel()
            logger.info("Receiver interrupted")
            raise

        if cancelled or self._stop.is_set():
            cancelled = True
            self.demodulator.cancel()
            logger.info("Receiver stopped")

        return ReceiveResult(
            written_form=self.demodulator.written_form,
            detections=list(self._detections),
            cancelled=cancelled,
        )


def build_demodulator(
    alphabet: Alphabet,
    sample_rate: int,
    resolve_duration: bool = False,
    fft_size: int = FFT_SIZE,
    frame_rate: float = FRAME_RATE,
) -> Demodulator:
    """
    Demodulator tuned for FFT frames.

    The analysis window keeps a tone visible for roughly half a window
    beyond its end, so the long/short boundary is pushed out by that much.
    """
    frame_period = hop_size(sample_rate, frame_rate) / sample_rate
    window_lag = fft_size / sample_rate / 2
    return Demodulator(
        alphabet,
        resolve_duration=resolve_duration,
        frame_period=frame_period,
        long_threshold=LONG_THRESHOLD_S + window_lag,
    )


def receive_samples(
    samples: np.ndarray,
    sample_rate: int,
    alphabet: Alphabet,
    resolve_duration: bool = False,
    fft_size: int = FFT_SIZE,
    frame_rate: float = FRAME_RATE,
) -> ReceiveResult:
    """
    Demodulate a finished recording.

    Silence is appended so the final group is flushed the same way it
    would be if the channel simply went quiet.
    """
    tail = fft_size + (SILENCE_FLUSH_TICKS + 1) * hop_size(sample_rate, frame_rate)
    padded = np.concatenate([np.asarray(samples, dtype=np.float64), np.zeros(tail)])

    demodulator = build_demodulator(
        alphabet, sample_rate,
        resolve_duration=resolve_duration, fft_size=fft_size, frame_rate=frame_rate,
    )
    session = ReceiverSession(demodulator)
    result = session.run(spectrum_frames(padded, sample_rate, fft_size=fft_size, frame_rate=frame_rate))
    logger.info("Received %r from %.2fs of audio", result.written_form, len(samples) / sample_rate)
    return result


def receive_wav(source, alphabet: Alphabet, resolve_duration: bool = False) -> ReceiveResult:
    """Demodulate a WAV file (path, bytes or file-like object)."""
    samples, sample_rate = wav.read_wav(source)
    return receive_samples(samples, sample_rate, alphabet, resolve_duration=resolve_duration)
