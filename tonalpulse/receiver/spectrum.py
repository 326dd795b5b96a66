"""
Spectrum frames from raw audio.

Mirrors a browser analyser node: Blackman window, magnitude scaled by
1/fft_size, exponential smoothing across frames, then dB. A 0.4
amplitude tone peaks around -21 dB, comfortably above the receiver
threshold; digital silence sits far below it.
"""

from typing import Iterable, Iterator

import numpy as np

from ..tpl.constants import FFT_SIZE, FRAME_RATE, SKIP_LOW_BINS
from .demodulator import DetectionFrame

MIN_DB = -200.0


class SpectrumAnalyser:
    """
    Stateful FFT analyser producing one DetectionFrame per block.

    The lowest SKIP_LOW_BINS bins are left out of every frame so DC
    offset and rumble never win the peak search.
    """

    def __init__(
        self,
        sample_rate: int,
        fft_size: int = FFT_SIZE,
        smoothing: float = 0.3,
        skip_bins: int = SKIP_LOW_BINS,
    ):
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"Smoothing must be in [0, 1): {smoothing}")
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.smoothing = smoothing
        self.skip_bins = skip_bins
        self._window = np.blackman(fft_size)
        self._frequencies = np.fft.rfftfreq(fft_size, 1 / sample_rate)[skip_bins:]
        self._magnitudes = np.zeros(fft_size // 2 + 1)

    @property
    def bin_width(self) -> float:
        return self.sample_rate / self.fft_size

    def analyse(self, block: np.ndarray) -> DetectionFrame:
        """Analyse the most recent fft_size samples (zero-padded on the left if short)."""
        block = np.asarray(block, dtype=np.float64)[-self.fft_size:]
        if len(block) < self.fft_size:
            block = np.concatenate([np.zeros(self.fft_size - len(block)), block])

        magnitudes = np.abs(np.fft.rfft(block * self._window)) / self.fft_size
        self._magnitudes = self.smoothing * self._magnitudes + (1 - self.smoothing) * magnitudes

        with np.errstate(divide='ignore'):
            powers = 20 * np.log10(self._magnitudes)
        powers = np.maximum(powers, MIN_DB)

        return DetectionFrame(frequencies=self._frequencies, powers=powers[self.skip_bins:])


def hop_size(sample_rate: int, frame_rate: float = FRAME_RATE) -> int:
    """Samples between successive ticks."""
    return max(1, int(round(sample_rate / frame_rate)))


def spectrum_frames(
    samples: np.ndarray,
    sample_rate: int,
    fft_size: int = FFT_SIZE,
    frame_rate: float = FRAME_RATE,
    smoothing: float = 0.3,
) -> Iterator[DetectionFrame]:
    """
    Slide an analyser over a finished recording, one frame per tick.

    Each frame sees the fft_size samples ending at the tick, the way a
    live analyser sees the latest audio.
    """
    analyser = SpectrumAnalyser(sample_rate, fft_size=fft_size, smoothing=smoothing)
    hop = hop_size(sample_rate, frame_rate)
    samples = np.asarray(samples, dtype=np.float64)

    for end in range(hop, len(samples) + 1, hop):
        yield analyser.analyse(samples[max(0, end - fft_size):end])


def stream_frames(
    blocks: Iterable[np.ndarray],
    sample_rate: int,
    fft_size: int = FFT_SIZE,
    frame_rate: float = FRAME_RATE,
    smoothing: float = 0.3,
) -> Iterator[DetectionFrame]:
    """
    Turn a stream of audio blocks of any size into frames, one per hop.

    Keeps a rolling buffer of the last fft_size samples.
    """
    analyser = SpectrumAnalyser(sample_rate, fft_size=fft_size, smoothing=smoothing)
    hop = hop_size(sample_rate, frame_rate)
    history = np.zeros(fft_size)
    pending = 0

    for block in blocks:
        block = np.asarray(block, dtype=np.float64).reshape(-1)
        while len(block):
            take = min(hop - pending, len(block))
            history = np.concatenate([history[take:], block[:take]])
            block = block[take:]
            pending += take
            if pending == hop:
                pending = 0
                yield analyser.analyse(history)
