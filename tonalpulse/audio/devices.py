"""
Speaker and microphone access via sounddevice.

sounddevice needs PortAudio at import time, so it is imported only
when a device is actually used.
"""

import logging
import queue
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np

from ..tpl.constants import SAMPLE_RATE, FFT_SIZE, FRAME_RATE
from ..tpl.synthesizer import Synthesis, Synthesizer
from ..receiver.demodulator import DetectionFrame
from ..receiver.spectrum import hop_size, stream_frames

logger = logging.getLogger(__name__)


def _sounddevice():
    try:
        import sounddevice
    except (ImportError, OSError) as e:
        raise RuntimeError(
            'Audio devices unavailable. Install sounddevice and PortAudio: ' + str(e)
        ) from e
    return sounddevice


def devices_available() -> bool:
    """Check if an audio backend can be loaded."""
    try:
        _sounddevice()
        return True
    except RuntimeError:
        return False


def play(synthesizer: Synthesizer, synthesis: Synthesis, wait: bool = True) -> float:
    """
    Play a synthesis pass on the default output device.

    Every tone is already placed at its start offset in the rendered
    buffer, so playback needs no callbacks into the codec.

    Returns:
        Duration of the signal in seconds
    """
    sd = _sounddevice()
    samples = synthesizer.render(synthesis).astype(np.float32)
    logger.info("Playing %d tones (%.2fs)", len(synthesis.events), synthesis.total_duration)
    sd.play(samples, synthesizer.sample_rate)
    if wait:
        sd.wait()
    return synthesis.total_duration


@contextmanager
def microphone_frames(
    sample_rate: int = SAMPLE_RATE,
    fft_size: int = FFT_SIZE,
    frame_rate: float = FRAME_RATE,
    stop: Optional[threading.Event] = None,
) -> Iterator[Iterator[DetectionFrame]]:
    """
    Open the default input device and yield a stream of spectrum frames.

    The input stream is closed when the with-block exits, whether the
    receiver finished, was stopped or raised.

    Usage:
        with microphone_frames(stop=stop_event) as frames:
            session.run(frames)
    """
    sd = _sounddevice()
    blocks: queue.Queue = queue.Queue()
    stop = stop or threading.Event()

    def audio_callback(indata, frames, time, status):
        if status:
            logger.warning("Input status: %s", status)
        blocks.put(indata[:, 0].copy())

    def read_blocks():
        while not stop.is_set():
            try:
                yield blocks.get(timeout=0.5)
            except queue.Empty:
                continue

    stream = sd.InputStream(
        samplerate=sample_rate,
        channels=1,
        callback=audio_callback,
        blocksize=hop_size(sample_rate, frame_rate),
    )
    with stream:
        logger.info("Microphone open at %d Hz", sample_rate)
        try:
            yield stream_frames(read_blocks(), sample_rate, fft_size=fft_size, frame_rate=frame_rate)
        finally:
            stop.set()
            logger.info("Microphone closed")
