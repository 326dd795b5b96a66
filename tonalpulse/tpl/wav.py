"""
Canonical WAV container: mono, 16-bit little-endian PCM, 44-byte header.

Byte layout (all integers little-endian):

    0   'RIFF'          4   file size - 8
    8   'WAVE'          12  'fmt '
    16  16 (fmt size)   20  1 (PCM)        22  1 (channels)
    24  sample rate     28  byte rate      32  2 (block align)
    34  16 (bits)       36  'data'         40  data size
    44  samples
"""

import io
import re
import struct
import wave
from typing import Tuple, Union

import numpy as np

from .constants import SAMPLE_RATE

HEADER_SIZE = 44
_HEADER_FORMAT = '<4sI4s4sIHHIIHH4sI'


def pcm16(samples) -> np.ndarray:
    """
    Convert float samples to int16.

    Samples are clamped to [-1, 1]; negatives scale by 32768 and
    positives by 32767 so neither end overflows. Scaled values are
    truncated toward zero.
    """
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768, clipped * 32767)
    return np.trunc(scaled).astype('<i2')


def build_header(n_samples: int, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Pack the 44-byte header for n_samples of mono 16-bit audio."""
    data_size = n_samples * 2
    return struct.pack(
        _HEADER_FORMAT,
        b'RIFF', HEADER_SIZE - 8 + data_size, b'WAVE',
        b'fmt ', 16, 1, 1, sample_rate, sample_rate * 2, 2, 16,
        b'data', data_size,
    )


def serialize(samples, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Serialize float samples in [-1, 1] to WAV bytes."""
    data = pcm16(samples)
    return build_header(len(data), sample_rate) + data.tobytes()


def write_wav(filename: str, samples, sample_rate: int = SAMPLE_RATE):
    """Export audio samples to a WAV file."""
    with open(filename, 'wb') as f:
        f.write(serialize(samples, sample_rate))


def read_wav(source: Union[str, bytes, io.IOBase]) -> Tuple[np.ndarray, int]:
    """
    Read a PCM WAV into mono float samples.

    Args:
        source: Path, raw bytes or file-like object

    Returns:
        Tuple of (samples, sample_rate)
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        with wave.open(source, 'rb') as wav_file:
            n_channels = wav_file.getnchannels()
            sample_width = wav_file.getsampwidth()
            framerate = wav_file.getframerate()
            raw = wav_file.readframes(wav_file.getnframes())
    except (wave.Error, EOFError) as e:
        raise ValueError(f"Not a PCM WAV file: {e}") from e

    if sample_width == 1:
        samples = np.frombuffer(raw, dtype=np.uint8).astype(np.float64)
        samples = (samples - 128) / 128
    elif sample_width == 2:
        samples = np.frombuffer(raw, dtype='<i2').astype(np.float64)
        samples = samples / 32768
    elif sample_width == 3:
        # 24-bit PCM
        triples = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        values = triples[:, 0] | (triples[:, 1] << 8) | (triples[:, 2] << 16)
        values = np.where(values & 0x800000, values - 0x1000000, values)
        samples = values.astype(np.float64) / (2 ** 23)
    elif sample_width == 4:
        samples = np.frombuffer(raw, dtype='<i4').astype(np.float64)
        samples = samples / (2 ** 31)
    else:
        raise ValueError(f"Unsupported sample width: {sample_width}")

    # mix down to mono
    if n_channels > 1:
        samples = samples.reshape(-1, n_channels).mean(axis=1)

    return samples, framerate


def export_filename(written: str) -> str:
    """Download name for a written form, e.g. "a/ aAi" -> "tpl_a__aAi.wav"."""
    return f"tpl_{re.sub(r'[^a-zA-Z]', '_', written)[:25]}.wav"
