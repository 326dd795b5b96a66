"""
Tone alphabet derived from a frequency profile.

A profile holds five ascending frequencies: four tone bands
(Low, Mid, High, Top) and the Link frequency. Each band carries a
short (lowercase) and a long (uppercase) symbol:

    a/A -> Low    e/E -> Mid    i/I -> High    o/O -> Top
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .constants import (
    SHORT_MS, LONG_MS,
    SYMBOL_CHARS, BAND_LABELS,
    BIN_TOLERANCE_RATIO, BIN_TOLERANCE_MIN, BIN_TOLERANCE_MAX,
)


@dataclass(frozen=True)
class FrequencyProfile:
    """
    The five frequencies used for one session.

    Every encode, synthesis and detection pass in a session must share
    one profile; tones from another profile land outside the bins.
    """
    name: str
    freqs: Tuple[float, ...]
    label: str = ''
    description: str = ''

    def __post_init__(self):
        """Validate frequencies after initialization."""
        freqs = tuple(float(f) for f in self.freqs)
        if len(freqs) != 5:
            raise ValueError(f"Profile {self.name!r} needs exactly 5 frequencies, got {len(freqs)}")
        if any(f <= 0 for f in freqs):
            raise ValueError(f"Profile {self.name!r} frequencies must be positive: {freqs}")
        for low, high in zip(freqs, freqs[1:]):
            if high <= low:
                raise ValueError(f"Profile {self.name!r} frequencies must be ascending: {freqs}")
        object.__setattr__(self, 'freqs', freqs)
        if not self.label:
            object.__setattr__(self, 'label', self.name.title())

    @property
    def link_frequency(self) -> float:
        return self.freqs[4]

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'label': self.label,
            'description': self.description,
            'freqs': list(self.freqs),
        }


@dataclass(frozen=True)
class Symbol:
    """One tone symbol: a band frequency held for a short or long duration."""
    char: str
    band: str
    frequency: float
    duration_ms: int

    @property
    def is_long(self) -> bool:
        return self.duration_ms == LONG_MS

    @property
    def duration(self) -> float:
        return self.duration_ms / 1000


@dataclass(frozen=True)
class FrequencyBin:
    """Tolerance window around one profile frequency."""
    band: str
    center: float
    min_freq: float
    max_freq: float

    def contains(self, frequency: float) -> bool:
        return self.min_freq <= frequency <= self.max_freq


def bin_tolerance(profile: FrequencyProfile) -> float:
    """Half-width of every bin: 35% of the first spacing, clamped to 30..50 Hz."""
    spacing = profile.freqs[1] - profile.freqs[0]
    return max(BIN_TOLERANCE_MIN, min(BIN_TOLERANCE_MAX, spacing * BIN_TOLERANCE_RATIO))


def build_symbols(profile: FrequencyProfile) -> Dict[str, Symbol]:
    """Map each of the 8 alphabet characters to its Symbol."""
    symbols = {}
    for index, char in enumerate(SYMBOL_CHARS):
        band_index = index // 2
        symbols[char] = Symbol(
            char=char,
            band=BAND_LABELS[band_index],
            frequency=profile.freqs[band_index],
            duration_ms=LONG_MS if char.isupper() else SHORT_MS,
        )
    return symbols


def build_bins(profile: FrequencyProfile) -> List[FrequencyBin]:
    """One bin per profile frequency, in profile order."""
    tolerance = bin_tolerance(profile)
    return [
        FrequencyBin(band=band, center=freq, min_freq=freq - tolerance, max_freq=freq + tolerance)
        for band, freq in zip(BAND_LABELS, profile.freqs)
    ]


@dataclass(frozen=True)
class Alphabet:
    """
    Symbol and bin tables for one profile.

    Built once per session and read-only afterwards.
    """
    profile: FrequencyProfile
    symbols: Mapping[str, Symbol] = field(init=False)
    bins: Tuple[FrequencyBin, ...] = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'symbols', MappingProxyType(build_symbols(self.profile)))
        object.__setattr__(self, 'bins', tuple(build_bins(self.profile)))

    @property
    def link_frequency(self) -> float:
        return self.profile.link_frequency

    def classify(self, frequency: float) -> Optional[str]:
        """
        Return the band label whose bin contains frequency, or None.

        Bins may overlap on narrow profiles; the first match in
        profile order wins.
        """
        for freq_bin in self.bins:
            if freq_bin.contains(frequency):
                return freq_bin.band
        return None
