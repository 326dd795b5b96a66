"""
Named frequency presets.

Pick one per session; sender and receiver must agree on it.
"""

from .alphabet import FrequencyProfile, Alphabet

DEFAULT_PRESET = 'bright'

FREQUENCY_PRESETS = {
    'bright': FrequencyProfile(
        name='bright',
        label='Bright',
        description='Clear chirpy - best for phones & small speakers',
        freqs=(400, 700, 1000, 1300, 1600),
    ),
    'warm': FrequencyProfile(
        name='warm',
        label='Warm',
        description='Mid-range - balanced for most setups',
        freqs=(250, 450, 680, 950, 1200),
    ),
    'deep': FrequencyProfile(
        name='deep',
        label='Deep',
        description='Low rumbling bass - needs decent speakers',
        freqs=(120, 220, 340, 480, 600),
    ),
    'subsonic': FrequencyProfile(
        name='subsonic',
        label='Subsonic',
        description='Feel more than hear - needs subwoofer',
        freqs=(60, 110, 180, 260, 360),
    ),
    'scifi': FrequencyProfile(
        name='scifi',
        label='Sci-Fi',
        description='Wide dramatic range - cinematic machine voice',
        freqs=(150, 400, 800, 1400, 2000),
    ),
}


def get_profile(name: str) -> FrequencyProfile:
    """Look up a preset by name, rejecting anything not in the table."""
    key = name.lower()
    if key not in FREQUENCY_PRESETS:
        raise ValueError(f"Unknown frequency preset: {name}")
    return FREQUENCY_PRESETS[key]


def get_alphabet(name: str = DEFAULT_PRESET) -> Alphabet:
    """Build the alphabet for a named preset."""
    return Alphabet(get_profile(name))
