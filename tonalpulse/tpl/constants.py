"""
Tonal Pulse protocol constants.

All timing values are in milliseconds so that synthesis and duration
estimation accumulate exactly the same integers.
"""

# Symbol durations
SHORT_MS = 100   # lowercase symbols
LONG_MS = 200    # uppercase symbols

# Gaps
LEAD_IN_MS = 50        # silence before the first tone
GAP_SYMBOL_MS = 50     # after every symbol, and for a prefix terminator
GAP_WORD_MS = 200      # word gap, also follows a link tone
TRAILING_PAD_MS = 300  # appended to the final cursor position

# Envelope
FADE_MS = 10             # linear fade-in and fade-out per tone
SYMBOL_AMPLITUDE = 0.4   # leave headroom
LINK_AMPLITUDE = 0.35

# Rendering
SAMPLE_RATE = 44100

# Alphabet
SYMBOL_CHARS = 'aAeEiIoO'
LINK_CHAR = '~'
WORD_GAP_CHAR = ' '
PREFIX_CHAR = '/'

# Frequency bins
BAND_LABELS = ('L', 'M', 'H', 'T', 'LINK')
BAND_NAMES = {'L': 'LOW', 'M': 'MID', 'H': 'HIGH', 'T': 'TOP', 'LINK': 'LINK'}
BIN_TOLERANCE_RATIO = 0.35
BIN_TOLERANCE_MIN = 30   # Hz
BIN_TOLERANCE_MAX = 50   # Hz

# Receiver
POWER_THRESHOLD_DB = -40.0   # peak must exceed this to count as a tone
POWER_FLOOR_DB = -100.0      # level meters read power + 100, floored at 0
SILENCE_RELEASE_TICKS = 5    # above this, the same band may be detected again
SILENCE_FLUSH_TICKS = 15     # at this, the buffered tones become one group
HISTORY_SIZE = 30            # recent detections kept for display
LONG_THRESHOLD_S = 0.150     # run length separating short and long symbols

# Spectrum analysis
FFT_SIZE = 4096
FRAME_RATE = 60        # ticks per second, one display refresh
SKIP_LOW_BINS = 5      # DC and rumble bins ignored by the peak search

# Band letter emitted when a buffered tone group is flushed
FLUSH_LETTERS = {'L': 'a', 'M': 'e', 'H': 'i', 'T': 'o', 'LINK': '~'}

LINK_MARKER = '→'  # rendered for '~' when decoding
