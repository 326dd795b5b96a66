"""
Tests for TPL synthesis and WAV serialization
"""

import numpy as np
import pytest
import struct
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tonalpulse.tpl import Synthesizer, encode, estimate_duration, get_alphabet
from tonalpulse.tpl.constants import SAMPLE_RATE, SYMBOL_AMPLITUDE, LINK_AMPLITUDE
from tonalpulse.tpl.wav import export_filename, pcm16, read_wav, serialize, write_wav


class TestSynthesizer:
    """Tests for tone scheduling."""

    def test_prefix_and_word_timing(self):
        """Lead-in, symbol gaps, prefix gap and both word gaps land on the cursor."""
        synthesis = Synthesizer().synthesize('a/ aAi')

        starts = [e.start for e in synthesis.events]
        durations = [e.duration for e in synthesis.events]
        assert starts == pytest.approx([0.05, 0.65, 0.80, 1.05])
        assert durations == pytest.approx([0.1, 0.1, 0.2, 0.1])
        assert synthesis.total_duration == pytest.approx(1.5)

    def test_frequencies_follow_profile(self):
        synthesis = Synthesizer(get_alphabet('deep')).synthesize('aEiO')
        assert [e.frequency for e in synthesis.events] == [120, 220, 340, 480]
        assert [e.symbol for e in synthesis.events] == ['a', 'E', 'i', 'O']

    def test_link_tone(self):
        """A link is a short tone on the fifth frequency followed by a word gap."""
        synthesis = Synthesizer(get_alphabet('bright')).synthesize('~')
        event = synthesis.events[0]
        assert event.frequency == 1600
        assert event.duration == pytest.approx(0.1)
        assert event.amplitude == LINK_AMPLITUDE
        assert synthesis.total_duration == pytest.approx(0.65)

    def test_empty_written_form(self):
        synthesis = Synthesizer().synthesize('')
        assert synthesis.events == ()
        assert synthesis.total_duration == pytest.approx(0.35)

    def test_envelope_shape(self):
        event = Synthesizer().synthesize('a').events[0]
        points = event.envelope()
        assert points[0] == (pytest.approx(0.05), 0.0)
        assert points[1] == (pytest.approx(0.06), SYMBOL_AMPLITUDE)
        assert points[2] == (pytest.approx(0.14), SYMBOL_AMPLITUDE)
        assert points[3] == (pytest.approx(0.15), 0.0)

    @pytest.mark.parametrize('written', [
        '',
        'a/ ',
        'a/ aAi eAa iAa oEo',
        'ii/ Ooa ~ OOo',
        'xx / ?? aA~eE',
        '~~  ~',
    ])
    def test_estimate_matches_synthesis(self, written):
        """The standalone estimate equals the synthesized total exactly."""
        synthesis = Synthesizer().synthesize(written)
        assert estimate_duration(written) == synthesis.total_duration
        if synthesis.events:
            assert synthesis.events[-1].end + 0.3 <= synthesis.total_duration + 1e-9

    def test_estimate_independent_of_profile(self):
        written = encode('robot move forward').written_form
        assert Synthesizer(get_alphabet('deep')).synthesize(written).total_duration == \
            Synthesizer(get_alphabet('scifi')).synthesize(written).total_duration


class TestRender:
    """Tests for rendering tone events to samples."""

    def test_buffer_sized_from_duration(self):
        synthesizer = Synthesizer()
        synthesis = synthesizer.synthesize('a/ aAi')
        samples = synthesizer.render(synthesis)
        assert len(samples) == int(np.ceil(SAMPLE_RATE * synthesis.total_duration))

    def test_amplitude_bounds(self):
        samples = Synthesizer().render_written('a/ aAi eAa ~ OOo')
        assert np.max(np.abs(samples)) <= SYMBOL_AMPLITUDE + 1e-9

    def test_lead_in_is_silent(self):
        samples = Synthesizer().render_written('a')
        assert np.all(samples[:int(0.05 * SAMPLE_RATE)] == 0)

    def test_no_click_at_edges(self):
        """Tones start and end at (near) zero gain."""
        synthesizer = Synthesizer()
        samples = synthesizer.render_written('A')
        start = int(0.05 * SAMPLE_RATE)
        end = int(0.25 * SAMPLE_RATE)
        assert np.max(np.abs(samples[start:start + 20])) < 0.02
        assert np.max(np.abs(samples[end - 20:end])) < 0.02
        plateau = samples[start + 1000:end - 1000]
        assert np.max(np.abs(plateau)) == pytest.approx(SYMBOL_AMPLITUDE, abs=0.01)

    def test_dominant_frequency(self):
        """The rendered tone sits on its band frequency."""
        synthesizer = Synthesizer(get_alphabet('bright'))
        samples = synthesizer.render_written('E')
        spectrum = np.abs(np.fft.rfft(samples))
        freqs = np.fft.rfftfreq(len(samples), 1 / SAMPLE_RATE)
        assert freqs[np.argmax(spectrum)] == pytest.approx(700, abs=5)


class TestWav:
    """Tests for the WAV container."""

    def test_header_layout(self):
        """Bytes 0-43 hold the fixed RIFF/WAVE/fmt/data layout."""
        n = 100
        data = serialize(np.zeros(n), 44100)

        assert len(data) == 44 + n * 2
        assert data[0:4] == b'RIFF'
        assert struct.unpack('<I', data[4:8])[0] == 36 + n * 2
        assert data[8:12] == b'WAVE'
        assert data[12:16] == b'fmt '
        assert struct.unpack('<IHHIIHH', data[16:36]) == (16, 1, 1, 44100, 88200, 2, 16)
        assert data[36:40] == b'data'
        assert struct.unpack('<I', data[40:44])[0] == n * 2

    def test_sample_scaling(self):
        """Clamp to [-1, 1]; negatives scale by 32768, positives by 32767."""
        data = serialize([1.0, -1.0, 0.5, -0.5, 2.0, -3.0, 0.0])
        values = np.frombuffer(data[44:], dtype='<i2').tolist()
        assert values == [32767, -32768, 16383, -16384, 32767, -32768, 0]

    def test_pcm16_truncates(self):
        assert pcm16([0.00002, -0.00002]).tolist() == [0, 0]

    def test_synthesizer_bytes(self):
        synthesizer = Synthesizer()
        data = synthesizer.to_bytes('a/ aAi')
        assert len(data) == 44 + 2 * len(synthesizer.render_written('a/ aAi'))

    def test_read_back(self, tmp_path):
        """A written file reads back with the same rate and samples."""
        path = str(tmp_path / 'tone.wav')
        samples = Synthesizer().render_written('a/ Ooa')
        write_wav(path, samples, 22050)

        loaded, rate = read_wav(path)
        assert rate == 22050
        assert len(loaded) == len(samples)
        assert np.max(np.abs(loaded - samples)) < 1e-4

    def test_read_bytes(self):
        loaded, rate = read_wav(serialize([0.25, -0.25]))
        assert rate == 44100
        assert loaded.tolist() == pytest.approx([8191 / 32768, -8192 / 32768])

    def test_export_filename(self):
        assert export_filename('a/ aAi') == 'tpl_a__aAi.wav'
        assert len(export_filename('a/ ' + 'aAi ' * 20)) == len('tpl_.wav') + 25
