"""
Tests for the TPL demodulator and receiver sessions
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tonalpulse.tpl import Synthesizer, get_alphabet
from tonalpulse.tpl.constants import SAMPLE_RATE
from tonalpulse.receiver import (
    Demodulator, DetectionFrame, EventKind, ReceiverSession, ReceiverState,
    SpectrumAnalyser, receive_samples, receive_wav, spectrum_frames, stream_frames,
)

FREQUENCIES = np.arange(50.0, 3000.0, 10.0)


def frame(freq=None, power=-20.0):
    """A synthetic spectrum: -100 dB everywhere, one peak at freq."""
    powers = np.full(len(FREQUENCIES), -100.0)
    if freq is not None:
        powers[int(np.argmin(np.abs(FREQUENCIES - freq)))] = power
    return DetectionFrame(frequencies=FREQUENCIES, powers=powers)


def tone(freq, ticks):
    return [frame(freq)] * ticks


def silence(ticks):
    return [frame()] * ticks


def run(demodulator, frames):
    events = []
    for f in frames:
        events.extend(demodulator.tick(f))
    return events


@pytest.fixture
def demodulator():
    return Demodulator(get_alphabet('bright'))


class TestDemodulator:
    """Tests for debouncing and segmentation on synthetic frames."""

    def test_debounce(self, demodulator):
        """A sustained tone is recorded once, at its onset."""
        events = run(demodulator, tone(400, 20) + silence(20))

        tones = [e for e in events if e.kind == EventKind.TONE]
        flushes = [e for e in events if e.kind == EventKind.FLUSH]
        assert len(tones) == 1
        assert tones[0].payload.band == 'L'
        assert len(flushes) == 1
        assert demodulator.written_form == 'a'

    def test_long_gap_splits_groups(self, demodulator):
        run(demodulator, tone(400, 5) + silence(15) + tone(700, 5) + silence(20))
        assert demodulator.written_form == 'a e'

    def test_short_gap_keeps_group(self, demodulator):
        run(demodulator, tone(400, 5) + silence(14) + tone(700, 5) + silence(20))
        assert demodulator.written_form == 'ae'

    def test_repeat_after_release(self, demodulator):
        """The same band is recorded again once more than 5 silent ticks pass."""
        run(demodulator, tone(1000, 5) + silence(6) + tone(1000, 5) + silence(20))
        assert demodulator.written_form == 'ii'

    def test_no_repeat_within_release(self, demodulator):
        run(demodulator, tone(1000, 5) + silence(5) + tone(1000, 5) + silence(20))
        assert demodulator.written_form == 'i'

    def test_band_letters(self, demodulator):
        run(demodulator, tone(400, 3) + tone(700, 3) + tone(1000, 3) + tone(1300, 3) + tone(1600, 3) + silence(15))
        assert demodulator.written_form == 'aeio~'

    def test_below_threshold_is_silence(self, demodulator):
        events = run(demodulator, [frame(400, power=-45.0)] * 30)
        assert events == []
        assert demodulator.written_form == ''

    def test_unmatched_peak_ignored(self, demodulator):
        """A loud tone outside every bin neither records nor counts as silence."""
        run(demodulator, tone(400, 2) + silence(10) + tone(2500, 30) + silence(4))
        assert demodulator.pending == 'a'
        assert demodulator.written_form == ''
        run(demodulator, silence(1))
        assert demodulator.written_form == 'a'

    def test_states(self, demodulator):
        assert demodulator.state == ReceiverState.IDLE
        run(demodulator, tone(700, 2))
        assert demodulator.state == ReceiverState.TONE_ACTIVE
        assert demodulator.active_band == 'M'
        run(demodulator, silence(3))
        assert demodulator.state == ReceiverState.FLUSHING
        assert demodulator.active_band is None
        run(demodulator, silence(12))
        assert demodulator.state == ReceiverState.IDLE

    def test_levels(self, demodulator):
        demodulator.tick(frame(400, power=-20.0))
        assert demodulator.levels[400.0] == pytest.approx(80.0)
        assert demodulator.levels[700.0] == 0.0

    def test_history_bounded(self, demodulator):
        for _ in range(40):
            run(demodulator, tone(400, 1) + tone(700, 1))
        assert len(demodulator.history) == 30

    def test_cancel_discards_pending(self, demodulator):
        run(demodulator, tone(400, 5) + silence(15) + tone(700, 5))
        demodulator.cancel()
        assert demodulator.pending == ''
        assert demodulator.written_form == 'a'
        run(demodulator, silence(20))
        assert demodulator.written_form == 'a'

    def test_reset(self, demodulator):
        run(demodulator, tone(400, 5) + silence(15))
        demodulator.reset()
        assert demodulator.written_form == ''
        assert len(demodulator.history) == 0


class TestDurationResolution:
    """Tests for recovering long symbols from run length."""

    def test_long_run_uppercased(self):
        demodulator = Demodulator(get_alphabet('bright'), resolve_duration=True, frame_period=0.01)
        run(demodulator, tone(400, 20) + tone(700, 10) + silence(15))
        assert demodulator.written_form == 'Ae'

    def test_off_by_default(self, demodulator):
        run(demodulator, tone(400, 20) + tone(700, 10) + silence(15))
        assert demodulator.written_form == 'ae'

    def test_link_never_long(self):
        demodulator = Demodulator(get_alphabet('bright'), resolve_duration=True, frame_period=0.01)
        run(demodulator, tone(1600, 30) + silence(15))
        assert demodulator.written_form == '~'


class TestReceiverSession:
    """Tests for the detection loop."""

    def test_runs_to_end(self, demodulator):
        flushed = []
        session = ReceiverSession(demodulator, on_flush=flushed.append)
        result = session.run(tone(400, 5) + silence(15) + tone(1300, 5) + silence(15))
        assert result.written_form == 'a o'
        assert flushed == ['a', 'o']
        assert len(result.detections) == 2
        assert not result.cancelled

    def test_stop_discards_pending(self, demodulator):
        session = ReceiverSession(demodulator)
        session.on_tone = lambda detected: session.stop()
        result = session.run(tone(400, 5) + silence(20))
        assert result.cancelled
        assert result.written_form == ''
        assert demodulator.pending == ''

    def test_failing_source_discards_pending(self, demodulator):
        """An exception from the frame source still drops unflushed tones."""
        def frames():
            yield from tone(400, 5) + silence(15) + tone(700, 5)
            raise KeyboardInterrupt

        session = ReceiverSession(demodulator)
        with pytest.raises(KeyboardInterrupt):
            session.run(frames())
        assert demodulator.pending == ''
        assert demodulator.state == ReceiverState.IDLE
        assert demodulator.written_form == 'a'

    def test_failing_callback_discards_pending(self, demodulator):
        def on_tone(detected):
            raise RuntimeError('display gone')

        session = ReceiverSession(demodulator, on_tone=on_tone)
        with pytest.raises(RuntimeError):
            session.run(tone(400, 5) + silence(20))
        assert demodulator.pending == ''

    def test_result_text(self, demodulator):
        session = ReceiverSession(demodulator)
        result = session.run(tone(400, 3) + silence(15))
        assert result.text == '[a]'
        assert result.to_dict()['detections'][0]['band'] == 'L'


class TestSpectrum:
    """Tests for FFT frames and end-to-end reception."""

    def test_tone_peak(self):
        t = np.arange(4096) / SAMPLE_RATE
        block = 0.4 * np.sin(2 * np.pi * 1000 * t)
        analyser = SpectrumAnalyser(SAMPLE_RATE, smoothing=0.0)
        peak_freq, peak_power = analyser.analyse(block).peak()
        assert peak_freq == pytest.approx(1000, abs=analyser.bin_width)
        assert peak_power > -40

    def test_silence_below_threshold(self):
        analyser = SpectrumAnalyser(SAMPLE_RATE)
        assert analyser.analyse(np.zeros(4096)).peak()[1] < -40

    def test_low_bins_skipped(self):
        analyser = SpectrumAnalyser(SAMPLE_RATE)
        frame_ = analyser.analyse(np.ones(4096))
        assert frame_.frequencies[0] == pytest.approx(5 * analyser.bin_width)

    def test_invalid_smoothing(self):
        with pytest.raises(ValueError):
            SpectrumAnalyser(SAMPLE_RATE, smoothing=1.0)

    def test_frame_count(self):
        frames = list(spectrum_frames(np.zeros(SAMPLE_RATE), SAMPLE_RATE, frame_rate=60))
        assert len(frames) == 60

    def test_stream_frames_match_block_size(self):
        """Blocks of any size produce one frame per hop."""
        blocks = [np.zeros(1000)] * 44
        frames = list(stream_frames(blocks, SAMPLE_RATE, frame_rate=60))
        assert len(frames) == 44000 // 735

    def test_end_to_end(self):
        """A synthesized word is heard back band by band."""
        alphabet = get_alphabet('bright')
        samples = Synthesizer(alphabet).render_written('a/ aEi')
        result = receive_samples(samples, SAMPLE_RATE, alphabet)
        assert result.written_form.replace(' ', '') == 'aaei'

    def test_end_to_end_long_symbols(self):
        alphabet = get_alphabet('bright')
        samples = Synthesizer(alphabet).render_written('a/ aEi')
        result = receive_samples(samples, SAMPLE_RATE, alphabet, resolve_duration=True)
        assert result.written_form.split()[-1] == 'aEi'
        assert result.text.endswith('light')

    def test_receive_wav_bytes(self):
        alphabet = get_alphabet('warm')
        wav_bytes = Synthesizer(alphabet).to_bytes('iOe')
        result = receive_wav(wav_bytes, alphabet)
        assert result.written_form == 'ioe'
