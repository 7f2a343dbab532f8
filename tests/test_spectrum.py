"""
Analyser snapshots: byte spectrum mapping, dominant frequency, scope windowing.
Run from project root: python -m pytest tests/test_spectrum.py -v
"""
import sys
import os
import dataclasses

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import torch
from audiolab.analysis.spectrum import (
    Analyser,
    byte_frequency_data,
    dominant_frequency,
    find_zero_crossing,
    optimal_time_window,
    time_domain_snapshot,
)
from audiolab.core.types import SampleBuffer
from audiolab.dsp.oscillators import Oscillator

SR = 48000


def test_full_scale_sine_peaks_at_255():
    x = Oscillator.sine(1000.0, 4096, SR)
    data = byte_frequency_data(x, 4096)
    assert data.dtype == torch.uint8
    assert data.shape == (2048,)
    assert int(data.max()) == 255


def test_silence_is_all_zero():
    data = byte_frequency_data(torch.zeros(4096), 4096)
    assert int(data.max()) == 0


def test_short_input_zero_padded():
    data = byte_frequency_data(torch.zeros(100), 1024)
    assert data.shape == (512,)


@pytest.mark.parametrize("fft_size", [0, 16, 1000, 3000])
def test_bad_fft_size_rejected(fft_size):
    with pytest.raises(ValueError):
        byte_frequency_data(torch.zeros(4096), fft_size)


def test_decibel_range_validated():
    with pytest.raises(ValueError):
        byte_frequency_data(torch.zeros(4096), 4096, min_db=-30, max_db=-100)


@pytest.mark.parametrize("freq", [110.0, 440.0, 1000.0, 5000.0])
def test_dominant_frequency_within_one_bin(freq):
    x = Oscillator.sine(freq, 8192, SR) * 0.5
    found = dominant_frequency(x, SR, 8192)
    assert abs(found - freq) <= SR / 8192


def test_dominant_frequency_of_silence():
    assert dominant_frequency(torch.zeros(1024), SR) == 0.0


def test_optimal_time_window():
    assert optimal_time_window(0.5) == 1.0
    assert optimal_time_window(100.0) == pytest.approx(0.03)
    assert optimal_time_window(1000.0) == pytest.approx(0.003)


def test_find_zero_crossing():
    x = Oscillator.sine(440.0, 1000, SR)
    assert find_zero_crossing(x) == 1
    falling = find_zero_crossing(x, rising=False)
    # first falling crossing sits half a period in
    assert abs(falling - SR / 880.0) <= 1
    assert find_zero_crossing(torch.ones(100)) == 0


def test_time_domain_snapshot_pads():
    snap = time_domain_snapshot(torch.ones(100), 256, offset=50)
    assert snap.shape == (256,)
    assert float(snap[:50].sum()) == 50.0
    assert float(snap[50:].abs().sum()) == 0.0


class TestAnalyser:
    def _buffer(self, n=10000):
        return SampleBuffer(Oscillator.sine(440.0, n, SR) * 0.5, SR)

    def test_frame_count(self):
        analyser = Analyser(self._buffer(), fft_size=4096)
        assert len(analyser) == 10000
        frames = list(analyser.frames())
        assert [f.offset for f in frames] == [0, 4096, 8192]

    def test_frame_contents(self):
        frame = Analyser(self._buffer(), fft_size=4096).frame(0)
        assert frame.time_data.shape == (4096,)
        assert frame.freq_data.shape == (2048,)
        assert frame.bin_width_hz == pytest.approx(SR / 4096)
        assert abs(frame.dominant_hz - 440.0) <= frame.bin_width_hz

    def test_frames_are_immutable_copies(self):
        buf = self._buffer()
        analyser = Analyser(buf, fft_size=1024)
        frame = analyser.frame(0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            frame.offset = 5
        frame.time_data.zero_()
        assert float(analyser.frame(0).time_data.abs().sum()) > 0
        assert float(buf.samples.abs().sum()) > 0

    def test_scope_window_starts_at_rising_crossing(self):
        frame = Analyser(self._buffer(), fft_size=4096).frame(0)
        window = frame.scope_window()
        expected = int(optimal_time_window(frame.dominant_hz) * SR)
        assert len(window) == expected
        assert 0.0 < float(window[0]) < 0.05

    def test_bad_hop(self):
        with pytest.raises(ValueError):
            list(Analyser(self._buffer(), fft_size=1024).frames(hop=-1))
