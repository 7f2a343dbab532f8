"""
Band-limited oscillators built from closed-form harmonic spectra.
A spectrum is played back through a single-period wavetable (PeriodicWave style):
every oscillator starts at phase 0, so identical inputs render identical buffers.
"""
import logging
import math
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np
import torch

logger = logging.getLogger(__name__)

UNLIMITED_HARMONICS = 256
HARMONIC_CEILING = 0.9       # fraction of Nyquist kept when limiting harmonics
ROLLOFF_START = 0.8          # fraction of Nyquist where the linear taper begins
MIN_HARMONIC_AMPLITUDE = 1e-5
MIN_TABLE_SIZE = 4096


# -----------------------------------------------------------------------------
# Harmonic spectrum
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class HarmonicSpectrum:
    """
    Harmonic k contributes real[k] * cos(2*pi*k*f0*t) + imag[k] * sin(2*pi*k*f0*t).
    Indices are ascending and >= 1 (no DC term).
    """
    indices: torch.Tensor  # int64
    real: torch.Tensor     # float64
    imag: torch.Tensor     # float64
    fundamental: float
    shape: str

    def __len__(self) -> int:
        return int(self.indices.numel())

    def __iter__(self) -> Iterator[Tuple[int, float, float]]:
        yield from zip(self.indices.tolist(), self.real.tolist(), self.imag.tolist())

    @property
    def amplitudes(self) -> torch.Tensor:
        return torch.sqrt(self.real ** 2 + self.imag ** 2)

    @property
    def frequencies(self) -> torch.Tensor:
        return self.indices.to(torch.float64) * self.fundamental

    @property
    def max_index(self) -> int:
        return int(self.indices.max()) if len(self) else 0

    def wavetable(self, size: Optional[int] = None, normalize: bool = True) -> torch.Tensor:
        """
        One period of the waveform, computed with an inverse real FFT.
        normalize=True scales the table to a peak of 1.0 (PeriodicWave normalization).
        """
        n = size or table_size_for(self.max_index)
        if n < 2 * (self.max_index + 1):
            raise ValueError(f"Wavetable size {n} too small for harmonic {self.max_index}")
        if not len(self):
            return torch.zeros(n, dtype=torch.float64)

        bins = torch.zeros(n // 2 + 1, dtype=torch.complex128)
        # irfft(X)[m] = (2/n) * sum(Re(X_k) cos + -Im(X_k) sin) for 0 < k < n/2
        bins[self.indices] = torch.complex(self.real, -self.imag) * (n / 2.0)
        table = torch.fft.irfft(bins, n=n)

        if normalize:
            peak = float(torch.max(torch.abs(table)))
            if peak > 0:
                table = table / peak
        return table


def table_size_for(max_index: int) -> int:
    """Power-of-two table size with at least 4 points per cycle of the top harmonic."""
    needed = max(MIN_TABLE_SIZE, 4 * (max_index + 1))
    return 1 << int(math.ceil(math.log2(needed)))


def _nyquist_rolloff(freqs: torch.Tensor, nyquist: float) -> torch.Tensor:
    """Linear taper from ROLLOFF_START * Nyquist (gain 1) down to Nyquist (gain 0)."""
    start = nyquist * ROLLOFF_START
    width = nyquist * (1.0 - ROLLOFF_START)
    taper = torch.clamp(1.0 - (freqs - start) / width, min=0.0)
    return torch.where(freqs > start, taper, torch.ones_like(freqs))


def build_harmonic_spectrum(
    shape: str,
    fundamental_freq: float,
    phase_degrees: float = 0.0,
    sample_rate: int = 48000,
    limit_harmonics: bool = True,
) -> HarmonicSpectrum:
    """
    Additive spectrum for a standard shape, band-limited below Nyquist.

    Args:
        shape: "sine", "square", "triangle" or "sawtooth". Anything else falls back to sine.
        fundamental_freq: f0 in Hz
        phase_degrees: common phase offset applied to every harmonic
        sample_rate: Sample rate the spectrum will be played at
        limit_harmonics: If True, stop at 0.9 * Nyquist; otherwise use a fixed 256 harmonics
                         (the roll-off still removes anything at or above Nyquist)

    Returns:
        HarmonicSpectrum with near-zero harmonics (< 1e-5) dropped
    """
    nyquist = sample_rate / 2.0
    f0 = float(fundamental_freq)
    if limit_harmonics:
        k_max = max(1, int(math.floor(nyquist * HARMONIC_CEILING / max(1.0, f0))))
    else:
        k_max = UNLIMITED_HARMONICS

    if shape == "square":
        n = torch.arange(1, k_max + 1, 2, dtype=torch.int64)
        amp = (4.0 / np.pi) / n.to(torch.float64)
    elif shape == "triangle":
        n = torch.arange(1, k_max + 1, 2, dtype=torch.int64)
        sign = torch.where(((n - 1) // 2) % 2 == 0, 1.0, -1.0).to(torch.float64)
        amp = (8.0 / np.pi ** 2) * sign / n.to(torch.float64) ** 2
    elif shape == "sawtooth":
        n = torch.arange(1, k_max + 1, dtype=torch.int64)
        sign = torch.where((n + 1) % 2 == 0, 1.0, -1.0).to(torch.float64)
        amp = (2.0 / np.pi) * sign / n.to(torch.float64)
    else:
        if shape != "sine":
            logger.warning("Unknown waveform shape %r, falling back to sine", shape)
        n = torch.tensor([1], dtype=torch.int64)
        amp = torch.tensor([1.0], dtype=torch.float64)

    amp = amp * _nyquist_rolloff(n.to(torch.float64) * f0, nyquist)
    keep = torch.abs(amp) >= MIN_HARMONIC_AMPLITUDE
    n, amp = n[keep], amp[keep]

    phi = math.radians(phase_degrees or 0.0)
    return HarmonicSpectrum(
        indices=n,
        real=amp * math.cos(phi),
        imag=amp * math.sin(phi),
        fundamental=f0,
        shape=shape,
    )


# -----------------------------------------------------------------------------
# Oscillators
# -----------------------------------------------------------------------------

class Oscillator:
    @staticmethod
    def sine(frequency: float, num_samples: int, sample_rate: int, phase: float = 0.0) -> torch.Tensor:
        """
        Plain sine starting at the given phase (radians). Used for test and analysis signals.
        """
        t = torch.arange(num_samples, dtype=torch.float64) / sample_rate
        return torch.sin(2 * np.pi * frequency * t + phase).float()

    @staticmethod
    def from_spectrum(
        spectrum: HarmonicSpectrum,
        frequency: float,
        num_samples: int,
        sample_rate: int,
        table_size: Optional[int] = None,
    ) -> torch.Tensor:
        """
        Play a spectrum's normalized wavetable at `frequency`.
        Phase is accumulated in float64 and the table is read with linear interpolation.
        """
        table = spectrum.wavetable(table_size)
        size = table.numel()
        t = torch.arange(num_samples, dtype=torch.float64)
        cycles = torch.remainder(frequency * t / sample_rate, 1.0)
        pos = cycles * size
        i0 = torch.floor(pos)
        frac = pos - i0
        i0 = i0.to(torch.int64) % size
        i1 = (i0 + 1) % size
        out = table[i0] * (1.0 - frac) + table[i1] * frac
        return out.float()

    @staticmethod
    def band_limited(
        shape: str,
        frequency: float,
        num_samples: int,
        sample_rate: int,
        phase_degrees: float = 0.0,
        limit_harmonics: bool = True,
    ) -> torch.Tensor:
        """Spectrum build + wavetable playback in one call."""
        spectrum = build_harmonic_spectrum(shape, frequency, phase_degrees, sample_rate, limit_harmonics)
        return Oscillator.from_spectrum(spectrum, frequency, num_samples, sample_rate)
