"""
Audio filters using torchaudio IIR implementations.
Biquads simulate the analog anti-aliasing stage ahead of the ADC; the one-pole
lowpass is the DAC smoothing (reconstruction) filter.
"""
from dataclasses import dataclass
from typing import Optional

import numpy as np
import torch
import torchaudio.functional as F

MIN_CUTOFF_HZ = 10.0
BUTTERWORTH_Q = 0.707

FILTER_KINDS = ("lowpass", "highpass")


@dataclass(frozen=True)
class FilterSpec:
    kind: str            # "lowpass" or "highpass"
    cutoff_hz: float = 18000.0


def filter_spec_from(kind: Optional[str], cutoff_hz: float = 18000.0) -> Optional[FilterSpec]:
    """
    Parse a filter selection ("None", "Low-pass", "highpass", ...) into a FilterSpec.
    Returns None when no filter is selected.
    """
    label = str(kind or "none").strip().lower().replace("-", "").replace("_", "").replace(" ", "")
    if label in ("none", "off", ""):
        return None
    if label in ("lowpass", "lp"):
        return FilterSpec("lowpass", float(cutoff_hz))
    if label in ("highpass", "hp"):
        return FilterSpec("highpass", float(cutoff_hz))
    raise ValueError(f"Unknown filter kind: {kind}")


def clamp_cutoff(cutoff_hz: float, sample_rate: int) -> float:
    """Keep the cutoff inside [10 Hz, Nyquist - 10 Hz]."""
    return float(min(max(cutoff_hz, MIN_CUTOFF_HZ), sample_rate / 2 - MIN_CUTOFF_HZ))


class Filter:
    @staticmethod
    def _biquad(waveform: torch.Tensor, b, a) -> torch.Tensor:
        """Normalized 2nd-order IIR. The output is not clamped."""
        x = waveform.to(torch.float64)
        a_coeffs = torch.tensor([a[0], a[1], a[2]], dtype=torch.float64) / a[0]
        b_coeffs = torch.tensor([b[0], b[1], b[2]], dtype=torch.float64) / a[0]
        y = F.lfilter(x, a_coeffs, b_coeffs, clamp=False)
        return y.to(waveform.dtype)

    @staticmethod
    def lowpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float, q: float = BUTTERWORTH_Q) -> torch.Tensor:
        """
        Apply a LowPass Biquad filter (2nd-order resonant IIR, RBJ cookbook coefficients).
        """
        cutoff_freq = clamp_cutoff(cutoff_freq, sample_rate)
        w0 = 2 * np.pi * cutoff_freq / sample_rate
        alpha = np.sin(w0) / (2 * q)
        cos_w0 = np.cos(w0)
        b = ((1 - cos_w0) / 2, 1 - cos_w0, (1 - cos_w0) / 2)
        a = (1 + alpha, -2 * cos_w0, 1 - alpha)
        return Filter._biquad(waveform, b, a)

    @staticmethod
    def highpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float, q: float = BUTTERWORTH_Q) -> torch.Tensor:
        """
        Apply a HighPass Biquad filter (2nd-order resonant IIR, RBJ cookbook coefficients).
        """
        cutoff_freq = clamp_cutoff(cutoff_freq, sample_rate)
        w0 = 2 * np.pi * cutoff_freq / sample_rate
        alpha = np.sin(w0) / (2 * q)
        cos_w0 = np.cos(w0)
        b = ((1 + cos_w0) / 2, -(1 + cos_w0), (1 + cos_w0) / 2)
        a = (1 + alpha, -2 * cos_w0, 1 - alpha)
        return Filter._biquad(waveform, b, a)

    @staticmethod
    def apply(waveform: torch.Tensor, sample_rate: int, spec: FilterSpec) -> torch.Tensor:
        """Dispatch a FilterSpec to the matching biquad."""
        if spec.kind == "lowpass":
            return Filter.lowpass(waveform, sample_rate, spec.cutoff_hz)
        if spec.kind == "highpass":
            return Filter.highpass(waveform, sample_rate, spec.cutoff_hz)
        raise ValueError(f"Unknown filter kind: {spec.kind}")

    @staticmethod
    def one_pole_lowpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float) -> torch.Tensor:
        """
        RC smoothing filter: y[n] = y[n-1] + alpha * (x[n] - y[n-1]), y[-1] = 0,
        alpha = dt / (RC + dt), RC = 1 / (2*pi*cutoff), dt = 1 / sample_rate.
        """
        if cutoff_freq <= 0:
            raise ValueError(f"Cutoff must be positive, got {cutoff_freq}")
        dt = 1.0 / sample_rate
        rc = 1.0 / (2 * np.pi * cutoff_freq)
        alpha = dt / (rc + dt)

        x = waveform.to(torch.float64)
        a_coeffs = torch.tensor([1.0, -(1.0 - alpha)], dtype=torch.float64)
        b_coeffs = torch.tensor([alpha, 0.0], dtype=torch.float64)
        y = F.lfilter(x, a_coeffs, b_coeffs, clamp=False)
        return y.to(waveform.dtype)
