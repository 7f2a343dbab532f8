"""
DAC simulation: resample a discrete-time signal onto the playback clock by
zero-order hold or linear interpolation, then optionally smooth it with a
one-pole RC lowpass.
Source positions that fall outside the recorded extent render as silence.
"""
import logging
import math
from typing import Sequence, Union

import torch

from audiolab.core.errors import UnsupportedReconstructionMethod
from audiolab.core.types import DACOutput, RecordingSession, SampleBuffer
from audiolab.dsp.filters import Filter

logger = logging.getLogger(__name__)

ZERO_ORDER_HOLD = "ZeroOrderHold"
LINEAR = "Linear"
RECONSTRUCTION_METHODS = (ZERO_ORDER_HOLD, LINEAR)


def normalize_method(method: str) -> str:
    """
    Map UI labels onto the canonical method names.
    "Linear", "Linear (interp)" -> "Linear"; "ZeroOrderHold", "Zero-order hold", "ZOH" -> "ZeroOrderHold".
    """
    label = str(method or "").strip()
    lowered = label.lower()
    if lowered.startswith("linear"):
        return LINEAR
    if lowered.startswith("zero") or lowered.startswith("zoh"):
        return ZERO_ORDER_HOLD
    raise UnsupportedReconstructionMethod(method)


def reconstruct(
    encoded: Union[torch.Tensor, Sequence[float]],
    input_rate: int,
    output_rate: int,
    method: str = ZERO_ORDER_HOLD,
) -> SampleBuffer:
    """
    Resample `encoded` (float samples at input_rate) to output_rate.

    Output length is floor(len / input_rate * output_rate). Sample i maps to the
    source position n = (i / output_rate) * input_rate.

    Raises:
        UnsupportedReconstructionMethod
    """
    method = normalize_method(method)
    src = torch.as_tensor(encoded).detach().reshape(-1).to(torch.float64)
    length = src.shape[-1]
    n_out = int(math.floor(length / input_rate * output_rate))
    if n_out <= 0 or length == 0:
        return SampleBuffer(torch.zeros(max(n_out, 0), dtype=torch.float32), output_rate)

    t = torch.arange(n_out, dtype=torch.float64) / output_rate
    n = t * input_rate
    n0 = torch.floor(n)
    frac = n - n0
    n0 = n0.to(torch.int64)

    in_range = (n0 >= 0) & (n0 < length)
    idx0 = torch.clamp(n0, 0, length - 1)
    held = src[idx0]

    if method == LINEAR:
        idx1 = torch.clamp(idx0 + 1, max=length - 1)
        interp = src[idx0] * (1.0 - frac) + src[idx1] * frac
        # last recorded sample holds; no neighbour to interpolate towards
        out = torch.where(idx0 == length - 1, held, interp)
    else:
        out = held

    out = torch.where(in_range, out, torch.zeros_like(out))
    return SampleBuffer(out.float(), output_rate)


def one_pole_lowpass(signal: SampleBuffer, cutoff_hz: float) -> SampleBuffer:
    """Causal RC smoothing of a buffer at its own rate; state starts at 0."""
    smoothed = Filter.one_pole_lowpass(signal.samples, signal.sample_rate, cutoff_hz)
    return SampleBuffer(smoothed, signal.sample_rate, signal.channels)


class DACReconstructor:
    """Turns a RecordingSession into a playback-rate DACOutput."""

    def __init__(self, output_rate: int = 48000):
        self.output_rate = int(output_rate)

    def render(
        self,
        session: RecordingSession,
        method: str = ZERO_ORDER_HOLD,
        lowpass_hz: float = 0.0,
        gain: float = 1.0,
    ) -> DACOutput:
        """
        Reconstruct the session's quantized signal. lowpass_hz <= 0 skips smoothing.
        gain is the monitor level applied after smoothing.
        """
        method = normalize_method(method)
        source = session.quantization.reconstructed
        out = reconstruct(source.samples, source.sample_rate, self.output_rate, method)
        if lowpass_hz and lowpass_hz > 0:
            out = one_pole_lowpass(out, lowpass_hz)
        if gain != 1.0:
            out = SampleBuffer(out.samples * float(gain), out.sample_rate, out.channels)

        logger.info(
            "DAC %s: %d Hz -> %d Hz, %d samples, lowpass=%.1f Hz",
            method, source.sample_rate, self.output_rate, len(out), lowpass_hz or 0.0,
        )
        return DACOutput(buffer=out, method=method, lowpass_hz=float(lowpass_hz or 0.0), session_id=session.id)
