"""
ADC simulation: linear PCM quantization (optional TPDF dither) and 8-bit mu-law companding.
Every path returns the integer codes, the reconstructed float signal and the
per-sample error, all the same length as the input.
"""
import logging
import math
from typing import Optional

import torch

from audiolab.core.errors import UnsupportedBitDepth, UnsupportedCompression
from audiolab.core.types import QuantizationResult, SampleBuffer
from audiolab.dsp.noise import Noise, make_generator

logger = logging.getLogger(__name__)

SUPPORTED_BIT_DEPTHS = (8, 16, 24)
MU = 255.0
MU_LAW_LABEL = "μ-law8"

_PCM_DTYPES = {8: torch.int8, 16: torch.int16, 24: torch.int32}


def _round_half_up(x: torch.Tensor) -> torch.Tensor:
    """Round .5 towards +inf (torch.round is half-to-even)."""
    return torch.floor(x + 0.5)


def is_mu_law(compression: Optional[str]) -> bool:
    """True for any mu-law label: "μ-law", "mu-law", "u-law", "ulaw"..."""
    if not compression:
        return False
    label = str(compression).strip().lower()
    return label.startswith("μ") or label.startswith("mu") or label.startswith("u-law") or label == "ulaw"


def _check_compression(compression: Optional[str]) -> bool:
    if is_mu_law(compression):
        return True
    if compression is None or str(compression).strip().lower() in ("none", "", "pcm", "linear"):
        return False
    raise UnsupportedCompression(compression)


# -----------------------------------------------------------------------------
# mu-law companding
# -----------------------------------------------------------------------------

def mu_law_compress(x: torch.Tensor) -> torch.Tensor:
    """y = sign(x) * ln(1 + mu|x|) / ln(1 + mu), with sign(0) = +1."""
    sign = torch.where(x < 0, -1.0, 1.0).to(x.dtype)
    return sign * torch.log1p(MU * torch.abs(x)) / math.log1p(MU)


def mu_law_expand(y: torch.Tensor) -> torch.Tensor:
    """Inverse of mu_law_compress, clamped to [-1, 1]."""
    sign = torch.where(y < 0, -1.0, 1.0).to(y.dtype)
    x = sign * (torch.pow(1.0 + MU, torch.abs(y)) - 1.0) / MU
    return torch.clamp(x, -1.0, 1.0)


def mu_law_encode(x: torch.Tensor) -> torch.Tensor:
    """Float in [-1, 1] -> unsigned 8-bit code: round((y + 1) * 127.5) clamped to [0, 255]."""
    y = mu_law_compress(torch.clamp(x.to(torch.float64), -1.0, 1.0))
    codes = torch.clamp(_round_half_up((y + 1.0) * 127.5), 0, 255)
    return codes.to(torch.uint8)


def mu_law_decode(codes: torch.Tensor) -> torch.Tensor:
    """Unsigned 8-bit code -> float64 sample."""
    y = codes.to(torch.float64) / 127.5 - 1.0
    return mu_law_expand(y)


# -----------------------------------------------------------------------------
# Quantizer
# -----------------------------------------------------------------------------

def quantize(
    signal: SampleBuffer,
    bits: int,
    dither: bool = False,
    compression: Optional[str] = "None",
    seed: Optional[int] = None,
) -> QuantizationResult:
    """
    Quantize a float signal.

    Args:
        signal: Input buffer, nominally in [-1, 1] (clamped before coding)
        bits: 8, 16 or 24. Checked on both paths; mu-law always codes to 8 bits.
        dither: Add TPDF dither (linear PCM only)
        compression: "None" for linear PCM or a mu-law label
        seed: Seed for the dither noise; None draws from the global RNG

    Returns:
        QuantizationResult (reconstructed float, error, integer codes, label)

    Raises:
        UnsupportedBitDepth, UnsupportedCompression
    """
    if bits not in SUPPORTED_BIT_DEPTHS:
        raise UnsupportedBitDepth(bits, SUPPORTED_BIT_DEPTHS)
    companding = _check_compression(compression)

    x = torch.clamp(signal.samples.detach().reshape(-1).to(torch.float64), -1.0, 1.0)

    if companding:
        codes = mu_law_encode(x)
        reconstructed = mu_law_decode(codes)
        error = x - reconstructed
        label = MU_LAW_LABEL
    else:
        peak = float(2 ** (bits - 1) - 1)
        step = 1.0 / peak
        v = x
        if dither:
            v = torch.clamp(v + Noise.tpdf(v.shape[-1], step, make_generator(seed)), -1.0, 1.0)
        q = _round_half_up(v * peak)
        codes = q.to(_PCM_DTYPES[bits])
        reconstructed = q / peak
        error = v - reconstructed
        label = f"{bits}-bit PCM"

    logger.debug("Quantized %d samples as %s (dither=%s)", x.shape[-1], label, dither and not companding)
    sr = signal.sample_rate
    return QuantizationResult(
        reconstructed=SampleBuffer(reconstructed.float(), sr, signal.channels),
        error=SampleBuffer(error.float(), sr, signal.channels),
        encoded=codes,
        label=label,
        companding=companding,
        bits=8 if companding else bits,
    )
