"""
Fidelity analysis for simulated recordings.
Measures SNR against the original signal and flags common failure modes:
non-finite samples, clipping at the ADC, SNR far below the theoretical value.
"""
import math
from typing import Dict, Union

import numpy as np
import torch

from audiolab.analysis.thresholds import FIDELITY_THRESHOLDS
from audiolab.core.types import RecordingSession, SampleBuffer

MIN_ERROR_POWER = 1e-20

BufferLike = Union[SampleBuffer, torch.Tensor]


def _tensor(x: BufferLike) -> torch.Tensor:
    samples = x.samples if isinstance(x, SampleBuffer) else torch.as_tensor(x)
    return samples.detach().reshape(-1).to(torch.float64)


def _dbfs(x: float) -> float:
    """Convert linear amplitude to dBFS (full scale)."""
    if x <= 0:
        return -np.inf
    return 20.0 * np.log10(abs(x))


def compute_snr(original: BufferLike, reconstructed: BufferLike) -> float:
    """
    SNR in dB = 10 * log10(sum(x^2) / sum((x - y)^2)).
    Returns +inf when the total squared error is <= 1e-20 and -inf for a silent
    original with a non-zero error.
    """
    x = _tensor(original)
    y = _tensor(reconstructed)
    if x.shape[-1] != y.shape[-1]:
        raise ValueError(f"Length mismatch: original {x.shape[-1]} vs reconstructed {y.shape[-1]}")

    p_sig = float(torch.sum(x * x))
    p_err = float(torch.sum((x - y) ** 2))
    if p_err <= MIN_ERROR_POWER:
        return math.inf
    if p_sig <= 0:
        return -math.inf
    return 10.0 * math.log10(p_sig / p_err)


def theoretical_snr(effective_bits: int) -> float:
    """Full-scale sine quantized to `effective_bits`: 6.02 * bits + 1.76 dB."""
    return 6.02 * effective_bits + 1.76


def analyze(session: RecordingSession) -> Dict:
    """
    Analyze a recording session for fidelity issues.

    Returns:
        Dict with metrics, failures, warnings and an overall PASS/WARN/FAIL status
    """
    quant = session.quantization
    original = _tensor(session.original)
    error = _tensor(quant.error)
    family = "mu-law" if quant.companding else "pcm"
    thresholds = FIDELITY_THRESHOLDS[family]

    n = max(1, original.shape[-1])
    peak = float(torch.max(torch.abs(original))) if original.numel() else 0.0
    rms = float(torch.sqrt(torch.mean(original ** 2) + 1e-12)) if original.numel() else 0.0
    error_rms = float(torch.sqrt(torch.mean(error ** 2) + 1e-24)) if error.numel() else 0.0
    clipped = int(torch.sum(torch.abs(original) >= 1.0))

    metrics = {
        "encoding": quant.label,
        "snr_db": session.snr_db,
        "theoretical_snr_db": session.theoretical_snr_db,
        "snr_shortfall_db": session.theoretical_snr_db - session.snr_db,
        "peak_dbfs": _dbfs(peak),
        "rms_dbfs": _dbfs(rms),
        "error_rms_dbfs": _dbfs(error_rms),
        "peak_error": float(torch.max(torch.abs(error))) if error.numel() else 0.0,
        "clipped_samples": clipped,
        "clip_fraction": clipped / n,
    }

    failures = []
    warnings = []

    for name, buf in (("original", original), ("reconstructed", _tensor(quant.reconstructed)), ("error", error)):
        if not bool(torch.isfinite(buf).all()):
            failures.append(f"Non-finite samples in {name} signal")

    clip_max = thresholds["clip_fraction_max"]
    if metrics["clip_fraction"] > clip_max:
        warnings.append(f"Input clipping: {metrics['clip_fraction'] * 100:.2f}% of samples at full scale")

    shortfall_max = thresholds["snr_shortfall_max_db"]
    if math.isfinite(session.snr_db) and metrics["snr_shortfall_db"] > shortfall_max:
        warnings.append(
            f"Measured SNR {session.snr_db:.1f} dB is {metrics['snr_shortfall_db']:.1f} dB "
            f"below theoretical {session.theoretical_snr_db:.1f} dB"
        )

    status = "PASS"
    if failures:
        status = "FAIL"
    elif warnings:
        status = "WARN"

    return {
        "session_id": session.id,
        "status": status,
        "metrics": metrics,
        "failures": failures,
        "warnings": warnings,
    }
