"""
Session pipeline: preview render, recording simulation, DAC reconstruction.
Each stage takes plain session params (see params.canonical_defaults), resolves
and clamps them, and returns fresh immutable results. Nothing is cached between
calls; a new recording supersedes the previous one.
"""
import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from audiolab.analysis.fidelity import compute_snr, theoretical_snr
from audiolab.core.params import get_bool, get_float, get_param
from audiolab.core.types import DACOutput, RecordingSession, SampleBuffer, WaveformSpec
from audiolab.dsp.filters import filter_spec_from
from audiolab.dsp.quantize import quantize
from audiolab.dsp.reconstruct import DACReconstructor
from audiolab.params.clamp import clamp_params
from audiolab.params.engine_params import to_engine_params
from audiolab.params.resolve import resolve_params
from audiolab.pipeline.renderer import SignalRenderer

logger = logging.getLogger(__name__)

# dither uses seed + offset; violin voice i uses seed + i
DITHER_SEED_OFFSET = 1000


@dataclass(frozen=True)
class PipelineResult:
    preview: SampleBuffer
    session: RecordingSession
    dac: DACOutput


def prepare_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Contract strip, resolve against defaults, clamp to schema."""
    return clamp_params(resolve_params(to_engine_params(params or {})))


def _waveforms(params: Dict[str, Any]) -> List[WaveformSpec]:
    return [WaveformSpec.from_dict(w) for w in params.get("waveforms") or []]


def _channels(value: Any) -> int:
    """1/2 or the UI labels "Mono"/"Stereo"."""
    if isinstance(value, str):
        label = value.strip().lower()
        if label == "mono":
            return 1
        if label == "stereo":
            return 2
    return 2 if int(value) >= 2 else 1


def render_preview(params: Optional[Dict[str, Any]] = None, seed: Optional[int] = None) -> SampleBuffer:
    """Render the waveform mix at the playback rate, harmonics limited, no filter."""
    p = prepare_params(params)
    sr = int(get_param(p, "preview.sample_rate"))
    duration = get_float(p, "preview.duration_s", 2.0)
    preview = SignalRenderer(sr).render(duration, _waveforms(p), anti_alias=True, seed=seed)
    logger.info("Preview: %d waveforms, %.2f s @ %d Hz", len(p["waveforms"]), duration, sr)
    return preview


def simulate_recording(params: Optional[Dict[str, Any]] = None, seed: Optional[int] = None) -> RecordingSession:
    """
    Render the "analog" signal at the recording rate (through the anti-aliasing
    filter when one is selected), quantize it and measure the SNR.

    Raises:
        UnsupportedBitDepth, UnsupportedCompression
    """
    p = prepare_params(params)
    fs = int(get_param(p, "recording.sample_rate"))
    bits = int(get_param(p, "recording.bit_depth"))
    channels = _channels(get_param(p, "recording.channels", 1))
    duration = get_float(p, "recording.duration_s", 1.0)
    aa = filter_spec_from(
        get_param(p, "recording.anti_alias.kind", "None"),
        get_float(p, "recording.anti_alias.cutoff_hz", 18000.0),
    )
    dither = get_bool(p, "recording.dither", False)
    compression = get_param(p, "recording.compression", "None")

    analog = SignalRenderer(fs).render(duration, _waveforms(p), anti_alias=True, filter=aa, seed=seed)
    dither_seed = None if seed is None else seed + DITHER_SEED_OFFSET
    quant = quantize(analog, bits, dither=dither, compression=compression, seed=dither_seed)

    snr = compute_snr(analog, quant.reconstructed)
    theory = theoretical_snr(quant.effective_bits)
    session = RecordingSession(
        sample_rate=fs,
        bit_depth=bits,
        channels=channels,
        duration_s=duration,
        original=analog,
        quantization=quant,
        snr_db=snr,
        theoretical_snr_db=theory,
        settings=copy.deepcopy(p["recording"]),
    )
    logger.info(
        "Recording %s: %s @ %d Hz, %d ch, SNR %.1f dB (theory %.1f dB)",
        session.id[:8], quant.label, fs, channels, snr, theory,
    )
    return session


def render_dac(session: RecordingSession, params: Optional[Dict[str, Any]] = None) -> DACOutput:
    """Reconstruct `session` at the playback rate with the DAC settings in params."""
    p = prepare_params(params)
    dac = DACReconstructor(int(get_param(p, "dac.output_rate")))
    return dac.render(
        session,
        method=get_param(p, "dac.method", "ZeroOrderHold"),
        lowpass_hz=get_float(p, "dac.lowpass_hz", 0.0),
        gain=get_float(p, "dac.gain", 1.0),
    )


def generate_all(params: Optional[Dict[str, Any]] = None, seed: Optional[int] = None) -> PipelineResult:
    """Preview, then recording, then DAC, from one set of params."""
    preview = render_preview(params, seed=seed)
    session = simulate_recording(params, seed=seed)
    dac = render_dac(session, params)
    return PipelineResult(preview=preview, session=session, dac=dac)
