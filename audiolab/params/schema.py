"""
Parameter schema: bounds and units per dotted key.
Defaults live in canonical_defaults.ENGINE_DEFAULTS; schema defaults are read from there.
"""
from typing import Dict

from audiolab.core.params import ParamDef, get_param
from audiolab.params.canonical_defaults import DEFAULT_WAVEFORM, ENGINE_DEFAULTS

SUPPORTED_BIT_DEPTHS = (8, 16, 24)
SUPPORTED_SAMPLE_RATES = (8000, 11025, 16000, 22050, 32000, 44100, 48000, 88200, 96000)
SUPPORTED_CHANNELS = (1, 2)


def _make_param(name: str, min_val=None, max_val=None, unit=None, choices=None) -> ParamDef:
    """Schema entry with the canonical default for `name`."""
    return ParamDef(
        name=name,
        default=get_param(ENGINE_DEFAULTS, name),
        min=min_val,
        max=max_val,
        unit=unit,
        choices=choices,
    )


# -----------------------------------------------------------------------------
# PARAM_SCHEMA: dotted key -> ParamDef
# -----------------------------------------------------------------------------

PARAM_SCHEMA: Dict[str, ParamDef] = {
    # Preview (playback rate)
    "preview.duration_s": _make_param("preview.duration_s", 0.1, 10.0, "s"),
    "preview.sample_rate": _make_param("preview.sample_rate", 8000, 192000, "Hz"),
    "preview.master_gain": _make_param("preview.master_gain", 0.0, 1.0),
    # Recording (ADC)
    "recording.duration_s": _make_param("recording.duration_s", 0.1, 10.0, "s"),
    "recording.sample_rate": _make_param(
        "recording.sample_rate", 1000, 192000, "Hz", choices=SUPPORTED_SAMPLE_RATES
    ),
    "recording.bit_depth": _make_param("recording.bit_depth", choices=SUPPORTED_BIT_DEPTHS),
    "recording.channels": _make_param("recording.channels", 1, 2, choices=SUPPORTED_CHANNELS),
    "recording.anti_alias.kind": _make_param(
        "recording.anti_alias.kind", choices=("None", "Low-pass", "High-pass")
    ),
    "recording.anti_alias.cutoff_hz": _make_param("recording.anti_alias.cutoff_hz", 10.0, 96000.0, "Hz"),
    "recording.dither": _make_param("recording.dither", choices=(False, True)),
    "recording.compression": _make_param("recording.compression", choices=("None", "μ-law")),
    # DAC
    "dac.method": _make_param("dac.method", choices=("ZeroOrderHold", "Linear")),
    "dac.lowpass_hz": _make_param("dac.lowpass_hz", 0.0, 96000.0, "Hz"),
    "dac.output_rate": _make_param("dac.output_rate", 8000, 192000, "Hz"),
    "dac.gain": _make_param("dac.gain", 0.0, 2.0),
}

# Per-waveform entries (applied to each item of params["waveforms"])
WAVEFORM_SCHEMA: Dict[str, ParamDef] = {
    "amplitude": ParamDef("amplitude", DEFAULT_WAVEFORM["amplitude"], 0.0, 1.0),
    "frequency": ParamDef("frequency", DEFAULT_WAVEFORM["frequency"], 1.0, 20000.0, "Hz"),
    "phase_degrees": ParamDef("phase_degrees", DEFAULT_WAVEFORM["phase_degrees"], -360.0, 360.0, "deg"),
}
