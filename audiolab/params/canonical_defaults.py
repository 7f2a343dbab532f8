"""
Canonical session defaults: single source for pipeline initialization.
Mirrors the controls of the sandbox (waveform list, preview, recording, DAC)
in the nested shape resolve_params merges user params onto.
"""

from typing import Dict, Any

DEFAULT_WAVEFORM: Dict[str, Any] = {
    "shape": "sine",
    "amplitude": 0.8,
    "frequency": 440.0,
    "phase_degrees": 0.0,
}

ENGINE_DEFAULTS: Dict[str, Any] = {
    "waveforms": [dict(DEFAULT_WAVEFORM)],
    "preview": {
        "duration_s": 2.0,
        "sample_rate": 48000,
        "master_gain": 0.8,
    },
    "recording": {
        "duration_s": 1.0,
        "sample_rate": 44100,
        "bit_depth": 16,
        "channels": 1,
        "anti_alias": {
            "kind": "None",          # "None", "Low-pass", "High-pass"
            "cutoff_hz": 18000.0,
        },
        "dither": False,
        "compression": "None",       # "None" or "μ-law"
    },
    "dac": {
        "method": "ZeroOrderHold",   # "ZeroOrderHold" or "Linear"
        "lowpass_hz": 0.0,           # 0 = no smoothing
        "output_rate": 48000,
        "gain": 1.0,
    },
}
