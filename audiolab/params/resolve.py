"""
Parameter resolution: deep-merge ENGINE_DEFAULTS with incoming params.
Incoming params override defaults at any nesting level; lists (waveforms) are
replaced wholesale, never merged item by item.
"""
import copy
from typing import Dict, Any

from audiolab.params.canonical_defaults import DEFAULT_WAVEFORM, ENGINE_DEFAULTS


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dicts. override values take precedence.
    Returns a new dict (does not mutate inputs).
    """
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            # Recursively merge nested dicts
            result[key] = _deep_merge(result[key], value)
        else:
            # Override (or add new) key
            result[key] = copy.deepcopy(value)

    return result


def _resolve_waveform(wave: Dict[str, Any]) -> Dict[str, Any]:
    """Fill missing waveform keys; UI aliases (type/amp/freq/phaseDeg) are mapped to engine keys."""
    aliases = {"type": "shape", "amp": "amplitude", "freq": "frequency", "phaseDeg": "phase_degrees"}
    out = dict(DEFAULT_WAVEFORM)
    for key, value in wave.items():
        out[aliases.get(key, key)] = value
    return out


def resolve_params(params: dict) -> dict:
    """
    Resolve session params by:
    1. Starting from ENGINE_DEFAULTS
    2. Merging incoming params onto it (user params override defaults)
    3. Completing each waveform entry with the default waveform fields

    Args:
        params: Incoming params dict (may be partial)

    Returns:
        Fully resolved params dict.
    """
    merged = _deep_merge(ENGINE_DEFAULTS, params or {})
    merged["waveforms"] = [_resolve_waveform(w) for w in merged.get("waveforms") or []]
    return merged
