"""
Engine params contract: only params that pass through here reach the pipeline.
Strips display-only fields (scope/spectrum zoom, monitor gain). In dev mode,
log if any were present.
"""
from typing import Dict, Any
import os
import logging

logger = logging.getLogger("audiolab")

# Controls that only affect display or monitoring, never the rendered audio
UI_ONLY_PARAM_KEYS = frozenset({
    "masterGain",
    "autoScaleScope",
    "spectrumZoom",
    "samplingZoom",
    "abMode",
})

DEV = os.environ.get("ENV", "development").lower() in ("development", "dev", "test")


def strip_ui_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of params with UI-only top-level keys removed."""
    out = dict(params)
    for key in UI_ONLY_PARAM_KEYS:
        out.pop(key, None)
    return out


def to_engine_params(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize raw session params: strip UI-only keys.
    This is the single entry point for all params that reach resolve_params + the pipeline.
    """
    found = sorted(k for k in UI_ONLY_PARAM_KEYS if k in raw)
    if found:
        if DEV:
            logger.warning("[Parameter Contract] UI-only fields stripped before engine: %s", found)
        raw = strip_ui_params(raw)
    return raw
