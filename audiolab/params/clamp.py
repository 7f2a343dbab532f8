"""
Parameter clamping: bounds every numeric param to its schema range.
Out-of-range values are clamped silently. Integer choices given as strings
("16") are coerced; any other unknown choice passes through for the pipeline
to reject.
"""
import copy
import logging

from audiolab.core.params import clamp_if_bounds, get_param
from audiolab.params.schema import PARAM_SCHEMA, WAVEFORM_SCHEMA

logger = logging.getLogger(__name__)


def _set_dotted(params: dict, name: str, value) -> None:
    keys = name.split(".")
    current = params
    for key in keys[:-1]:
        current = current.setdefault(key, {})
    current[keys[-1]] = value


def _clamp_entry(defn, value):
    if defn.min is not None or defn.max is not None:
        return clamp_if_bounds(value, defn.min, defn.max)
    if defn.choices is not None and value not in defn.choices:
        # numeric choices also accept their string form ("16")
        for choice in defn.choices:
            if not isinstance(choice, bool) and isinstance(choice, int) and str(value).strip() == str(choice):
                return choice
        return value
    return value


def clamp_params(params: dict) -> dict:
    """
    Clamp resolved params to schema bounds.
    Returns a new dict (does not mutate input).

    Clamps:
    - Numeric section params (durations, rates, cutoffs, gains) to [min, max]
    - Each waveform's amplitude to [0, 1], frequency to [1, 20000], phase to [-360, 360]
    """
    result = copy.deepcopy(params)

    for name, defn in PARAM_SCHEMA.items():
        value = get_param(result, name)
        if value is None:
            continue
        clamped = _clamp_entry(defn, value)
        if clamped != value:
            logger.debug("Clamped %s: %r -> %r", name, value, clamped)
            _set_dotted(result, name, clamped)

    waves = []
    for wave in result.get("waveforms") or []:
        wave = dict(wave)
        for key, defn in WAVEFORM_SCHEMA.items():
            if key in wave:
                wave[key] = clamp_if_bounds(wave[key], defn.min, defn.max)
        waves.append(wave)
    result["waveforms"] = waves

    return result
