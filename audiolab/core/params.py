"""
Param parsing utilities for session params (plain dict contract).
Supports dotted keys for nested sections, e.g. "recording.anti_alias.cutoff_hz".
"""
from dataclasses import dataclass
from typing import Any, Optional


# -----------------------------------------------------------------------------
# Param definition (for schema/documentation; lookup still via get_param)
# -----------------------------------------------------------------------------

@dataclass
class ParamDef:
    """Definition of a single parameter. Bounds/unit are optional."""
    name: str
    default: Any
    min: Optional[float] = None
    max: Optional[float] = None
    unit: Optional[str] = None
    choices: Optional[tuple] = None


# -----------------------------------------------------------------------------
# Lookup helpers
# -----------------------------------------------------------------------------

def get_param(params: dict, name: str, default: Any = None) -> Any:
    """
    Read a value from params, supporting dotted keys for nested dicts.
    E.g. get_param(p, "recording.bit_depth", 16) -> p["recording"]["bit_depth"] or default.
    If any intermediate key is missing or not a dict, returns default.
    """
    if not params or not name:
        return default
    keys = name.split(".")
    current = params
    for key in keys[:-1]:
        next_val = current.get(key)
        if next_val is None or not isinstance(next_val, dict):
            return default
        current = next_val
    return current.get(keys[-1], default)


def get_float(params: dict, name: str, default: float) -> float:
    """get_param coerced to float; unparseable values fall back to default."""
    raw = get_param(params, name, default)
    try:
        return float(raw)
    except (TypeError, ValueError):
        return float(default)


def get_bool(params: dict, name: str, default: bool = False) -> bool:
    """
    get_param coerced to bool. Accepts the UI's "On"/"Off" strings as well as
    true/false/yes/no/1/0.
    """
    raw = get_param(params, name, default)
    if isinstance(raw, str):
        return raw.strip().lower() in ("on", "true", "yes", "1")
    return bool(raw)


def clamp_if_bounds(
    value: float,
    min: Optional[float] = None,
    max: Optional[float] = None,
) -> float:
    """
    Clamp value to [min, max] when bounds are not None.
    If both are None, returns value unchanged.
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        return value
    if min is not None and v < min:
        return min
    if max is not None and v > max:
        return max
    return v
