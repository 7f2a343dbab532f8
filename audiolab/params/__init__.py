"""
Parameter schema and defaults for the sandbox session.
Default values: single source is canonical_defaults.ENGINE_DEFAULTS; use resolve_params({}) for resolved defaults.
"""
from audiolab.params.schema import PARAM_SCHEMA
from audiolab.params.resolve import resolve_params
from audiolab.params.clamp import clamp_params
from audiolab.params.engine_params import to_engine_params

__all__ = ["PARAM_SCHEMA", "resolve_params", "clamp_params", "to_engine_params"]
