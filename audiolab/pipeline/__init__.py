"""
Offline pipeline: signal rendering, recording simulation, DAC, render scheduling.
"""
from audiolab.pipeline.renderer import SignalRenderer, render
from audiolab.pipeline.scheduler import RenderScheduler, RenderToken
from audiolab.pipeline.session import (
    PipelineResult,
    generate_all,
    render_dac,
    render_preview,
    simulate_recording,
)

__all__ = [
    "SignalRenderer",
    "render",
    "RenderScheduler",
    "RenderToken",
    "PipelineResult",
    "generate_all",
    "render_dac",
    "render_preview",
    "simulate_recording",
]
