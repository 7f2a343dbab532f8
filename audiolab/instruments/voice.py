from typing import Optional

from audiolab.core.types import SampleBuffer
from audiolab.instruments.piano import PianoVoice
from audiolab.instruments.violin import ViolinVoice


def synthesize_voice(
    kind: str,
    frequency: float,
    duration: float,
    amplitude: float,
    sample_rate: int,
    seed: Optional[int] = None,
) -> SampleBuffer:
    """
    Render one instrument voice of floor(duration * sample_rate) samples.
    seed only affects the violin (random partial phases and bow noise).
    """
    if kind == "piano":
        return PianoVoice(sample_rate).render(frequency, duration, amplitude)
    if kind == "violin":
        return ViolinVoice(sample_rate).render(frequency, duration, amplitude, seed=seed)
    raise ValueError(f"Unknown instrument: {kind}")
