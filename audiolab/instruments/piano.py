"""
Piano voice: fast-attack ADSR over 8 slightly stretched partials.
Deterministic; no randomness.
"""
import logging

import numpy as np
import torch

from audiolab.core.types import SampleBuffer
from audiolab.dsp.envelopes import PIANO_ENVELOPE

logger = logging.getLogger(__name__)

# (ratio, amplitude) per partial
PIANO_PARTIALS = (
    (1, 1.0),
    (2, 0.5),
    (3, 0.3),
    (4, 0.2),
    (5, 0.15),
    (6, 0.1),
    (7, 0.08),
    (8, 0.05),
)
INHARMONICITY = 1.0003   # partial k sits at f * k * INHARMONICITY**k
HEADROOM = 0.3


class PianoVoice:
    def __init__(self, sample_rate: int = 48000):
        self.sample_rate = sample_rate

    def partial_frequencies(self, frequency: float) -> torch.Tensor:
        ratios = torch.tensor([r for r, _ in PIANO_PARTIALS], dtype=torch.float64)
        return frequency * ratios * torch.pow(INHARMONICITY, ratios)

    def render(self, frequency: float, duration: float, amplitude: float = 0.8) -> SampleBuffer:
        sr = self.sample_rate
        num_samples = int(duration * sr)
        env = PIANO_ENVELOPE.render(num_samples, sr).to(torch.float64)

        freqs = self.partial_frequencies(frequency)
        amps = torch.tensor([a for _, a in PIANO_PARTIALS], dtype=torch.float64)
        # partials at or above Nyquist would alias
        audible = freqs < sr / 2.0
        if not bool(audible.all()):
            logger.debug("Piano %.1f Hz: dropping %d partials above Nyquist", frequency, int((~audible).sum()))
        freqs, amps = freqs[audible], amps[audible]

        t = torch.arange(num_samples, dtype=torch.float64) / sr
        partials = torch.sin(2 * np.pi * freqs.unsqueeze(1) * t.unsqueeze(0))
        sample = (amps.unsqueeze(1) * partials).sum(dim=0)

        out = sample * env * amplitude * HEADROOM
        return SampleBuffer(out.float(), sr)
