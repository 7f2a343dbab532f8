"""
Violin voice: slow bowed ADSR, 10 partials with vibrato and a short burst of
bow noise in the first 100 ms.
Partial phases and bow noise are drawn once per render call; pass a seed for
reproducible output.
"""
from typing import Optional

import numpy as np
import torch

from audiolab.core.types import SampleBuffer
from audiolab.dsp.envelopes import VIOLIN_ENVELOPE
from audiolab.dsp.noise import Noise, make_generator

VIOLIN_PARTIALS = (
    (1, 1.0),
    (2, 0.45),
    (3, 0.3),
    (4, 0.25),
    (5, 0.18),
    (6, 0.12),
    (7, 0.08),
    (8, 0.06),
    (9, 0.04),
    (10, 0.03),
)
VIBRATO_RATE_HZ = 4.5
VIBRATO_DEPTH = 0.002        # +/- 0.2% of the frequency
VIBRATO_FADE_IN_S = 0.1
BOW_NOISE_S = 0.1
BOW_NOISE_LEVEL = 0.02
HEADROOM = 0.4


class ViolinVoice:
    def __init__(self, sample_rate: int = 48000):
        self.sample_rate = sample_rate

    def render(
        self,
        frequency: float,
        duration: float,
        amplitude: float = 0.8,
        seed: Optional[int] = None,
    ) -> SampleBuffer:
        sr = self.sample_rate
        num_samples = int(duration * sr)
        gen = make_generator(seed)
        env = VIOLIN_ENVELOPE.render(num_samples, sr).to(torch.float64)

        ratios = torch.tensor([r for r, _ in VIOLIN_PARTIALS], dtype=torch.float64)
        amps = torch.tensor([a for _, a in VIOLIN_PARTIALS], dtype=torch.float64)
        # one phase per partial, held for the whole buffer
        phase_offsets = torch.rand(len(VIOLIN_PARTIALS), generator=gen, dtype=torch.float64) * 2 * np.pi

        audible = frequency * ratios < sr / 2.0
        ratios, amps, phase_offsets = ratios[audible], amps[audible], phase_offsets[audible]

        t = torch.arange(num_samples, dtype=torch.float64) / sr
        fade_in = torch.clamp(t / VIBRATO_FADE_IN_S, max=1.0)
        vibrato = 1.0 + VIBRATO_DEPTH * fade_in * torch.sin(2 * np.pi * VIBRATO_RATE_HZ * t)

        # Integrate the instantaneous frequency; exclusive cumsum so phase starts at 0
        inst_freq = frequency * vibrato
        cycles = (torch.cumsum(inst_freq, dim=0) - inst_freq) / sr
        phase = 2 * np.pi * ratios.unsqueeze(1) * cycles.unsqueeze(0) + phase_offsets.unsqueeze(1)
        sample = (amps.unsqueeze(1) * torch.sin(phase)).sum(dim=0)

        # Bow noise, fading out over the first 100 ms
        n_bow = min(num_samples, int(np.ceil(BOW_NOISE_S * sr)))
        if n_bow > 0:
            bow_fade = 1.0 - t[:n_bow] / BOW_NOISE_S
            noise = Noise.uniform(n_bow, gen) * BOW_NOISE_LEVEL * bow_fade
            sample = torch.cat([sample[:n_bow] + noise, sample[n_bow:]])

        out = sample * env * amplitude * HEADROOM
        return SampleBuffer(out.float(), sr)
