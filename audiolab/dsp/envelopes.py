from dataclasses import dataclass
from typing import Union

import torch


# -----------------------------------------------------------------------------
# Helpers (reusable across envelopes and instruments)
# -----------------------------------------------------------------------------

def db_to_lin(db: float) -> float:
    """Convert decibels to linear gain. 0 dB -> 1.0."""
    return 10.0 ** (db / 20.0)


def ms_to_s(ms: float) -> float:
    """Convert milliseconds to seconds."""
    return ms / 1000.0


def clamp01(x: Union[float, torch.Tensor]) -> Union[float, torch.Tensor]:
    """Clamp value(s) to [0, 1]. Accepts scalar or tensor."""
    if isinstance(x, torch.Tensor):
        return torch.clamp(x, 0.0, 1.0)
    return max(0.0, min(1.0, float(x)))


# -----------------------------------------------------------------------------
# Linear ADSR over a fixed-length buffer
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class EnvelopeProfile:
    """
    Attack/decay/release in seconds, sustain as a level in [0, 1].
    The release is placed at the end of the buffer; whatever is left in between
    is sustain. When the buffer is shorter than attack + decay + release, the
    tail of the curve is cut off.
    """
    attack: float
    decay: float
    sustain: float
    release: float

    def render(self, length: int, sample_rate: int) -> torch.Tensor:
        """Per-sample gain curve of exactly `length` samples (float32)."""
        if length <= 0:
            return torch.zeros(0)

        sustain = float(clamp01(self.sustain))
        n_attack = int(self.attack * sample_rate)
        n_decay = int(self.decay * sample_rate)
        n_release = int(self.release * sample_rate)
        n_sustain = max(0, length - n_attack - n_decay - n_release)

        segments = []
        # ---- Attack: 0 -> 1 (exclusive) ----
        if n_attack > 0:
            segments.append(torch.arange(n_attack, dtype=torch.float64) / n_attack)
        # ---- Decay: 1 -> sustain ----
        if n_decay > 0:
            j = torch.arange(n_decay, dtype=torch.float64) / n_decay
            segments.append(1.0 - (1.0 - sustain) * j)
        # ---- Sustain ----
        if n_sustain > 0:
            segments.append(torch.full((n_sustain,), sustain, dtype=torch.float64))
        # ---- Release: sustain -> 0 ----
        if n_release > 0:
            j = torch.arange(n_release, dtype=torch.float64) / n_release
            segments.append(sustain * (1.0 - j))

        env = torch.cat(segments) if segments else torch.zeros(0, dtype=torch.float64)
        env = env[:length]
        if env.shape[-1] < length:
            env = torch.nn.functional.pad(env, (0, length - env.shape[-1]))
        return env.float()


PIANO_ENVELOPE = EnvelopeProfile(attack=0.005, decay=0.1, sustain=0.3, release=0.5)
VIOLIN_ENVELOPE = EnvelopeProfile(attack=0.08, decay=0.1, sustain=0.7, release=0.3)
