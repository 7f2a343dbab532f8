"""
Signal renderer: mixes band-limited oscillators and instrument voices into one
mono buffer of ceil(duration * sample_rate) samples, with an optional biquad
on the mix (the anti-aliasing filter ahead of the ADC).
Standard shapes render bit-identically for identical inputs.
"""
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Union

import torch

from audiolab.core.params import clamp_if_bounds
from audiolab.core.types import SampleBuffer, WaveformSpec
from audiolab.dsp.filters import Filter, FilterSpec
from audiolab.dsp.mixer import VoiceMixer
from audiolab.dsp.oscillators import Oscillator, build_harmonic_spectrum
from audiolab.instruments.voice import synthesize_voice

logger = logging.getLogger(__name__)

PIANO_RETRIGGER_S = 1.0   # piano re-strikes every second of output

WaveformLike = Union[WaveformSpec, Dict[str, Any]]


def _as_specs(waveforms: Iterable[WaveformLike]) -> List[WaveformSpec]:
    return [w if isinstance(w, WaveformSpec) else WaveformSpec.from_dict(w) for w in waveforms]


def _loop(samples: torch.Tensor, loop_len: int, length: int) -> torch.Tensor:
    """Repeat samples[:loop_len] until `length` samples are filled."""
    if loop_len <= 0:
        return torch.zeros(length, dtype=torch.float32)
    idx = torch.arange(length, dtype=torch.int64) % loop_len
    return samples[idx]


class SignalRenderer:
    def __init__(self, sample_rate: int = 48000):
        self.sample_rate = int(sample_rate)

    def render(
        self,
        duration: float,
        waveforms: Iterable[WaveformLike],
        anti_alias: bool = True,
        filter: Optional[FilterSpec] = None,
        seed: Optional[int] = None,
    ) -> SampleBuffer:
        """
        Render the mix of all waveforms with amplitude > 0.

        Args:
            duration: Seconds of output
            waveforms: WaveformSpec list (dicts are accepted and converted)
            anti_alias: Limit oscillator harmonics to 0.9 * Nyquist
            filter: Optional lowpass/highpass biquad applied to the mix
            seed: Base seed for violin voices (voice i uses seed + i); None = fresh randomness
        """
        sr = self.sample_rate
        n = int(math.ceil(duration * sr))
        mixer = VoiceMixer()

        for i, w in enumerate(_as_specs(waveforms)):
            if w.amplitude <= 0:
                logger.debug("Skipping silent waveform %d (%s)", i, w.shape)
                continue
            name = f"{i}:{w.shape}"

            if w.is_instrument:
                voice_seed = None if seed is None else seed + i
                voice = synthesize_voice(w.shape, w.frequency, duration, w.amplitude, sr, seed=voice_seed)
                loop_len = len(voice)
                if w.shape == "piano":
                    loop_len = min(loop_len, int(PIANO_RETRIGGER_S * sr))
                mixer.add(name, _loop(voice.samples, loop_len, n))
            else:
                freq = clamp_if_bounds(w.frequency, 1.0, sr / 2 - 1)
                spectrum = build_harmonic_spectrum(w.shape, freq, w.phase_degrees, sr, anti_alias)
                mixer.add(name, Oscillator.from_spectrum(spectrum, freq, n, sr), gain=w.amplitude)

        master, _ = mixer.mix(n)
        if filter is not None:
            master = Filter.apply(master, sr, filter)

        logger.debug("Rendered %d voices, %d samples @ %d Hz", len(mixer), n, sr)
        return SampleBuffer(master.float(), sr, 1)


def render(
    duration: float,
    sample_rate: int,
    waveforms: Iterable[WaveformLike],
    anti_alias: bool = True,
    filter: Optional[FilterSpec] = None,
    seed: Optional[int] = None,
) -> SampleBuffer:
    """Functional form of SignalRenderer(sample_rate).render(...)."""
    return SignalRenderer(sample_rate).render(duration, waveforms, anti_alias, filter, seed)
