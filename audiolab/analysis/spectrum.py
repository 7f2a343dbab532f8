"""
Visualization snapshots: time-domain windows and 0-255 magnitude arrays in the
shape an analyser node hands to a scope/spectrum display (no smoothing).
Frames are immutable copies; nothing here holds a reference to pipeline buffers.
"""
from dataclasses import dataclass
from typing import Iterator, Optional, Union

import numpy as np
import torch

from audiolab.core.types import SampleBuffer

DEFAULT_FFT_SIZE = 4096
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0
SCOPE_CYCLES = 3

BufferLike = Union[SampleBuffer, torch.Tensor]


def _samples(x: BufferLike) -> torch.Tensor:
    samples = x.samples if isinstance(x, SampleBuffer) else torch.as_tensor(x)
    return samples.detach().reshape(-1)


def _check_fft_size(fft_size: int) -> int:
    fft_size = int(fft_size)
    if fft_size < 32 or fft_size & (fft_size - 1):
        raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
    return fft_size


def time_domain_snapshot(buffer: BufferLike, fft_size: int = DEFAULT_FFT_SIZE, offset: int = 0) -> torch.Tensor:
    """
    Copy `fft_size` samples starting at `offset`; positions past the end read as 0.
    """
    fft_size = _check_fft_size(fft_size)
    x = _samples(buffer).to(torch.float32)
    out = torch.zeros(fft_size, dtype=torch.float32)
    start = max(0, int(offset))
    chunk = x[start:start + fft_size]
    out[: chunk.shape[-1]] = chunk
    return out


def _magnitudes(samples: torch.Tensor, fft_size: int) -> torch.Tensor:
    """Blackman-windowed magnitude spectrum, scaled by 1/N, fft_size/2 bins."""
    x = samples.to(torch.float64)
    if x.shape[-1] < fft_size:
        x = torch.nn.functional.pad(x, (0, fft_size - x.shape[-1]))
    x = x[:fft_size]
    window = torch.blackman_window(fft_size, periodic=True, dtype=torch.float64)
    spec = torch.fft.rfft(x * window)
    return torch.abs(spec[: fft_size // 2]) / fft_size


def byte_frequency_data(
    samples: BufferLike,
    fft_size: int = DEFAULT_FFT_SIZE,
    min_db: float = MIN_DECIBELS,
    max_db: float = MAX_DECIBELS,
) -> torch.Tensor:
    """
    Magnitude spectrum mapped to 0..255 (uint8) over [min_db, max_db].
    Uses the first `fft_size` samples (zero-padded when shorter).
    """
    fft_size = _check_fft_size(fft_size)
    if max_db <= min_db:
        raise ValueError(f"max_db ({max_db}) must exceed min_db ({min_db})")
    mag = _magnitudes(_samples(samples), fft_size)
    db = 20.0 * torch.log10(torch.clamp(mag, min=1e-30))
    scaled = torch.floor(255.0 / (max_db - min_db) * (db - min_db))
    return torch.clamp(scaled, 0, 255).to(torch.uint8)


def dominant_frequency(samples: BufferLike, sample_rate: int, fft_size: Optional[int] = None) -> float:
    """
    Frequency of the strongest non-DC bin. fft_size defaults to the next power of
    two covering the input. Returns 0.0 for silence.
    """
    x = _samples(samples)
    if fft_size is None:
        fft_size = max(32, 1 << int(np.ceil(np.log2(max(1, x.shape[-1])))))
    fft_size = _check_fft_size(fft_size)
    mag = _magnitudes(x, fft_size)
    if mag.shape[-1] < 2 or float(torch.max(mag[1:])) <= 0:
        return 0.0
    peak_bin = int(torch.argmax(mag[1:])) + 1
    return peak_bin * sample_rate / fft_size


def optimal_time_window(frequency: float) -> float:
    """Seconds of signal covering three periods; 1.0 s below 1 Hz."""
    if frequency < 1:
        return 1.0
    return SCOPE_CYCLES / frequency


def find_zero_crossing(samples: BufferLike, start: int = 0, rising: bool = True) -> int:
    """First index after `start` where the signal crosses zero; `start` if none."""
    x = _samples(samples)
    if x.shape[-1] < 3:
        return start
    prev = x[start:-2]
    cur = x[start + 1:-1]
    if rising:
        hits = torch.nonzero((prev <= 0) & (cur > 0))
    else:
        hits = torch.nonzero((prev >= 0) & (cur < 0))
    if hits.numel() == 0:
        return start
    return start + 1 + int(hits[0, 0])


@dataclass(frozen=True)
class AnalyserFrame:
    offset: int
    sample_rate: int
    time_data: torch.Tensor      # float32, fft_size samples
    freq_data: torch.Tensor      # uint8, fft_size / 2 bins
    dominant_hz: float

    @property
    def bin_width_hz(self) -> float:
        return self.sample_rate / (2 * self.freq_data.shape[-1])

    def scope_window(self) -> torch.Tensor:
        """Three periods of the dominant frequency, starting at a rising zero crossing."""
        n = self.time_data.shape[-1]
        if self.dominant_hz <= 10:
            return self.time_data.clone()
        count = min(n, int(optimal_time_window(self.dominant_hz) * self.sample_rate))
        start = find_zero_crossing(self.time_data, 0, rising=True)
        return self.time_data[start:start + count].clone()


class Analyser:
    """
    Pull-based analyser over a rendered buffer. Each call returns a fresh frame;
    the source samples are copied once at construction.
    """

    def __init__(
        self,
        buffer: SampleBuffer,
        fft_size: int = DEFAULT_FFT_SIZE,
        min_db: float = MIN_DECIBELS,
        max_db: float = MAX_DECIBELS,
    ):
        self.fft_size = _check_fft_size(fft_size)
        self.sample_rate = buffer.sample_rate
        self.min_db = min_db
        self.max_db = max_db
        self._samples = _samples(buffer).to(torch.float32).clone()

    def __len__(self) -> int:
        return self._samples.shape[-1]

    def frame(self, offset: int = 0) -> AnalyserFrame:
        time_data = time_domain_snapshot(self._samples, self.fft_size, offset)
        return AnalyserFrame(
            offset=int(offset),
            sample_rate=self.sample_rate,
            time_data=time_data,
            freq_data=byte_frequency_data(time_data, self.fft_size, self.min_db, self.max_db),
            dominant_hz=dominant_frequency(time_data, self.sample_rate, self.fft_size),
        )

    def frames(self, hop: Optional[int] = None) -> Iterator[AnalyserFrame]:
        """Walk the buffer in steps of `hop` samples (default fft_size)."""
        hop = int(hop or self.fft_size)
        if hop <= 0:
            raise ValueError(f"hop must be positive, got {hop}")
        for offset in range(0, max(1, len(self)), hop):
            yield self.frame(offset)
