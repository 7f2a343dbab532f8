from dataclasses import dataclass, field
from datetime import datetime
import uuid
from typing import Any, Dict, Optional

import torch

STANDARD_SHAPES = ("sine", "square", "triangle", "sawtooth")
INSTRUMENT_SHAPES = ("piano", "violin")


@dataclass(frozen=True)
class SampleBuffer:
    samples: torch.Tensor  # 1-D float32
    sample_rate: int
    channels: int = 1

    def __len__(self) -> int:
        return int(self.samples.shape[-1])

    @property
    def num_samples(self) -> int:
        return len(self)

    @property
    def duration_s(self) -> float:
        return len(self) / float(self.sample_rate)


@dataclass(frozen=True)
class WaveformSpec:
    shape: str  # one of STANDARD_SHAPES + INSTRUMENT_SHAPES; anything else renders as sine
    amplitude: float = 0.8
    frequency: float = 440.0
    phase_degrees: float = 0.0

    @property
    def is_instrument(self) -> bool:
        return self.shape in INSTRUMENT_SHAPES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WaveformSpec":
        """Accepts both engine keys (shape/amplitude/frequency) and UI keys (type/amp/freq/phaseDeg)."""
        shape = data.get("shape", data.get("type", "sine"))
        amplitude = data.get("amplitude", data.get("amp", 0.8))
        frequency = data.get("frequency", data.get("freq", 440.0))
        phase = data.get("phase_degrees", data.get("phaseDeg", 0.0))
        return cls(str(shape), float(amplitude), float(frequency), float(phase or 0.0))


@dataclass(frozen=True)
class QuantizationResult:
    reconstructed: SampleBuffer
    error: SampleBuffer
    encoded: torch.Tensor  # int8/int16/int32 codes for PCM, uint8 for mu-law
    label: str             # "16-bit PCM", "μ-law8", ...
    companding: bool
    bits: int

    @property
    def effective_bits(self) -> int:
        return 8 if self.companding else self.bits


@dataclass(frozen=True)
class RecordingSession:
    sample_rate: int
    bit_depth: int
    channels: int
    duration_s: float
    original: SampleBuffer
    quantization: QuantizationResult
    snr_db: float
    theoretical_snr_db: float
    settings: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def encoding(self) -> str:
        return self.quantization.label


@dataclass(frozen=True)
class DACOutput:
    buffer: SampleBuffer
    method: str
    lowpass_hz: float
    session_id: Optional[str] = None
