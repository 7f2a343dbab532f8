import io
import struct
from typing import Optional

import numpy as np
import soundfile as sf
import torch

from audiolab.core.errors import UnsupportedBitDepth
from audiolab.core.types import QuantizationResult

WAVE_FORMAT_PCM = 1
WAVE_FORMAT_MULAW = 7
MULAW_HEADER_BYTES = 46

# bits -> (soundfile subtype, container dtype, left shift into the container)
_PCM_SUBTYPES = {
    8: ("PCM_U8", np.int16, 8),
    16: ("PCM_16", np.int16, 0),
    24: ("PCM_24", np.int32, 8),
}


def _interleave(codes: np.ndarray, channels: int) -> np.ndarray:
    """Mono codes -> (frames, channels), duplicating the channel for stereo."""
    if channels == 1:
        return codes
    return np.repeat(codes[:, None], channels, axis=1)


class AudioIO:
    @staticmethod
    def save_wav(waveform: torch.Tensor, sample_rate: int, path, normalize: bool = False, subtype: Optional[str] = None):
        """Saves a float tensor to a WAV file (path or file-like)."""
        # Convert to numpy
        if isinstance(waveform, torch.Tensor):
            data = waveform.detach().cpu().numpy()
        else:
            data = waveform

        # Normalize
        if normalize:
            peak = np.max(np.abs(data)) if data.size else 0.0
            if peak > 0:
                data = data / peak

        # Clamp to avoid wrap-around clipping
        data = np.clip(data, -1.0, 1.0)

        sf.write(path, data, sample_rate, subtype=subtype, format="WAV")

    @staticmethod
    def to_bytes(waveform: torch.Tensor, sample_rate: int, format: str = 'WAV', subtype: Optional[str] = None) -> bytes:
        """Returns audio file as bytes."""
        buffer = io.BytesIO()

        # Convert to numpy
        if isinstance(waveform, torch.Tensor):
            data = waveform.detach().cpu().numpy()
        else:
            data = waveform

        # Clamp
        data = np.clip(data, -1.0, 1.0)

        sf.write(buffer, data, sample_rate, format=format, subtype=subtype)
        return buffer.getvalue()

    @staticmethod
    def pcm_to_bytes(codes: torch.Tensor, sample_rate: int, bits: int, channels: int = 1) -> bytes:
        """
        Linear PCM WAV (format tag 1, 44-byte header) whose stored integers are
        exactly `codes`. 8-bit is stored unsigned (code + 128) as WAV requires.
        """
        if bits not in _PCM_SUBTYPES:
            raise UnsupportedBitDepth(bits)
        subtype, dtype, shift = _PCM_SUBTYPES[bits]
        data = codes.detach().cpu().numpy().astype(np.int64).reshape(-1)
        # libsndfile keeps the top `bits` bits of the container integer
        data = (data << shift).astype(dtype)

        buffer = io.BytesIO()
        sf.write(buffer, _interleave(data, channels), sample_rate, format="WAV", subtype=subtype)
        return buffer.getvalue()

    @staticmethod
    def mulaw_to_bytes(codes: torch.Tensor, sample_rate: int, channels: int = 1) -> bytes:
        """
        mu-law WAV: format tag 7, 18-byte fmt chunk (cbSize 0), data at byte 46.
        The data bytes are the 8-bit codes as produced by the quantizer.
        """
        data = _interleave(codes.detach().cpu().numpy().astype(np.uint8).reshape(-1), channels)
        payload = np.ascontiguousarray(data).tobytes()
        pad = b"\x00" if len(payload) % 2 else b""

        header = b"".join([
            b"RIFF",
            struct.pack("<I", 38 + len(payload) + len(pad)),
            b"WAVE",
            b"fmt ",
            struct.pack(
                "<IHHIIHHH",
                18,                       # fmt chunk size
                WAVE_FORMAT_MULAW,
                channels,
                sample_rate,
                sample_rate * channels,   # byte rate
                channels,                 # block align
                8,                        # bits per sample
                0,                        # cbSize
            ),
            b"data",
            struct.pack("<I", len(payload)),
        ])
        return header + payload + pad

    @staticmethod
    def encode_recording(quantization: QuantizationResult, sample_rate: int, channels: int = 1) -> bytes:
        """WAV bytes for a quantized recording, PCM or mu-law by its encoding."""
        if channels not in (1, 2):
            raise ValueError(f"channels must be 1 or 2, got {channels}")
        if quantization.companding:
            return AudioIO.mulaw_to_bytes(quantization.encoded, sample_rate, channels)
        return AudioIO.pcm_to_bytes(quantization.encoded, sample_rate, quantization.bits, channels)
