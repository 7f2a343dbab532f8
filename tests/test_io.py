"""
WAV encoding of quantized recordings: stored integers must equal the quantizer codes.
Run from project root: python -m pytest tests/test_io.py -v
"""
import sys
import os
import io
import struct

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import numpy as np
import pytest
import soundfile as sf
import torch
from audiolab.core.errors import UnsupportedBitDepth
from audiolab.core.io import AudioIO, MULAW_HEADER_BYTES, WAVE_FORMAT_MULAW, WAVE_FORMAT_PCM
from audiolab.core.types import SampleBuffer
from audiolab.dsp.oscillators import Oscillator
from audiolab.dsp.quantize import quantize


def _sine_codes(bits, compression="None", n=800, sr=8000):
    x = SampleBuffer(Oscillator.sine(440.0, n, sr) * 0.7, sr)
    return quantize(x, bits, compression=compression)


def _format_tag(data: bytes) -> int:
    return struct.unpack("<H", data[20:22])[0]


# -----------------------------------------------------------------------------
# Linear PCM
# -----------------------------------------------------------------------------

def test_pcm16_roundtrip_codes():
    q = _sine_codes(16)
    data = AudioIO.pcm_to_bytes(q.encoded, 8000, 16)
    assert data[:4] == b"RIFF" and data[8:12] == b"WAVE"
    assert _format_tag(data) == WAVE_FORMAT_PCM
    read, sr = sf.read(io.BytesIO(data), dtype="int16")
    assert sr == 8000
    np.testing.assert_array_equal(read, q.encoded.numpy())


def test_pcm8_stored_unsigned():
    q = _sine_codes(8)
    data = AudioIO.pcm_to_bytes(q.encoded, 8000, 8)
    info = sf.info(io.BytesIO(data))
    assert info.subtype == "PCM_U8"
    read, _ = sf.read(io.BytesIO(data), dtype="int16")
    np.testing.assert_array_equal(read >> 8, q.encoded.numpy().astype(np.int16))


def test_pcm24_roundtrip_codes():
    q = _sine_codes(24)
    data = AudioIO.pcm_to_bytes(q.encoded, 8000, 24)
    assert sf.info(io.BytesIO(data)).subtype == "PCM_24"
    read, _ = sf.read(io.BytesIO(data), dtype="int32")
    np.testing.assert_array_equal(read >> 8, q.encoded.numpy())


def test_pcm_stereo_duplicates_channel():
    q = _sine_codes(16)
    data = AudioIO.pcm_to_bytes(q.encoded, 8000, 16, channels=2)
    read, _ = sf.read(io.BytesIO(data), dtype="int16")
    assert read.shape == (800, 2)
    np.testing.assert_array_equal(read[:, 0], read[:, 1])


def test_pcm_rejects_unknown_bits():
    with pytest.raises(UnsupportedBitDepth):
        AudioIO.pcm_to_bytes(torch.zeros(4, dtype=torch.int16), 8000, 12)


# -----------------------------------------------------------------------------
# mu-law
# -----------------------------------------------------------------------------

def test_mulaw_header_layout():
    q = _sine_codes(16, compression="μ-law")
    data = AudioIO.mulaw_to_bytes(q.encoded, 8000)
    assert data[:4] == b"RIFF"
    assert data[12:16] == b"fmt "
    fmt_size, tag, channels, sr, byte_rate, block_align, bits, cb_size = struct.unpack(
        "<IHHIIHHH", data[16:38]
    )
    assert fmt_size == 18
    assert tag == WAVE_FORMAT_MULAW
    assert channels == 1
    assert sr == 8000
    assert byte_rate == 8000
    assert block_align == 1
    assert bits == 8
    assert cb_size == 0
    assert data[38:42] == b"data"
    assert struct.unpack("<I", data[42:46])[0] == 800
    assert len(data) == MULAW_HEADER_BYTES + 800
    assert struct.unpack("<I", data[4:8])[0] == len(data) - 8


def test_mulaw_data_is_codes():
    q = _sine_codes(16, compression="μ-law")
    data = AudioIO.mulaw_to_bytes(q.encoded, 8000)
    assert data[MULAW_HEADER_BYTES:] == bytes(q.encoded.tolist())


def test_mulaw_odd_length_padded():
    codes = torch.tensor([1, 2, 3], dtype=torch.uint8)
    data = AudioIO.mulaw_to_bytes(codes, 8000)
    assert len(data) == MULAW_HEADER_BYTES + 4
    assert struct.unpack("<I", data[42:46])[0] == 3
    assert struct.unpack("<I", data[4:8])[0] == len(data) - 8


def test_mulaw_stereo():
    codes = torch.tensor([10, 20], dtype=torch.uint8)
    data = AudioIO.mulaw_to_bytes(codes, 8000, channels=2)
    assert data[MULAW_HEADER_BYTES:] == bytes([10, 10, 20, 20])
    _, _, channels, _, byte_rate, block_align, _, _ = struct.unpack("<IHHIIHHH", data[16:38])
    assert (channels, byte_rate, block_align) == (2, 16000, 2)


# -----------------------------------------------------------------------------
# Dispatch
# -----------------------------------------------------------------------------

def test_encode_recording_dispatch():
    pcm = AudioIO.encode_recording(_sine_codes(16), 8000)
    ulaw = AudioIO.encode_recording(_sine_codes(16, compression="μ-law"), 8000)
    assert _format_tag(pcm) == WAVE_FORMAT_PCM
    assert _format_tag(ulaw) == WAVE_FORMAT_MULAW


def test_encode_recording_rejects_channels():
    with pytest.raises(ValueError):
        AudioIO.encode_recording(_sine_codes(16), 8000, channels=3)


def test_save_wav_clamps(tmp_path):
    path = tmp_path / "out.wav"
    AudioIO.save_wav(torch.tensor([2.0, -2.0, 0.5]), 8000, str(path), subtype="FLOAT")
    read, _ = sf.read(str(path), dtype="float32")
    assert read.tolist() == [1.0, -1.0, 0.5]
