"""
Session export: file naming, storage sizes and the session ZIP bundle.
Run from project root: python -m pytest tests/test_export.py -v
"""
import sys
import os
import io
import json
import zipfile

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import numpy as np
import soundfile as sf
from audiolab.export.exporter import (
    Exporter,
    bytes_human,
    bytes_per_minute,
    size_summary,
    wav_filename,
)
from audiolab.pipeline.session import render_dac, simulate_recording

SHORT = {"recording": {"duration_s": 0.1}}


def test_wav_filename_pcm():
    session = simulate_recording(SHORT)
    assert wav_filename(session) == "recorded_44100Hz_16-bitPCM.wav"


def test_wav_filename_mu_law():
    session = simulate_recording({"recording": {"duration_s": 0.1, "sample_rate": 8000, "compression": "μ-law"}})
    assert wav_filename(session) == "recorded_8000Hz_μ-law8.wav"


def test_bytes_per_minute():
    assert bytes_per_minute(44100, 16, 1) == 5292000
    assert bytes_per_minute(48000, 24, 2) == 17280000


def test_bytes_human():
    assert bytes_human(512) == "512.00 B"
    assert bytes_human(1536) == "1.50 KB"
    assert bytes_human(5292000) == "5.05 MB"
    assert bytes_human(3 * 1024 ** 4) == "3072.00 GB"


def test_size_summary():
    assert size_summary(44100, 16) == "5.05 MB / minute  (1 ch · 44,100 Hz · 16-bit PCM)"


def test_recording_wav_matches_codes():
    session = simulate_recording(SHORT)
    read, sr = sf.read(io.BytesIO(Exporter.recording_wav(session)), dtype="int16")
    assert sr == 44100
    np.testing.assert_array_equal(read, session.quantization.encoded.numpy())


def test_session_zip_contents():
    session = simulate_recording(SHORT)
    dac = render_dac(session)
    data = Exporter.create_session_zip(session, dac)

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        names = set(zf.namelist())
        assert names == {"session_info.json", "recorded_44100Hz_16-bitPCM.wav", "dac.wav"}
        meta = json.loads(zf.read("session_info.json").decode("utf-8"))
        dac_audio, dac_sr = sf.read(io.BytesIO(zf.read("dac.wav")))

    assert meta["session_id"] == session.id
    assert meta["encoding"] == "16-bit PCM"
    assert meta["bit_depth"] == 16
    assert meta["settings"]["sample_rate"] == 44100
    assert meta["dac"]["method"] == "ZeroOrderHold"
    assert meta["dac"]["output_rate"] == 48000
    assert isinstance(meta["snr_db"], float)
    assert dac_sr == 48000
    assert len(dac_audio) == len(dac.buffer)


def test_session_zip_without_dac():
    session = simulate_recording(SHORT)
    with zipfile.ZipFile(io.BytesIO(Exporter.create_session_zip(session))) as zf:
        assert "dac.wav" not in zf.namelist()
        meta = json.loads(zf.read("session_info.json").decode("utf-8"))
    assert "dac" not in meta


def test_lossless_snr_serializes_as_string():
    # silence quantizes with zero error
    session = simulate_recording({
        "waveforms": [{"shape": "sine", "amplitude": 0.0}],
        "recording": {"duration_s": 0.1},
    })
    with zipfile.ZipFile(io.BytesIO(Exporter.create_session_zip(session))) as zf:
        meta = json.loads(zf.read("session_info.json").decode("utf-8"))
    assert meta["snr_db"] == "inf"
