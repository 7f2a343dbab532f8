"""
Session pipeline: preview, recording simulation, DAC and the fidelity report.
Run from project root: python -m pytest tests/test_session.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import dataclasses

import pytest
import torch
from audiolab.analysis import analyze
from audiolab.core.errors import UnsupportedBitDepth, UnsupportedCompression
from audiolab.dsp.quantize import quantize
from audiolab.pipeline.session import (
    DITHER_SEED_OFFSET,
    generate_all,
    prepare_params,
    render_dac,
    render_preview,
    simulate_recording,
)


def test_default_recording_is_clean_16bit():
    session = simulate_recording({})
    assert session.sample_rate == 44100
    assert session.bit_depth == 16
    assert session.channels == 1
    assert len(session.original) == 44100
    assert session.encoding == "16-bit PCM"
    assert session.theoretical_snr_db == pytest.approx(98.08)
    # 0.8 amplitude sine loses ~2 dB against a full-scale reference
    assert 90.0 < session.snr_db < 100.0

    report = analyze(session)
    assert report["status"] == "PASS"
    assert report["failures"] == []
    assert report["metrics"]["clipped_samples"] == 0


def test_lower_bit_depth_lowers_snr():
    snr8 = simulate_recording({"recording": {"bit_depth": 8}}).snr_db
    snr16 = simulate_recording({"recording": {"bit_depth": 16}}).snr_db
    snr24 = simulate_recording({"recording": {"bit_depth": 24}}).snr_db
    assert snr8 < snr16 < snr24


def test_mu_law_session():
    session = simulate_recording({"recording": {"compression": "μ-law"}})
    assert session.encoding == "μ-law8"
    assert session.quantization.encoded.dtype == torch.uint8
    assert session.theoretical_snr_db == pytest.approx(6.02 * 8 + 1.76)
    assert 25.0 < session.snr_db < session.theoretical_snr_db


def test_stereo_label_accepted():
    assert simulate_recording({"recording": {"channels": "Stereo"}}).channels == 2
    assert simulate_recording({"recording": {"channels": "Mono"}}).channels == 1
    assert simulate_recording({"recording": {"channels": 2}}).channels == 2


def test_settings_are_snapshot():
    params = {"recording": {"bit_depth": 8, "sample_rate": 8000}}
    session = simulate_recording(params)
    params["recording"]["bit_depth"] = 24
    assert session.settings["bit_depth"] == 8
    assert session.settings["sample_rate"] == 8000


def test_session_is_immutable():
    session = simulate_recording({"recording": {"duration_s": 0.1}})
    with pytest.raises(dataclasses.FrozenInstanceError):
        session.bit_depth = 24


def test_each_recording_gets_new_id():
    a = simulate_recording({"recording": {"duration_s": 0.1}})
    b = simulate_recording({"recording": {"duration_s": 0.1}})
    assert a.id != b.id


def test_unsupported_bit_depth_raises():
    with pytest.raises(UnsupportedBitDepth):
        simulate_recording({"recording": {"bit_depth": 12}})


def test_unsupported_compression_raises():
    with pytest.raises(UnsupportedCompression):
        simulate_recording({"recording": {"compression": "A-law"}})


def test_anti_alias_filter_applied():
    waves = [{"shape": "sine", "amplitude": 0.5, "frequency": 15000.0}]
    plain = simulate_recording({"waveforms": waves, "recording": {"duration_s": 0.2}})
    filtered = simulate_recording({
        "waveforms": waves,
        "recording": {"duration_s": 0.2, "anti_alias": {"kind": "Low-pass", "cutoff_hz": 2000.0}},
    })
    plain_rms = float(torch.sqrt(torch.mean(plain.original.samples.double() ** 2)))
    filtered_rms = float(torch.sqrt(torch.mean(filtered.original.samples.double() ** 2)))
    assert filtered_rms < 0.1 * plain_rms


def test_preview_uses_preview_rate():
    preview = render_preview({})
    assert preview.sample_rate == 48000
    assert len(preview) == 96000


def test_ui_only_params_ignored():
    a = render_preview({"preview": {"duration_s": 0.1}}, seed=1)
    b = render_preview({"preview": {"duration_s": 0.1}, "masterGain": 0.1, "spectrumZoom": 4}, seed=1)
    assert torch.equal(a.samples, b.samples)


def test_prepare_params_clamps():
    p = prepare_params({"waveforms": [{"type": "sine", "amp": 5.0}]})
    assert p["waveforms"][0]["amplitude"] == 1.0


def test_render_dac_settings():
    session = simulate_recording({"recording": {"duration_s": 0.5, "sample_rate": 8000}})
    dac = render_dac(session, {"dac": {"method": "Linear", "lowpass_hz": 3000.0, "output_rate": 16000}})
    assert dac.method == "Linear"
    assert dac.lowpass_hz == 3000.0
    assert dac.buffer.sample_rate == 16000
    assert len(dac.buffer) == 8000
    assert dac.session_id == session.id


def test_generate_all():
    result = generate_all({"recording": {"duration_s": 1.0}})
    assert result.preview.sample_rate == 48000
    assert result.session.sample_rate == 44100
    assert result.dac.buffer.sample_rate == 48000
    assert len(result.dac.buffer) == 48000
    assert result.dac.session_id == result.session.id


def test_filtered_original_not_clipped():
    # two unit sines peak at 2.0; the recording clips, the analog original must not
    waves = [
        {"shape": "sine", "amplitude": 1.0, "frequency": 100.0},
        {"shape": "sine", "amplitude": 1.0, "frequency": 100.0},
    ]
    recording = {"duration_s": 0.2, "anti_alias": {"kind": "Low-pass", "cutoff_hz": 18000.0}}
    session = simulate_recording({"waveforms": waves, "recording": recording})
    assert float(torch.max(torch.abs(session.original.samples))) > 1.9
    assert float(torch.max(torch.abs(session.quantization.reconstructed.samples))) <= 1.0 + 1e-6
    # clipping error is part of the measured SNR
    assert session.snr_db < 20.0


def test_dither_seed_independent_of_voice_seed():
    waves = [{"shape": "violin", "amplitude": 0.5, "frequency": 196.0}]
    recording = {"duration_s": 0.2, "sample_rate": 8000, "bit_depth": 8, "dither": True}
    session = simulate_recording({"waveforms": waves, "recording": recording}, seed=5)
    own = quantize(session.original, 8, dither=True, seed=5 + DITHER_SEED_OFFSET)
    shared = quantize(session.original, 8, dither=True, seed=5)
    assert torch.equal(session.quantization.encoded, own.encoded)
    assert not torch.equal(session.quantization.encoded, shared.encoded)
