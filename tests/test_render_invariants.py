"""
Render invariants tests: verify param changes affect output, determinism, and
that the render tool writes what it reports.
"""
import sys
import os
import json
from pathlib import Path

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import soundfile as sf
import torch
from tools.render_core import render_session, compute_audio_fingerprint, get_unique_output_dir


@pytest.fixture
def temp_output_dir(tmp_path):
    """Create temporary output directory for test renders."""
    return Path(tmp_path) / "test_renders"


SHORT = {
    "preview": {"duration_s": 0.2},
    "recording": {"duration_s": 0.2, "sample_rate": 8000},
}


def _with(section, **values):
    params = {k: dict(v) for k, v in SHORT.items()}
    params.setdefault(section, {}).update(values)
    return params


class TestParamSweepInvariants:
    """Verify that parameter changes produce different outputs."""

    def test_bit_depth_changes_recording(self, temp_output_dir):
        _, info8 = render_session(_with("recording", bit_depth=8), temp_output_dir, "b8", seed=42)
        _, info16 = render_session(_with("recording", bit_depth=16), temp_output_dir, "b16", seed=42)
        assert info8["fingerprints"]["recording"]["sha256"] != info16["fingerprints"]["recording"]["sha256"]
        # preview does not depend on the recording chain
        assert info8["fingerprints"]["preview"]["sha256"] == info16["fingerprints"]["preview"]["sha256"]

    def test_dac_method_changes_dac_only(self, temp_output_dir):
        _, zoh = render_session(_with("dac", method="ZeroOrderHold"), temp_output_dir, "zoh", seed=42)
        _, lin = render_session(_with("dac", method="Linear"), temp_output_dir, "lin", seed=42)
        assert zoh["fingerprints"]["dac"]["sha256"] != lin["fingerprints"]["dac"]["sha256"]
        assert zoh["fingerprints"]["recording"]["sha256"] == lin["fingerprints"]["recording"]["sha256"]
        # interpolation suppresses the images around multiples of the recording rate
        assert zoh["fingerprints"]["dac"]["image_energy_ratio"] > lin["fingerprints"]["dac"]["image_energy_ratio"]
        assert zoh["fingerprints"]["preview"]["image_energy_ratio"] == 0.0

    def test_waveform_shape_changes_preview(self, temp_output_dir):
        sine = dict(SHORT, waveforms=[{"shape": "sine"}])
        square = dict(SHORT, waveforms=[{"shape": "square"}])
        _, a = render_session(sine, temp_output_dir, "sine", seed=42)
        _, b = render_session(square, temp_output_dir, "square", seed=42)
        assert a["fingerprints"]["preview"]["sha256"] != b["fingerprints"]["preview"]["sha256"]


class TestDeterminism:
    def test_same_seed_same_output(self, temp_output_dir):
        params = dict(SHORT, waveforms=[{"shape": "violin", "frequency": 196.0}])
        params["recording"] = dict(SHORT["recording"], dither=True, bit_depth=8)
        _, a = render_session(params, temp_output_dir, "a", seed=7)
        _, b = render_session(params, temp_output_dir, "b", seed=7)
        for stage in ("preview", "recording", "dac"):
            assert a["fingerprints"][stage]["sha256"] == b["fingerprints"][stage]["sha256"], stage


class TestOutputs:
    def test_files_written(self, temp_output_dir):
        result, info = render_session(
            SHORT, temp_output_dir, "take", seed=1, debug=True, qc=True, bundle=True,
            script_name="test_render_invariants",
        )
        for path in info["wav_paths"].values():
            assert Path(path).exists()
        assert Path(info["zip_path"]).exists()
        assert info["wav_paths"]["recording"].endswith("take.recorded_8000Hz_16-bitPCM.wav")

        resolved = json.loads((temp_output_dir / "take.resolved.json").read_text())
        assert resolved["seed"] == 1
        assert resolved["script_name"] == "test_render_invariants"
        assert resolved["resolved_params"]["recording"]["sample_rate"] == 8000
        assert info["qc_result"]["status"] == "PASS"

        audio, sr = sf.read(info["wav_paths"]["dac"])
        assert sr == 48000
        assert len(audio) == len(result.dac.buffer)

    def test_no_debug_json_by_default(self, temp_output_dir):
        render_session(SHORT, temp_output_dir, "quiet", seed=1)
        assert not (temp_output_dir / "quiet.resolved.json").exists()

    def test_fingerprint_short_input(self):
        fp = compute_audio_fingerprint(torch.tensor([0.5]), 8000)
        assert fp["peak"] == 0.5
        assert fp["rms"] == 0.0

    def test_unique_output_dir(self):
        path = get_unique_output_dir("sweep")
        assert path.parts[:2] == ("renders", "sweep")
