"""
Render helpers for the dev tools: run the session pipeline, write WAVs, fingerprint
each stage and trace the resolved params.
"""
import sys
import os
import json
import hashlib
import random
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch

from audiolab.analysis.fidelity import analyze
from audiolab.analysis.spectrum import dominant_frequency
from audiolab.core.io import AudioIO
from audiolab.export.exporter import Exporter, wav_filename
from audiolab.pipeline.session import PipelineResult, generate_all, prepare_params


def _get_git_hash() -> str:
    """Get short git commit hash."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
        )
    except (OSError, subprocess.SubprocessError):
        return "unknown"
    if result.returncode == 0:
        return result.stdout.strip()
    return "unknown"


def compute_audio_fingerprint(audio: torch.Tensor, sample_rate: int, band_limit_hz: Optional[float] = None) -> Dict:
    """
    SHA256 of the sample bytes, peak, RMS and dominant frequency.
    With band_limit_hz (the recording Nyquist for DAC output), also the share of
    spectral energy above it, i.e. the reconstruction images left in the signal.
    """
    samples = audio.reshape(-1).float()
    digest = hashlib.sha256(samples.numpy().tobytes()).hexdigest()

    if samples.numel() < 2:
        peak = float(samples.abs().max()) if samples.numel() else 0.0
        return {"sha256": digest, "peak": peak, "rms": 0.0, "dominant_hz": 0.0, "image_energy_ratio": 0.0}

    power = torch.abs(torch.fft.rfft(samples.double())) ** 2
    freqs = torch.fft.rfftfreq(samples.numel(), 1.0 / sample_rate, dtype=torch.float64)
    total = float(power[1:].sum())
    images = 0.0
    if band_limit_hz is not None and total > 0:
        images = float(power[freqs > band_limit_hz].sum()) / total

    return {
        "sha256": digest,
        "peak": float(samples.abs().max()),
        "rms": float(torch.sqrt(torch.mean(samples.double() ** 2))),
        "dominant_hz": dominant_frequency(samples, sample_rate),
        "image_energy_ratio": images,
    }


def render_session(
    params: dict,
    output_dir: Path,
    filename: str,
    seed: Optional[int] = None,
    debug: bool = False,
    qc: bool = False,
    bundle: bool = False,
    script_name: str = "unknown",
) -> Tuple[PipelineResult, Dict]:
    """
    Run preview -> recording -> DAC with full param tracing and fingerprinting.

    Args:
        params: Input session params dict (partial is fine)
        output_dir: Directory to save WAVs and debug JSON
        filename: Base filename (without extension)
        seed: Random seed for violin voices and dither (None = random)
        debug: Enable debug outputs (saves resolved.json)
        qc: Run fidelity analysis
        bundle: Also write the session zip
        script_name: Name of calling script (for debug JSON)

    Returns:
        Tuple of (pipeline result, debug_info dict)
    """
    # Generate seed if not provided
    if seed is None:
        seed = random.randint(0, 2**31 - 1)

    input_params = dict(params) if params else {}
    resolved_params = prepare_params(input_params)

    result = generate_all(input_params, seed=seed)
    session = result.session

    fingerprints = {
        "preview": compute_audio_fingerprint(result.preview.samples, result.preview.sample_rate),
        "recording": compute_audio_fingerprint(session.quantization.reconstructed.samples, session.sample_rate),
        "error": compute_audio_fingerprint(session.quantization.error.samples, session.sample_rate),
        "dac": compute_audio_fingerprint(
            result.dac.buffer.samples, result.dac.buffer.sample_rate, band_limit_hz=session.sample_rate / 2
        ),
    }

    qc_result = analyze(session) if qc else None

    # Save WAVs
    output_dir.mkdir(parents=True, exist_ok=True)
    preview_path = output_dir / f"{filename}.preview.wav"
    AudioIO.save_wav(result.preview.samples, result.preview.sample_rate, str(preview_path))
    recording_path = output_dir / f"{filename}.{wav_filename(session)}"
    recording_path.write_bytes(Exporter.recording_wav(session))
    dac_path = output_dir / f"{filename}.dac.wav"
    AudioIO.save_wav(result.dac.buffer.samples, result.dac.buffer.sample_rate, str(dac_path))

    zip_path = None
    if bundle:
        zip_path = output_dir / f"{filename}.zip"
        zip_path.write_bytes(Exporter.create_session_zip(session, result.dac))

    debug_info = {
        "script_name": script_name,
        "timestamp": datetime.now().isoformat(),
        "git_hash": _get_git_hash(),
        "seed": seed,
        "session_id": session.id,
        "encoding": session.encoding,
        "snr_db": session.snr_db,
        "theoretical_snr_db": session.theoretical_snr_db,
        "input_params": input_params,
        "resolved_params": resolved_params,
        "fingerprints": fingerprints,
        "qc_result": qc_result,
        "wav_paths": {
            "preview": str(preview_path),
            "recording": str(recording_path),
            "dac": str(dac_path),
        },
        "zip_path": str(zip_path) if zip_path else None,
    }

    if debug:
        json_path = output_dir / f"{filename}.resolved.json"
        with open(json_path, "w") as f:
            json.dump(debug_info, f, indent=2, default=str, ensure_ascii=False)

    return result, debug_info


def get_unique_output_dir(base_name: str) -> Path:
    """
    Generate unique output directory: renders/{base_name}/YYYYMMDD_HHMMSS_{gitshort}/
    """
    now = datetime.now()
    date_str = now.strftime("%Y%m%d")
    time_str = now.strftime("%H%M%S")
    git_hash = _get_git_hash()
    short_hash = git_hash[:8] if git_hash != "unknown" else "unknown"

    unique_dir = Path("renders") / base_name / f"{date_str}_{time_str}_{short_hash}"
    return unique_dir
