import zipfile
import io
import json
import math
import re
from typing import Optional

from audiolab.core.io import AudioIO
from audiolab.core.types import DACOutput, RecordingSession

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def bytes_per_minute(sample_rate: int, bits: int, channels: int = 1) -> float:
    """Uncompressed storage for one minute: 60 * fs * (bits / 8) * channels."""
    return 60 * sample_rate * (bits / 8) * channels


def bytes_human(n: float) -> str:
    """1536 -> "1.50 KB". Steps of 1024, capped at GB."""
    i = 0
    v = float(n)
    while v >= 1024 and i < len(_SIZE_UNITS) - 1:
        v /= 1024
        i += 1
    return f"{v:.2f} {_SIZE_UNITS[i]}"


def size_summary(sample_rate: int, bits: int, channels: int = 1) -> str:
    """e.g. "5.05 MB / minute  (1 ch · 44,100 Hz · 16-bit PCM)"."""
    per_minute = bytes_per_minute(sample_rate, bits, channels)
    return f"{bytes_human(per_minute)} / minute  ({channels} ch · {sample_rate:,} Hz · {bits}-bit PCM)"


def wav_filename(session: RecordingSession) -> str:
    """recorded_{fs}Hz_{encoding without whitespace}.wav"""
    encoding = re.sub(r"\s+", "", session.encoding)
    return f"recorded_{session.sample_rate}Hz_{encoding}.wav"


def _json_float(x: float):
    # JSON has no inf; SNR of a lossless recording is +inf
    if math.isfinite(x):
        return round(x, 3)
    return "inf" if x > 0 else "-inf"


class Exporter:
    @staticmethod
    def recording_wav(session: RecordingSession) -> bytes:
        return AudioIO.encode_recording(session.quantization, session.sample_rate, session.channels)

    @staticmethod
    def create_session_zip(session: RecordingSession, dac: Optional[DACOutput] = None) -> bytes:
        """
        Bundle a recording session:
          recorded_<fs>Hz_<encoding>.wav  - the encoded recording
          dac.wav                         - DAC output rendered as 16-bit PCM (when given)
          session_info.json               - settings and measurements
        """
        buffer = io.BytesIO()

        with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zip_file:
            # Metadata
            meta = {
                "session_id": session.id,
                "created_at": session.created_at,
                "sample_rate": session.sample_rate,
                "bit_depth": session.bit_depth,
                "channels": session.channels,
                "duration_s": session.duration_s,
                "encoding": session.encoding,
                "snr_db": _json_float(session.snr_db),
                "theoretical_snr_db": _json_float(session.theoretical_snr_db),
                "settings": session.settings,
            }
            if dac is not None:
                meta["dac"] = {
                    "method": dac.method,
                    "lowpass_hz": dac.lowpass_hz,
                    "output_rate": dac.buffer.sample_rate,
                }
            zip_file.writestr("session_info.json", json.dumps(meta, indent=2, ensure_ascii=False))

            zip_file.writestr(wav_filename(session), Exporter.recording_wav(session))
            if dac is not None:
                wav_bytes = AudioIO.to_bytes(dac.buffer.samples, dac.buffer.sample_rate, subtype="PCM_16")
                zip_file.writestr("dac.wav", wav_bytes)

        return buffer.getvalue()
