"""
Fidelity analysis and visualization snapshots for rendered and recorded audio.
"""
from audiolab.analysis.fidelity import analyze, compute_snr, theoretical_snr
from audiolab.analysis.spectrum import Analyser, AnalyserFrame, byte_frequency_data, time_domain_snapshot
from audiolab.analysis.thresholds import FIDELITY_THRESHOLDS

__all__ = [
    "analyze",
    "compute_snr",
    "theoretical_snr",
    "Analyser",
    "AnalyserFrame",
    "byte_frequency_data",
    "time_domain_snapshot",
    "FIDELITY_THRESHOLDS",
]
