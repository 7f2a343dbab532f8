"""
Default fidelity thresholds per encoding family.
"""
FIDELITY_THRESHOLDS = {
    "pcm": {
        "snr_shortfall_max_db": 20.0,   # measured SNR may trail 6.02*bits + 1.76 by this much before warning
        "clip_fraction_max": 0.001,     # fraction of input samples at or beyond full scale
    },
    "mu-law": {
        "snr_shortfall_max_db": 25.0,   # companding trades peak SNR for low-level SNR
        "clip_fraction_max": 0.001,
    },
}
