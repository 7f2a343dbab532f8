"""
Caller-contract errors. All subclass ValueError.
"""


class UnsupportedBitDepth(ValueError):
    """Bit depth outside the supported set (8, 16, 24)."""

    def __init__(self, bits, supported=(8, 16, 24)):
        self.bits = bits
        self.supported = tuple(supported)
        super().__init__(f"Unsupported bit depth: {bits} (supported: {', '.join(str(b) for b in self.supported)})")


class UnsupportedCompression(ValueError):
    """Compression mode other than linear PCM ("None") or mu-law."""

    def __init__(self, compression):
        self.compression = compression
        super().__init__(f"Unsupported compression: {compression!r} (expected 'None' or 'μ-law')")


class UnsupportedReconstructionMethod(ValueError):
    """DAC method other than zero-order hold or linear interpolation."""

    def __init__(self, method):
        self.method = method
        super().__init__(f"Unsupported reconstruction method: {method!r} (expected 'ZeroOrderHold' or 'Linear')")
