from typing import Optional

import torch


def make_generator(seed: Optional[int]) -> Optional[torch.Generator]:
    """Seeded CPU generator, or None to draw from torch's global RNG."""
    if seed is None:
        return None
    gen = torch.Generator()
    gen.manual_seed(int(seed))
    return gen


class Noise:
    @staticmethod
    def uniform(num_samples: int, generator: Optional[torch.Generator] = None) -> torch.Tensor:
        """Uniform noise in [-0.5, 0.5)."""
        return torch.rand(num_samples, generator=generator, dtype=torch.float64) - 0.5

    @staticmethod
    def tpdf(num_samples: int, step: float, generator: Optional[torch.Generator] = None) -> torch.Tensor:
        """
        Triangular-PDF dither: (u1 + u2 - 1) * step, peak +/- one quantization step.
        """
        u1 = torch.rand(num_samples, generator=generator, dtype=torch.float64)
        u2 = torch.rand(num_samples, generator=generator, dtype=torch.float64)
        return (u1 + u2 - 1.0) * step
