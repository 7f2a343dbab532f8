"""
Voice mixer: sums named voices into one mono bus of a fixed length.
Voices shorter than the bus are zero-padded, longer ones are trimmed.
"""
from typing import Dict, Tuple

import torch


class VoiceMixer:
    """
    Mix voices by summation with an optional per-voice linear gain.
    Each add() stores a copy, so later edits to the caller's tensor never leak into the mix.
    """

    def __init__(self):
        self._voices: Dict[str, Tuple[torch.Tensor, float]] = {}

    def __len__(self) -> int:
        return len(self._voices)

    def add(self, name: str, audio: torch.Tensor, gain: float = 1.0) -> None:
        """Register a voice. Same name overwrites."""
        self._voices[name] = (audio.detach().reshape(-1).clone(), float(gain))

    def mix(self, length: int, return_stems: bool = False) -> Tuple[torch.Tensor, Dict[str, torch.Tensor]]:
        """
        Sum all voices into a float32 buffer of `length` samples.
        Returns (master_tensor, stems_dict). stems_dict is non-empty only when return_stems is True.
        """
        master = torch.zeros(length, dtype=torch.float32)
        stems: Dict[str, torch.Tensor] = {}

        for name, (raw, gain) in self._voices.items():
            layer = raw.float()
            n = layer.shape[-1]
            if n < length:
                layer = torch.nn.functional.pad(layer, (0, length - n))
            elif n > length:
                layer = layer[:length]

            contribution = layer * gain if gain != 1.0 else layer
            master = master + contribution
            if return_stems:
                stems[name] = contribution.clone()

        return master, stems
