from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from topostim.decoders.charge_correction import CorrectionResult
    from topostim.fusion.tree import FusionTreeState


class AnyonicDecoder(ABC):
    """Minimal decoder interface used by the charge-correction pipeline."""

    @abstractmethod
    def decode(self, state: "FusionTreeState") -> "CorrectionResult":
        ...
