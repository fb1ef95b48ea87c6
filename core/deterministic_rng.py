"""Named numpy RNG streams derived from one run seed."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import numpy as np


@dataclass
class DeterministicRNG:
    """Owns deterministic RNG streams without touching global random state."""

    seed: int

    def __post_init__(self) -> None:
        self._streams: dict[str, np.random.Generator] = {}

    def stream(self, name: str) -> np.random.Generator:
        """Return independent deterministic stream by name."""
        if name not in self._streams:
            # derived seed is stable across processes and Python versions
            digest = hashlib.sha256(f"{self.seed}:{name}".encode("utf-8")).digest()
            derived_seed = int.from_bytes(digest[:8], byteorder="big", signed=False)
            self._streams[name] = np.random.default_rng(derived_seed)
        return self._streams[name]
