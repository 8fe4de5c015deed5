"""Générateurs pseudo-aléatoires du médium (MT19937)."""

from __future__ import annotations

from typing import Dict, Sequence, Tuple
import zlib

import numpy as np


SeedLike = int | Sequence[int] | np.random.SeedSequence | None


def _mt19937(seed: SeedLike) -> np.random.Generator:
    bitgen = np.random.MT19937() if seed is None else np.random.MT19937(seed)
    return np.random.Generator(bitgen)


def ensure_rng(rng: np.random.Generator | None, seed: SeedLike = 0) -> np.random.Generator:
    """Générateur d'un moteur ou d'un modèle de canal.

    ``rng`` est partagé tel quel ; sinon un flux MT19937 est créé à partir de
    ``seed`` (``None`` : entropie du système).
    """
    return rng if rng is not None else _mt19937(seed)


class RngManager:
    """Flux nommés dérivés d'une graine maître.

    Chaque composant (moteur, canal, radio...) tire dans son propre flux :
    ajouter des tirages dans l'un ne décale pas les autres.
    """

    def __init__(self, master_seed: int) -> None:
        self.master_seed = master_seed
        self._streams: Dict[Tuple[str, int], np.random.Generator] = {}

    def stream(self, name: str, index: int = 0) -> np.random.Generator:
        key = (name, index)
        rng = self._streams.get(key)
        if rng is None:
            # crc32 is stable across runs, unlike hash()
            entropy = [self.master_seed, zlib.crc32(name.encode("utf-8")), index]
            rng = _mt19937(np.random.SeedSequence(entropy))
            self._streams[key] = rng
        return rng


__all__ = ["SeedLike", "ensure_rng", "RngManager"]
