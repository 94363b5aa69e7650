from __future__ import annotations

import os
import random
from typing import Optional

import numpy as np


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Return a NumPy generator; unseeded generators draw fresh OS entropy."""
    return np.random.default_rng(seed)


def set_determinism(seed: int = 42, python_hash_seed: int = 0) -> None:
    """Seed Python ``random`` and NumPy so shuffled sessions are reproducible.

    - Sets PYTHONHASHSEED for child processes
    - Seeds Python `random` and the legacy NumPy global RNG
    """
    os.environ["PYTHONHASHSEED"] = str(python_hash_seed)
    random.seed(seed)
    np.random.seed(seed)
